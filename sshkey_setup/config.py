# sshkey_setup/config.py
"""
Centralized configuration for sshkey-setup.

The key location and parameters are fixed; only the behaviour around an
already-existing key can be changed from the environment.

Usage:
    from sshkey_setup.config import KEY_TYPE, KEY_BITS

Environment Variables:
    SSHKEY_SETUP_EXISTING_KEY: Policy when the key path is taken
        (prompt, skip, backup, overwrite, abort; default: prompt)
"""

import os
from pathlib import Path
from typing import Final, Optional

# =============================================================================
# Key Parameters
# =============================================================================

KEY_TYPE: Final[str] = "rsa"
KEY_BITS: Final[int] = 4096

# <home>/.ssh/id_rsa and <home>/.ssh/id_rsa.pub
KEY_DIR_NAME: Final[str] = ".ssh"
KEY_FILE_NAME: Final[str] = "id_rsa"
PUBLIC_KEY_SUFFIX: Final[str] = ".pub"

KEY_DIR_MODE: Final[int] = 0o700

# Appended to backed-up key files: id_rsa.bak-20260101120000
BACKUP_SUFFIX_FORMAT: Final[str] = ".bak-%Y%m%d%H%M%S"

# =============================================================================
# Existing Key Policy
# =============================================================================

# One of: prompt, skip, backup, overwrite, abort
DEFAULT_EXISTING_KEY_POLICY: Final[str] = os.getenv(
    "SSHKEY_SETUP_EXISTING_KEY",
    "prompt",
).strip().lower()

# =============================================================================
# Helper Functions
# =============================================================================


def get_key_dir(home: Optional[Path] = None) -> Path:
    """
    Return the directory holding the keypair.

    Args:
        home: Home directory to resolve against (default: the invoking user's)

    Returns:
        Path to <home>/.ssh
    """
    base = home if home is not None else Path.home()
    return base / KEY_DIR_NAME


def print_config() -> None:
    """Print current configuration (useful for debugging)."""
    print("sshkey-setup Configuration:")
    print(f"  KEY_TYPE:            {KEY_TYPE}")
    print(f"  KEY_BITS:            {KEY_BITS}")
    print(f"  KEY_DIR:             {get_key_dir()}")
    print(f"  KEY_FILE_NAME:       {KEY_FILE_NAME}")
    print(f"  EXISTING_KEY_POLICY: {DEFAULT_EXISTING_KEY_POLICY}")


if __name__ == "__main__":
    print_config()
