"""
SSH keypair generation for sshkey-setup.

Wraps ssh-keygen with a fixed RSA 4096 configuration at <home>/.ssh/id_rsa and
makes the handling of an already-existing keypair an explicit policy instead
of whatever ssh-keygen happens to ask.
"""

import logging
import os
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional

from sshkey_setup import config
from sshkey_setup.errors import (
    KeyDirectoryError,
    KeyExistsError,
    KeyFileError,
    KeyGenerationError,
)
from sshkey_setup.tools import ToolRunner, run_tool


logger = logging.getLogger(__name__)


# =============================================================================
# Types
# =============================================================================

class ExistingKeyPolicy(str, Enum):
    """What to do when a keypair already exists at the target path."""
    PROMPT = "prompt"
    SKIP = "skip"
    BACKUP = "backup"
    OVERWRITE = "overwrite"
    ABORT = "abort"

    @classmethod
    def parse(cls, value: str) -> "ExistingKeyPolicy":
        try:
            return cls(value.strip().lower())
        except ValueError:
            choices = ", ".join(p.value for p in cls)
            raise ValueError(f"Unknown existing-key policy '{value}' (choose from: {choices})")


@dataclass
class KeyPaths:
    """Location of the private and public key files."""
    directory: Path
    private_key: Path
    public_key: Path

    @classmethod
    def for_home(cls, home: Optional[Path] = None) -> "KeyPaths":
        directory = config.get_key_dir(home)
        private_key = directory / config.KEY_FILE_NAME
        return cls(
            directory=directory,
            private_key=private_key,
            public_key=private_key.with_name(private_key.name + config.PUBLIC_KEY_SUFFIX),
        )

    def exists(self) -> bool:
        """True when either half of the keypair is already on disk."""
        return self.private_key.exists() or self.public_key.exists()

    def complete(self) -> bool:
        return self.private_key.is_file() and self.public_key.is_file()


# Called with the KeyPaths when the policy is PROMPT; returns the chosen policy
PolicyChooser = Callable[[KeyPaths], ExistingKeyPolicy]


# =============================================================================
# Directory
# =============================================================================

def ensure_key_dir(paths: KeyPaths) -> bool:
    """
    Create the key directory (with parents) if it does not exist.

    Returns:
        True if the directory was created, False if it was already there.

    Raises:
        KeyDirectoryError: If the directory cannot be created.
    """
    if paths.directory.is_dir():
        return False

    try:
        paths.directory.mkdir(parents=True, mode=config.KEY_DIR_MODE)
    except OSError as e:
        raise KeyDirectoryError(f"Could not create key directory {paths.directory}: {e}")

    logger.info(f"Created key directory {paths.directory}")
    return True


# =============================================================================
# Existing Keys
# =============================================================================

def backup_keypair(paths: KeyPaths, now: Optional[datetime] = None) -> List[Path]:
    """
    Move an existing keypair aside with a timestamp suffix.

    Returns:
        The new paths of the files that were moved.

    Raises:
        KeyFileError: If a file cannot be renamed.
    """
    suffix = (now or datetime.now()).strftime(config.BACKUP_SUFFIX_FORMAT)
    moved = []
    for path in (paths.private_key, paths.public_key):
        if not path.exists():
            continue
        target = path.with_name(path.name + suffix)
        try:
            path.rename(target)
        except OSError as e:
            raise KeyFileError(f"Could not back up {path}: {e}")
        logger.info(f"Backed up {path} to {target}")
        moved.append(target)
    return moved


def remove_keypair(paths: KeyPaths) -> None:
    for path in (paths.private_key, paths.public_key):
        if not path.exists():
            continue
        try:
            path.unlink()
        except OSError as e:
            raise KeyFileError(f"Could not remove {path}: {e}")
        logger.info(f"Removed existing key file {path}")


def resolve_existing_key(
    paths: KeyPaths,
    policy: ExistingKeyPolicy,
    chooser: Optional[PolicyChooser] = None,
) -> ExistingKeyPolicy:
    """
    Decide the concrete policy for an existing keypair.

    PROMPT is resolved through the chooser; without one (non-interactive
    runs) it becomes ABORT so an existing key is never replaced silently.

    Raises:
        KeyExistsError: If the resolved policy is ABORT.
    """
    if policy == ExistingKeyPolicy.PROMPT:
        policy = chooser(paths) if chooser is not None else ExistingKeyPolicy.ABORT
        if policy == ExistingKeyPolicy.PROMPT:
            policy = ExistingKeyPolicy.ABORT

    if policy == ExistingKeyPolicy.ABORT:
        raise KeyExistsError(paths.private_key)

    logger.debug(f"Existing key at {paths.private_key}: applying '{policy.value}'")
    return policy


# =============================================================================
# Generation
# =============================================================================

def build_keygen_command(identity: str, paths: KeyPaths) -> List[str]:
    return [
        "ssh-keygen",
        "-t", config.KEY_TYPE,
        "-b", str(config.KEY_BITS),
        "-C", identity,
        "-f", str(paths.private_key),
    ]


def generate_keypair(
    identity: str,
    paths: KeyPaths,
    runner: ToolRunner = run_tool,
) -> None:
    """
    Run ssh-keygen for the identity and check that both files were written.

    The caller must have cleared the target path first; ssh-keygen would
    otherwise ask its own overwrite question.

    Raises:
        KeyGenerationError: If ssh-keygen fails or the keypair is incomplete.
    """
    result = runner(build_keygen_command(identity, paths))
    if not result.ok:
        raise KeyGenerationError(f"Key generation failed: {result.diagnostic}", result)

    if not paths.complete():
        raise KeyGenerationError(
            f"Key generation failed: ssh-keygen did not write {paths.private_key} "
            f"and {paths.public_key}",
            result,
        )

    try:
        os.chmod(paths.private_key, 0o600)
    except OSError as e:
        logger.warning(f"Could not restrict permissions on {paths.private_key}: {e}")

    logger.info(f"Generated {config.KEY_TYPE.upper()} {config.KEY_BITS} keypair at {paths.private_key}")


def read_public_key(paths: KeyPaths) -> str:
    """
    Return the public key line without the trailing newline.

    Raises:
        KeyGenerationError: If the file cannot be read as text.
    """
    try:
        return paths.public_key.read_text().strip()
    except (OSError, UnicodeDecodeError) as e:
        raise KeyGenerationError(f"Could not read public key {paths.public_key}: {e}")


def public_key_comment(public_key: str) -> str:
    """
    Extract the comment field from an OpenSSH public key line.

    "ssh-rsa AAAA... you@example.com" -> "you@example.com"
    """
    parts = public_key.strip().split(None, 2)
    return parts[2] if len(parts) == 3 else ""
