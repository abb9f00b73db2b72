"""
Exceptions raised by the sshkey-setup workflow.

Every error except AgentError stops a run. AgentError is downgraded to a warning by the
workflow because the keypair is still usable without an agent.
"""

from typing import Optional


class SetupError(Exception):
    """Base exception for sshkey-setup errors."""

    pass


class MissingIdentityError(SetupError):
    """Raised when no identity (key comment) was supplied."""

    def __init__(
        self,
        message: str = "An email identity is required, e.g. sshkey-setup you@example.com",
    ):
        super().__init__(message)


class KeyDirectoryError(SetupError):
    """Raised when the key directory cannot be created."""

    pass


class KeyExistsError(SetupError):
    """Raised when a keypair already exists and the policy says to stop."""

    def __init__(self, path, message: Optional[str] = None):
        self.path = path
        super().__init__(
            message
            or f"A key already exists at {path}. Re-run with --existing skip, backup or overwrite."
        )


class KeyGenerationError(SetupError):
    """Raised when ssh-keygen fails or does not produce both key files."""

    def __init__(self, message: str, result=None):
        self.result = result
        super().__init__(message)


class AgentError(SetupError):
    """Raised when the SSH agent cannot be reached, started or fed the key."""

    def __init__(self, message: str, result=None):
        self.result = result
        super().__init__(message)


class KeyFileError(SetupError):
    """Raised when an existing key file cannot be backed up or removed."""

    pass
