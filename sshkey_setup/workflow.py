"""
The sshkey-setup workflow.

Four gates run in order: identity present, key directory ready, keypair
generated (or an existing one kept), then agent registration and clipboard
copy. Only the first three can stop the run; the last two degrade to
warnings recorded on the SetupReport.
"""

import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Mapping, Optional, Sequence

from sshkey_setup import agent as agent_mod
from sshkey_setup import clipboard, keygen
from sshkey_setup.agent import AgentHandle
from sshkey_setup.clipboard import ClipboardBackend
from sshkey_setup.errors import AgentError, KeyGenerationError, MissingIdentityError
from sshkey_setup.keygen import ExistingKeyPolicy, KeyPaths, PolicyChooser
from sshkey_setup.tools import ToolRunner, run_tool


logger = logging.getLogger(__name__)


@dataclass
class SetupReport:
    """
    Everything a run did, for display and for tests.

    Attributes:
        identity: Comment written into the key
        paths: Location of the keypair
        public_key: Contents of the public key file
        generated: False when an existing keypair was kept (skip policy)
        directory_created: True if <home>/.ssh had to be created
        backups: Where a previous keypair was moved to (backup policy)
        agent: Agent the key was offered to, None if no agent could be used
        agent_registered: True if ssh-add accepted the key
        clipboard_backend: Name of the clipboard tool used, None if none
        copied: True if the clipboard tool exited successfully
        warnings: Non-fatal problems, in the order they happened
    """
    identity: str
    paths: KeyPaths
    public_key: str = ""
    generated: bool = False
    directory_created: bool = False
    backups: List[Path] = field(default_factory=list)
    agent: Optional[AgentHandle] = None
    agent_registered: bool = False
    clipboard_backend: Optional[str] = None
    copied: bool = False
    warnings: List[str] = field(default_factory=list)

    def warn(self, message: str) -> None:
        logger.warning(message)
        self.warnings.append(message)


def validate_identity(identity: Optional[str]) -> str:
    """
    Raises:
        MissingIdentityError: If identity is None or blank.
    """
    if identity is None or not identity.strip():
        raise MissingIdentityError()
    return identity


def prepare_keypair(
    report: SetupReport,
    policy: ExistingKeyPolicy,
    chooser: Optional[PolicyChooser],
    runner: ToolRunner,
) -> None:
    paths = report.paths
    if paths.exists():
        resolved = keygen.resolve_existing_key(paths, policy, chooser)
        if resolved == ExistingKeyPolicy.SKIP:
            if not paths.complete():
                raise KeyGenerationError(
                    f"Cannot reuse incomplete keypair at {paths.private_key}; "
                    "use --existing backup or overwrite"
                )
            logger.info(f"Keeping existing keypair at {paths.private_key}")
            return
        if resolved == ExistingKeyPolicy.BACKUP:
            report.backups = keygen.backup_keypair(paths)
        elif resolved == ExistingKeyPolicy.OVERWRITE:
            keygen.remove_keypair(paths)

    keygen.generate_keypair(report.identity, paths, runner)
    report.generated = True


def register_with_agent(
    report: SetupReport,
    env: Optional[Mapping[str, str]],
    runner: ToolRunner,
) -> None:
    try:
        report.agent = agent_mod.ensure_agent(env, runner)
        agent_mod.add_key(report.agent, report.paths.private_key, env, runner)
        report.agent_registered = True
    except AgentError as e:
        report.warn(f"{e} (the keypair was still created)")


def copy_to_clipboard(
    report: SetupReport,
    backends: Optional[Sequence[ClipboardBackend]],
    which: Callable[[str], Optional[str]],
    runner: ToolRunner,
) -> None:
    backend = clipboard.detect_backend(backends, which)
    if backend is None:
        return

    report.clipboard_backend = backend.name
    # Same bytes as the .pub file ssh-keygen writes
    result = clipboard.copy_text(backend, report.public_key + "\n", runner)
    if result.ok:
        report.copied = True
    else:
        report.warn(f"Copying with {backend.name} failed: {result.diagnostic}")


def run_setup(
    identity: Optional[str],
    policy: ExistingKeyPolicy = ExistingKeyPolicy.PROMPT,
    chooser: Optional[PolicyChooser] = None,
    home: Optional[Path] = None,
    env: Optional[Mapping[str, str]] = None,
    runner: ToolRunner = run_tool,
    which: Callable[[str], Optional[str]] = shutil.which,
    backends: Optional[Sequence[ClipboardBackend]] = None,
) -> SetupReport:
    """
    Generate, register and copy an SSH key for identity.

    Args:
        identity: Email-like label used as the key comment
        policy: What to do if a keypair already exists
        chooser: Asks the user when policy is PROMPT; None means non-interactive
        home: Home directory holding .ssh (default: the invoking user's)
        env: Environment used to find or start the agent (default: os.environ)
        runner: Executes external tools
        which: Locates clipboard executables
        backends: Clipboard lookup order (default: clipboard.DEFAULT_BACKENDS)

    Returns:
        SetupReport describing the run.

    Raises:
        MissingIdentityError: identity is missing or blank.
        KeyDirectoryError: <home>/.ssh cannot be created.
        KeyExistsError: a keypair exists and the policy resolved to abort.
        KeyFileError: an existing keypair cannot be backed up or removed.
        KeyGenerationError: ssh-keygen failed or the public key is unreadable.
    """
    identity = validate_identity(identity)
    report = SetupReport(identity=identity, paths=KeyPaths.for_home(home))

    report.directory_created = keygen.ensure_key_dir(report.paths)
    prepare_keypair(report, policy, chooser, runner)
    report.public_key = keygen.read_public_key(report.paths)

    register_with_agent(report, env, runner)
    copy_to_clipboard(report, backends, which, runner)
    return report
