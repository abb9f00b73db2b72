"""
SSH agent discovery, startup and key registration.

Agent state is carried in an AgentHandle value. Nothing here touches
os.environ: callers pass the environment in and get a handle back, and the
handle builds the environment for ssh-add.
"""

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from sshkey_setup.errors import AgentError
from sshkey_setup.tools import ToolRunner, run_tool


logger = logging.getLogger(__name__)

AUTH_SOCK_VAR = "SSH_AUTH_SOCK"
AGENT_PID_VAR = "SSH_AGENT_PID"

# ssh-add -l exit status: 0 = keys listed, 1 = agent has no keys, 2 = no agent
_LIST_REACHABLE = (0, 1)

# Matches "SSH_AUTH_SOCK=/tmp/ssh-x/agent.1; export SSH_AUTH_SOCK;" (sh syntax)
# and "setenv SSH_AUTH_SOCK /tmp/ssh-x/agent.1;" (csh syntax)
_SH_VAR = re.compile(r"\b(SSH_AUTH_SOCK|SSH_AGENT_PID)=([^;\s]+)")
_CSH_VAR = re.compile(r"\bsetenv\s+(SSH_AUTH_SOCK|SSH_AGENT_PID)\s+([^;\s]+)")


@dataclass
class AgentHandle:
    """
    A reachable SSH agent.

    Attributes:
        auth_sock: Path of the agent's UNIX socket
        pid: Agent process id, None when attached to an agent started elsewhere
            and SSH_AGENT_PID was not set
        started: True if this run launched the agent
    """
    auth_sock: str
    pid: Optional[int] = None
    started: bool = False

    def env(self, base: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
        """Return a copy of base with the agent variables set."""
        merged = dict(os.environ if base is None else base)
        merged[AUTH_SOCK_VAR] = self.auth_sock
        if self.pid is not None:
            merged[AGENT_PID_VAR] = str(self.pid)
        return merged

    def export_lines(self) -> List[str]:
        """Shell lines that attach another session to this agent."""
        lines = [f"export {AUTH_SOCK_VAR}={self.auth_sock}"]
        if self.pid is not None:
            lines.append(f"export {AGENT_PID_VAR}={self.pid}")
        return lines


def parse_agent_output(output: str) -> AgentHandle:
    """
    Parse the variables printed by `ssh-agent -s` (or -c).

    Raises:
        AgentError: If no socket path is present in the output.
    """
    found = {}
    for pattern in (_SH_VAR, _CSH_VAR):
        for name, value in pattern.findall(output):
            found.setdefault(name, value)

    auth_sock = found.get(AUTH_SOCK_VAR)
    if not auth_sock:
        raise AgentError(f"Could not find {AUTH_SOCK_VAR} in ssh-agent output")

    pid = None
    if AGENT_PID_VAR in found:
        try:
            pid = int(found[AGENT_PID_VAR])
        except ValueError:
            logger.warning(f"Ignoring non-numeric {AGENT_PID_VAR}: {found[AGENT_PID_VAR]}")

    return AgentHandle(auth_sock=auth_sock, pid=pid, started=True)


def find_running_agent(
    env: Optional[Mapping[str, str]] = None,
    runner: ToolRunner = run_tool,
) -> Optional[AgentHandle]:
    """
    Return a handle for the agent named by SSH_AUTH_SOCK if it answers.

    Returns:
        AgentHandle with started=False, or None if there is no usable agent.
    """
    env = dict(os.environ if env is None else env)
    auth_sock = env.get(AUTH_SOCK_VAR)
    if not auth_sock:
        return None

    result = runner(["ssh-add", "-l"], env=env)
    if result.returncode not in _LIST_REACHABLE:
        logger.debug(f"Agent at {auth_sock} is not reachable: {result.diagnostic}")
        return None

    pid = None
    raw_pid = env.get(AGENT_PID_VAR)
    if raw_pid and raw_pid.isdigit():
        pid = int(raw_pid)

    return AgentHandle(auth_sock=auth_sock, pid=pid, started=False)


def start_agent(
    env: Optional[Mapping[str, str]] = None,
    runner: ToolRunner = run_tool,
) -> AgentHandle:
    """
    Launch a new ssh-agent in the background.

    Raises:
        AgentError: If ssh-agent fails or its output cannot be parsed.
    """
    result = runner(["ssh-agent", "-s"], env=env)
    if not result.ok:
        raise AgentError(f"Could not start ssh-agent: {result.diagnostic}", result)

    handle = parse_agent_output(result.stdout)
    logger.info(f"Started ssh-agent (pid {handle.pid}) at {handle.auth_sock}")
    return handle


def ensure_agent(
    env: Optional[Mapping[str, str]] = None,
    runner: ToolRunner = run_tool,
) -> AgentHandle:
    """Attach to the session's agent, or start one if there is none."""
    handle = find_running_agent(env, runner)
    if handle is not None:
        logger.debug(f"Using running ssh-agent at {handle.auth_sock}")
        return handle
    return start_agent(env, runner)


def add_key(
    handle: AgentHandle,
    key_path: Path,
    env: Optional[Mapping[str, str]] = None,
    runner: ToolRunner = run_tool,
) -> None:
    """
    Register a private key with the agent.

    Raises:
        AgentError: If ssh-add rejects the key or cannot reach the agent.
    """
    result = runner(["ssh-add", str(key_path)], env=handle.env(env))
    if not result.ok:
        raise AgentError(f"Could not add {key_path} to ssh-agent: {result.diagnostic}", result)
    logger.info(f"Added {key_path} to ssh-agent at {handle.auth_sock}")
