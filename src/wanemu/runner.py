"""
Command runners: the execution boundary for tc and ip commands.

A runner takes an argument vector and returns a CommandResult. Nonzero
exit codes are returned, not raised; only failures to deliver the command
or collect its result raise TransportError. Quoting happens here and
nowhere else.
"""

import logging
import shlex
import subprocess
from dataclasses import dataclass
from typing import Optional, Sequence

import paramiko

from .exceptions import ConnectionFailedError, TransportError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10


@dataclass
class CommandResult:
    """Outcome of one command."""

    command: str
    stdout: str = ""
    stderr: str = ""
    returncode: int = 0

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def to_dict(self) -> dict:
        return {
            "cmd": self.command,
            "stdout": self.stdout,
            "stderr": self.stderr,
            "code": self.returncode,
        }


class CommandRunner:
    """
    Base class for runners.

    Privileged commands get ``sudo_prefix`` prepended. Set it to an empty
    sequence when already running as root.
    """

    def __init__(self, sudo_prefix: Sequence[str] = ("sudo",)):
        self.sudo_prefix = tuple(sudo_prefix)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def _argv(self, argv: Sequence[str], privileged: bool) -> list[str]:
        if privileged:
            return [*self.sudo_prefix, *argv]
        return list(argv)

    def run(
        self,
        argv: Sequence[str],
        privileged: bool = False,
        timeout: Optional[float] = None,
    ) -> CommandResult:
        raise NotImplementedError

    def close(self) -> None:
        pass


class LocalRunner(CommandRunner):
    """Runs commands on this machine with subprocess."""

    def run(
        self,
        argv: Sequence[str],
        privileged: bool = False,
        timeout: Optional[float] = None,
    ) -> CommandResult:
        full = self._argv(argv, privileged)
        command = shlex.join(full)
        logger.debug(f"Running: {command}")

        try:
            result = subprocess.run(
                full,
                capture_output=True,
                text=True,
                timeout=timeout or DEFAULT_TIMEOUT,
            )
        except subprocess.TimeoutExpired:
            raise TransportError(command, "timed out")
        except OSError as e:
            raise TransportError(command, str(e))

        return CommandResult(
            command=command,
            stdout=result.stdout,
            stderr=result.stderr,
            returncode=result.returncode,
        )


class SSHRunner(CommandRunner):
    """
    Runs commands on a remote host over SSH.

    Example:
        >>> runner = SSHRunner.connect("192.0.2.10", username="ops", password="...")
        >>> runner.run(["tc", "qdisc", "show"]).stdout
        'qdisc noqueue 0: dev lo root refcnt 2\\n'
        >>> runner.close()
    """

    def __init__(
        self,
        client: paramiko.SSHClient,
        host: str = "",
        sudo_prefix: Sequence[str] = ("sudo",),
    ):
        super().__init__(sudo_prefix)
        self.client = client
        self.host = host

    @classmethod
    def connect(
        cls,
        host: str,
        username: str,
        password: Optional[str] = None,
        port: int = 22,
        timeout: float = 10,
        keepalive: int = 30,
        sudo_prefix: Sequence[str] = ("sudo",),
    ) -> "SSHRunner":
        """
        Open an SSH session.

        Raises:
            ConnectionFailedError: If the host is unreachable or rejects
                the credentials.
        """
        client = paramiko.SSHClient()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        try:
            client.connect(
                host,
                port=port,
                username=username,
                password=password,
                timeout=timeout,
                banner_timeout=timeout,
                auth_timeout=timeout,
            )
        except (paramiko.SSHException, OSError) as e:
            client.close()
            raise ConnectionFailedError(host, str(e) or type(e).__name__)

        transport = client.get_transport()
        if transport is not None:
            transport.set_keepalive(keepalive)

        logger.info(f"Connected to {username}@{host}:{port}")
        return cls(client, host=host, sudo_prefix=sudo_prefix)

    def run(
        self,
        argv: Sequence[str],
        privileged: bool = False,
        timeout: Optional[float] = None,
    ) -> CommandResult:
        command = shlex.join(self._argv(argv, privileged))
        logger.debug(f"Running on {self.host}: {command}")

        try:
            _, stdout, stderr = self.client.exec_command(
                command, timeout=timeout or DEFAULT_TIMEOUT
            )
            out = stdout.read().decode(errors="replace")
            err = stderr.read().decode(errors="replace")
            returncode = stdout.channel.recv_exit_status()
        except (paramiko.SSHException, OSError) as e:
            raise TransportError(command, str(e) or type(e).__name__)

        return CommandResult(command=command, stdout=out, stderr=err, returncode=returncode)

    def close(self) -> None:
        self.client.close()
        logger.info(f"Closed SSH session to {self.host}")
