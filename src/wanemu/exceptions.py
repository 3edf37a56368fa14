"""
Custom exceptions for the wanemu package.
"""

from typing import Optional


class WanEmuError(Exception):
    """Base exception for all wanemu errors."""

    pass


class InvalidStateError(WanEmuError, ValueError):
    """
    Raised when a desired impairment state cannot be turned into a plan.

    Negative, non-finite and non-numeric values are rejected before any
    command is composed.
    """

    def __init__(self, field: str, value, reason: str):
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid {field}={value!r}: {reason}")


class CommandFailedError(WanEmuError):
    """
    Raised when a tc/ip command exits with a nonzero status.

    This may indicate insufficient permissions, invalid parameters,
    or missing kernel modules.
    """

    def __init__(self, command: str, returncode: int, stderr: str = ""):
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        message = f"Command failed (exit {returncode}): {command}"
        if stderr:
            message += f"\nStderr: {stderr}"
        super().__init__(message)


class PlanAbortedError(CommandFailedError):
    """
    Raised when a plan stops part-way because a required command failed.

    The commands that ran before the failure stay applied on the host;
    ``results`` holds every result collected so far, the failing one last.
    """

    def __init__(self, plan, results: list, failed):
        self.plan = plan
        self.results = results
        self.failed = failed
        super().__init__(failed.command, failed.returncode, failed.stderr.strip())

    @property
    def applied(self) -> int:
        """Number of commands that completed before the failure."""
        return len(self.results) - 1


class TransportError(WanEmuError):
    """Raised when a command could not be delivered or its result collected."""

    def __init__(self, command: str, reason: str):
        self.command = command
        self.reason = reason
        super().__init__(f"Could not run '{command}': {reason}")


class ConnectionFailedError(WanEmuError):
    """
    Raised when an SSH session to a target host cannot be opened.

    Check the address, credentials and that sshd is reachable.
    """

    def __init__(self, host: str, reason: str = ""):
        self.host = host
        message = f"Connection to {host} failed"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class SessionNotFoundError(WanEmuError):
    """Raised when no open session exists for the given id."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Not connected: {session_id}")


class ProfileNotFoundError(WanEmuError):
    """
    Raised when a requested impairment profile is not found.

    Check that the profile name is correct and the profiles file
    has been loaded properly.
    """

    def __init__(self, profile_name: str):
        self.profile_name = profile_name
        super().__init__(f"Impairment profile not found: {profile_name}")


class ProfileLoadError(WanEmuError):
    """
    Raised when profile configuration file cannot be loaded.

    Check that the file exists, is valid YAML, and has the expected structure.
    """

    def __init__(self, path: str, reason: Optional[str] = ""):
        self.path = path
        message = f"Failed to load profiles from: {path}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)
