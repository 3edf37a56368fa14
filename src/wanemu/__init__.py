"""
wanemu - WAN emulation controller for Linux tc/netem.

This package translates between four impairment parameters (packet loss,
latency, jitter, bandwidth cap) and the kernel's qdisc configuration:
it composes the tc commands that impose a desired state on an interface
and parses `tc qdisc show` output back into that state. Commands run
locally or over SSH.

Example:
    >>> from wanemu import ImpairmentState, build_apply_plan
    >>> plan = build_apply_plan("eth0", ImpairmentState(latency_ms=50, loss_pct=2))
    >>> plan.as_strings()
    ['tc qdisc del dev eth0 root', 'tc qdisc add dev eth0 root netem delay 50ms loss 2%']

Reading state back:
    >>> from wanemu import parse_qdisc_report
    >>> parse_qdisc_report(open("qdisc.txt").read())["eth0"].latency_ms
    50.0
"""

from .composer import TcCommand, TcCommandPlan, build_apply_plan, build_clear_plan
from .controller import HostController, InterfaceStatus
from .exceptions import (
    CommandFailedError,
    ConnectionFailedError,
    InvalidStateError,
    PlanAbortedError,
    ProfileLoadError,
    ProfileNotFoundError,
    SessionNotFoundError,
    TransportError,
    WanEmuError,
)
from .executor import execute_plan
from .parser import parse_interface_addresses, parse_qdisc_report
from .profile import NetworkProfile, load_profiles
from .runner import CommandResult, LocalRunner, SSHRunner
from .sessions import SessionRegistry
from .state import ImpairmentState, Topology, classify

__version__ = "0.1.0"

__all__ = [
    # Data model
    "ImpairmentState",
    "Topology",
    "classify",
    "TcCommand",
    "TcCommandPlan",
    "NetworkProfile",
    # Translation
    "build_apply_plan",
    "build_clear_plan",
    "parse_qdisc_report",
    "parse_interface_addresses",
    # Execution
    "CommandResult",
    "LocalRunner",
    "SSHRunner",
    "execute_plan",
    "HostController",
    "InterfaceStatus",
    "SessionRegistry",
    "load_profiles",
    # Exceptions
    "WanEmuError",
    "InvalidStateError",
    "CommandFailedError",
    "PlanAbortedError",
    "TransportError",
    "ConnectionFailedError",
    "SessionNotFoundError",
    "ProfileNotFoundError",
    "ProfileLoadError",
    # Version
    "__version__",
]
