"""
Host controller.

Provides the HostController class, which reads and changes the impairments
of a host's interfaces by running composed plans over a CommandRunner and
parsing what the kernel reports back.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from .composer import build_apply_plan, build_clear_plan
from .exceptions import ProfileNotFoundError
from .executor import execute_plan
from .parser import parse_interface_addresses, parse_qdisc_report
from .profile import NetworkProfile
from .runner import CommandResult, CommandRunner
from .state import ImpairmentState

logger = logging.getLogger(__name__)

QDISC_SHOW = ("tc", "qdisc", "show")
ADDR_SHOW = ("ip", "-o", "addr", "show")


@dataclass
class InterfaceStatus:
    """An interface's addresses together with its active impairments."""

    name: str
    ipv4: list[str]
    ipv6: list[str]
    state: ImpairmentState

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "ipv4": ", ".join(self.ipv4),
            "ipv6": ", ".join(a for a in self.ipv6 if not a.startswith("fe80")),
            **self.state.to_dict(),
        }


class HostController:
    """
    Impairment control for every interface of one host.

    Example:
        >>> with HostController(SSHRunner.connect("192.0.2.10", "ops", "secret")) as host:
        ...     host.apply("eth0", ImpairmentState(latency_ms=100, loss_pct=1.0))
        ...     host.read_state("eth0")
        ImpairmentState(loss_pct=1.0, latency_ms=100.0, jitter_ms=0.0, bandwidth_kbit=0)
    """

    def __init__(
        self,
        runner: CommandRunner,
        profiles: Optional[dict[str, NetworkProfile]] = None,
    ):
        """
        Initialize the controller.

        Args:
            runner: Runner connected to the target host.
            profiles: Named profiles available to apply_profile().
        """
        self.runner = runner
        self.profiles = profiles or {}

    def __enter__(self) -> "HostController":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        self.runner.close()

    def read_report(self) -> dict[str, ImpairmentState]:
        """Parse the host's current qdisc listing."""
        # An error from tc just means there is nothing to mine
        result = self.runner.run(QDISC_SHOW)
        return parse_qdisc_report(result.stdout)

    def read_state(self, interface: str) -> ImpairmentState:
        """Current impairments on ``interface``; all-zero if it has none."""
        return self.read_report().get(interface, ImpairmentState())

    def list_interfaces(self) -> list[InterfaceStatus]:
        """
        List the host's interfaces with their addresses and impairments.

        Interfaces come from the address listing; loopback is left out.
        """
        addresses = parse_interface_addresses(self.runner.run(ADDR_SHOW).stdout)
        report = self.read_report()

        return [
            InterfaceStatus(
                name=name,
                ipv4=iface.ipv4,
                ipv6=iface.ipv6,
                state=report.get(name, ImpairmentState()),
            )
            for name, iface in addresses.items()
        ]

    def apply(self, interface: str, state: ImpairmentState) -> list[CommandResult]:
        """
        Replace whatever is configured on ``interface`` with ``state``.

        Returns:
            One result per command run.

        Raises:
            InvalidStateError: Before anything runs, if ``state`` is invalid.
            PlanAbortedError: If a command failed part-way through.
        """
        plan = build_apply_plan(interface, state)
        results = execute_plan(self.runner, plan)
        logger.info(f"Applied {plan.topology.value} impairments to {interface}: {state}")
        return results

    def clear(self, interface: str) -> list[CommandResult]:
        """Remove every impairment from ``interface``."""
        results = execute_plan(self.runner, build_clear_plan(interface))
        logger.info(f"Cleared impairments on {interface}")
        return results

    def apply_profile(self, interface: str, profile_name: str) -> list[CommandResult]:
        """
        Apply a named profile to ``interface``.

        Raises:
            ProfileNotFoundError: If the profile doesn't exist.
        """
        if profile_name not in self.profiles:
            raise ProfileNotFoundError(profile_name)
        return self.apply(interface, self.profiles[profile_name].state)
