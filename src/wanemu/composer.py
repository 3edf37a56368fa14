"""
Qdisc command composer.

Turns a desired ImpairmentState into the ordered tc commands that
reconfigure an interface to match it. Nothing here executes a command:
plans are plain data handed to wanemu.executor.

A chained plan (tbf root, netem child) assumes the tbf command succeeds
before the netem command runs. No recovery plan is produced for the case
where it does not; the executor stops and reports the partial state.
"""

import logging
import math
import shlex
from dataclasses import dataclass

from .state import ImpairmentState, Topology, classify, format_number

logger = logging.getLogger(__name__)

# Minimum tbf bucket: one full-size ethernet frame plus headroom
MIN_BURST_BYTES = 1600
# Bucket sized to this much traffic at the configured rate
BURST_WINDOW_MS = 10
# Queueing bound for tbf, unrelated to the emulated delay
TBF_LATENCY = "50ms"

ROOT_HANDLE = "1:"
NETEM_HANDLE = "10:"


@dataclass(frozen=True)
class TcCommand:
    """A single tc invocation as an argument vector."""

    argv: tuple[str, ...]
    best_effort: bool = False

    def __str__(self) -> str:
        return shlex.join(self.argv)


@dataclass(frozen=True)
class TcCommandPlan:
    """
    Ordered commands for one interface.

    Order is significant: the delete comes first, and in a chained plan
    the parent qdisc is created before the child that references it.
    """

    interface: str
    topology: Topology
    commands: tuple[TcCommand, ...]

    def __iter__(self):
        return iter(self.commands)

    def __len__(self) -> int:
        return len(self.commands)

    def as_strings(self) -> list[str]:
        """Rendered command lines, in execution order."""
        return [str(cmd) for cmd in self.commands]


def compute_burst(rate_kbit: int) -> int:
    """
    tbf burst size in bytes for the given rate.

    Example:
        >>> compute_burst(100)
        1600
        >>> compute_burst(100000)
        125000
    """
    window_bytes = math.ceil(rate_kbit * 1000 / 8 / (1000 / BURST_WINDOW_MS))
    return max(window_bytes, MIN_BURST_BYTES)


def build_netem_args(state: ImpairmentState) -> list[str]:
    """Build the netem parameter list. Zero-valued clauses are left out."""
    params: list[str] = []

    if state.latency_ms > 0 or state.jitter_ms > 0:
        params += ["delay", f"{format_number(state.latency_ms)}ms"]
        if state.jitter_ms > 0:
            params += [f"{format_number(state.jitter_ms)}ms", "distribution", "normal"]

    if state.loss_pct > 0:
        params += ["loss", f"{format_number(state.loss_pct)}%"]

    return params


def build_tbf_args(rate_kbit: int) -> list[str]:
    return [
        "rate",
        f"{rate_kbit}kbit",
        "burst",
        str(compute_burst(rate_kbit)),
        "latency",
        TBF_LATENCY,
    ]


def _delete(interface: str, direction: str) -> TcCommand:
    # Fails harmlessly when nothing is installed
    return TcCommand(("tc", "qdisc", "del", "dev", interface, direction), best_effort=True)


def _add(interface: str, *args: str) -> TcCommand:
    return TcCommand(("tc", "qdisc", "add", "dev", interface) + args)


def build_apply_plan(interface: str, state: ImpairmentState) -> TcCommandPlan:
    """
    Compose the commands that make ``interface`` match ``state``.

    Whatever is currently installed at the root is deleted first, then
    at most two qdiscs are added depending on the topology.

    Args:
        interface: Interface name on the target host. Not validated.
        state: Desired impairments.

    Returns:
        The plan, starting with the best-effort root delete.

    Raises:
        InvalidStateError: If ``state`` has negative or non-finite values.
    """
    state = state.validate()
    topology = classify(state)
    commands = [_delete(interface, "root")]

    if topology is Topology.NETEM:
        commands.append(_add(interface, "root", "netem", *build_netem_args(state)))
    elif topology is Topology.TBF:
        commands.append(
            _add(interface, "root", "tbf", *build_tbf_args(state.bandwidth_kbit))
        )
    elif topology is Topology.CHAINED:
        commands.append(
            _add(
                interface,
                "root",
                "handle",
                ROOT_HANDLE,
                "tbf",
                *build_tbf_args(state.bandwidth_kbit),
            )
        )
        commands.append(
            _add(
                interface,
                "parent",
                ROOT_HANDLE,
                "handle",
                NETEM_HANDLE,
                "netem",
                *build_netem_args(state),
            )
        )

    logger.debug(f"Composed {topology.value} plan for {interface}: {len(commands)} commands")
    return TcCommandPlan(interface=interface, topology=topology, commands=tuple(commands))


def build_clear_plan(interface: str) -> TcCommandPlan:
    """Delete the root and ingress qdiscs. Safe to run on a clear interface."""
    return TcCommandPlan(
        interface=interface,
        topology=Topology.CLEARED,
        commands=(_delete(interface, "root"), _delete(interface, "ingress")),
    )
