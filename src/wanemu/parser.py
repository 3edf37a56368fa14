"""
Parsers for the kernel's textual reports.

parse_qdisc_report() mines `tc qdisc show` output for the impairments that
are currently active; parse_interface_addresses() reads `ip -o addr show`.
Both are best-effort: noisy or truncated text never raises.
"""

import logging
import re
from dataclasses import dataclass, field

from .state import ImpairmentState, duration_to_ms, rate_to_kbit

logger = logging.getLogger(__name__)

_NUMBER = r"(\d+(?:\.\d+)?)"

DEV_RE = re.compile(r"\bdev (\S+)")
# A duration is a number and an optional unit tag. The lookahead stops a
# correlation like "25%" from being read as "2" followed by unit "5%".
DELAY_RE = re.compile(
    rf"\bdelay {_NUMBER}([a-z]*)(?![\d.%])(?:\s+{_NUMBER}([a-z]*)(?![\d.%]))?"
)
LOSS_RE = re.compile(rf"\bloss {_NUMBER}%")
RATE_RE = re.compile(rf"\brate {_NUMBER}(Gbit|Mbit|Kbit|bit)\b")


@dataclass
class InterfaceAddresses:
    """Addresses of one interface as listed by `ip -o addr show`."""

    name: str
    ipv4: list[str] = field(default_factory=list)
    ipv6: list[str] = field(default_factory=list)


def _parse_line(line: str, fields: dict) -> None:
    """Update ``fields`` with anything the qdisc line reveals."""
    if "netem" in line:
        delay = DELAY_RE.search(line)
        if delay:
            fields["latency_ms"] = duration_to_ms(float(delay.group(1)), delay.group(2))
            if delay.group(3) is not None:
                fields["jitter_ms"] = duration_to_ms(
                    float(delay.group(3)), delay.group(4)
                )

        loss = LOSS_RE.search(line)
        if loss:
            fields["loss_pct"] = float(loss.group(1))

    if "tbf" in line:
        rate = RATE_RE.search(line)
        if rate:
            fields["bandwidth_kbit"] = rate_to_kbit(float(rate.group(1)), rate.group(2))


def parse_qdisc_report(output: str) -> dict[str, ImpairmentState]:
    """
    Parse `tc qdisc show` output into a per-interface impairment state.

    Lines for the same device (e.g. a tbf root and its netem child) are
    merged. An interface that never appears is absent from the result,
    which callers must treat like the all-zero state.

    Args:
        output: Verbatim text printed by `tc qdisc show`.

    Returns:
        Dictionary mapping interface name to ImpairmentState.

    Example:
        >>> parse_qdisc_report("qdisc netem 8001: dev eth0 root refcnt 2 limit 1000 delay 100ms loss 1%")
        {'eth0': ImpairmentState(loss_pct=1.0, latency_ms=100.0, jitter_ms=0.0, bandwidth_kbit=0)}
    """
    found: dict[str, dict] = {}

    for line in (output or "").splitlines():
        dev = DEV_RE.search(line)
        if not dev:
            continue
        _parse_line(line, found.setdefault(dev.group(1), {}))

    logger.debug(f"Parsed qdisc state for {len(found)} interfaces")
    return {name: ImpairmentState(**fields) for name, fields in found.items()}


def parse_interface_addresses(output: str) -> dict[str, InterfaceAddresses]:
    """
    Parse `ip -o addr show` output.

    Each line looks like ``2: eth0    inet 10.0.0.5/24 brd ...``. The
    loopback interface is skipped and prefix lengths are stripped.

    Returns:
        Dictionary mapping interface name to its addresses, in listing order.
    """
    interfaces: dict[str, InterfaceAddresses] = {}

    for line in (output or "").splitlines():
        parts = line.split()
        if len(parts) < 4:
            continue
        name, family, address = parts[1], parts[2], parts[3].split("/")[0]
        if name == "lo":
            continue

        iface = interfaces.setdefault(name, InterfaceAddresses(name=name))
        if family == "inet":
            iface.ipv4.append(address)
        elif family == "inet6":
            iface.ipv6.append(address)

    return interfaces
