"""
Impairment state data model for wanemu.

Defines the ImpairmentState dataclass shared by the qdisc parser and the
command composer, plus the unit conversions between the kernel's mixed
units and the canonical ones (milliseconds, kbit/s, percent).
"""

import math
from dataclasses import dataclass, replace
from enum import Enum

from .exceptions import InvalidStateError

# kbit/s per unit as printed by tc; plain bit/s is divided instead
RATE_UNITS = {
    "Kbit": 1,
    "Mbit": 1000,
    "Gbit": 1000000,
}

# Keys used by the HTTP API, mapped to attribute names
API_KEYS = {
    "loss": "loss_pct",
    "latency": "latency_ms",
    "jitter": "jitter_ms",
    "bandwidth": "bandwidth_kbit",
}


def duration_to_ms(value: float, unit: str) -> float:
    """Convert a tc duration token to milliseconds. Unknown units count as ms."""
    if unit == "us":
        return value / 1000
    return value


def rate_to_kbit(value: float, unit: str) -> int:
    """
    Convert a tc rate token to whole kilobits per second.

    Example:
        >>> rate_to_kbit(1000, "Mbit")
        1000000
    """
    if unit == "bit":
        kbit = value / 1000
    else:
        kbit = value * RATE_UNITS.get(unit, 1)
    return int(math.floor(kbit + 0.5))


def format_number(value: float) -> str:
    """Render a number the way tc expects it: ``50`` rather than ``50.0``."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class Topology(Enum):
    """The qdisc layouts the composer knows how to build."""

    CLEARED = "cleared"
    NETEM = "netem"
    TBF = "tbf"
    CHAINED = "chained"


@dataclass(frozen=True)
class ImpairmentState:
    """
    Emulated network conditions on one interface.

    Attributes:
        loss_pct: Packet loss percentage (0-100, default: 0.0).
        latency_ms: One-way base delay in milliseconds (default: 0.0).
        jitter_ms: Delay variation in milliseconds (default: 0.0).
            Only meaningful together with latency_ms.
        bandwidth_kbit: Rate cap in kbit/s. 0 means uncapped.

    A field left at zero is not applied; the all-zero state means the
    interface carries no impairment at all.
    """

    loss_pct: float = 0.0
    latency_ms: float = 0.0
    jitter_ms: float = 0.0
    bandwidth_kbit: int = 0

    @property
    def has_netem(self) -> bool:
        """True if loss, latency or jitter needs a netem qdisc."""
        return self.loss_pct > 0 or self.latency_ms > 0 or self.jitter_ms > 0

    @property
    def has_rate_limit(self) -> bool:
        return self.bandwidth_kbit > 0

    @property
    def is_cleared(self) -> bool:
        return not self.has_netem and not self.has_rate_limit

    def validate(self) -> "ImpairmentState":
        """
        Check every field and return a normalized copy.

        Returns:
            The same state with bandwidth_kbit coerced to int.

        Raises:
            InvalidStateError: On negative, non-finite or non-numeric values,
                loss above 100%, or a fractional bandwidth.
        """
        for name in ("loss_pct", "latency_ms", "jitter_ms", "bandwidth_kbit"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise InvalidStateError(name, value, "must be a number")
            if not math.isfinite(value):
                raise InvalidStateError(name, value, "must be finite")
            if value < 0:
                raise InvalidStateError(name, value, "must not be negative")

        if self.loss_pct > 100:
            raise InvalidStateError("loss_pct", self.loss_pct, "must be at most 100")
        if self.bandwidth_kbit != int(self.bandwidth_kbit):
            raise InvalidStateError(
                "bandwidth_kbit", self.bandwidth_kbit, "must be a whole number"
            )

        return replace(self, bandwidth_kbit=int(self.bandwidth_kbit))

    @classmethod
    def from_dict(cls, data: dict) -> "ImpairmentState":
        """
        Create an ImpairmentState from a dictionary.

        Accepts the API keys (loss, latency, jitter, bandwidth) as well as
        the attribute names. Missing or null fields default to 0.

        Example:
            >>> ImpairmentState.from_dict({"latency": 100, "loss": 1.5})
            ImpairmentState(loss_pct=1.5, latency_ms=100, jitter_ms=0.0, bandwidth_kbit=0)
        """
        values = {}
        for key, attr in API_KEYS.items():
            value = data.get(key, data.get(attr))
            if value is None:
                continue
            if isinstance(value, str):
                try:
                    value = float(value) if value.strip() else 0
                except ValueError:
                    raise InvalidStateError(attr, value, "must be a number")
            values[attr] = value
        return cls(**values)

    def to_dict(self) -> dict:
        """Serialize using the API keys."""
        return {key: getattr(self, attr) for key, attr in API_KEYS.items()}


def classify(state: ImpairmentState) -> Topology:
    """Pick the single qdisc topology that realizes ``state``."""
    if state.has_rate_limit and state.has_netem:
        return Topology.CHAINED
    if state.has_rate_limit:
        return Topology.TBF
    if state.has_netem:
        return Topology.NETEM
    return Topology.CLEARED
