"""
Named impairment profiles for wanemu.

Defines the NetworkProfile dataclass and the loader for profile YAML files:

    profiles:
      poor_cellular:
        description: "Congested 4G cell"
        latency_ms: 120
        jitter_ms: 30
        loss_pct: 2.0
        bandwidth_kbit: 2000
"""

import logging
from dataclasses import dataclass

import yaml

from .exceptions import ProfileLoadError
from .state import ImpairmentState

logger = logging.getLogger(__name__)


@dataclass
class NetworkProfile:
    """
    Impairment profile configuration.

    Attributes:
        name: Unique identifier for the profile.
        description: Human-readable description of network conditions.
        loss_pct: Packet loss percentage (0-100, default: 0.0).
        latency_ms: One-way latency in milliseconds (default: 0).
        jitter_ms: Delay variation in milliseconds (default: 0).
        bandwidth_kbit: Rate cap in kbit/s, 0 for unlimited.
    """

    name: str
    description: str = ""
    loss_pct: float = 0.0
    latency_ms: float = 0
    jitter_ms: float = 0
    bandwidth_kbit: int = 0

    @property
    def state(self) -> ImpairmentState:
        return ImpairmentState(
            loss_pct=self.loss_pct,
            latency_ms=self.latency_ms,
            jitter_ms=self.jitter_ms,
            bandwidth_kbit=self.bandwidth_kbit,
        )

    @classmethod
    def from_dict(cls, name: str, data: dict) -> "NetworkProfile":
        """
        Create a NetworkProfile from a dictionary.

        Args:
            name: Profile name/identifier.
            data: Dictionary containing profile parameters.

        Returns:
            NetworkProfile instance with the specified parameters.

        Raises:
            InvalidStateError: If any impairment value is out of range.

        Example:
            >>> profile = NetworkProfile.from_dict("slow", {"latency_ms": 100, "loss_pct": 1.0})
            >>> profile.latency_ms
            100
        """
        profile = cls(
            name=name,
            description=data.get("description", ""),
            loss_pct=data.get("loss_pct", 0.0),
            latency_ms=data.get("latency_ms", 0),
            jitter_ms=data.get("jitter_ms", 0),
            bandwidth_kbit=data.get("bandwidth_kbit", 0),
        )
        profile.state.validate()
        return profile

    def to_dict(self) -> dict:
        return {"description": self.description, **self.state.to_dict()}


def load_profiles(path: str) -> dict[str, NetworkProfile]:
    """
    Load impairment profiles from a YAML file.

    Args:
        path: Path to YAML file containing profile definitions.

    Returns:
        Dictionary mapping profile name to NetworkProfile.

    Raises:
        ProfileLoadError: If file cannot be read or parsed.
        InvalidStateError: If a profile holds out-of-range values.
    """
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        raise ProfileLoadError(path, "file not found")
    except yaml.YAMLError as e:
        raise ProfileLoadError(path, f"invalid YAML: {e}")

    if not data:
        raise ProfileLoadError(path, "empty file")

    profiles_data = data.get("profiles", {}) if isinstance(data, dict) else None
    if not profiles_data:
        raise ProfileLoadError(path, "no profiles defined")

    profiles = {
        name: NetworkProfile.from_dict(name, config or {})
        for name, config in profiles_data.items()
    }
    logger.info(f"Loaded {len(profiles)} impairment profiles from {path}")
    return profiles
