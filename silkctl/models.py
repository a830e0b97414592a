"""Lease records exchanged between the controller and its clients."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

_UNDERLAY_IP = "underlay_ip"
_OVERLAY_SUBNET = "overlay_subnet"
_OVERLAY_HARDWARE_ADDR = "overlay_hardware_addr"


@dataclass(frozen=True)
class Lease:
    """An overlay subnet leased to the host at an underlay address."""

    underlay_ip: str = ""
    overlay_subnet: str = ""
    overlay_hardware_addr: str = ""

    def to_dict(self) -> dict[str, str]:
        """Return the lease in its JSON wire form."""
        return {
            _UNDERLAY_IP: self.underlay_ip,
            _OVERLAY_SUBNET: self.overlay_subnet,
            _OVERLAY_HARDWARE_ADDR: self.overlay_hardware_addr,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Lease":
        """Build a lease from its JSON wire form; missing fields are empty."""
        if not isinstance(data, Mapping):
            raise TypeError(f"lease must be a JSON object, not {type(data).__name__}")
        values = {}
        for key in (_UNDERLAY_IP, _OVERLAY_SUBNET, _OVERLAY_HARDWARE_ADDR):
            value = data.get(key, "")
            if value is None:
                value = ""
            if not isinstance(value, str):
                raise TypeError(f"{key} must be a string, not {type(value).__name__}")
            values[key] = value
        return cls(**values)


class NonRetriableError(Exception):
    """An error that repeating the same request cannot fix."""