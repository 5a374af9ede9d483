"""
Teleinfo Frame
==============

Immutable snapshot of one Teleinfo read cycle.

A frame carries every label/value group the meter sent between STX and
ETX, plus the meter mode the reader was configured for and the tariff
type detected from the frame content.

Design Rules:
    - Created once per read, never mutated afterwards
    - Values are kept as raw strings; typed access goes through accessors
    - Accessors raise, callers decide how lenient to be
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Mapping

from teleinfo_gateway.errors import TeleinfoGatewayError


MODE_HISTORIC = "historic"
MODE_STANDARD = "standard"

# Label holding the subscribed tariff option, per mode
TARIFF_LABELS = {
    MODE_HISTORIC: "OPTARIF",
    MODE_STANDARD: "NGTF",
}


class FrameFieldError(TeleinfoGatewayError, ValueError):
    """Raised when a named field cannot be read as the requested type."""
    
    def __init__(self, name: str, message: str) -> None:
        super().__init__(message)
        self.name = name


class FieldMissing(FrameFieldError):
    """Raised when the frame has no group with the requested label."""
    
    def __init__(self, name: str) -> None:
        super().__init__(name, f"Field {name!r} not found in frame")


class FieldNotNumeric(FrameFieldError):
    """Raised when a group's value is not an unsigned integer."""
    
    def __init__(self, name: str, value: str) -> None:
        super().__init__(name, f"Field {name!r} is not numeric: {value!r}")
        self.value = value


def detect_tariff_type(fields: Mapping[str, str], mode: str) -> str:
    """
    Detect the tariff type from a frame's groups.
    
    Historic meters pad the option with dots ("HC.."), standard meters
    pad it with spaces. Both paddings are removed.
    
    Returns:
        Tariff type such as "BASE" or "HC", or "" when not present.
    """
    label = TARIFF_LABELS.get(mode)
    if label is None:
        return ""
    return fields.get(label, "").strip().rstrip(".")


@dataclass(frozen=True)
class Frame:
    """
    Decoded Teleinfo frame.
    
    Attributes:
        fields: Label to raw value mapping (read-only)
        type: Detected tariff type (e.g. "BASE")
        mode: Meter mode the frame was read in ("historic" or "standard")
        
    Example:
        frame = Frame.from_groups({"OPTARIF": "BASE", "PAPP": "00420"}, "historic")
        frame.type                    # "BASE"
        frame.get_uint_field("PAPP")  # 420
    """
    
    fields: Mapping[str, str] = field(default_factory=dict)
    type: str = ""
    mode: str = MODE_HISTORIC
    
    def __post_init__(self) -> None:
        # Frozen dataclass: bypass __setattr__ to store a read-only copy
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))
    
    @classmethod
    def from_groups(cls, fields: Mapping[str, str], mode: str) -> "Frame":
        """Build a frame and detect its tariff type from the groups."""
        return cls(fields=fields, type=detect_tariff_type(fields, mode), mode=mode)
    
    def get_map(self) -> Dict[str, str]:
        """Return a copy of the full label/value snapshot."""
        return dict(self.fields)
    
    def get_uint_field(self, name: str) -> int:
        """
        Parse a named field as an unsigned integer.
        
        Args:
            name: Group label, e.g. "BASE" or "PAPP"
            
        Returns:
            Parsed value (leading zeros allowed)
            
        Raises:
            FieldMissing: If the label is absent
            FieldNotNumeric: If the value is not made of decimal digits
        """
        try:
            value = self.fields[name]
        except KeyError:
            raise FieldMissing(name) from None
        
        stripped = value.strip()
        if not stripped.isascii() or not stripped.isdigit():
            raise FieldNotNumeric(name, value)
        return int(stripped)
    
    def __repr__(self) -> str:
        """Compact repr that doesn't dump every group."""
        return (
            f"Frame(mode={self.mode!r}, type={self.type!r}, "
            f"fields={len(self.fields)})"
        )
