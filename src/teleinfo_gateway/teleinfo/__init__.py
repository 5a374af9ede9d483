"""
Teleinfo Module
===============

Frame model and serial reader for the meter's Teleinfo output.

    - Frame: Immutable decoded frame with typed field accessors
    - TeleinfoReader: Blocking frame reader over an open serial port
    - open_port: Opens the serial device with the framing of a mode
"""

from teleinfo_gateway.teleinfo.frame import (
    MODE_HISTORIC,
    MODE_STANDARD,
    FieldMissing,
    FieldNotNumeric,
    Frame,
    FrameFieldError,
)
from teleinfo_gateway.teleinfo.reader import (
    FrameReadError,
    PortOpenError,
    TeleinfoReader,
    open_port,
)


__all__ = [
    "MODE_HISTORIC",
    "MODE_STANDARD",
    "Frame",
    "FrameFieldError",
    "FieldMissing",
    "FieldNotNumeric",
    "FrameReadError",
    "PortOpenError",
    "TeleinfoReader",
    "open_port",
]
