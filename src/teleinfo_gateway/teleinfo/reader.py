"""
Teleinfo Reader
===============

Thin pyserial adapter turning the meter's serial output into Frames.

Wire format (both modes):
    STX (0x02) | group | group | ... | ETX (0x03)
    group = LF label SEP [horodate SEP] value SEP checksum CR

    historic: 1200 baud, 7E1, SEP = space
    standard: 9600 baud, 7E1, SEP = tab

Design Rules:
    - One blocking read returns exactly one Frame or raises FrameReadError
    - Checksums are dropped, not verified
    - No reconnect logic; the caller decides whether to retry
"""

import logging
from typing import Dict, Optional, Protocol, Tuple

import serial

from teleinfo_gateway.errors import TeleinfoGatewayError
from teleinfo_gateway.teleinfo.frame import MODE_HISTORIC, MODE_STANDARD, Frame


logger = logging.getLogger(__name__)


STX = b"\x02"
ETX = b"\x03"
EOT = b"\x04"

BAUDRATES = {
    MODE_HISTORIC: 1200,
    MODE_STANDARD: 9600,
}

SEPARATORS = {
    MODE_HISTORIC: " ",
    MODE_STANDARD: "\t",
}

# Upper bound on bytes skipped while hunting for STX before giving up
MAX_SYNC_BYTES = 4096


class PortOpenError(TeleinfoGatewayError):
    """Raised when the serial device cannot be opened."""
    pass


class FrameReadError(TeleinfoGatewayError):
    """Raised when a frame cannot be read or decoded."""
    pass


class SerialPort(Protocol):
    """Subset of serial.Serial used by the reader."""
    
    def read(self, size: int = 1) -> bytes: ...
    
    def read_until(self, expected: bytes = ..., size: Optional[int] = None) -> bytes: ...
    
    def close(self) -> None: ...


def _check_mode(mode: str) -> str:
    if mode not in BAUDRATES:
        raise ValueError(
            f"Unknown Teleinfo mode {mode!r} "
            f"(expected one of: {', '.join(sorted(BAUDRATES))})"
        )
    return mode


def open_port(device: str, mode: str = MODE_HISTORIC, timeout: float = 5.0) -> serial.Serial:
    """
    Open the meter's serial device with the framing of the given mode.
    
    Args:
        device: Serial device path, e.g. "/dev/ttyUSB0"
        mode: "historic" or "standard"
        timeout: Read timeout in seconds
        
    Returns:
        Open serial.Serial handle (usable as a context manager)
        
    Raises:
        ValueError: If the mode is unknown
        PortOpenError: If the device cannot be opened
    """
    _check_mode(mode)
    try:
        port = serial.Serial(
            port=device,
            baudrate=BAUDRATES[mode],
            bytesize=serial.SEVENBITS,
            parity=serial.PARITY_EVEN,
            stopbits=serial.STOPBITS_ONE,
            timeout=timeout,
        )
    except serial.SerialException as e:
        raise PortOpenError(f"Cannot open serial port {device}: {e}") from e
    
    logger.info(f"Opened {device} ({mode} mode, {BAUDRATES[mode]} baud)")
    return port


class TeleinfoReader:
    """
    Blocking frame reader over an open serial port.
    
    Attributes:
        port: Open serial handle (anything with read/read_until)
        mode: Meter mode, selects the group separator
        
    Example:
        with open_port("/dev/ttyUSB0", "historic") as port:
            reader = TeleinfoReader(port, "historic")
            frame = reader.read_frame()
    """
    
    def __init__(self, port: SerialPort, mode: str = MODE_HISTORIC) -> None:
        self.port = port
        self.mode = _check_mode(mode)
        self._separator = SEPARATORS[mode]
    
    def read_frame(self) -> Frame:
        """
        Read the next complete frame.
        
        Raises:
            FrameReadError: On timeout, interrupted or malformed frame
        """
        self._sync()
        
        data = self.port.read_until(ETX)
        if not data.endswith(ETX):
            raise FrameReadError("Timed out before end of frame")
        
        body = data[:-1]
        if EOT in body:
            raise FrameReadError("Frame interrupted by EOT")
        
        return Frame.from_groups(self._decode_groups(body), self.mode)
    
    def _sync(self) -> None:
        """Skip input until the start of a frame."""
        for _ in range(MAX_SYNC_BYTES):
            byte = self.port.read(1)
            if not byte:
                raise FrameReadError("Timed out waiting for start of frame")
            if byte == STX:
                return
        raise FrameReadError(f"No start of frame within {MAX_SYNC_BYTES} bytes")
    
    def _decode_groups(self, body: bytes) -> Dict[str, str]:
        text = body.decode("ascii", errors="replace")
        fields: Dict[str, str] = {}
        
        for chunk in text.split("\r"):
            group = chunk.strip("\n")
            if not group:
                continue
            label, value = self._split_group(group)
            fields[label] = value
        
        if not fields:
            raise FrameReadError("Empty frame")
        return fields
    
    def _split_group(self, group: str) -> Tuple[str, str]:
        parts = group.split(self._separator)
        
        if self.mode == MODE_STANDARD and len(parts) == 4:
            # label, horodate, value, checksum
            label, value = parts[0], parts[2]
        elif len(parts) >= 3:
            # Trailing parts are the checksum (which may itself be a separator)
            label, value = parts[0], parts[1]
        else:
            raise FrameReadError(f"Malformed group: {group!r}")
        
        if not label:
            raise FrameReadError(f"Malformed group: {group!r}")
        return label, value
