"""
Test Configuration
==================

Pytest fixtures and test helpers for the Teleinfo gateway.
"""

from typing import Dict, List, Optional

import pytest

from teleinfo_gateway.teleinfo.frame import Frame


STX = b"\x02"
ETX = b"\x03"


def historic_checksum(label: str, value: str) -> str:
    """Historic-mode group checksum: (sum of 'LABEL VALUE') & 0x3F + 0x20."""
    total = sum(f"{label} {value}".encode("ascii"))
    return chr((total & 0x3F) + 0x20)


def encode_historic(groups: Dict[str, str]) -> bytes:
    """Encode groups as one historic-mode frame on the wire."""
    body = "".join(
        f"\n{label} {value} {historic_checksum(label, value)}\r"
        for label, value in groups.items()
    )
    return STX + body.encode("ascii") + ETX


def encode_standard(groups: Dict[str, str]) -> bytes:
    """Encode groups as one standard-mode frame (checksum not meaningful)."""
    body = "".join(f"\n{label}\t{value}\tZ\r" for label, value in groups.items())
    return STX + body.encode("ascii") + ETX


class FakeSerialPort:
    """In-memory stand-in for serial.Serial; an exhausted buffer acts as a timeout."""
    
    def __init__(self, data: bytes = b"") -> None:
        self._data = bytearray(data)
        self.closed = False
    
    def read(self, size: int = 1) -> bytes:
        chunk = bytes(self._data[:size])
        del self._data[:size]
        return chunk
    
    def read_until(self, expected: bytes = b"\n", size: Optional[int] = None) -> bytes:
        index = self._data.find(expected)
        end = len(self._data) if index < 0 else index + len(expected)
        if size is not None:
            end = min(end, size)
        chunk = bytes(self._data[:end])
        del self._data[:end]
        return chunk
    
    def close(self) -> None:
        self.closed = True
    
    def __enter__(self) -> "FakeSerialPort":
        return self
    
    def __exit__(self, *args) -> None:
        self.close()


HISTORIC_BASE_GROUPS = {
    "ADCO": "021728123456",
    "OPTARIF": "BASE",
    "ISOUSC": "30",
    "BASE": "006188427",
    "PTEC": "TH..",
    "IINST": "002",
    "IMAX": "040",
    "PAPP": "00420",
    "MOTDETAT": "000000",
}


@pytest.fixture
def historic_base_groups() -> Dict[str, str]:
    return dict(HISTORIC_BASE_GROUPS)


@pytest.fixture
def historic_base_frame() -> Frame:
    """Historic-mode frame from a meter on the BASE tariff."""
    return Frame.from_groups(HISTORIC_BASE_GROUPS, "historic")


@pytest.fixture
def historic_hc_frame() -> Frame:
    """Historic-mode frame from a meter on the off-peak (HC) tariff."""
    return Frame.from_groups(
        {
            "ADCO": "021728123456",
            "OPTARIF": "HC..",
            "HCHC": "001234567",
            "HCHP": "007654321",
            "IINST": "005",
            "PAPP": "01150",
        },
        "historic",
    )


@pytest.fixture
def standard_frame() -> Frame:
    """Standard-mode frame (Linky) with a BASE tariff name."""
    return Frame.from_groups(
        {
            "ADSC": "041876097767",
            "NGTF": "      BASE      ",
            "EAST": "000123456",
            "IRMS1": "002",
            "SINSTS": "00420",
        },
        "standard",
    )


@pytest.fixture
def fake_port_factory():
    """Build FakeSerialPort instances from raw bytes or frames."""
    
    def factory(*chunks: bytes) -> FakeSerialPort:
        return FakeSerialPort(b"".join(chunks))
    
    return factory


@pytest.fixture
def clean_env(monkeypatch, tmp_path) -> None:
    """Run in an empty directory with no TELEINFO_* variables set."""
    for name in (
        "TELEINFO_SERIAL_PORT",
        "TELEINFO_MODE",
        "TELEINFO_HOST",
        "TELEINFO_PORT",
        "TELEINFO_EXPOSED_ADDR",
        "TELEINFO_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


def make_frames(values: List[Dict[str, str]]) -> List[Frame]:
    return [Frame.from_groups(groups, "historic") for groups in values]
