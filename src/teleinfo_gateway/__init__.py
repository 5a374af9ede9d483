"""
Teleinfo Gateway
================

Republishes electricity-meter telemetry (Teleinfo / TIC) as a Thing.

The gateway reads frames from the meter's serial output, decides once at
startup which properties the Thing exposes, then keeps those properties
up to date for the lifetime of the process.

Components:
    - teleinfo: Frame model and serial frame reader
    - pipeline: Bounded frame buffer, ingestor and property projector
    - thing: Thing description builder, property store and HTTP server

Example:
    $ teleinfo-gateway --serial-port /dev/ttyUSB0 --mode historic
"""

__version__ = "0.1.0"
__author__ = "Teleinfo Gateway Project"

__all__ = [
    "__version__",
]
