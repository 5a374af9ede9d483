"""
Gateway Errors
==============

Exception hierarchy shared by all gateway components.

Transient errors (FrameReadError, FrameFieldError) are absorbed by the
pipeline. Startup errors (PortOpenError, ConfigError, a failed first read)
terminate the process.
"""


class TeleinfoGatewayError(Exception):
    """Base class for all gateway errors."""
    pass


class ConfigError(TeleinfoGatewayError):
    """Raised when configuration cannot be loaded or validated."""
    pass
