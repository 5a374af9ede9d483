"""
Frame Ingestor
==============

Background task pulling frames off the meter and into the FrameBuffer.

Design Rules:
    - One blocking read at a time, run off the event loop
    - A failed read is logged and retried immediately
    - Never exits on read errors, never reconnects
    - Backpressure comes from the buffer: a full buffer delays the next read
"""

import asyncio
import logging
from typing import Callable, Optional

from teleinfo_gateway.pipeline.buffer import FrameBuffer
from teleinfo_gateway.teleinfo.frame import Frame
from teleinfo_gateway.teleinfo.reader import FrameReadError


logger = logging.getLogger(__name__)


class FrameIngestorMetrics:
    """Metrics for FrameIngestor observability."""
    
    __slots__ = (
        "frames_read",
        "read_errors",
    )
    
    def __init__(self) -> None:
        self.frames_read: int = 0
        self.read_errors: int = 0
    
    def to_dict(self) -> dict:
        """Export metrics as dict."""
        return {
            "frames_read": self.frames_read,
            "read_errors": self.read_errors,
        }


class FrameIngestor:
    """
    Retry-forever reader loop feeding a FrameBuffer.
    
    Attributes:
        read_frame: Blocking callable returning the next Frame
        buffer: FrameBuffer to push frames into
        metrics: Operational metrics
        
    Example:
        ingestor = FrameIngestor(reader.read_frame, buffer)
        task = asyncio.create_task(ingestor.run())
        
        # Later
        ingestor.stop()
    """
    
    def __init__(
        self,
        read_frame: Callable[[], Frame],
        buffer: FrameBuffer,
    ) -> None:
        """
        Initialize frame ingestor.
        
        Args:
            read_frame: Blocking frame read, e.g. TeleinfoReader.read_frame
            buffer: FrameBuffer to push frames into
        """
        self.read_frame = read_frame
        self.buffer = buffer
        
        self._running: bool = False
        self.metrics = FrameIngestorMetrics()
    
    @property
    def running(self) -> bool:
        """Whether the read loop is active."""
        return self._running
    
    async def run(self) -> None:
        """
        Read frames until stopped.
        
        Read errors are logged and the read is retried right away.
        """
        self._running = True
        logger.info("Frame ingestor started")
        
        while self._running:
            frame = await self._read_once()
            if frame is None:
                continue
            
            await self.buffer.put(frame)
            self.metrics.frames_read += 1
        
        logger.info("Frame ingestor stopped")
    
    def stop(self) -> None:
        """Ask the read loop to exit after the current iteration."""
        self._running = False
    
    async def _read_once(self) -> Optional[Frame]:
        try:
            return await asyncio.to_thread(self.read_frame)
        except FrameReadError as e:
            self.metrics.read_errors += 1
            logger.warning(f"Error reading Teleinfo frame: {e}")
        except OSError as e:
            # pyserial surfaces device-level faults as SerialException(IOError)
            self.metrics.read_errors += 1
            logger.warning(f"Serial error reading Teleinfo frame: {e}")
        return None
