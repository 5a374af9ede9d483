"""
Frame Buffer
=============

Async-safe bounded FIFO between the ingestor and the projector.

Design Rules:
    - Fixed maximum size (blocks the producer when full, never drops)
    - Strict FIFO, single producer / single consumer
    - Exposes minimal metrics for observability
    - Does NOT process or modify frames
"""

import asyncio
import logging
from typing import Optional

from teleinfo_gateway.teleinfo.frame import Frame


logger = logging.getLogger(__name__)


DEFAULT_MAXSIZE = 10


class FrameBuffer:
    """
    Async-safe bounded queue for frames.
    
    When the projector falls behind, put() waits for a free slot. This
    delays the next serial read, which is the pipeline's only
    backpressure mechanism.
    
    Attributes:
        maxsize: Maximum number of frames to buffer
        
    Example:
        buffer = FrameBuffer(maxsize=10)
        
        # Producer
        await buffer.put(frame)
        
        # Consumer
        frame = await buffer.get()
    """
    
    def __init__(self, maxsize: int = DEFAULT_MAXSIZE) -> None:
        """
        Initialize frame buffer.
        
        Args:
            maxsize: Maximum frames to buffer. Must be >= 1.
        """
        if maxsize < 1:
            raise ValueError("maxsize must be >= 1")
        
        self._maxsize = maxsize
        self._queue: asyncio.Queue[Frame] = asyncio.Queue(maxsize=maxsize)
        self._total_put: int = 0
        self._full_waits: int = 0
    
    @property
    def maxsize(self) -> int:
        """Maximum buffer size."""
        return self._maxsize
    
    @property
    def size(self) -> int:
        """Current number of frames in buffer."""
        return self._queue.qsize()
    
    @property
    def total_put(self) -> int:
        """Total frames ever put into buffer."""
        return self._total_put
    
    def full(self) -> bool:
        """Whether the next put() would wait."""
        return self._queue.full()
    
    async def put(self, frame: Frame) -> None:
        """
        Add frame to buffer, waiting for a free slot if full.
        
        Args:
            frame: Frame to add
        """
        if self._queue.full():
            self._full_waits += 1
            logger.debug(f"Buffer full ({self._maxsize}), waiting for consumer")
        
        await self._queue.put(frame)
        self._total_put += 1
    
    async def get(self, timeout: Optional[float] = None) -> Optional[Frame]:
        """
        Get next frame from buffer.
        
        Args:
            timeout: Maximum seconds to wait. None = wait forever.
            
        Returns:
            Next frame, or None if timeout occurred.
        """
        try:
            if timeout is not None:
                return await asyncio.wait_for(
                    self._queue.get(),
                    timeout=timeout
                )
            else:
                return await self._queue.get()
        except asyncio.TimeoutError:
            return None
    
    def get_nowait(self) -> Optional[Frame]:
        """
        Get next frame without waiting.
        
        Returns:
            Next frame if available, None otherwise.
        """
        try:
            return self._queue.get_nowait()
        except asyncio.QueueEmpty:
            return None
    
    def metrics(self) -> dict:
        """
        Get buffer metrics for observability.
        
        Returns:
            Dict with size, maxsize, total_put, full_waits
        """
        return {
            "size": self.size,
            "maxsize": self._maxsize,
            "total_put": self._total_put,
            "full_waits": self._full_waits,
        }
