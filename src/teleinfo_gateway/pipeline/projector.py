"""
Property Projector
==================

Maps each buffered frame onto the published Thing's properties.

For every frame, in this order:
    raw       <- full label/value snapshot
    indexBase <- BASE  as unsigned integer (0 if absent or malformed)
    iinst     <- IINST as unsigned integer (0 if absent or malformed)
    papp      <- PAPP  as unsigned integer (0 if absent or malformed)

Each update is independent. A field that fails to parse is published as
0 without logging, and never prevents the other updates. Values are not
clamped to the schema bounds.
"""

import asyncio
import logging
from typing import Any, Dict, Tuple

from teleinfo_gateway.pipeline.buffer import FrameBuffer
from teleinfo_gateway.teleinfo.frame import Frame
from teleinfo_gateway.thing.description import uint_or_zero
from teleinfo_gateway.thing.thing import Thing


logger = logging.getLogger(__name__)


# (property name, frame label) for derived integer properties
NUMERIC_PROPERTIES: Tuple[Tuple[str, str], ...] = (
    ("indexBase", "BASE"),
    ("iinst", "IINST"),
    ("papp", "PAPP"),
)


def raw_value(frame: Frame) -> Dict[str, Any]:
    """Frame snapshot as an open string-keyed mapping."""
    return dict(frame.get_map())


class PropertyProjector:
    """
    Consumes frames from a FrameBuffer and updates a Thing.
    
    Attributes:
        buffer: FrameBuffer to drain
        thing: Thing receiving the updates
        frames_projected: Number of frames applied so far
        
    Example:
        projector = PropertyProjector(buffer, thing)
        task = asyncio.create_task(projector.run())
    """
    
    def __init__(self, buffer: FrameBuffer, thing: Thing) -> None:
        self.buffer = buffer
        self.thing = thing
        self.frames_projected: int = 0
        self._running: bool = False
    
    def process(self, frame: Frame) -> None:
        """Apply the four property updates for one frame."""
        self.thing.set_property_value("raw", raw_value(frame))
        for prop_name, label in NUMERIC_PROPERTIES:
            self.thing.set_property_value(prop_name, uint_or_zero(frame, label))
        
        self.frames_projected += 1
        logger.debug(f"Projected {frame!r}")
    
    async def run(self, poll_timeout: float = 1.0) -> None:
        """
        Drain the buffer until stopped.
        
        Args:
            poll_timeout: Seconds to wait for a frame before re-checking stop
        """
        self._running = True
        logger.info("Property projector started")
        
        while self._running:
            try:
                frame = await self.buffer.get(timeout=poll_timeout)
            except asyncio.CancelledError:
                logger.info("Property projector cancelled")
                raise
            
            if frame is None:
                continue
            self.process(frame)
        
        logger.info("Property projector stopped")
    
    def stop(self) -> None:
        """Ask the loop to exit after the current frame."""
        self._running = False
