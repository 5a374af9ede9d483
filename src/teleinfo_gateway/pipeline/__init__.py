"""
Pipeline Module
===============

Frame ingestion and property projection, connected by a bounded buffer.

    - FrameBuffer: Bounded FIFO, blocks the producer when full
    - FrameIngestor: Retry-forever reader loop feeding the buffer
    - PropertyProjector: Applies buffered frames to the Thing

Example:
    buffer = FrameBuffer(maxsize=10)
    ingestor = FrameIngestor(reader.read_frame, buffer)
    projector = PropertyProjector(buffer, thing)
    
    asyncio.create_task(ingestor.run())
    asyncio.create_task(projector.run())
"""

from teleinfo_gateway.pipeline.buffer import FrameBuffer
from teleinfo_gateway.pipeline.ingestor import FrameIngestor, FrameIngestorMetrics
from teleinfo_gateway.pipeline.projector import PropertyProjector


__all__ = [
    "FrameBuffer",
    "FrameIngestor",
    "FrameIngestorMetrics",
    "PropertyProjector",
]
