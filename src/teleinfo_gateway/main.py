"""
Teleinfo Gateway Main Application
=================================

Process entry point wiring the meter, the pipeline and the Thing server.

Startup sequence:
    1. Load settings (fatal on invalid configuration)
    2. Open the serial port (fatal on failure)
    3. Read one frame (fatal on failure, nothing can be published without it)
    4. Build the Thing description from that frame
    5. Serve the Thing; the ingestor and projector run as background
       tasks inside the server lifespan

Endpoints added on top of the Thing server:
    GET  /metrics - Pipeline counters
"""

import argparse
import asyncio
import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, List, Optional

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from teleinfo_gateway import __version__
from teleinfo_gateway.config import Settings, load_config, setup_logging
from teleinfo_gateway.errors import ConfigError
from teleinfo_gateway.pipeline import FrameBuffer, FrameIngestor, PropertyProjector
from teleinfo_gateway.teleinfo import (
    Frame,
    FrameReadError,
    PortOpenError,
    TeleinfoReader,
    open_port,
)
from teleinfo_gateway.thing import Thing, ThingServer, build_thing_description


logger = logging.getLogger(__name__)


def _log_task_failure(task: asyncio.Task) -> None:
    """Log a background task that ended on an unexpected exception."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error(
            f"Background task {task.get_name()} crashed: {exc!r}",
            exc_info=exc,
        )


class Pipeline:
    """Ingestor/projector pair sharing one bounded buffer."""
    
    def __init__(
        self,
        read_frame: Callable[[], Frame],
        thing: Thing,
        queue_size: int = 10,
    ) -> None:
        self.buffer = FrameBuffer(maxsize=queue_size)
        self.ingestor = FrameIngestor(read_frame, self.buffer)
        self.projector = PropertyProjector(self.buffer, thing)
        self._tasks: List[asyncio.Task] = []
    
    def start(self) -> None:
        """Start both loops as background tasks on the running loop."""
        self._tasks = [
            asyncio.create_task(self.ingestor.run(), name="frame_ingestor"),
            asyncio.create_task(self.projector.run(), name="property_projector"),
        ]
        for task in self._tasks:
            task.add_done_callback(_log_task_failure)
    
    async def stop(self) -> None:
        """Stop both loops without draining the buffer."""
        self.ingestor.stop()
        self.projector.stop()
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
    
    def metrics(self) -> dict:
        return {
            **self.ingestor.metrics.to_dict(),
            "frames_projected": self.projector.frames_projected,
            "buffer": self.buffer.metrics(),
        }


def create_lifespan(pipeline: Pipeline):
    """Lifespan running the pipeline for as long as the server is up."""
    
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        pipeline.start()
        logger.info("Pipeline started")
        
        yield
        
        logger.info("Shutting down pipeline...")
        await pipeline.stop()
    
    return lifespan


def read_initial_frame(reader: TeleinfoReader) -> Frame:
    """
    Read the frame the Thing description is built from.
    
    Raises:
        FrameReadError: If no frame could be read
    """
    try:
        frame = reader.read_frame()
    except OSError as e:
        raise FrameReadError(f"Serial error: {e}") from e
    
    logger.info(f"Initial frame: mode={frame.mode}, type={frame.type or '<none>'}")
    return frame


def build_server(settings: Settings, reader: TeleinfoReader, initial_frame: Frame) -> ThingServer:
    """Build the Thing and its server from the initial frame."""
    td = build_thing_description(initial_frame, version=__version__)
    logger.info(f"Thing properties: {', '.join(td.property_names())}")
    
    thing = Thing(td)
    pipeline = Pipeline(reader.read_frame, thing, queue_size=settings.pipeline.queue_size)
    
    server = ThingServer(
        host=settings.server.host,
        port=settings.server.port,
        exposed_addr=settings.server.exposed_addr,
        thing=thing,
        lifespan=create_lifespan(pipeline),
    )
    
    @server.app.get("/metrics")
    async def metrics() -> JSONResponse:
        """Pipeline counters for observability."""
        return JSONResponse(pipeline.metrics())
    
    return server


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="teleinfo-gateway",
        description="Publish Teleinfo meter data as a Thing",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to config.yaml (default: ./config.yaml if present)",
    )
    parser.add_argument(
        "--serial-port",
        type=str,
        default=None,
        help="Serial device of the Teleinfo interface, e.g. /dev/ttyUSB0",
    )
    parser.add_argument(
        "--mode",
        choices=["historic", "standard"],
        default=None,
        help="Teleinfo mode (default: historic)",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run the gateway.
    
    Returns:
        Process exit code (1 on any fatal startup error)
    """
    args = parse_args(argv)
    
    try:
        settings = load_config(
            args.config,
            overrides={"teleinfo": {"serial_port": args.serial_port, "mode": args.mode}},
        )
    except ConfigError as e:
        logging.basicConfig(level=logging.INFO)
        logger.critical(str(e))
        return 1
    
    setup_logging(settings)
    logger.info(f"Starting Teleinfo gateway {__version__}")
    
    try:
        port = open_port(
            settings.teleinfo.serial_port,
            settings.teleinfo.mode,
            timeout=settings.teleinfo.read_timeout_seconds,
        )
    except PortOpenError as e:
        logger.critical(str(e))
        return 1
    
    try:
        with port:
            reader = TeleinfoReader(port, settings.teleinfo.mode)
            try:
                initial_frame = read_initial_frame(reader)
            except FrameReadError as e:
                logger.critical(f"Error reading initial Teleinfo frame: {e}")
                return 1
            
            server = build_server(settings, reader, initial_frame)
            server.start_server()
    finally:
        logger.info("Stopped")
    
    return 0


def run() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()
