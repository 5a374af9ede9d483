#!/usr/bin/env python3
"""
Meter Check Script
==================

Standalone script to check the serial link to a Teleinfo meter.

This script:
    1. Opens the serial port in the given mode
    2. Runs the frame ingestor for a configurable duration
    3. Logs the detected tariff and schema profile of the first frame
    4. Reports read/error counts at the end

Prerequisites:
    - A Teleinfo interface connected to the meter
    - Install the package: pip install -e .

Usage:
    python scripts/check_meter.py --serial-port /dev/ttyUSB0 --duration 30
    python scripts/check_meter.py --serial-port /dev/ttyUSB0 --mode standard
"""

import argparse
import asyncio
import logging
import os
import sys
import time

from teleinfo_gateway.pipeline import FrameBuffer, FrameIngestor
from teleinfo_gateway.teleinfo import PortOpenError, TeleinfoReader, open_port
from teleinfo_gateway.thing import select_profile


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
)
logger = logging.getLogger(__name__)


async def run_check(reader: TeleinfoReader, duration: int) -> dict:
    """
    Read frames for `duration` seconds.
    
    Args:
        reader: Reader over an open serial port
        duration: Check duration in seconds
        
    Returns:
        Final metrics dict
    """
    buffer = FrameBuffer()
    ingestor = FrameIngestor(reader.read_frame, buffer)
    ingestor_task = asyncio.create_task(ingestor.run())
    
    start_time = time.time()
    first_frame = None
    frames_seen = 0
    
    try:
        while time.time() - start_time < duration:
            frame = await buffer.get(timeout=0.5)
            if frame is None:
                continue
            frames_seen += 1
            if first_frame is None:
                first_frame = frame
                logger.info(
                    f"First frame: type={frame.type or '<none>'}, "
                    f"profile={select_profile(frame.mode, frame.type).value}, "
                    f"{len(frame.fields)} groups"
                )
            logger.info(f"  {frame.get_map()}")
    finally:
        ingestor.stop()
        ingestor_task.cancel()
        await asyncio.gather(ingestor_task, return_exceptions=True)
    
    metrics = ingestor.metrics
    logger.info("=" * 60)
    logger.info(f"Frames read: {metrics.frames_read}")
    logger.info(f"Read errors: {metrics.read_errors}")
    logger.info("=" * 60)
    
    return {
        "frames": frames_seen,
        "read_errors": metrics.read_errors,
    }


def main():
    parser = argparse.ArgumentParser(description="Check the Teleinfo serial link")
    parser.add_argument(
        "--serial-port",
        type=str,
        default=os.environ.get("TELEINFO_SERIAL_PORT", "/dev/ttyUSB0"),
        help="Serial device of the Teleinfo interface",
    )
    parser.add_argument(
        "--mode",
        choices=["historic", "standard"],
        default=os.environ.get("TELEINFO_MODE", "historic"),
        help="Teleinfo mode (default: historic)",
    )
    parser.add_argument(
        "--duration",
        type=int,
        default=30,
        help="Check duration in seconds (default: 30)",
    )
    
    args = parser.parse_args()
    
    try:
        port = open_port(args.serial_port, args.mode)
    except PortOpenError as e:
        logger.error(str(e))
        sys.exit(1)
    
    with port:
        result = asyncio.run(run_check(TeleinfoReader(port, args.mode), args.duration))
    
    sys.exit(0 if result["frames"] > 0 else 1)


if __name__ == "__main__":
    main()
