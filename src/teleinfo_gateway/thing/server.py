"""
Thing Server
============

FastAPI application publishing a Thing over HTTP and WebSocket.

Endpoints:
    GET  /                          - Thing description document
    GET  /health                    - Liveness probe
    GET  /properties                - All current property values
    GET  /properties/{name}         - One property value
    WS   /properties/{name}/observe - Pushes the value on every change
"""

import asyncio
import logging
import time
from typing import Any, AsyncContextManager, Callable, Optional

import uvicorn
from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse

from teleinfo_gateway.thing.thing import Thing


logger = logging.getLogger(__name__)


Lifespan = Callable[[FastAPI], AsyncContextManager[None]]

# WebSocket close code for a policy violation (RFC 6455)
WS_POLICY_VIOLATION = 1008


def create_app(
    thing: Thing,
    base_url: str = "",
    lifespan: Optional[Lifespan] = None,
    observe_interval: float = 0.5,
) -> FastAPI:
    """
    Build the FastAPI application serving a Thing.
    
    Args:
        thing: Thing whose description and values are served
        base_url: Exposed address used for property form hrefs
        lifespan: Optional lifespan running background tasks
        observe_interval: Seconds between change checks for observers
        
    Returns:
        FastAPI application
    """
    td = thing.description
    app = FastAPI(
        title=td.title,
        description=td.description,
        version=td.version,
        lifespan=lifespan,
    )
    started_at = time.time()
    
    @app.get("/")
    async def thing_description() -> JSONResponse:
        """Thing description document."""
        return JSONResponse(td.to_document(base_url))
    
    @app.get("/health")
    async def health() -> JSONResponse:
        """Liveness probe, always 200 while the process runs."""
        return JSONResponse({
            "status": "healthy",
            "uptime_seconds": round(time.time() - started_at, 1),
        })
    
    @app.get("/properties")
    async def all_properties() -> JSONResponse:
        return JSONResponse(thing.snapshot())
    
    @app.get("/properties/{name}")
    async def read_property(name: str) -> JSONResponse:
        try:
            value = thing.get_property_value(name)
        except KeyError:
            raise HTTPException(status_code=404, detail=f"Unknown property: {name}")
        return JSONResponse(value)
    
    @app.websocket("/properties/{name}/observe")
    async def observe_property(websocket: WebSocket, name: str) -> None:
        await websocket.accept()
        
        if not thing.has_property(name) or not td.get_property(name).observable:
            await websocket.close(code=WS_POLICY_VIOLATION)
            return
        
        logger.info(f"Observer connected to {name}")
        last_revision = -1
        try:
            while True:
                revision, value = thing.get_revision(name)
                if revision != last_revision:
                    await websocket.send_json(value)
                    last_revision = revision

                # Wait for the next check, returning early if the client leaves
                try:
                    message = await asyncio.wait_for(
                        websocket.receive(),
                        timeout=observe_interval,
                    )
                except asyncio.TimeoutError:
                    continue
                if message["type"] == "websocket.disconnect":
                    break
        except WebSocketDisconnect:
            pass
        except Exception as e:
            logger.warning(f"WebSocket error on {name}: {e}")
        finally:
            logger.info(f"Observer disconnected from {name}")
    
    return app


class ThingServer:
    """
    Owns the FastAPI app and runs it under uvicorn.
    
    Attributes:
        host: Bind host
        port: Bind port
        exposed_addr: Public base URL advertised in the TD
        thing: Published Thing
    """
    
    def __init__(
        self,
        host: str,
        port: int,
        exposed_addr: str,
        thing: Thing,
        lifespan: Optional[Lifespan] = None,
    ) -> None:
        self.host = host
        self.port = port
        self.exposed_addr = exposed_addr or f"http://{host or 'localhost'}:{port}"
        self.thing = thing
        self.app = create_app(thing, base_url=self.exposed_addr, lifespan=lifespan)
    
    def start_server(self, **uvicorn_options: Any) -> None:
        """Serve until the process is terminated (blocking)."""
        logger.info(f"Serving {self.thing.description.id} on {self.host}:{self.port}")
        uvicorn.run(self.app, host=self.host, port=self.port, **uvicorn_options)
