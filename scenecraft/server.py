"""
FastAPI server exposing an engine over HTTP and WebSocket.
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional, Set
import threading

from fastapi import Body, FastAPI, HTTPException, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from pythonjsonlogger import jsonlogger
import uvicorn

from .config import EngineConfig
from .document import DirectoryDelivery, SceneDocumentError
from .engine import Engine
from .messages import MessageHandler, node_summary
from .renderer import HeadlessBackend
from .scene import SceneGraph
from .scene_object import SceneNode

logger = logging.getLogger(__name__)

_log_handler: Optional[logging.Handler] = None


def setup_logging(verbose: bool = False):
    """Install a JSON stream handler on the root logger (once)."""
    global _log_handler
    root = logging.getLogger()
    if _log_handler is None:
        _log_handler = logging.StreamHandler()
        _log_handler.setFormatter(jsonlogger.JsonFormatter())
        root.addHandler(_log_handler)
    root.setLevel(logging.INFO if verbose else logging.ERROR)


class Server:
    """HTTP and WebSocket front end for a single engine."""

    def __init__(self, engine: Optional[Engine] = None,
                 config: Optional[EngineConfig] = None,
                 verbose: Optional[bool] = None):
        """Initialize server with optional engine and configuration."""
        if config is None:
            config = engine.config if engine is not None else EngineConfig()
        self.config = config
        self.engine = engine if engine is not None else Engine(config)
        self.verbose = config.server.verbose if verbose is None else verbose
        self.app = FastAPI(lifespan=self._lifespan)
        self.connected_clients: Set[WebSocket] = set()
        self.handler = MessageHandler(self.engine)

        setup_logging(self.verbose)
        self._register_engine_callbacks()
        self._setup_routes()

    def _register_engine_callbacks(self):
        graph = self.engine.scene_manager
        graph.on('node_added', self._on_node_added)
        graph.on('node_removed', self._on_node_removed)
        graph.on('scene_replaced', self._on_scene_replaced)
        self.engine.picker.subscribe(self._on_selection_changed)

    def _on_node_added(self, graph: SceneGraph, node: SceneNode):
        self._safe_broadcast({"type": "object_added", "object": node_summary(node)})

    def _on_node_removed(self, graph: SceneGraph, node: SceneNode):
        self._safe_broadcast({"type": "object_removed", "object": node_summary(node)})

    def _on_scene_replaced(self, graph: SceneGraph, **kwargs):
        self._safe_broadcast({"type": "scene_replaced", "background": graph.background})

    def _on_selection_changed(self, node: Optional[SceneNode]):
        self._safe_broadcast({"type": "selection_changed", "object": node_summary(node)})

    async def broadcast(self, message: Dict[str, Any], exclude: Optional[WebSocket] = None):
        """Broadcast message to all connected clients except ``exclude``."""
        disconnected = set()
        for client in list(self.connected_clients):
            if client is exclude:
                continue
            try:
                await client.send_json(message)
            except (WebSocketDisconnect, RuntimeError):
                disconnected.add(client)
        self.connected_clients -= disconnected

    def _safe_broadcast(self, message: Dict[str, Any]):
        """Schedule a broadcast from synchronous engine callbacks."""
        if not self.connected_clients:
            return
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No event loop, skipping broadcast", extra={"type": message.get('type')})
            return
        asyncio.create_task(self.broadcast(message))

    def save_scene(self) -> Optional[str]:
        """Write the scene into the configured save directory, if any."""
        save_dir = self.config.server.save_dir
        if not save_dir:
            return None
        return self.engine.save_scene_to_json(DirectoryDelivery(save_dir))

    @asynccontextmanager
    async def _lifespan(self, app: FastAPI):
        """Run the render loop while the app is up; save the scene on shutdown."""
        self.engine.start()
        logger.info("Render loop scheduled")
        try:
            yield
        finally:
            await self.engine.stop()
            if self.save_scene() is not None:
                logger.info("Saved scene on shutdown")

    def _setup_routes(self):
        """Set up FastAPI routes."""
        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

        @self.app.websocket("/ws")
        async def websocket_endpoint(websocket: WebSocket):
            """WebSocket endpoint for engine control."""
            await websocket.accept()
            self.connected_clients.add(websocket)
            logger.info("Client connected", extra={"client_count": len(self.connected_clients)})

            await websocket.send_json({
                "type": "scene",
                "scene": self.engine.export_scene().to_dict(),
            })

            try:
                while True:
                    try:
                        data = await websocket.receive_json()
                    except ValueError as e:
                        logger.error(f"Invalid message JSON: {e}")
                        await websocket.send_json({"type": "error", "request": None,
                                                   "error": f"Invalid JSON: {e}"})
                        continue
                    reply = await self.handler.handle_message(data)
                    if reply is not None:
                        await websocket.send_json(reply)
            except WebSocketDisconnect:
                pass
            finally:
                self.connected_clients.discard(websocket)
                logger.info("Client disconnected", extra={"client_count": len(self.connected_clients)})

        @self.app.get("/")
        async def root():
            """Root endpoint with server info."""
            return {
                "message": "SceneCraft Server",
                "ws_endpoint": "/ws",
                "objects": len(self.engine.scene_manager.children),
                "staged": len(self.engine.world),
            }

        @self.app.get("/scene")
        async def export_scene():
            """Download the scene document."""
            text = self.engine.save_scene_to_json()
            filename = self.config.export_filename
            return Response(content=text,
                            media_type="application/json",
                            headers={"Content-Disposition": f"attachment; filename={filename}"})

        @self.app.post("/scene")
        async def import_scene(request: Request):
            """Replace the scene with an uploaded scene document."""
            body = await request.body()
            try:
                nodes = self.engine.load_scene_from_json(body.decode("utf-8"))
            except (SceneDocumentError, ValueError, TypeError) as e:
                raise HTTPException(status_code=400, detail=str(e))
            return {"success": True, "objects": len(nodes)}

        @self.app.post("/objects/load")
        async def load_objects():
            """Build every staged object."""
            added = self.engine.load_scene_from_data()
            return {"objects": [node_summary(node) for node in added]}

        @self.app.post("/objects/{name}")
        async def add_object(name: str, data: Dict[str, Any] = Body(...)):
            """Stage an object descriptor under ``name``."""
            self.engine.add_object(name, data)
            return {"name": name, "staged": len(self.engine.world)}

        @self.app.delete("/objects")
        async def clear_objects():
            """Remove all non-light objects and staged descriptors."""
            removed = self.engine.clear_scene()
            return {"removed": len(removed)}

        @self.app.post("/pick")
        async def pick(x: float = Body(...), y: float = Body(...)):
            """Select the object under a viewport pixel."""
            try:
                node = self.engine.on_scene_click(x, y)
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            return {"object": node_summary(node)}

        @self.app.post("/resize")
        async def resize(width: int = Body(...), height: int = Body(...)):
            """Resize the viewport."""
            try:
                changed = self.engine.on_window_resize(width, height)
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            return {"width": width, "height": height, "changed": changed}

        @self.app.get("/frame")
        async def frame():
            """Render a frame and describe its draw calls."""
            result = self.engine.tick()
            if result is None:
                raise HTTPException(status_code=404, detail="Backend does not record frames")
            return result.to_dict()

        @self.app.get("/snapshot.glb")
        async def snapshot():
            """Render a frame and export it as binary glTF."""
            backend = self.engine.renderer.backend
            if not isinstance(backend, HeadlessBackend):
                raise HTTPException(status_code=404, detail="Backend does not support snapshots")
            self.engine.tick()
            data = backend.snapshot().export(file_type="glb")
            return Response(content=data, media_type="model/gltf-binary")

    def start(self, host: Optional[str] = None, port: Optional[int] = None, threaded: bool = False):
        """Start the server.

        Args:
            host: Host to bind to (default: configured host)
            port: Port to bind to (default: configured port)
            threaded: If True, runs server in a separate daemon thread
        """
        host = host or self.config.server.host
        port = port or self.config.server.port

        def run_server():
            log_level = "info" if self.verbose else "error"
            uvicorn.run(
                self.app,
                host=host,
                port=port,
                log_level=log_level,
                access_log=self.verbose,
                log_config=None
            )

        if threaded:
            server_thread = threading.Thread(target=run_server, daemon=True)
            server_thread.start()
            logger.info(f"Server started in background thread on {host}:{port}")
        else:
            logger.info(f"Server starting on {host}:{port}")
            run_server()
