"""FastAPI server exposing a board store over HTTP and WebSocket."""

from __future__ import annotations

import asyncio
import threading
from concurrent.futures import Future
from typing import Any

from fastapi import Body, FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse
from loguru import logger

from .models import BoardError, BoardState, InvalidInput, NotFound, command_from_dict
from .store import BoardStore, get_board_store

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8765

_ERROR_STATUS: dict[type[BoardError], int] = {InvalidInput: 422, NotFound: 404}


class BoardServer:
    """FastAPI server for a board store."""

    def __init__(
        self,
        store: BoardStore | None = None,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
    ):
        """
        Initialize the board server.

        Args:
            store: Store to serve; defaults to the process-wide store
            host: Host to bind to
            port: Port to bind to
        """
        self.host = host
        self.port = port
        self.store = store or get_board_store()
        self.app = FastAPI(title="Stage Board", version="0.1.0")
        self.active_connections: list[WebSocket] = []
        self._loop: asyncio.AbstractEventLoop | None = None
        self._setup_routes()
        self._server_thread: threading.Thread | None = None

        self.store.subscribe(self._on_board_update)

    def _setup_routes(self) -> None:
        @self.app.get("/api/board")
        def get_board() -> dict[str, Any]:
            """Get the current board snapshot."""
            return self.store.state.to_dict()

        @self.app.post("/api/commands")
        def post_command(body: Any = Body(...)) -> JSONResponse:
            """Apply a command and return the resulting board."""
            try:
                command = command_from_dict(body)
            except InvalidInput as exc:
                return self._error_response(exc, self.store.state)

            result = self.store.dispatch(command)
            if result.error is not None:
                return self._error_response(result.error, result.state)
            return JSONResponse(result.state.to_dict())

        @self.app.websocket("/ws")
        async def websocket_endpoint(websocket: WebSocket) -> None:
            """WebSocket endpoint streaming board snapshots."""
            await websocket.accept()
            self._loop = asyncio.get_running_loop()
            self.active_connections.append(websocket)

            try:
                await websocket.send_json(self.store.state.to_dict())
                while True:
                    try:
                        await asyncio.wait_for(websocket.receive_text(), timeout=30.0)
                    except TimeoutError:
                        await websocket.send_json({"type": "ping"})
            except WebSocketDisconnect:
                logger.debug("WebSocket client disconnected")
            finally:
                if websocket in self.active_connections:
                    self.active_connections.remove(websocket)

    @staticmethod
    def _error_response(error: BoardError, state: BoardState) -> JSONResponse:
        return JSONResponse(
            status_code=_ERROR_STATUS.get(type(error), 400),
            content={
                "error": error.kind,
                "detail": str(error),
                "board": state.to_dict(),
            },
        )

    def _on_board_update(self, state: BoardState) -> None:
        """Schedule a broadcast on the loop serving the WebSocket clients."""
        loop = self._loop
        if loop is None or loop.is_closed() or not self.active_connections:
            return
        future = asyncio.run_coroutine_threadsafe(self._broadcast_update(state), loop)
        future.add_done_callback(self._log_broadcast_failure)

    @staticmethod
    def _log_broadcast_failure(future: Future) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.opt(exception=exc).error("Board broadcast failed")

    async def _broadcast_update(self, state: BoardState) -> None:
        """Send a snapshot to every connected client."""
        snapshot = state.to_dict()
        disconnected = []

        for connection in list(self.active_connections):
            try:
                await connection.send_json(snapshot)
            except (WebSocketDisconnect, RuntimeError) as exc:
                logger.debug(f"Dropping WebSocket client: {exc}")
                disconnected.append(connection)

        for connection in disconnected:
            if connection in self.active_connections:
                self.active_connections.remove(connection)

    def run(self) -> None:
        """Run the server in the current thread until interrupted."""
        import uvicorn

        logger.info(f"Serving board at http://{self.host}:{self.port}")
        uvicorn.run(self.app, host=self.host, port=self.port, log_level="warning")

    def start_background(self) -> None:
        """Start the server in a background thread."""
        if self._server_thread and self._server_thread.is_alive():
            return

        self._server_thread = threading.Thread(target=self.run, daemon=True)
        self._server_thread.start()

    def stop(self) -> None:
        """Detach the server from its store."""
        self.store.unsubscribe(self._on_board_update)


def start_server(
    store: BoardStore | None = None,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
) -> BoardServer:
    """
    Start the board server in the background.

    Args:
        store: Store to serve; defaults to the process-wide store
        host: Host to bind to
        port: Port to bind to

    Returns:
        The server instance
    """
    server = BoardServer(store=store, host=host, port=port)
    server.start_background()
    return server
