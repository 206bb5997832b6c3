"""
Live price broadcaster for WebSocket listeners (/live/prices).

Sync runs happen on scheduler or request worker threads; broadcast() hands
the send off to the application's event loop.
"""
import asyncio
import logging
import threading
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Set
from fastapi import WebSocket

logger = logging.getLogger(__name__)


class PriceBroadcaster:
    """Tracks connected WebSocket clients and pushes price updates to them."""

    def __init__(self):
        self._clients: Set[WebSocket] = set()
        self._lock = threading.Lock()
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    def attach_loop(self, loop: asyncio.AbstractEventLoop):
        """Bind to the event loop that owns the WebSocket connections."""
        self._loop = loop

    @property
    def client_count(self) -> int:
        with self._lock:
            return len(self._clients)

    async def connect(self, websocket: WebSocket):
        await websocket.accept()
        with self._lock:
            self._clients.add(websocket)
        logger.info(f"WebSocket client connected for live prices ({self.client_count} total)")
        await websocket.send_json({
            "type": "connected",
            "message": "Connected to AgriConnect live prices",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        })

    def disconnect(self, websocket: WebSocket):
        with self._lock:
            self._clients.discard(websocket)
        logger.info("WebSocket client disconnected")

    async def _send_all(self, message: Dict[str, Any]):
        with self._lock:
            clients = list(self._clients)
        for client in clients:
            try:
                await client.send_json(message)
            except Exception as e:
                logger.warning(f"Dropping WebSocket client after send failure: {e}")
                self.disconnect(client)
        logger.info(f"Broadcasted price update to {len(clients)} clients")

    def broadcast(self, data: Dict[str, Any]):
        """Schedule a price_update message to every client. Safe to call from any thread."""
        if self._loop is None or self._loop.is_closed():
            logger.debug("No event loop attached, skipping price broadcast")
            return

        message = {
            "type": "price_update",
            "data": data,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        future = asyncio.run_coroutine_threadsafe(self._send_all(message), self._loop)
        future.add_done_callback(self._log_failure)

    @staticmethod
    def _log_failure(future):
        if not future.cancelled() and future.exception() is not None:
            logger.warning(f"Price broadcast failed: {future.exception()}")
