"""
Web dashboard for the signal overlay.

A FastAPI app whose lifespan runs one OverlaySession. Registry snapshots
reach browsers through WebRenderer, a render adapter that turns every
snapshot into a JSON message for all connected WebSocket clients.

Messages sent on /ws:
- config: timing policy and anchor, once per connection
- snapshot: generation, tick and the full marker list
- cleared: the registry was emptied
- text: session and discovery status lines
"""

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import HTMLResponse
from fastapi.staticfiles import StaticFiles

from signal_overlay.config import Config
from signal_overlay.events import Subscription, TextEvent
from signal_overlay.models import SIGNAL_TIMING, RegistrySnapshot
from signal_overlay.overlay import OverlaySession
from signal_overlay.render import MarkerLayer
from signal_overlay.web.mdns import DashboardAnnouncer

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).parent / "static"


class ClientHub:
    """Connected dashboard clients. Lives on the server's event loop."""

    def __init__(self):
        self._clients: set[WebSocket] = set()

    def __len__(self) -> int:
        return len(self._clients)

    async def join(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self._clients.add(websocket)
        logger.info("dashboard_client_joined", extra={"clients": len(self._clients)})

    def leave(self, websocket: WebSocket) -> None:
        self._clients.discard(websocket)
        logger.info("dashboard_client_left", extra={"clients": len(self._clients)})

    async def send_all(self, message: dict) -> None:
        if not self._clients:
            return

        data = json.dumps(message)
        for websocket in list(self._clients):
            try:
                await websocket.send_text(data)
            except Exception:
                # Closed underneath us; the receive loop may not have noticed yet
                self._clients.discard(websocket)


class WebRenderer(MarkerLayer):
    """
    Render adapter streaming markers to dashboard clients.

    render() and remove_all() run on the event bus thread; sends are
    handed to the server loop with call_soon_threadsafe.
    """

    def __init__(self, hub: ClientHub):
        super().__init__()
        self.hub = hub
        self.loop: Optional[asyncio.AbstractEventLoop] = None
        self.last_snapshot = RegistrySnapshot()

    def snapshot_message(self) -> dict:
        return {
            "type": "snapshot",
            "generation": self.last_snapshot.generation,
            "tick": self.last_snapshot.tick,
            "markers": [marker.to_dict() for marker in self.markers()],
        }

    def render(self, snapshot: RegistrySnapshot) -> None:
        super().render(snapshot)
        self.last_snapshot = snapshot
        self.push(self.snapshot_message())

    def remove_all(self) -> None:
        super().remove_all()
        self.last_snapshot = RegistrySnapshot(generation=self.generation)
        self.push({"type": "cleared", "generation": self.generation})

    def push(self, message: dict) -> None:
        """Queue a message for every client. Safe from any thread."""
        loop = self.loop
        if loop is None or loop.is_closed():
            return
        loop.call_soon_threadsafe(
            lambda msg=message: loop.create_task(self.hub.send_all(msg))
        )


class WebDashboardServer:
    """
    Serves the dashboard for one overlay session.

    The session starts with the app lifespan and is torn down on shutdown.

    Usage:
        server = WebDashboardServer(OverlaySession(location_provider=provider))
        await server.start()
    """

    def __init__(self, session: OverlaySession, register_mdns: bool = True):
        """
        Args:
            session: Overlay session to serve
            register_mdns: Announce the dashboard as <WEB_HOSTNAME>.local
        """
        self.session = session
        self.hub = ClientHub()
        self.renderer = WebRenderer(self.hub)
        self.announcer = DashboardAnnouncer(Config.WEB_HOSTNAME, Config.WEB_PORT) if register_mdns else None
        self._text_subscription: Optional[Subscription] = None
        self.app = self._build_app()

    def _build_app(self) -> FastAPI:

        @asynccontextmanager
        async def lifespan(app: FastAPI):
            self.renderer.loop = asyncio.get_running_loop()
            self.renderer.attach(self.session.event_bus)
            self._text_subscription = self.session.event_bus.subscribe(TextEvent, self._forward_text)
            await self.session.start()
            if self.announcer is not None:
                self.announcer.register()
            logger.info(
                "dashboard_started",
                extra={"url": f"http://{Config.WEB_HOSTNAME}.local:{Config.WEB_PORT}"}
            )

            yield

            await self.session.stop()
            self.renderer.detach()
            if self._text_subscription is not None:
                self.session.event_bus.unsubscribe(self._text_subscription)
                self._text_subscription = None
            self.renderer.loop = None
            if self.announcer is not None:
                self.announcer.close()
            logger.info("dashboard_stopped")

        app = FastAPI(
            title="Signal Overlay Dashboard",
            description="Live view of simulated traffic signal phases",
            lifespan=lifespan
        )

        if STATIC_DIR.exists():
            app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")

        @app.get("/", response_class=HTMLResponse)
        async def index():
            page = STATIC_DIR / "index.html"
            if not page.exists():
                return HTMLResponse("<h1>Dashboard page missing</h1>", status_code=404)
            return page.read_text()

        @app.get("/api/signals")
        async def signals():
            """Registry state as of the last applied tick."""
            return self.session.registry.snapshot().to_dict()

        @app.get("/api/timing")
        async def timing():
            return SIGNAL_TIMING.to_dict()

        @app.post("/api/reseed")
        async def reseed():
            """Replace the current signals with a fresh demo layout."""
            snapshot = self.session.seed_demo()
            return {"status": "ok", "signal_count": len(snapshot), "generation": snapshot.generation}

        @app.websocket("/ws")
        async def stream(websocket: WebSocket):
            await self.hub.join(websocket)
            try:
                await websocket.send_json(self._config_message())
                await websocket.send_json(self.renderer.snapshot_message())
                while True:
                    self._on_client_message(await websocket.receive_text())
            except WebSocketDisconnect:
                pass
            except Exception:
                logger.error("dashboard_socket_error", exc_info=True)
            finally:
                self.hub.leave(websocket)

        return app

    def _config_message(self) -> dict:
        anchor = self.session.anchor
        return {
            "type": "config",
            "timing": SIGNAL_TIMING.to_dict(),
            "anchor": {"lat": anchor.lat, "lng": anchor.lng} if anchor else None,
        }

    def _on_client_message(self, data: str) -> None:
        try:
            message = json.loads(data)
        except json.JSONDecodeError:
            logger.warning("dashboard_bad_message", extra={"data": data[:200]})
            return

        kind = message.get("type") if isinstance(message, dict) else None
        if kind == "reseed":
            self.session.seed_demo()
        elif kind != "ping":
            logger.debug("dashboard_unknown_message", extra={"type": kind})

    def _forward_text(self, event: TextEvent) -> None:
        # Bus thread
        self.renderer.push({
            "type": "text",
            "timestamp": event.timestamp,
            "category": event.category,
            "message": event.message,
            "level": event.level,
        })

    async def start(self) -> None:
        """Serve on 0.0.0.0:WEB_PORT until interrupted."""
        import uvicorn

        config = uvicorn.Config(
            self.app,
            host="0.0.0.0",
            port=Config.WEB_PORT,
            log_level="warning",
        )
        await uvicorn.Server(config).serve()
