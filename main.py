import importlib
import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles

from controllers.session_controller import health as health_payload
from dal.command_store import CommandStore
from models.runtime_models import RuntimeState
from routes.auth_route import router as auth_router
from routes.command_route import router as command_router
from routes.events_route import router as events_router
from routes.session_route import router as session_router
from services.command_registry import CommandRegistry
from services.realtime.event_bus import EventBus
from services.realtime.message_router import InboundMessageRouter
from services.realtime.session_lifecycle import SessionController, TransportFactory
from utils.auth import TokenIssuer
from utils.http_errors import request_validation_handler
from utils.settings import Settings

from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file if present

BASE_DIR = Path(__file__).resolve().parent
PUBLIC_DIR = Path(os.getenv("PUBLIC_DIR") or BASE_DIR / "public")

LOGGER = logging.getLogger(__name__)


def load_transport_factory(path: str) -> TransportFactory:
    """Resolve a `module:attribute` string to a transport factory."""
    module_name, _, attr = path.partition(":")
    if not module_name or not attr:
        raise RuntimeError(f"TRANSPORT_FACTORY must look like 'module:attribute', got {path!r}")
    try:
        module = importlib.import_module(module_name)
        return getattr(module, attr)
    except (ImportError, AttributeError) as exc:
        raise RuntimeError(f"Failed to load transport factory {path!r}") from exc


def create_app(settings: Optional[Settings] = None, transport_factory: Optional[TransportFactory] = None) -> FastAPI:
    """
    Create and configure the FastAPI application instance.

    Settings default to the environment; the transport factory defaults to
    the one named by TRANSPORT_FACTORY.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Lifespan manager to initialize:
          - the runtime state, event bus, and command registry (loaded from disk)
          - the session controller, which starts the first bot session
        and attach them to `app.state`.
        """
        cfg = settings or Settings.from_env()
        logging.basicConfig(level=cfg.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

        runtime = RuntimeState()
        bus = EventBus(runtime)
        registry = CommandRegistry(CommandStore(cfg.data_dir), bus)
        await registry.load()

        session = SessionController(
            runtime=runtime,
            bus=bus,
            router=InboundMessageRouter(runtime, bus, registry),
            auth_dir=cfg.auth_dir,
            transport_factory=transport_factory or load_transport_factory(cfg.transport_factory),
            pairing_number=cfg.pairing_number,
            reconnect_delay=cfg.reconnect_delay,
        )

        app.state.settings = cfg
        app.state.runtime = runtime
        app.state.event_bus = bus
        app.state.command_registry = registry
        app.state.session = session
        app.state.token_issuer = TokenIssuer(cfg.admin_user, cfg.admin_pass, cfg.token_ttl_seconds)

        try:
            await session.start()
        except Exception:
            # The service stays up; an operator reset starts a new session.
            LOGGER.exception("Bot start failed")

        try:
            yield
        finally:
            await session.shutdown()

    app = FastAPI(lifespan=lifespan)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    @app.get("/api/health")
    async def health():
        """
        Liveness check; does not require authentication.
        """
        return health_payload()

    # Register application routers
    app.include_router(auth_router)
    app.include_router(session_router)
    app.include_router(command_router)
    app.include_router(events_router)

    # Serve the built dashboard from the public directory, if it exists.
    if PUBLIC_DIR.exists():
        app.mount("/public", StaticFiles(directory=PUBLIC_DIR), name="public")

        @app.get("/", include_in_schema=False)
        async def serve_index():
            """
            Serve the dashboard index page from the public directory.
            """
            index_path = PUBLIC_DIR / "index.html"
            if not index_path.exists():
                raise HTTPException(status_code=404, detail="Frontend not found")
            return FileResponse(index_path)

    return app


app = create_app()
