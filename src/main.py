from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.v1.middleware.error_handler import ErrorHandlerMiddleware
from src.api.v1.middleware.logging_middleware import LoggingMiddleware
from src.api.v1.router import v1_router
from src.config import settings
from src.core.session.store import InMemorySessionStore
from src.dependencies import build_orchestrator
from src.utils.logging import setup_logging, get_logger


def init_state(app: FastAPI) -> None:
    """Attach the session store and orchestrator to ``app.state``."""
    store = InMemorySessionStore()
    app.state.session_store = store
    app.state.orchestrator = build_orchestrator(store)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(debug=settings.debug)
    logger = get_logger("startup")
    logger.info("Starting PBL conversation engine", version="0.1.0")

    init_state(app)
    logger.info(
        "Orchestrator initialized",
        llm_enabled=app.state.orchestrator.generate is not None,
        provider=settings.llm_provider,
    )

    yield

    logger.info("Shutting down", sessions=len(app.state.session_store))


def create_app() -> FastAPI:
    app = FastAPI(
        title="PBL Conversation Engine",
        description="Conversational flow and response integrity for project-based learning design",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Middleware is applied in reverse order -- outermost first.
    # 1. CORS (outermost -- handles preflight before anything else)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    # 2. Error handler (catches exceptions from inner layers)
    app.add_middleware(ErrorHandlerMiddleware)
    # 3. Request/response logger (innermost -- logs timing around handler)
    app.add_middleware(LoggingMiddleware)

    app.include_router(v1_router, prefix="/api/v1")

    return app


app = create_app()
