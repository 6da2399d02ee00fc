from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from procurement.api.routes import auth, metrics, ping, tickets, users
from procurement.core.config import get_settings
from procurement.core.logging import configure_logging, init_tracer, shutdown_tracer
from procurement.metrics import metrics_registry
from procurement.tickets.repository import TicketRepository
from procurement.tickets.service import TicketService
from procurement.users.repository import UserRepository
from procurement.users.service import UserService


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logger = configure_logging(settings)
    tracer_provider = init_tracer(settings)

    app.state.metrics_registry = metrics_registry

    db_engine = create_async_engine(settings.async_database_url, future=True)
    session_factory = async_sessionmaker(db_engine, expire_on_commit=False)
    user_repository = UserRepository(session_factory, engine=db_engine)
    ticket_repository = TicketRepository(session_factory, engine=db_engine)
    try:
        await user_repository.ensure_schema()
        await ticket_repository.ensure_schema()
    except Exception:
        logger.exception("Failed to prepare the database schema")
        await db_engine.dispose()
        shutdown_tracer(tracer_provider)
        raise

    app.state.db_engine = db_engine
    app.state.user_service = UserService(user_repository, settings)
    app.state.ticket_service = TicketService(
        ticket_repository,
        user_repository,
        max_attempts=settings.transition_max_attempts,
        metrics=metrics_registry,
    )
    logger.info("%s started (%s)", settings.app_name, settings.environment)
    try:
        yield
    finally:
        await db_engine.dispose()
        shutdown_tracer(tracer_provider)


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
    app.include_router(ping.router)
    app.include_router(metrics.router)
    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(tickets.router)
    return app


app = create_app()
