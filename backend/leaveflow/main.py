# backend/leaveflow/main.py

import logging
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from leaveflow.api.auth_routes import router as auth_router
from leaveflow.api.routes import router as api_router
from leaveflow.core.config import Settings, get_settings
from leaveflow.core.database import create_tables, make_engine, make_session_factory
from leaveflow.core.logging_config import configure_logging
from leaveflow.services.credential_store import CredentialStore, JsonFileCredentialStore
from leaveflow.services.fallback_auth import FallbackAuthService
from leaveflow.services.primary_auth import DatabaseAuthClient
from leaveflow.services.session_coordinator import SessionCoordinator

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    *,
    store: Optional[CredentialStore] = None,
    fallback: Optional[FallbackAuthService] = None,
) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    engine = make_engine(settings.database_url)
    session_factory = make_session_factory(engine)

    primary = DatabaseAuthClient(
        session_factory,
        secret_key=settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
        token_ttl=timedelta(minutes=settings.access_token_expire_minutes),
    )
    fallback = fallback or FallbackAuthService(
        store or JsonFileCredentialStore(settings.fallback_store_path),
        session_ttl=timedelta(hours=settings.fallback_session_ttl_hours),
    )
    coordinator = SessionCoordinator(fallback, primary)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        create_tables(engine)
        if settings.seed_demo_data:
            from leaveflow.seed_users import seed_demo_data

            seed_demo_data(session_factory, primary)

        state = coordinator.initialize()
        logger.info("LeaveFlow started (%s), auth state: %s", settings.app_env, type(state).__name__)
        try:
            yield
        finally:
            coordinator.close()
            engine.dispose()

    app = FastAPI(title="LeaveFlow API", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = session_factory
    app.state.primary = primary
    app.state.coordinator = coordinator

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["Authorization", "Content-Type"],
    )

    app.include_router(auth_router, prefix="/api/auth", tags=["auth"])
    app.include_router(api_router, prefix="/api")

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app
