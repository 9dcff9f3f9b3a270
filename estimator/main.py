# estimator/main.py
import logging
from datetime import timedelta

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import sessionmaker

from estimator.api.errors import register_exception_handlers
from estimator.api.router import api_router
from estimator.core.config import Settings, get_settings
from estimator.db.session import SessionLocal
from estimator.services import build_components


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def create_app(session_factory: sessionmaker | None = None) -> FastAPI:
    settings = get_settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version="0.1.0",
        debug=settings.DEBUG,
        description="Presupuestos de obra: catálogo de materiales, trabajos y BOQ por proyecto.",
    )

    app.state.settings = settings

    # Recurso de almacenamiento compartido, inyectado en cada componente
    session_factory = session_factory or SessionLocal
    price_window = (
        timedelta(days=settings.ACTUAL_PRICE_WINDOW_DAYS)
        if settings.ACTUAL_PRICE_WINDOW_DAYS is not None
        else None
    )
    app.state.session_factory = session_factory
    app.state.components = build_components(session_factory, price_window=price_window)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # API
    app.include_router(api_router, prefix="/api")

    # Health-check para infra
    @app.get("/healthz", tags=["health"])
    async def healthz():
        return {
            "status": "ok",
            "env": settings.ENV,
            "version": "0.1.0",
        }

    return app


# 👇 IMPORTANTE: que app sea de tipo FastAPI (no None)
app = create_app()
