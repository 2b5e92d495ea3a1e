from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.health import router as health_router
from app.api.me import router as me_router
from app.api.root import router as root_router
from app.api.admin import router as admin_router
from app.api.audit import router as audit_router
from app.api.entities import router as entities_router
from app.core.config import settings
from app.core.entity_catalog import build_registry
from app.core.errors import install_error_handlers
from app.core.log_config import configure_logging
from app.core.notifications import LoggingNotifier, Notifier
from app.core.registry import EntityRegistry


def create_app(
    registry: EntityRegistry | None = None,
    notifier: Notifier | None = None,
) -> FastAPI:
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(title="Entity Store")

    # Built once; handlers only ever read it
    app.state.registry = registry or build_registry()
    app.state.notifier = notifier or LoggingNotifier()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["ETag"],
    )
    install_error_handlers(app)

    app.include_router(root_router)
    app.include_router(health_router)
    app.include_router(me_router)
    app.include_router(admin_router)
    app.include_router(audit_router)
    app.include_router(entities_router)
    return app


app = create_app()
