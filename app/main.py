"""robyn-crud-pipeline - stub users/products API powered by Robyn."""

from robyn import Robyn

from app.api import products, upload, users
from app.core.lifespan import Lifespan
from app.core.logger import LogIcon, logger
from app.core.router import RouterMiddleware
from app.core.server import bind_pipeline
from app.core.settings import Settings
from app.core.settings import settings as st
from app.events.storage import AccessLogEvent, StorageEvent
from app.middlewares.access_log import AccessLogMiddleware, AccessLogWriter
from app.middlewares.auth import AuthMiddleware, Authorizer, allow_all
from app.middlewares.base import Pipeline
from app.middlewares.body import BodyParserMiddleware
from app.middlewares.http_log import HttpLogMiddleware
from app.middlewares.not_found import NotFoundMiddleware
from app.middlewares.static import StaticFilesMiddleware


def create_pipeline(
    settings: Settings,
    authorize: Authorizer = allow_all,
    writer: AccessLogWriter | None = None,
) -> Pipeline:
    """Build the request pipeline with every stage in its fixed order."""
    routes = (
        RouterMiddleware()
        .include_router(users.router)
        .include_router(products.router)
        .include_router(upload.create_router(settings))
    )

    return (
        Pipeline(timeout=settings.REQUEST_TIMEOUT)
        .register(AccessLogMiddleware(writer or AccessLogWriter(settings.LOG_FILE)))
        .register(AuthMiddleware(authorize))
        .register(HttpLogMiddleware())
        .register(BodyParserMiddleware())
        .register(StaticFilesMiddleware(settings.STATIC_PREFIX, settings.PUBLIC_DIR))
        .register(routes)
        .register(NotFoundMiddleware())
    )


def create_app(settings: Settings) -> Robyn:
    """Robyn app with lifespan events and every request bound to the pipeline."""
    app = Robyn(__file__)
    writer = AccessLogWriter(settings.LOG_FILE)

    # Lifespan events
    lifespan = Lifespan(settings, inject=app.inject_global)
    lifespan.register(StorageEvent(settings)).register(AccessLogEvent(writer))

    app.startup_handler(lifespan.startup)
    app.shutdown_handler(lifespan.shutdown)

    bind_pipeline(app, create_pipeline(settings, writer=writer))
    return app


def main() -> None:
    logger.info(f"Server running on {st.api_url}", icon=LogIcon.START, app=st.API_NAME, host=st.API_HOST)
    create_app(st).start(host=st.API_HOST, port=st.API_PORT)


if __name__ == "__main__":
    main()
