import os
from pathlib import Path
from textwrap import dedent
from typing import Optional

import pydantic
from fastapi import FastAPI
from fastapi.routing import APIRoute
from loguru import logger

from persons_console.client.persons_api import PersonsApiClient
from persons_console.errors import PersonsConsoleError
from persons_console.errors import handle_broad_exceptions
from persons_console.errors import handle_console_errors
from persons_console.errors import handle_pydantic_validation_errors
from persons_console.forms.person_form import PersonFormSubmitter
from persons_console.listing.controller import ListController
from persons_console.monitoring.logger import configure_logger
from persons_console.monitoring.notifications import NotificationCenter
from persons_console.monitoring.request_context import RequestContextMiddleware
from persons_console.routes.routes_health import ROUTER_HEALTH
from persons_console.routes.routes_persons import ROUTER_PERSONS
from persons_console.routes.routes_view import ROUTER_VIEW
from persons_console.settings import Settings


def _detect_environment() -> str:
    """Detect whether configuration comes from a local .env file or from the environment."""
    if Path(".env").exists():
        return "local-env-file"
    return "env-vars"


def create_app(settings: Optional[Settings] = None, api_client: Optional[PersonsApiClient] = None) -> FastAPI:
    """Create a FastAPI application.

    Configuration is loaded from environment variables via pydantic-settings
    (or a .env file during local development). Tests pass an api_client built
    on httpx.MockTransport instead of reaching a real persons API.
    """
    settings = settings or Settings()

    configure_logger(
        log_level=settings.log_level,
        log_file_path=settings.log_file_path,
    )

    logger.info(
        "Configuration loaded successfully",
        source=_detect_environment(),
        persons_api_base_url=settings.persons_api_base_url,
        poll_interval_seconds=settings.poll_interval_seconds,
        poll_max_attempts=settings.poll_max_attempts,
        environment=os.getenv("ENVIRONMENT", "local"),
    )

    app = FastAPI(
        title="Persons Console API",
        version="v1",
        description=dedent(
            """
        Presentation backend of the persons console.

        | Area | Notes |
        | --- | --- |
        | `/api/view` | Person list view model and operator commands |
        | `/api/persons` | Person form submission |
        | `/api/notifications` | Transient notifications (toasts) |
        """
        ),
        generate_unique_id_function=custom_generate_unique_id,
    )
    app.state.settings = settings

    api_client = api_client or PersonsApiClient.from_settings(settings)
    notifier = NotificationCenter()
    controller = ListController.from_settings(settings, api_client, notifier=notifier)

    app.state.api_client = api_client
    app.state.notifier = notifier
    app.state.controller = controller
    app.state.form_submitter = PersonFormSubmitter(api_client, notifier, on_saved=controller.bump_refresh_signal)

    @app.on_event("startup")
    async def load_first_page():
        """Fetch page 1 so the first GET /view has rows."""
        await controller.refresh()
        logger.success("Persons console started", persons_api_base_url=settings.persons_api_base_url)

    @app.on_event("shutdown")
    async def close_controller():
        """Stop background polling and close the HTTP connection pool."""
        await controller.aclose()
        await api_client.aclose()
        logger.info("Persons console stopped")

    app.add_middleware(RequestContextMiddleware)
    app.include_router(ROUTER_HEALTH, prefix="/api")
    app.include_router(ROUTER_VIEW, prefix="/api")
    app.include_router(ROUTER_PERSONS, prefix="/api")

    app.add_exception_handler(
        exc_class_or_status_code=pydantic.ValidationError,
        handler=handle_pydantic_validation_errors,
    )
    app.add_exception_handler(
        exc_class_or_status_code=PersonsConsoleError,
        handler=handle_console_errors,
    )

    app.middleware("http")(handle_broad_exceptions)

    return app


def custom_generate_unique_id(route: APIRoute):
    """
    Generate prettier `operationId`s in the OpenAPI schema.

    These become the function names in generated client SDKs.
    """
    if route.tags:
        return f"{route.tags[0]}-{route.name}"
    return route.name


if __name__ == "__main__":
    import uvicorn

    app = create_app()
    uvicorn.run(app, host="0.0.0.0", port=8080)
