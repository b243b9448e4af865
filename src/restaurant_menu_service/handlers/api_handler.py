"""FastAPI application serving the restaurant menu."""

import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Body, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from restaurant_menu_service.config import ServiceConfig
from restaurant_menu_service.models.menu_models import ErrorResponse
from restaurant_menu_service.repositories.connection_manager import MongoConnectionManager
from restaurant_menu_service.services.item_formatter import build_image_context, group_by_category
from restaurant_menu_service.services.menu_service import (
    MenuQueryResult,
    MenuQueryStatus,
    MenuService,
    MutationResult,
    MutationStatus,
)

logger = logging.getLogger(__name__)

ALLOWED_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
ALLOWED_HEADERS = ["Content-Type", "Authorization"]

_MUTATION_STATUS_CODES = {
    MutationStatus.OK: 200,
    MutationStatus.INVALID: 400,
    MutationStatus.NOT_FOUND: 404,
    MutationStatus.NOT_CONFIGURED: 500,
    MutationStatus.UPSTREAM_UNAVAILABLE: 502,
    MutationStatus.FAILED: 500,
}


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str


class DebugInfo(BaseModel):
    """Connection diagnostics for the debug endpoint."""

    configured: bool
    connected: bool
    collection: str | None = None
    lastError: str | None = None
    collections: list[str] = []


class DebugResponse(BaseModel):
    """Envelope for debug endpoint responses."""

    ok: bool
    info: DebugInfo


def error_response(status_code: int, message: str, **extra: Any) -> JSONResponse:
    """Build a JSON error response of the form {"error": message, ...}."""
    body = ErrorResponse(error=message, **extra).model_dump(exclude_none=True)
    return JSONResponse(status_code=status_code, content=body)


def menu_query_response(result: MenuQueryResult) -> JSONResponse:
    """Map a menu query result to an HTTP response.

    Args:
        result: Outcome of MenuService.get_menu

    Returns:
        200 with the item array, or the matching error response
    """
    if result.status is MenuQueryStatus.OK:
        return JSONResponse(content=result.items)

    if result.status is MenuQueryStatus.UPSTREAM_UNAVAILABLE:
        return error_response(
            502,
            "Failed to connect to MongoDB. See lastMongoError for details.",
            reason=result.reason,
            lastMongoError=result.reason,
            hint="Verify MONGODB_URI in your environment and check the database network access list.",
        )

    if result.status is MenuQueryStatus.NOT_FOUND:
        return error_response(
            404,
            "No menu items found in MongoDB. Documents exist but did not match expected item shapes.",
            collection=result.collection,
            hint="Ensure your documents are either item documents or contain arrays: "
            "items/data/menu/categories[].items.",
        )

    return error_response(
        500,
        "No menu data source available (set MONGODB_URI or provide data/menu.json).",
        hint="Check /debug/mongo.",
    )


def mutation_response(result: MutationResult) -> JSONResponse:
    """Map a mutation result to an HTTP response.

    Args:
        result: Outcome of a MenuService write

    Returns:
        200 with the affected document, or the matching error response
    """
    status_code = _MUTATION_STATUS_CODES[result.status]
    if result.status is MutationStatus.OK:
        return JSONResponse(status_code=status_code, content=result.document)
    return error_response(status_code, result.message or "Request failed.", reason=result.reason)


def create_app(
    menu_service: MenuService,
    connection_manager: MongoConnectionManager,
    config: ServiceConfig,
    connect_on_startup: bool = False,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        menu_service: Service for menu reads and writes
        connection_manager: Shared MongoDB connection manager
        config: Service configuration
        connect_on_startup: Warm the MongoDB connection during startup

    Returns:
        Configured FastAPI application
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if connect_on_startup and connection_manager.is_configured:
            collection = await connection_manager.ensure_connected()
            if collection is None:
                logger.warning(
                    f"Initial MongoDB connection failed (ignored): {connection_manager.last_error}"
                )
        yield
        await connection_manager.close()

    app = FastAPI(
        title="Restaurant Menu API",
        description="Menu items for the restaurant frontend, backed by MongoDB or a static file",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.state.menu_service = menu_service
    app.state.connection_manager = connection_manager
    app.state.config = config

    @app.middleware("http")
    async def bare_options(request: Request, call_next: Any) -> Response:
        # Real preflights are answered by the CORS middleware wrapped around this one
        if request.method == "OPTIONS":
            return Response(
                status_code=204,
                headers={
                    "Access-Control-Allow-Origin": config.cors_origin or "*",
                    "Access-Control-Allow-Methods": ",".join(ALLOWED_METHODS),
                    "Access-Control-Allow-Headers": ",".join(ALLOWED_HEADERS),
                },
            )
        return await call_next(request)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[config.cors_origin] if config.cors_origin else ["*"],
        allow_credentials=config.cors_allow_credentials,
        allow_methods=ALLOWED_METHODS,
        allow_headers=ALLOWED_HEADERS,
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        message = "Not found" if exc.status_code == 404 else str(exc.detail)
        return error_response(exc.status_code, message)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.info(f"Rejected request body on {request.url.path}: {exc.errors()}")
        return error_response(400, "Invalid request body.")

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Send a JSON 500 for errors that escape a route.

        Starlette re-raises the exception to the server after this response is
        sent, so routes that talk to the database or render stored data catch
        their own errors and return a handled error response instead.
        """
        logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
        return error_response(500, "Internal server error")

    @app.get("/", tags=["Health"])
    async def root() -> dict[str, bool]:
        """Liveness probe used by the frontend."""
        return {"ok": True}

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check() -> HealthResponse:
        """Health check endpoint.

        Returns:
            Health status indicating service is running
        """
        return HealthResponse(status="healthy")

    @app.get("/favicon.ico", include_in_schema=False)
    async def favicon() -> Response:
        return Response(status_code=204)

    async def render_menu(request: Request, render: Callable[[MenuQueryResult], JSONResponse]) -> JSONResponse:
        context = build_image_context(request.url.scheme, request.headers, config)
        try:
            result = await app.state.menu_service.get_menu(context)
            return render(result)
        except Exception as e:
            logger.exception(f"Error loading menu: {e}")
            return error_response(500, "Failed to load menu")

    @app.get("/menu", tags=["Menu"])
    @app.get("/api/menu", tags=["Menu"])
    async def get_menu(request: Request) -> JSONResponse:
        """Return all menu items, formatted for the frontend.

        Returns:
            JSON array of items, or an error object (404/500/502)
        """
        return await render_menu(request, menu_query_response)

    @app.get("/api/menu/grouped", tags=["Menu"])
    async def get_grouped_menu(request: Request) -> JSONResponse:
        """Return menu items grouped by category."""

        def render_grouped(result: MenuQueryResult) -> JSONResponse:
            if result.status is not MenuQueryStatus.OK:
                return menu_query_response(result)
            items = [item for item in result.items if isinstance(item, dict)]
            return JSONResponse(content=group_by_category(items))

        return await render_menu(request, render_grouped)

    @app.post("/api/menu", tags=["Menu"])
    async def create_menu_item(payload: dict[str, Any] | None = Body(default=None)) -> JSONResponse:
        """Create a menu item from title, category, price and optional fields."""
        try:
            result = await app.state.menu_service.create_item(payload)
            return mutation_response(result)
        except Exception as e:
            logger.exception(f"Error creating menu item: {e}")
            return error_response(500, "Failed to add menu item.")

    async def update_item(raw_id: str | None, payload: dict[str, Any] | None) -> JSONResponse:
        try:
            result = await app.state.menu_service.update_item(raw_id, payload)
            return mutation_response(result)
        except Exception as e:
            logger.exception(f"Error updating menu item: {e}")
            return error_response(500, "Failed to update menu item.")

    async def delete_item(raw_id: str | None, payload: dict[str, Any] | None) -> JSONResponse:
        try:
            result = await app.state.menu_service.delete_item(raw_id, payload)
            return mutation_response(result)
        except Exception as e:
            logger.exception(f"Error deleting menu item: {e}")
            return error_response(500, "Failed to delete menu item.")

    @app.put("/api/menu", tags=["Menu"])
    async def update_menu_item(
        query_id: str | None = Query(default=None, alias="id"),
        payload: dict[str, Any] | None = Body(default=None),
    ) -> JSONResponse:
        """Update an item identified by `?id=` or the body's `_id`/`id`."""
        return await update_item(query_id, payload)

    @app.put("/api/menu/{item_id}", tags=["Menu"])
    async def update_menu_item_by_path(
        item_id: str,
        payload: dict[str, Any] | None = Body(default=None),
    ) -> JSONResponse:
        """Update the item named in the path."""
        return await update_item(item_id, payload)

    @app.delete("/api/menu", tags=["Menu"])
    async def delete_menu_item(
        query_id: str | None = Query(default=None, alias="id"),
        payload: dict[str, Any] | None = Body(default=None),
    ) -> JSONResponse:
        """Delete an item identified by `?id=` or the body's `_id`/`id`."""
        return await delete_item(query_id, payload)

    @app.delete("/api/menu/{item_id}", tags=["Menu"])
    async def delete_menu_item_by_path(item_id: str) -> JSONResponse:
        """Delete the item named in the path."""
        return await delete_item(item_id, None)

    if config.debug_endpoints:

        @app.get("/debug/mongo", response_model=DebugResponse, tags=["Debug"])
        async def debug_mongo() -> DebugResponse:
            """Report connection state, last error and available collections."""
            manager = app.state.connection_manager
            collections = await manager.list_collection_names() if manager.is_connected else None
            return DebugResponse(
                ok=True,
                info=DebugInfo(
                    configured=manager.is_configured,
                    connected=manager.is_connected,
                    collection=manager.collection_name,
                    lastError=manager.last_error,
                    collections=collections or [],
                ),
            )

        @app.get("/debug/connect", tags=["Debug"])
        @app.post("/debug/connect", tags=["Debug"])
        async def debug_connect() -> JSONResponse:
            """Force a fresh MongoDB connection and report the result."""
            manager = app.state.connection_manager
            if not manager.is_configured:
                return JSONResponse(status_code=400, content={"ok": False, "error": "MONGODB_URI not set"})

            collection = await manager.ensure_connected(force_reconnect=True)
            if collection is None:
                return JSONResponse(status_code=502, content={"ok": False, "error": manager.last_error})
            return JSONResponse(content={"ok": True, "collection": manager.collection_name})

    return app
