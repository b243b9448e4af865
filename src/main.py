"""Main application entry point for the restaurant menu service.

This module provides the FastAPI application factory and configuration
for running the service locally or behind a long-lived ASGI server.
"""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI

from restaurant_menu_service.config import ServiceConfig, mask_uri
from restaurant_menu_service.handlers.api_handler import create_app
from restaurant_menu_service.observability import configure_logging, setup_observability
from restaurant_menu_service.repositories.connection_manager import MongoConnectionManager
from restaurant_menu_service.repositories.fallback_menu import FallbackMenuLoader
from restaurant_menu_service.services.menu_service import MenuService

logger = logging.getLogger(__name__)


def load_local_env() -> Path | None:
    """Load the first .env file found next to this module or its parent.

    Returns:
        Path of the loaded file, or None if none exists
    """
    for env_path in (Path(__file__).parent / ".env", Path(__file__).parent.parent / ".env"):
        if env_path.exists():
            load_dotenv(env_path)
            return env_path
    return None


def create_application(config: ServiceConfig | None = None) -> FastAPI:
    """Create and configure the FastAPI application with all dependencies.

    This factory function:
    1. Configures logging
    2. Reads configuration from the environment
    3. Creates the MongoDB connection manager and fallback loader
    4. Creates the menu service
    5. Creates the FastAPI app with menu endpoints
    6. Sets up observability when enabled

    Args:
        config: Optional configuration (read from the environment if omitted)

    Returns:
        Configured FastAPI application instance
    """
    configure_logging(os.getenv("LOG_LEVEL", "INFO"))

    logger.info("Initializing restaurant menu service...")

    config = config or ServiceConfig.from_env()

    if config.database_configured:
        logger.info(
            f"MongoDB configured - uri: {mask_uri(config.mongodb_uri)}, db: {config.mongodb_db}, "
            f"collection: {config.mongodb_collection}"
        )
    else:
        logger.warning(f"MONGODB_URI not set - serving menu from {config.fallback_menu_file}")

    connection_manager = MongoConnectionManager(config=config)
    fallback_loader = FallbackMenuLoader(config.fallback_menu_file)
    menu_service = MenuService(connection_manager=connection_manager, fallback_loader=fallback_loader)

    app = create_app(
        menu_service=menu_service,
        connection_manager=connection_manager,
        config=config,
        connect_on_startup=True,
    )

    if os.getenv("OTEL_ENABLED", "false").lower() == "true":
        setup_observability(app)

    logger.info("Restaurant menu service initialized successfully")

    return app


# Create the FastAPI application instance (only when not in test mode)
if os.getenv("ENVIRONMENT") != "test":  # noqa: SIM108
    load_local_env()
    app = create_application()
else:
    # Create a placeholder app for test imports
    app = FastAPI()


if __name__ == "__main__":
    """Run the application with uvicorn when executed directly."""
    import uvicorn

    port = int(os.getenv("PORT", "3000"))
    host = os.getenv("HOST", "0.0.0.0")

    logger.info(f"Starting development server on {host}:{port}")
    logger.info(f"API documentation available at http://{host}:{port}/docs")

    uvicorn.run(
        "main:app",
        host=host,
        port=port,
        reload=True,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )
