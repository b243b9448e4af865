"""Shared dependency factory for the serverless handler.

Dependencies are created once and reused across invocations within the same
function container, so the MongoDB connection survives warm starts.
"""

import logging
import os

from fastapi import FastAPI

from restaurant_menu_service.config import ServiceConfig
from restaurant_menu_service.handlers.api_handler import create_app
from restaurant_menu_service.observability import configure_logging
from restaurant_menu_service.repositories.connection_manager import MongoConnectionManager
from restaurant_menu_service.repositories.fallback_menu import FallbackMenuLoader
from restaurant_menu_service.services.menu_service import MenuService

logger = logging.getLogger(__name__)

# Module-level caches for container reuse
_config: ServiceConfig | None = None
_connection_manager: MongoConnectionManager | None = None
_menu_service: MenuService | None = None
_fastapi_app: FastAPI | None = None


def get_config() -> ServiceConfig:
    """Create or retrieve cached service configuration.

    Returns:
        ServiceConfig read from the environment
    """
    global _config

    if _config is None:
        _config = ServiceConfig.from_env()
        logger.info(
            f"Configuration loaded - database configured: {_config.database_configured}, "
            f"db: {_config.mongodb_db}"
        )

    return _config


def get_connection_manager() -> MongoConnectionManager:
    """Create or retrieve the cached MongoDB connection manager.

    Returns:
        MongoConnectionManager shared by every invocation in this container
    """
    global _connection_manager

    if _connection_manager is None:
        _connection_manager = MongoConnectionManager(config=get_config())
        logger.info("Connection manager initialized")

    return _connection_manager


def get_menu_service() -> MenuService:
    """Create or retrieve cached menu service.

    Returns:
        Configured MenuService instance
    """
    global _menu_service

    if _menu_service is not None:
        return _menu_service

    config = get_config()
    _menu_service = MenuService(
        connection_manager=get_connection_manager(),
        fallback_loader=FallbackMenuLoader(config.fallback_menu_file),
    )

    logger.info("Menu service initialized")
    return _menu_service


def get_fastapi_app() -> FastAPI:
    """Create or retrieve cached FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    global _fastapi_app

    if _fastapi_app is not None:
        return _fastapi_app

    _fastapi_app = create_app(
        menu_service=get_menu_service(),
        connection_manager=get_connection_manager(),
        config=get_config(),
    )

    logger.info("FastAPI application initialized")
    return _fastapi_app


def initialize_lambda_environment() -> None:
    """Initialize logging for the function container.

    Should be called once during cold start.
    """
    configure_logging(os.getenv("LOG_LEVEL", "INFO"))

    logger.info("Lambda environment initialized")
