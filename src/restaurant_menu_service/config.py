"""Service configuration loaded from environment variables.

The menu service runs both as a local server and as a serverless function.
Both entry points build a single ServiceConfig from the process environment
so that every component sees the same settings.
"""

import os
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

DEFAULT_FALLBACK_MENU_FILE = os.path.join("data", "menu.json")

_PASSWORD_PATTERN = re.compile(r":[^:@/]+@")


def _get_bool(environ: Mapping[str, str], name: str, default: bool = False) -> bool:
    value = environ.get(name)
    if value is None or value == "":
        return default
    return value.strip().lower() == "true"


def _get_int(environ: Mapping[str, str], name: str, default: int) -> int:
    try:
        value = int(environ.get(name, ""))
    except ValueError:
        return default
    return value if value > 0 else default


def _get_float(environ: Mapping[str, str], name: str, default: float) -> float:
    try:
        value = float(environ.get(name, ""))
    except ValueError:
        return default
    return value if value >= 0 else default


def mask_uri(uri: str) -> str:
    """Hide the password portion of a connection string for logging.

    Args:
        uri: Connection string, possibly containing credentials

    Returns:
        Masked connection string, shortened when very long
    """
    if not uri:
        return ""
    if len(uri) <= 60:
        return _PASSWORD_PATTERN.sub(":***@", uri, count=1)
    return _PASSWORD_PATTERN.sub(":***@", uri[:30], count=1) + "..." + uri[-20:]


@dataclass(frozen=True)
class ServiceConfig:
    """Runtime settings for the menu service.

    Attributes:
        mongodb_uri: MongoDB connection string; empty means file-fallback mode
        mongodb_db: Database holding the menu collection
        mongodb_collection: Preferred collection name for menu documents
        mongodb_tls: TLS mode ("auto", "true" or "false")
        mongodb_tls_allow_invalid: Accept invalid TLS certificates
        server_selection_timeout_ms: Driver server selection timeout
        connect_max_attempts: Connection attempts before giving up
        connect_backoff_seconds: Base delay multiplied by the attempt number
        host: Interface for the local server
        port: Port for the local server
        cors_origin: Allowed CORS origin; empty allows any origin
        cors_allow_credentials: Send Access-Control-Allow-Credentials
        image_base_url: Explicit base URL for image filenames
        public_base_url: Explicit public URL of this backend
        platform_host: Deployment hostname supplied by the hosting platform
        fallback_menu_file: JSON file served when no database is configured
        debug_endpoints: Register the /debug routes
    """

    mongodb_uri: str = ""
    mongodb_db: str = "menu"
    mongodb_collection: str = "menudata"
    mongodb_tls: str = "auto"
    mongodb_tls_allow_invalid: bool = False
    server_selection_timeout_ms: int = 5000
    connect_max_attempts: int = 3
    connect_backoff_seconds: float = 0.5
    host: str = "0.0.0.0"
    port: int = 3000
    cors_origin: str = ""
    cors_allow_credentials: bool = False
    image_base_url: str = ""
    public_base_url: str = ""
    platform_host: str = ""
    fallback_menu_file: str = DEFAULT_FALLBACK_MENU_FILE
    debug_endpoints: bool = True

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ServiceConfig":
        """Build configuration from environment variables.

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Returns:
            ServiceConfig populated from the environment
        """
        env = os.environ if environ is None else environ

        tls_mode = env.get("MONGODB_TLS", "auto").strip().lower() or "auto"
        if tls_mode not in ("auto", "true", "false"):
            tls_mode = "auto"

        return cls(
            mongodb_uri=env.get("MONGODB_URI", "").strip(),
            mongodb_db=env.get("MONGODB_DB", "").strip() or "menu",
            mongodb_collection=env.get("MONGODB_COLLECTION", "").strip() or "menudata",
            mongodb_tls=tls_mode,
            mongodb_tls_allow_invalid=_get_bool(env, "MONGODB_TLS_ALLOW_INVALID"),
            server_selection_timeout_ms=_get_int(env, "MONGODB_SERVER_SELECTION_TIMEOUT_MS", 5000),
            connect_max_attempts=_get_int(env, "MONGODB_CONNECT_ATTEMPTS", 3),
            connect_backoff_seconds=_get_float(env, "MONGODB_CONNECT_BACKOFF_SECONDS", 0.5),
            host=env.get("HOST", "0.0.0.0"),
            port=_get_int(env, "PORT", 3000),
            cors_origin=env.get("CORS_ORIGIN", "").strip(),
            cors_allow_credentials=_get_bool(env, "CORS_ALLOW_CREDENTIALS"),
            image_base_url=env.get("IMAGE_BASE_URL", "").strip().rstrip("/"),
            public_base_url=env.get("BASE_URL", "").strip().rstrip("/"),
            platform_host=env.get("VERCEL_URL", "").strip(),
            fallback_menu_file=env.get("MENU_FALLBACK_FILE", "").strip() or DEFAULT_FALLBACK_MENU_FILE,
            debug_endpoints=_get_bool(env, "ENABLE_DEBUG_ENDPOINTS", default=True),
        )

    @property
    def database_configured(self) -> bool:
        """Whether a MongoDB connection string was supplied."""
        return bool(self.mongodb_uri)

    def mongo_client_options(self) -> dict[str, Any]:
        """Build keyword options for the MongoDB client.

        Returns:
            Client options honouring the TLS and timeout overrides
        """
        options: dict[str, Any] = {"serverSelectionTimeoutMS": self.server_selection_timeout_ms}

        if self.mongodb_tls in ("true", "false"):
            options["tls"] = self.mongodb_tls == "true"

        if self.mongodb_tls_allow_invalid:
            options["tlsAllowInvalidCertificates"] = True

        return options
