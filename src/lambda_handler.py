"""Serverless entry point for the menu API.

API Gateway and function-URL requests are translated to ASGI by Mangum and
served by the same FastAPI application the local server uses. Any other
event type is rejected.
"""

import json
import logging
import os
from typing import Any

from mangum import Mangum

from lambda_dependencies import get_fastapi_app, initialize_lambda_environment

# Initialize environment during cold start (skip in test mode)
if os.getenv("ENVIRONMENT") != "test":
    initialize_lambda_environment()

logger = logging.getLogger(__name__)

# Create FastAPI app and Mangum adapter (cached for warm starts, skip in test mode)
if os.getenv("ENVIRONMENT") != "test":
    app = get_fastapi_app()
    mangum_handler = Mangum(app, lifespan="off")
else:
    app = None  # type: ignore
    mangum_handler = None  # type: ignore


def is_http_event(event: dict[str, Any]) -> bool:
    """Determine if the event is an HTTP request.

    Args:
        event: The Lambda event payload

    Returns:
        True for API Gateway (REST or HTTP API) and function URL events
    """
    request_context = event.get("requestContext")
    if not isinstance(request_context, dict):
        return False
    return "httpMethod" in event or "http" in request_context or "elb" in request_context


def _json_response(status_code: int, body: dict[str, Any]) -> dict[str, Any]:
    return {
        "statusCode": status_code,
        "headers": {"content-type": "application/json"},
        "body": json.dumps(body),
    }


def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """Serve an HTTP event through the menu API.

    Args:
        event: The Lambda event payload
        context: The Lambda context object

    Returns:
        Response dict with statusCode, headers and body
    """
    logger.info(f"Received Lambda invocation, request_id: {getattr(context, 'aws_request_id', None)}")

    if not is_http_event(event):
        logger.warning(f"Unsupported event type, keys: {sorted(event.keys())}")
        return _json_response(400, {"error": "Unsupported event type"})

    try:
        result: dict[str, Any] = mangum_handler(event, context)
        return result

    except Exception as e:
        logger.exception(f"Unhandled error in Lambda handler: {e}")
        return _json_response(500, {"error": "Internal Server Error", "reason": str(e)})
