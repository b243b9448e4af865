"""OpenTelemetry tracing decorators."""

import asyncio
import functools
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any, TypeVar

from opentelemetry import trace
from opentelemetry.trace import Span

F = TypeVar("F", bound=Callable[..., Any])


def _record_outcome(span: Span, result: Any) -> None:
    span.set_attribute("success", True)

    # Service results carry a status enum; expose it for filtering traces
    status = getattr(result, "status", None)
    if status is not None:
        span.set_attribute("menu.outcome", getattr(status, "value", str(status)))


@contextmanager
def _span(tracer: trace.Tracer, name: str, func_name: str, service_name: str) -> Iterator[Span]:
    with tracer.start_as_current_span(name) as span:
        span.set_attribute("service.name", service_name)
        if name != func_name:
            span.set_attribute("function.name", func_name)
        try:
            yield span
        except Exception as e:
            span.set_attribute("success", False)
            span.set_attribute("error.type", type(e).__name__)
            span.set_attribute("error.message", str(e))
            span.record_exception(e)
            raise


def traced(span_name: str | None = None, service_name: str = "menu-svc") -> Callable[[F], F]:
    """Decorator to add OpenTelemetry tracing to a function.

    Creates a span around each call. Exceptions are recorded on the span and
    re-raised; results exposing a `status` attribute have it recorded as the
    `menu.outcome` span attribute.

    Args:
        span_name: Name for the span (defaults to function name if not provided)
        service_name: Service name for span attributes

    Returns:
        Decorated function with tracing

    Example:
        @traced("menu.query")
        async def get_menu(self, context: ImageContext) -> MenuQueryResult:
            ...
    """

    def decorator(func: F) -> F:
        name = span_name or func.__name__
        tracer = trace.get_tracer(service_name)

        if asyncio.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                with _span(tracer, name, func.__name__, service_name) as span:
                    result = await func(*args, **kwargs)
                    _record_outcome(span, result)
                    return result

            return async_wrapper  # type: ignore

        @functools.wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            with _span(tracer, name, func.__name__, service_name) as span:
                result = func(*args, **kwargs)
                _record_outcome(span, result)
                return result

        return sync_wrapper  # type: ignore

    return decorator
