"""Tracing for media maintenance runs, backed by Pydantic Logfire.

Spans wrap each duplicate group, each hook call and each backfill batch so a
slow or failing run can be followed group by group. Everything here is a
no-op unless logfire is installed and ``logfire.enabled`` is set, which lets
services call it unconditionally.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from hotelsite.config import LogfireConfig, Settings

_logfire = None
_configured = False


def is_available() -> bool:
    return _logfire is not None and _configured


def logfire_options(config: LogfireConfig) -> dict[str, Any]:
    """Keyword arguments for ``logfire.configure`` (console options excluded)."""
    options: dict[str, Any] = {
        "service_name": config.service_name,
        "send_to_logfire": "if-token-present",
    }
    if config.environment:
        options["environment"] = config.environment
    if config.sample_rate != 1.0:
        options["trace_sample_rate"] = config.sample_rate
    return options


def configure(settings: Settings) -> bool:
    """Initialize logfire once. Returns True when tracing is active."""
    global _logfire, _configured

    if _configured:
        return True
    if not settings.logfire.enabled:
        return False

    try:
        import logfire as lf
    except ImportError:
        return False

    options = logfire_options(settings.logfire)
    if settings.logfire.console:
        options["console"] = lf.ConsoleOptions()

    lf.configure(**options)
    _logfire = lf
    _configured = True
    return True


def instrument_httpx() -> None:
    """Trace media downloads made by the hash backfill."""
    if is_available():
        _logfire.instrument_httpx()


def instrument_sqlalchemy(engine) -> None:
    if is_available():
        _logfire.instrument_sqlalchemy(engine=engine)


@contextmanager
def span(name: str, **attrs: Any):
    """Context manager that yields a logfire span, or None if unavailable."""
    if is_available():
        with _logfire.span(name, **attrs) as s:
            yield s
    else:
        yield None


def info(msg: str, **attrs: Any) -> None:
    if is_available():
        _logfire.info(msg, **attrs)


def exception(msg: str, **kwargs: Any) -> bool:
    """Log an exception with traceback via logfire. Returns True if logged, False if unavailable."""
    if is_available():
        _logfire.exception(msg, **kwargs)
        return True
    return False
