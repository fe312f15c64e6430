"""Universal logging for the application."""

import logfire

from logging import Logger, basicConfig, getLogger

from fastapi import FastAPI


def get_logger(name: str = "Modulith") -> Logger:
    """Get a standard library logger with optional context name."""
    return getLogger(name)


def configure_logging(level: str, token: str | None) -> None:
    """Configure logfire and route standard library logging through it.

    Args:
        level (str): Log level name for the standard library loggers.
        token (str | None): Logfire write token. Nothing leaves the process without one.
    """
    logfire.configure(token=token, send_to_logfire="if-token-present")
    basicConfig(level=level.upper(), handlers=[logfire.LogfireLoggingHandler()])


def instrument_libraries(app: FastAPI) -> None:
    """Instrument common libraries for better observability."""
    logfire.instrument_fastapi(app)
    logfire.instrument_pymongo()
