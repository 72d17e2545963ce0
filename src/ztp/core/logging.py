"""Logging configuration for ztp using stdlib logging with rich."""

import logging
from collections.abc import MutableMapping
from typing import Any

from rich.console import Console
from rich.logging import RichHandler

# Keyword arguments understood by stdlib logging itself
_STDLIB_KWARGS = frozenset({"exc_info", "stack_info", "stacklevel", "extra"})


class StructuredLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that renders keyword arguments as step context.

    Example:
        logger = get_logger(__name__)
        logger.info("Applied step", step="base-packages", index=2)
        # Output: Applied step [index=2 step=base-packages]
    """

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        """Split context data from stdlib kwargs and append it to the message.

        Args:
            msg: Log message
            kwargs: Keyword arguments including context data

        Returns:
            Tuple of (formatted_message, cleaned_kwargs)
        """
        context = {k: v for k, v in kwargs.items() if k not in _STDLIB_KWARGS}
        clean_kwargs = {k: v for k, v in kwargs.items() if k in _STDLIB_KWARGS}

        if context:
            context_str = " ".join(f"{k}={v}" for k, v in sorted(context.items()))
            msg = f"{msg} [dim][[/dim]{context_str}[dim]][/dim]"

        return msg, clean_kwargs


def setup_logging(verbose: bool = False, trace: bool = False) -> None:
    """Configure logging with rich integration.

    Args:
        verbose: Enable debug logging
        trace: Enable trace logging (debug plus source locations)
    """
    log_level = logging.DEBUG if verbose or trace else logging.INFO

    console = Console(stderr=True)

    handler = RichHandler(
        console=console,
        show_time=True,
        show_path=trace,
        markup=True,
        rich_tracebacks=True,
        tracebacks_show_locals=verbose or trace,
        log_time_format="[%Y-%m-%d %H:%M:%S]",
    )

    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        handlers=[handler],
        force=True,
    )


def get_logger(name: str = "") -> StructuredLoggerAdapter:
    """Get a structured logger instance.

    Args:
        name: Logger name (typically __name__ of the module)

    Returns:
        Logger adapter accepting context data as keyword arguments
    """
    logger = logging.getLogger(name) if name else logging.getLogger("ztp")

    return StructuredLoggerAdapter(logger, {})
