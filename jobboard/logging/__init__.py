"""Structured logging helpers shared by the lifecycle and notification components."""

import logging
from typing import Optional, Union


class ComponentLoggerAdapter(logging.LoggerAdapter):
    """LoggerAdapter that stamps a component name onto every record.

    Fields passed through ``extra`` at the call site win over the adapter's own.
    """

    def process(self, msg, kwargs):
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


def get_logger(
    name: str, component: Optional[str] = None
) -> Union[logging.Logger, ComponentLoggerAdapter]:
    """Get a logger, optionally bound to a component.

    Args:
        name: Logger name (typically __name__)
        component: Component identifier injected into every record

    Returns:
        Logger or ComponentLoggerAdapter instance

    Example:
        >>> logger = get_logger(__name__, component="lifecycle")
        >>> logger.info("Application submitted", extra={"event": "application.submitted"})
    """
    logger = logging.getLogger(name)

    if component:
        return ComponentLoggerAdapter(logger, {"component": component})

    return logger
