import logging
import sys

import structlog

_AZURE_HTTP_LOGGERS = [
    "azure.core.pipeline.policies.http_logging_policy",
    "azure.core.pipeline",
    "azure.identity",
    "azure.mgmt",
    "azure",
    "urllib3",
    "urllib3.connectionpool",
    "msal",
]


def _set_azure_http_log_level(log_level: int) -> None:
    """Set log levels for HTTP-related loggers to reduce noise."""
    # HTTP logging should only appear at DEBUG level
    target_level = logging.DEBUG if log_level <= logging.DEBUG else logging.WARNING
    for name in _AZURE_HTTP_LOGGERS:
        logging.getLogger(name).setLevel(target_level)


def configure_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=level,
    )
    logging.getLogger().setLevel(level)
    _set_azure_http_log_level(level)
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
