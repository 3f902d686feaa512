"""Structured logging for restaurant-hub.

JSON lines in production, colored console everywhere else. Call
``configure_logging()`` once from the FastAPI lifespan.

Every request is tagged with ``request_id`` by the middleware and with
``tenant`` once the host resolves, via ``bind_request_context``. Events
worth knowing when reading logs:

    http_request            one line per request (method, host, status, latency)
    tenant_resolved         slug found and tenant row loaded
    tenant_not_resolved     no slug in Host / X-Forwarded-Host / headers
    scan_token_issued       new token; ``token_id`` is a fingerprint, never the token
    scan_token_consumed     the one successful use of a token
    scan_token_rejected     ``reason`` is unknown, tenant_mismatch, expired or consumed
    comment_created         comment stored for ``tenant``
    request_rejected        domain error mapped to a 4xx
    backing_store_failure   database or token store I/O error (500)

Raw scan tokens, cookies and credentials are redacted wherever they
appear as a key, including inside a ``headers`` mapping.
"""

import logging
import sys
from collections.abc import Mapping

import structlog

REDACTED = "***REDACTED***"

# Compared after lowercasing and replacing "-" with "_", so header names match.
SENSITIVE_KEYS: frozenset[str] = frozenset(
    {
        "scan_token",
        "x_scan_token",
        "token",
        "cookie",
        "set_cookie",
        "authorization",
        "password",
        "postgres_password",
        "database_url",
    }
)


def _is_sensitive(key: str) -> bool:
    return key.lower().replace("-", "_") in SENSITIVE_KEYS


def _redact_sensitive_keys(
    logger: logging.Logger,
    method_name: str,
    event_dict: structlog.types.EventDict,
) -> structlog.types.EventDict:
    """Mask token, cookie and credential values, one mapping level deep."""
    for key, value in event_dict.items():
        if _is_sensitive(key):
            event_dict[key] = REDACTED
        elif isinstance(value, Mapping):
            event_dict[key] = {
                k: REDACTED if _is_sensitive(str(k)) else v for k, v in value.items()
            }
    return event_dict


def configure_logging(
    environment: str = "development",
    log_level: str = "INFO",
) -> None:
    """Configure structlog processor chain and stdlib root logger.

    Args:
        environment: 'production' for JSON output, anything else
            for colored console output.
        log_level: Python log level name (DEBUG, INFO, WARNING, etc.).
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        _redact_sensitive_keys,
    ]

    if environment == "production":
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level.upper())

    # Quiet noisy libraries
    for name in ("uvicorn.access", "sqlalchemy.engine"):
        logging.getLogger(name).setLevel(logging.WARNING)


def bind_request_context(**values: object) -> None:
    """Attach values (request id, tenant slug) to every log line of the request."""
    structlog.contextvars.bind_contextvars(**values)


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()
