"""
Centralized logging setup for the GTD Maildir MCP server.

All output goes to stderr so logging never interferes with the MCP JSON-RPC
protocol on stdout. Components get a structlog logger injected through their
constructors; this module only decides where those loggers write.
"""

import sys
import logging
import structlog
from typing import Any, List


NOISY_LOGGERS = [
    'asyncio',
    'httpx',
    'httpcore',
    'mcp.server.lowlevel.server',
    'uvicorn.access',
]


def configure_mcp_logging(level: str = "INFO", format_type: str = "dev") -> None:
    """Configure stdlib logging and structlog to write to stderr."""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr,
        force=True
    )

    processors: List[Any] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if format_type == "dev":
        processors.append(structlog.dev.ConsoleRenderer(colors=False))
    else:
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    silence_noisy_loggers()


def silence_noisy_loggers() -> None:
    """Raise the level of chatty third-party loggers and keep them off stdout."""
    for logger_name in NOISY_LOGGERS:
        noisy = logging.getLogger(logger_name)
        noisy.setLevel(logging.WARNING)

        for handler in noisy.handlers:
            if hasattr(handler, 'stream') and handler.stream == sys.stdout:
                handler.stream = sys.stderr


def get_mcp_logger(name: str) -> Any:
    """Get a structlog logger for injection into a component."""
    return structlog.get_logger(name)
