import logging
import logging.handlers
import sys

import structlog

from infrastructure.config import Settings, settings

_HANDLER_MARKER = "_filevault_handler"


def _mark(handler: logging.Handler) -> logging.Handler:
    setattr(handler, _HANDLER_MARKER, True)
    return handler


def setup_logging(config: Settings = settings, *, log_to_file: bool = True) -> None:
    """Route structlog, uvicorn and stdlib logging through the same handlers.

    Safe to call more than once; handlers installed by an earlier call are
    replaced rather than duplicated.
    """
    common_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if config.app_env == "development":
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            *common_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=common_processors,
        processor=renderer,
    )

    handlers: list[logging.Handler] = []

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(formatter)
    handlers.append(_mark(stream_handler))

    if log_to_file:
        config.log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.TimedRotatingFileHandler(
            config.log_dir / f"{config.app_env}.log",
            when="midnight",
            interval=1,
            backupCount=7,
        )
        file_handler.setFormatter(formatter)
        handlers.append(_mark(file_handler))

    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        if getattr(handler, _HANDLER_MARKER, False):
            root_logger.removeHandler(handler)
            handler.close()
    for handler in handlers:
        root_logger.addHandler(handler)
    root_logger.setLevel(config.log_level.upper())

    # Intercept Uvicorn/FastAPI logs
    for logger_name in ("uvicorn", "uvicorn.error", "uvicorn.access", "fastapi"):
        logging_logger = logging.getLogger(logger_name)
        logging_logger.handlers = list(handlers)
        logging_logger.propagate = False

    # pymongo's command/heartbeat chatter is only useful when debugging
    if config.log_level.upper() != "DEBUG":
        logging.getLogger("pymongo").setLevel(logging.WARNING)
