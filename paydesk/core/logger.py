# paydesk/core/logger.py
from __future__ import annotations
import logging
import sys
import structlog
from paydesk.core.settings import Settings

HANDLER_NAME = "paydesk"

# stdlib loggers from the server and the processor SDK, rendered like our own events
ROUTED_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access", "stripe")


def _add_service(name: str):
    def processor(_logger, _method, event_dict):
        event_dict.setdefault("service", name)
        return event_dict

    return processor


def _renderers(settings: Settings) -> list:
    if settings.DEV_MODE:
        return [
            structlog.processors.ExceptionRenderer(),
            structlog.processors.KeyValueRenderer(sort_keys=True),
        ]
    return [
        structlog.processors.dict_tracebacks,
        structlog.processors.JSONRenderer(),
    ]


def _route_stdlib(settings: Settings, level: int, shared: list) -> None:
    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(HANDLER_NAME)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, *_renderers(settings)],
        )
    )

    root = logging.getLogger()
    # create_app may run more than once per process (tests); replace, never stack
    for old in [h for h in root.handlers if h.get_name() == HANDLER_NAME]:
        root.removeHandler(old)
    root.addHandler(handler)
    root.setLevel(level)

    for name in ROUTED_LOGGERS:
        lg = logging.getLogger(name)
        lg.handlers.clear()
        lg.propagate = True
        lg.setLevel(level)


def setup_logging(settings: Settings) -> None:
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    shared = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _add_service(settings.APP_NAME),
    ]
    _route_stdlib(settings, level, shared)

    structlog.configure(
        processors=[*shared, *_renderers(settings)],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=True,
    )
