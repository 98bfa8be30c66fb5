import logging
import sys
from contextvars import ContextVar
from typing import Optional

from pythonjsonlogger import jsonlogger

# set per request by the trace-id middleware
TRACE_ID_CTX: ContextVar[Optional[str]] = ContextVar("trace_id", default=None)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s %(trace_id)s %(service)s"

# third-party loggers that should flow through the JSON handler instead of their own
PROPAGATED_LOGGERS = ("uvicorn", "uvicorn.access", "uvicorn.error")


class RequestContextFilter(logging.Filter):
    """Stamps every record with the current trace id and the service name."""

    def __init__(self, service: str):
        super().__init__()
        self.service = service

    def filter(self, record):
        record.trace_id = TRACE_ID_CTX.get()
        record.service = self.service
        return True


def setup_logging(level="INFO", service: str = "rideshare", sql_echo: bool = False):
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(jsonlogger.JsonFormatter(LOG_FORMAT, rename_fields={"levelname": "level", "asctime": "timestamp"}))
    handler.addFilter(RequestContextFilter(service))

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = [handler]

    for name in PROPAGATED_LOGGERS:
        lg = logging.getLogger(name)
        lg.handlers = []
        lg.propagate = True
    # statement logging only when DEBUG asks for it
    logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO if sql_echo else logging.WARNING)
