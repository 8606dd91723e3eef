import contextvars
import logging
import sys
import uuid

_run_id: contextvars.ContextVar[str] = contextvars.ContextVar("run_id", default="-")


class RunIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.run_id = _run_id.get()
        return True


def new_run_id() -> str:
    return uuid.uuid4().hex[:8]


def set_run_id(run_id: str) -> None:
    _run_id.set(run_id)


def setup_logging(level: str = "WARNING") -> None:
    # stdout is reserved for the rendered schedule
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s %(name)s run_id=%(run_id)s %(message)s")
    )
    handler.addFilter(RunIdFilter())

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)

    resolved = logging.getLevelName(level.strip().upper()) if level else logging.WARNING
    if not isinstance(resolved, int):
        root.setLevel(logging.WARNING)
        logging.getLogger(__name__).warning("invalid LOG_LEVEL=%s, using WARNING", level)
        return
    root.setLevel(resolved)
