import contextlib
import datetime
import logging
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .settings import Settings, settings


APP_LOGGER_NAME = "searxng_mcp"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"

_LOGGING_CONFIGURED = False


def resolve_timezone(name: Optional[str]) -> datetime.tzinfo:
    """
    Return the named zone, or the host's local zone when name is empty or
    unknown.
    """
    if name:
        try:
            return ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError):
            pass
    return datetime.datetime.now().astimezone().tzinfo or datetime.timezone.utc


class LocalTimezoneFormatter(logging.Formatter):
    """
    Formatter rendering `asctime` as ISO-8601 (millisecond precision) in
    LOG_TIMEZONE instead of the process timezone.
    """

    def __init__(self, *args, timezone_name: Optional[str] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self._tzinfo = resolve_timezone(timezone_name)

    def formatTime(self, record: logging.LogRecord, datefmt: Optional[str] = None) -> str:
        moment = datetime.datetime.fromtimestamp(record.created, tz=self._tzinfo)
        return moment.strftime(datefmt) if datefmt else moment.isoformat(timespec="milliseconds")


class DailyFileHandler(logging.FileHandler):
    """
    Appends to <log_dir>/<prefix>-YYYY-MM-DD.log, moving to a new file when
    the date changes. Whenever a file is opened only the newest
    `backup_count` files are kept.
    """

    def __init__(
        self,
        log_dir: Path,
        filename_prefix: str = "searxng-mcp",
        backup_count: int = 7,
        encoding: str = "utf-8",
    ) -> None:
        self.log_dir = Path(log_dir)
        self.filename_prefix = filename_prefix
        self.backup_count = backup_count
        self._day = datetime.date.today()
        self.log_dir.mkdir(parents=True, exist_ok=True)
        super().__init__(self._path_for(self._day), encoding=encoding, delay=True)

    def _path_for(self, day: datetime.date) -> Path:
        return self.log_dir / f"{self.filename_prefix}-{day.isoformat()}.log"

    def _prune(self) -> None:
        if self.backup_count <= 0:
            return
        files = sorted(self.log_dir.glob(f"{self.filename_prefix}-*.log"))
        for stale in files[: -self.backup_count]:
            with contextlib.suppress(OSError):
                stale.unlink()

    def _open(self):
        stream = super()._open()
        self._prune()
        return stream

    def emit(self, record: logging.LogRecord) -> None:
        today = datetime.date.today()
        if today != self._day:
            if self.stream is not None:
                self.stream.close()
                self.stream = None
            self._day = today
            self.baseFilename = str(self._path_for(today).resolve())
        super().emit(record)


def setup_logging(config: Optional[Settings] = None) -> None:
    """
    Configure logging once per process.

    The "searxng_mcp" logger additionally writes to daily files under
    LOG_DIR (when set). A console handler on the root logger sends every
    record, uvicorn's and the MCP SDK's included, to stderr: in stdio mode
    stdout belongs to the protocol.
    """
    global _LOGGING_CONFIGURED
    if _LOGGING_CONFIGURED:
        return

    config = config or settings
    level = logging.getLevelName(str(config.log_level).upper())
    if not isinstance(level, int):
        level = logging.INFO

    formatter = LocalTimezoneFormatter(LOG_FORMAT, timezone_name=config.log_timezone)

    app_logger = logging.getLogger(APP_LOGGER_NAME)
    app_logger.setLevel(level)
    app_logger.propagate = True

    if config.log_dir:
        file_handler = DailyFileHandler(Path(config.log_dir))
        file_handler.setFormatter(formatter)
        app_logger.addHandler(file_handler)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    # pytest and uvicorn may already have installed a stream handler.
    if not any(
        isinstance(handler, logging.StreamHandler)
        and not isinstance(handler, logging.FileHandler)
        for handler in root_logger.handlers
    ):
        console = logging.StreamHandler()  # stderr
        console.setFormatter(formatter)
        root_logger.addHandler(console)

    _LOGGING_CONFIGURED = True


logger = logging.getLogger(APP_LOGGER_NAME)
