import json
import logging
import os
import sys

# Level -> marker shown in front of every CLI log line.
LEVEL_GLYPHS = {
    logging.DEBUG: "%",
    logging.INFO: "+",
    logging.WARNING: "!",
    logging.ERROR: "x",
    logging.CRITICAL: "x",
}


class GlyphFormatter(logging.Formatter):
    """Prefix each record with a one-character level marker.

    Output looks like ``[+] exporting pairs...``. Levels below DEBUG get
    ``$``, anything else unknown gets ``?``.
    """

    def __init__(
        self,
        fmt: str = "[%(glyph)s] %(message)s",
        datefmt: str | None = None,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)

    def format(self, record: logging.LogRecord) -> str:
        if record.levelno in LEVEL_GLYPHS:
            record.glyph = LEVEL_GLYPHS[record.levelno]
        elif record.levelno < logging.DEBUG:
            record.glyph = "$"
        else:
            record.glyph = "?"
        return super().format(record)


class JsonFormatter(logging.Formatter):
    """Single-line JSON formatter for structured debug output.

    Produces one JSON object per log record with fields: ts, level, logger, msg.
    Exception info is included as an "exc" field when present.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


_DATEFMT = "%Y-%m-%d %H:%M:%S"


def _resolve_level(debug: bool, level: str | None) -> int:
    """--debug wins, then LOG_LEVEL, then the config file, then INFO."""
    if debug:
        return logging.DEBUG
    name = (os.getenv("LOG_LEVEL") or level or "INFO").upper()
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else logging.INFO


def _formatter(debug_format: str, to_file: bool) -> logging.Formatter:
    if debug_format == "json":
        return JsonFormatter(datefmt=_DATEFMT)
    if to_file:
        return logging.Formatter(
            "[%(asctime)s] [%(levelname)s] %(name)s %(message)s",
            datefmt=_DATEFMT,
        )
    return GlyphFormatter()


def setup_logging(
    debug: bool = False,
    log_file: str | None = None,
    debug_format: str = "text",
    level: str | None = None,
) -> None:
    """
    Configure the root logger for a dotman run.

    Records go to stderr so that the per-pair lines printed on stdout can
    be piped on their own.  A log file, when given, receives a copy of
    every record with timestamps.

    Args:
        debug: Force DEBUG regardless of any other level source.
        log_file: Optional file that receives a copy of every record.
        debug_format: "text" (default) or "json" for structured output.
        level: Level name from the config file, used when LOG_LEVEL is unset.

    Environment variables:
        LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR).
                   Default: INFO.
    """
    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(_formatter(debug_format, to_file=False))
    handlers: list[logging.Handler] = [stderr_handler]

    if log_file:
        file_handler = logging.FileHandler(log_file, mode="a")
        file_handler.setFormatter(_formatter(debug_format, to_file=True))
        handlers.append(file_handler)

    logging.basicConfig(
        level=_resolve_level(debug, level),
        handlers=handlers,
        force=True,
    )
