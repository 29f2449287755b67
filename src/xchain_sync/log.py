"""
Console logging setup.

Records logged from a lane carry the authority that signs for it in
`extra={"authority": ...}`. Both formatters render it after the logger
name, so interleaved lanes stay readable.
"""

from __future__ import annotations

import logging

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def lane_tag(record: logging.LogRecord) -> str:
    """`[authority]` for records logged from a lane, empty otherwise."""
    authority = getattr(record, "authority", None)
    return "" if authority is None else f"[{authority}]"


class LaneFormatter(logging.Formatter):
    """Plain formatter that keeps the lane tag."""

    def __init__(self) -> None:
        super().__init__(
            "%(asctime)s %(levelname)-8s %(name)s%(lane)s: %(message)s",
            datefmt=DATE_FORMAT,
        )

    def format(self, record: logging.LogRecord) -> str:
        record.lane = lane_tag(record)
        return super().format(record)


class ColoredFormatter(logging.Formatter):
    """Logging formatter with ANSI colors, one color per lane."""

    GREY = "\x1b[38;5;244m"
    BLUE = "\x1b[38;5;39m"
    GREEN = "\x1b[38;5;40m"
    YELLOW = "\x1b[38;5;220m"
    RED = "\x1b[38;5;196m"
    BOLD_RED = "\x1b[38;5;196;1m"
    CYAN = "\x1b[38;5;51m"
    MAGENTA = "\x1b[38;5;170m"
    ORANGE = "\x1b[38;5;208m"
    RESET = "\x1b[0m"

    LEVEL_COLORS = {
        logging.DEBUG: GREY,
        logging.INFO: GREEN,
        logging.WARNING: YELLOW,
        logging.ERROR: RED,
        logging.CRITICAL: BOLD_RED,
    }

    LANE_COLORS = {
        "layerzero": BLUE,
        "executor": ORANGE,
        "relayer": MAGENTA,
        "oracle": YELLOW,
        "bridge": CYAN,
    }

    def __init__(self) -> None:
        super().__init__(datefmt=DATE_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno, self.RESET)
        timestamp = f"{self.CYAN}{self.formatTime(record, self.datefmt)}{self.RESET}"
        levelname = f"{color}{record.levelname:8}{self.RESET}"
        name = f"{self.BLUE}{record.name}{self.RESET}"

        tag = lane_tag(record)
        if tag:
            lane_color = self.LANE_COLORS.get(str(record.authority), self.GREY)
            name = f"{name}{lane_color}{tag}{self.RESET}"

        message = record.getMessage()
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"

        return f"{timestamp} {levelname} {name}: {message}"


def setup_logging(verbose: bool = False, no_color: bool = False) -> logging.Handler:
    """
    Configure the root logger for a reconciliation run.

    Returns:
        The installed handler, so callers can remove it again.
    """
    level = logging.DEBUG if verbose else logging.INFO

    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(LaneFormatter() if no_color else ColoredFormatter())

    root = logging.getLogger()
    root.setLevel(level)
    root.addHandler(handler)
    return handler
