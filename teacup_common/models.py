"""
Data models for test report storage.

These models represent the objects a test-execution framework hands to a
reporter, plus the read models returned when a stored report is queried.
They are independent of the underlying storage mechanism.
"""

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

# Level recorded when a log level is not one of the known names
UNKNOWN_LEVEL_ORDINAL = 7


class Status(Enum):
    """Outcome of a finished node. Stored as its 1-based ordinal."""

    ABORTED = "aborted"
    FAILED = "failed"
    SUCCESSFUL = "successful"

    @property
    def ordinal(self) -> int:
        return list(Status).index(self) + 1

    @classmethod
    def from_ordinal(cls, ordinal: int) -> "Status":
        """Decode a stored status ordinal."""
        members = list(cls)
        if not 1 <= ordinal <= len(members):
            raise ValueError(f"Unknown status ordinal: {ordinal}")
        return members[ordinal - 1]


class Level(Enum):
    """Log levels understood by the report schema, in ordinal order."""

    CONFIG = "config"
    FINE = "fine"
    FINER = "finer"
    FINEST = "finest"
    INFO = "info"
    SEVERE = "severe"
    WARNING = "warning"

    @property
    def ordinal(self) -> int:
        return list(Level).index(self) + 1


_LEVEL_ORDINALS = {level: level.ordinal for level in Level}


def level_ordinal(level: Any) -> int:
    """
    Map a log level to the small integer stored in the database.

    Accepts a Level member or a level name (case-insensitive). Anything
    unrecognized is stored as 7.
    """
    if isinstance(level, str):
        try:
            level = Level[level.upper()]
        except KeyError:
            return UNKNOWN_LEVEL_ORDINAL
    return _LEVEL_ORDINALS.get(level, UNKNOWN_LEVEL_ORDINAL)


def level_from_ordinal(ordinal: int) -> Level:
    """Decode a stored level ordinal (out-of-range values read as WARNING)."""
    members = list(Level)
    if 1 <= ordinal <= len(members):
        return members[ordinal - 1]
    return Level.WARNING


def format_millis(millis: int | float | None) -> str | None:
    """Render epoch milliseconds as the naive UTC ISO text stored in the database."""
    if millis is None:
        return None
    moment = datetime.fromtimestamp(millis / 1000, UTC).replace(tzinfo=None)
    return moment.isoformat(timespec="milliseconds")


def now_timestamp() -> str:
    """Current time in the stored timestamp format."""
    return datetime.now(UTC).replace(tzinfo=None).isoformat(timespec="milliseconds")


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse a stored timestamp back to a naive UTC datetime."""
    return datetime.fromisoformat(value) if value else None


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() + "Z" if value else None


@dataclass(eq=False)
class Node:
    """
    A test case or suite in the framework's test tree.

    Nodes are compared and hashed by identity: two distinct nodes with the
    same name are still tracked separately while a session is active.
    """

    name: str
    time_started: int | None = None  # Epoch milliseconds
    time_finished: int | None = None  # Epoch milliseconds
    nodes: list["Node"] = field(default_factory=list)  # Child nodes


@dataclass
class Result:
    """Outcome of a finished node, with the failure that caused it if any."""

    status: Status
    error: BaseException | None = None


@dataclass
class LogRecord:
    """
    A log line emitted while a session is running.

    The message is already formatted; millis is the emission time in epoch
    milliseconds.
    """

    level: Level | str
    message: str
    millis: int

    @classmethod
    def from_logging(cls, record: logging.LogRecord) -> "LogRecord":
        """Adapt a standard library log record."""
        if record.levelno >= logging.ERROR:
            level = Level.SEVERE
        elif record.levelno >= logging.WARNING:
            level = Level.WARNING
        elif record.levelno >= logging.INFO:
            level = Level.INFO
        elif record.levelno >= logging.DEBUG:
            level = Level.FINE
        else:
            level = Level.FINEST
        return cls(
            level=level,
            message=record.getMessage(),
            millis=int(record.created * 1000),
        )


@dataclass
class LogEntry:
    """A stored log line, as read back from the database."""

    level: Level
    message: str | None
    time: datetime | None

    def to_dict(self) -> dict[str, Any]:
        """Convert log entry to dictionary format (for JSON output)."""
        return {
            "level": self.level.value,
            "message": self.message,
            "time": _isoformat(self.time),
        }


@dataclass
class SessionSummary:
    """One recorded test-run session."""

    id: int
    initialized: datetime | None
    terminated_time: datetime | None = None
    executions: int = 0

    @property
    def is_terminated(self) -> bool:
        return self.terminated_time is not None

    def to_dict(self) -> dict[str, Any]:
        """Convert session to dictionary format (for JSON output)."""
        return {
            "id": self.id,
            "initialized": _isoformat(self.initialized),
            "terminated_time": _isoformat(self.terminated_time),
            "executions": self.executions,
        }


@dataclass
class ExecutionReport:
    """
    A node's participation in a session, as read back from the database.

    status stays None until the node finished; skipped nodes carry the
    skip flag and optional reason instead.
    """

    id: int
    node: str
    started: datetime | None = None
    finished: datetime | None = None
    status: Status | None = None
    error: str | None = None
    skipped: bool = False
    reason: str | None = None
    logs: list[LogEntry] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert execution to dictionary format (for JSON output)."""
        return {
            "id": self.id,
            "node": self.node,
            "started": _isoformat(self.started),
            "finished": _isoformat(self.finished),
            "status": self.status.value if self.status else None,
            "error": self.error,
            "skipped": self.skipped,
            "reason": self.reason,
            "logs": [entry.to_dict() for entry in self.logs],
        }
