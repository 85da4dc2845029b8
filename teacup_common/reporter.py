"""
Abstract reporter interface for test session persistence.

This module defines the lifecycle callbacks a test-execution framework
invokes on a reporter, allowing the storage behind it to be swapped between
SQLite, PostgreSQL, MySQL, etc.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable

from .models import LogRecord, Node, Result


class Reporter(ABC):
    """
    Abstract base class for recording a test session.

    Implementations must never raise from a lifecycle callback: a failing
    reporter loses report data, it does not fail the test run.
    """

    @abstractmethod
    async def initialize(self) -> None:
        """
        Prepare storage and open a new session.

        Called once before any node of the session is reported.
        """
        pass

    @abstractmethod
    async def initialized(self, nodes: Iterable[Node]) -> None:
        """
        Register the test tree of the active session.

        Args:
            nodes: Top-level nodes; their children are registered as well
        """
        pass

    @abstractmethod
    async def started(self, node: Node) -> None:
        """
        Record that a node started running.

        Args:
            node: Node registered by initialized()
        """
        pass

    @abstractmethod
    async def log(self, log_record: LogRecord, node: Node | None) -> None:
        """
        Record a log line.

        Args:
            log_record: The formatted log record
            node: Node the line belongs to, or None for session-level output
        """
        pass

    @abstractmethod
    async def skipped(self, node: Node, reason: str | None) -> None:
        """
        Record that a node was skipped.

        Args:
            node: Node registered by initialized()
            reason: Optional explanation for the skip
        """
        pass

    @abstractmethod
    async def finished(self, node: Node, result: Result) -> None:
        """
        Record that a node finished.

        Args:
            node: Node registered by initialized()
            result: Final status and optional failure
        """
        pass

    @abstractmethod
    async def terminated(self) -> None:
        """Close the active session."""
        pass
