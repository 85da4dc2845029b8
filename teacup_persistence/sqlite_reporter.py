"""
SQLite implementation of the test session reporter.

Uses aiosqlite and opens a fresh autocommit connection for every lifecycle
call, so each statement is durable on its own. Lifecycle callbacks never
raise: database failures are logged and the call returns.
"""

import logging
from collections.abc import AsyncIterator, Callable, Iterable, Mapping
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from functools import partial

import aiosqlite

from teacup_common.models import (
    ExecutionReport,
    LogEntry,
    LogRecord,
    Node,
    Result,
    SessionSummary,
    Status,
    format_millis,
    level_from_ordinal,
    level_ordinal,
    now_timestamp,
    parse_timestamp,
)
from teacup_common.reporter import Reporter

from . import schema
from .config import DEFAULT_DB_PATH, DEFAULT_TIMEOUT, ReporterSettings

logger = logging.getLogger(__name__)

CONNECTION_ERROR = "Could not establish a connection to the report database"

# Text holding lone surrogates cannot be bound and raises UnicodeEncodeError
DATABASE_ERRORS = (aiosqlite.Error, UnicodeError)


@dataclass(frozen=True)
class Generated:
    """Key generated by an insert."""

    id: int


@dataclass(frozen=True)
class Missing:
    """Insert succeeded but the database returned no key."""

    table: str


GeneratedKey = Generated | Missing


@dataclass
class ActiveSession:
    """
    State owned by one running session.

    executions maps each registered node to its execution row id. A node
    leaves the map once it is skipped or finished.
    """

    id: int
    executions: dict[Node, int] = field(default_factory=dict)


async def _insert(
    conn: aiosqlite.Connection, sql: str, params: tuple, table: str
) -> GeneratedKey:
    """Run an insert and report the key it generated."""
    cursor = await conn.execute(sql, params)
    row_id = cursor.lastrowid
    await cursor.close()
    return Generated(row_id) if row_id else Missing(table)


def _error_message(error: BaseException) -> str | None:
    """Message text of a failure, None when the failure carries no text."""
    return str(error) or None


class ReportStore(Reporter):
    """
    SQLite-based test report storage.

    Records one session per initialize()/terminated() pair. Tables are
    described in teacup_persistence.schema; nodes are registered once by
    name and linked to each session through an execution row.
    """

    def __init__(
        self,
        db_path: str = DEFAULT_DB_PATH,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        connect: Callable[[], aiosqlite.Connection] | None = None,
    ):
        """
        Initialize the report store.

        Args:
            db_path: Path to the SQLite database file
            timeout: Seconds to wait on a locked database
            connect: Optional connection factory replacing the default
                autocommit connection to db_path
        """
        self.db_path = db_path
        self._connect = connect or partial(
            aiosqlite.connect, db_path, timeout=timeout, isolation_level=None
        )
        self._session: ActiveSession | None = None

    @classmethod
    def from_settings(cls, settings: ReporterSettings) -> "ReportStore":
        """Build a store from resolved settings."""
        return cls(settings.db_path, timeout=settings.timeout)

    @property
    def session_id(self) -> int | None:
        """Id of the active session, None when no session is running."""
        return self._session.id if self._session else None

    @property
    def active_executions(self) -> Mapping[Node, int]:
        """Snapshot of the registered nodes still awaiting skip or finish."""
        return dict(self._session.executions) if self._session else {}

    @asynccontextmanager
    async def _connection(self) -> AsyncIterator[aiosqlite.Connection]:
        """Acquire a connection for the duration of one call."""
        async with self._connect() as conn:
            # Enable foreign key constraints
            await conn.execute("PRAGMA foreign_keys = ON")
            yield conn
            await conn.commit()

    @staticmethod
    async def _create_tables(conn: aiosqlite.Connection) -> None:
        for statement in schema.CREATE_TABLES:
            await conn.execute(statement)

    @staticmethod
    def _execution_id(session: ActiveSession, node: Node, event: str) -> int | None:
        """Pop the execution id of a node reaching a terminal event."""
        execution_id = session.executions.pop(node, None)
        if execution_id is None:
            logger.warning(
                f"{node.name} {event} but was not expected to do so. This might be "
                f"because it has already {event}, was never initialized or the "
                f"session terminated before the node {event}."
            )
        return execution_id

    # Lifecycle callbacks

    async def initialize(self) -> None:
        """
        Create the schema if needed and open a new session.

        On any failure the store is left without a session, which turns every
        later callback into a no-op.
        """
        logger.debug("Initialize")

        if self._session is not None:
            logger.warning(
                f"Session {self._session.id} was not terminated before a new "
                "session was initialized"
            )
            self._session = None

        try:
            async with self._connection() as conn:
                await self._create_tables(conn)
                key = await _insert(
                    conn, schema.INSERT_SESSION_EXECUTION, (), "session_execution"
                )
        except DATABASE_ERRORS:
            logger.error("Could not initialize the database", exc_info=True)
            return

        if isinstance(key, Missing):
            logger.warning("Could not retrieve the session ID. No logs will be saved.")
            return

        self._session = ActiveSession(key.id)
        logger.info(f"Report session {key.id} initialized in {self.db_path}")

    async def initialized(self, nodes: Iterable[Node]) -> None:
        """
        Register every node of the test tree for the active session.

        Nodes are visited parent first, depth first, in the given order. A
        node that cannot be registered is skipped; its children are not.
        """
        logger.debug("Initialized")

        session = self._session
        nodes = list(nodes)
        if session is None or not nodes:
            return

        try:
            async with self._connection() as conn:
                stack = list(reversed(nodes))
                while stack:
                    node = stack.pop()
                    stack.extend(reversed(list(node.nodes)))

                    try:
                        await self._register(conn, session, node)
                    except DATABASE_ERRORS:
                        logger.warning(
                            f"Could not register {node.name}. Its logs will not be saved.",
                            exc_info=True,
                        )
        except DATABASE_ERRORS:
            logger.warning(CONNECTION_ERROR, exc_info=True)

    async def _register(
        self, conn: aiosqlite.Connection, session: ActiveSession, node: Node
    ) -> None:
        node_key = await self._node_id(conn, node.name)
        if isinstance(node_key, Missing):
            logger.warning(
                f"Could not retrieve the node ID of {node.name}. The logs will not be saved."
            )
            return

        execution_key = await _insert(
            conn, schema.INSERT_EXECUTION, (node_key.id, session.id), "execution"
        )
        if isinstance(execution_key, Missing):
            logger.warning(
                f"Could not retrieve the execution ID of {node.name}. "
                "No logs will be saved."
            )
            return

        session.executions[node] = execution_key.id
        await conn.execute(schema.INSERT_RESULT, (execution_key.id,))

    @staticmethod
    async def _node_id(conn: aiosqlite.Connection, name: str) -> GeneratedKey:
        """Find the node row for a name, creating it on first sight."""
        cursor = await conn.execute(schema.SELECT_NODE_ID, (name,))
        row = await cursor.fetchone()
        await cursor.close()

        if row is not None:
            return Generated(row[0])
        return await _insert(conn, schema.INSERT_NODE, (name,), "node")

    async def started(self, node: Node) -> None:
        """Record the start time of a registered node."""
        logger.debug("Started")

        session = self._session
        if session is None:
            return

        execution_id = session.executions.get(node)
        if execution_id is None:
            logger.warning(
                f"{node.name} started but was not expected to do so. This might be "
                "because it was never initialized or the session terminated before "
                "the node started."
            )
            return

        try:
            async with self._connection() as conn:
                await conn.execute(
                    schema.UPDATE_RESULT_STARTED,
                    (format_millis(node.time_started), execution_id),
                )
        except DATABASE_ERRORS:
            logger.warning(f"{node.name} could not be updated with started", exc_info=True)

    async def log(self, log_record: LogRecord, node: Node | None) -> None:
        """
        Save a log line.

        Lines of a registered node go to the log table; anything else
        (no node, unknown node, node already finished) is kept at session
        level in session_log.
        """
        logger.debug("Log")

        session = self._session
        if session is None:
            return

        execution_id = session.executions.get(node) if node is not None else None
        params = (
            level_ordinal(log_record.level),
            log_record.message,
            execution_id if execution_id is not None else session.id,
            format_millis(log_record.millis),
        )

        try:
            async with self._connection() as conn:
                if execution_id is None:
                    await conn.execute(schema.INSERT_SESSION_LOG, params)
                else:
                    await conn.execute(schema.INSERT_LOG, params)
        except DATABASE_ERRORS:
            logger.error("Could not save the log", exc_info=True)

    async def skipped(self, node: Node, reason: str | None) -> None:
        """Mark a registered node as skipped, with an optional reason."""
        logger.debug("Skipped")

        session = self._session
        if session is None:
            return

        execution_id = self._execution_id(session, node, "skipped")
        if execution_id is None:
            return

        try:
            async with self._connection() as conn:
                key = await _insert(conn, schema.INSERT_SKIPPED, (execution_id,), "skipped")
                if isinstance(key, Missing):
                    logger.warning(
                        f"Could not retrieve the skipped ID of {node.name}. "
                        "The reason will not be saved."
                    )
                elif reason is not None:
                    await conn.execute(schema.INSERT_REASON, (reason, key.id))
        except DATABASE_ERRORS:
            logger.warning(f"{node.name} could not be updated with skipped", exc_info=True)

    async def finished(self, node: Node, result: Result) -> None:
        """Record the finish time and status of a registered node."""
        logger.debug("Finished")

        session = self._session
        if session is None:
            return

        execution_id = self._execution_id(session, node, "finished")
        if execution_id is None:
            return

        try:
            async with self._connection() as conn:
                await conn.execute(
                    schema.UPDATE_RESULT_FINISHED,
                    (format_millis(node.time_finished), result.status.ordinal, execution_id),
                )
                if result.error is not None:
                    await self._insert_error(conn, node, execution_id, result.error)
        except DATABASE_ERRORS:
            logger.warning(f"Could not set the result for {node.name}", exc_info=True)

    @staticmethod
    async def _insert_error(
        conn: aiosqlite.Connection, node: Node, execution_id: int, error: BaseException
    ) -> None:
        cursor = await conn.execute(schema.SELECT_RESULT_ID, (execution_id,))
        row = await cursor.fetchone()
        await cursor.close()

        if row is None:
            logger.warning(f"No result exists for {node.name}. The error will not be saved.")
            return

        await conn.execute(schema.INSERT_ERROR, (_error_message(error), row[0]))

    async def terminated(self) -> None:
        """Close the active session and stamp its termination time."""
        logger.debug("Terminated")

        session = self._session
        if session is None:
            return

        session.executions.clear()
        self._session = None

        try:
            async with self._connection() as conn:
                await conn.execute(
                    schema.UPDATE_SESSION_TERMINATED, (now_timestamp(), session.id)
                )
        except DATABASE_ERRORS:
            logger.warning("Could not terminate the session", exc_info=True)

    # Read path

    async def create_schema(self) -> None:
        """
        Create the report tables without opening a session.

        Raises:
            aiosqlite.Error: If the database cannot be reached or written
        """
        async with self._connection() as conn:
            await self._create_tables(conn)

    async def list_sessions(self) -> list[SessionSummary]:
        """
        List all recorded sessions, newest first.

        Returns:
            List of SessionSummary objects
        """
        async with self._connection() as conn:
            cursor = await conn.execute(schema.SELECT_SESSIONS)
            rows = await cursor.fetchall()

        return [self._session_summary(row) for row in rows]

    async def get_session(self, session_id: int) -> SessionSummary | None:
        """
        Retrieve one recorded session.

        Args:
            session_id: Id of the session_execution row

        Returns:
            SessionSummary if found, None otherwise
        """
        async with self._connection() as conn:
            cursor = await conn.execute(schema.SELECT_SESSION, (session_id,))
            row = await cursor.fetchone()

        return self._session_summary(row) if row is not None else None

    @staticmethod
    def _session_summary(row) -> SessionSummary:
        session_id, initialized, terminated_time, executions = row
        return SessionSummary(
            id=session_id,
            initialized=parse_timestamp(initialized),
            terminated_time=parse_timestamp(terminated_time),
            executions=executions,
        )

    async def get_executions(self, session_id: int) -> list[ExecutionReport]:
        """
        Get every execution of a session with its result and logs.

        Args:
            session_id: Id of the session_execution row

        Returns:
            List of ExecutionReport objects in registration order
        """
        async with self._connection() as conn:
            cursor = await conn.execute(schema.SELECT_EXECUTIONS, (session_id,))
            rows = await cursor.fetchall()

            executions = []
            for row in rows:
                (
                    execution_id,
                    name,
                    started,
                    finished,
                    status,
                    error,
                    skipped_id,
                    reason,
                ) = row
                log_cursor = await conn.execute(schema.SELECT_LOGS, (execution_id,))
                log_rows = await log_cursor.fetchall()

                executions.append(
                    ExecutionReport(
                        id=execution_id,
                        node=name,
                        started=parse_timestamp(started),
                        finished=parse_timestamp(finished),
                        status=Status.from_ordinal(status) if status is not None else None,
                        error=error,
                        skipped=skipped_id is not None,
                        reason=reason,
                        logs=[self._log_entry(log_row) for log_row in log_rows],
                    )
                )

        return executions

    async def get_session_logs(self, session_id: int) -> list[LogEntry]:
        """
        Get log lines recorded at session level.

        Args:
            session_id: Id of the session_execution row

        Returns:
            List of LogEntry objects in insertion order
        """
        async with self._connection() as conn:
            cursor = await conn.execute(schema.SELECT_SESSION_LOGS, (session_id,))
            rows = await cursor.fetchall()

        return [self._log_entry(row) for row in rows]

    @staticmethod
    def _log_entry(row) -> LogEntry:
        level, message, time = row
        return LogEntry(
            level=level_from_ordinal(level), message=message, time=parse_timestamp(time)
        )


