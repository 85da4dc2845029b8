"""
Schema and statement templates for the SQLite report store.

Every statement the store issues lives here, grouped per table, so the
schema can be reviewed in one place. All values are bound through ``?``
placeholders.

Tables, in creation order:
- node: unique test identity by name
- session_execution: one row per test-run session
- session_log: log lines not attached to any execution
- execution: one row per (node, session) pairing
- log: log lines of an execution
- skipped / reason: marks an execution as skipped, with optional reason
- result / error: outcome of an execution, with optional failure message
"""

# Timestamp default matching models.now_timestamp() (naive UTC, milliseconds)
_NOW = "(strftime('%Y-%m-%dT%H:%M:%f', 'now'))"

# node

CREATE_NODE = """
    CREATE TABLE IF NOT EXISTS node (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL UNIQUE
    )
"""

SELECT_NODE_ID = "SELECT id FROM node WHERE name = ?"

INSERT_NODE = "INSERT INTO node (name) VALUES (?)"

# session_execution

CREATE_SESSION_EXECUTION = f"""
    CREATE TABLE IF NOT EXISTS session_execution (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        initialized TEXT NOT NULL DEFAULT {_NOW},
        terminated_time TEXT
    )
"""

INSERT_SESSION_EXECUTION = "INSERT INTO session_execution DEFAULT VALUES"

UPDATE_SESSION_TERMINATED = (
    "UPDATE session_execution SET terminated_time = ? WHERE id = ?"
)

SELECT_SESSIONS = """
    SELECT s.id, s.initialized, s.terminated_time, COUNT(e.id)
    FROM session_execution s
    LEFT JOIN execution e ON e.session_execution = s.id
    GROUP BY s.id
    ORDER BY s.id DESC
"""

SELECT_SESSION = """
    SELECT s.id, s.initialized, s.terminated_time, COUNT(e.id)
    FROM session_execution s
    LEFT JOIN execution e ON e.session_execution = s.id
    WHERE s.id = ?
    GROUP BY s.id
"""

# session_log

CREATE_SESSION_LOG = """
    CREATE TABLE IF NOT EXISTS session_log (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        session_execution INTEGER NOT NULL,
        level INTEGER NOT NULL CHECK (level BETWEEN 1 AND 7),
        message TEXT,
        time TEXT NOT NULL,
        FOREIGN KEY (session_execution) REFERENCES session_execution(id)
    )
"""

CREATE_SESSION_LOG_INDEX = """
    CREATE INDEX IF NOT EXISTS idx_session_log_session_execution
    ON session_log(session_execution)
"""

INSERT_SESSION_LOG = """
    INSERT INTO session_log (level, message, session_execution, time)
    VALUES (?, ?, ?, ?)
"""

SELECT_SESSION_LOGS = """
    SELECT level, message, time
    FROM session_log
    WHERE session_execution = ?
    ORDER BY id
"""

# execution

CREATE_EXECUTION = """
    CREATE TABLE IF NOT EXISTS execution (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        node INTEGER NOT NULL,
        session_execution INTEGER NOT NULL,
        FOREIGN KEY (node) REFERENCES node(id),
        FOREIGN KEY (session_execution) REFERENCES session_execution(id)
    )
"""

CREATE_EXECUTION_INDEXES = (
    "CREATE INDEX IF NOT EXISTS idx_execution_node ON execution(node)",
    """
    CREATE INDEX IF NOT EXISTS idx_execution_session_execution
    ON execution(session_execution)
    """,
)

INSERT_EXECUTION = "INSERT INTO execution (node, session_execution) VALUES (?, ?)"

SELECT_EXECUTIONS = """
    SELECT e.id, n.name, r.started, r.finished, r.status, er.message,
           sk.id, rs.reason
    FROM execution e
    JOIN node n ON n.id = e.node
    LEFT JOIN result r ON r.execution = e.id
    LEFT JOIN error er ON er.result = r.id
    LEFT JOIN skipped sk ON sk.execution = e.id
    LEFT JOIN reason rs ON rs.skipped = sk.id
    WHERE e.session_execution = ?
    ORDER BY e.id
"""

# log

CREATE_LOG = """
    CREATE TABLE IF NOT EXISTS log (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        execution INTEGER NOT NULL,
        level INTEGER NOT NULL CHECK (level BETWEEN 1 AND 7),
        message TEXT,
        time TEXT NOT NULL,
        FOREIGN KEY (execution) REFERENCES execution(id)
    )
"""

CREATE_LOG_INDEX = "CREATE INDEX IF NOT EXISTS idx_log_execution ON log(execution)"

INSERT_LOG = "INSERT INTO log (level, message, execution, time) VALUES (?, ?, ?, ?)"

SELECT_LOGS = """
    SELECT level, message, time
    FROM log
    WHERE execution = ?
    ORDER BY id
"""

# skipped

CREATE_SKIPPED = """
    CREATE TABLE IF NOT EXISTS skipped (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        execution INTEGER NOT NULL UNIQUE,
        FOREIGN KEY (execution) REFERENCES execution(id)
    )
"""

INSERT_SKIPPED = "INSERT INTO skipped (execution) VALUES (?)"

# reason

CREATE_REASON = """
    CREATE TABLE IF NOT EXISTS reason (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        reason TEXT,
        skipped INTEGER NOT NULL UNIQUE,
        FOREIGN KEY (skipped) REFERENCES skipped(id)
    )
"""

INSERT_REASON = "INSERT INTO reason (reason, skipped) VALUES (?, ?)"

# result

CREATE_RESULT = """
    CREATE TABLE IF NOT EXISTS result (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        execution INTEGER NOT NULL UNIQUE,
        started TEXT,
        finished TEXT,
        status INTEGER CHECK (status BETWEEN 1 AND 3),
        FOREIGN KEY (execution) REFERENCES execution(id)
    )
"""

INSERT_RESULT = "INSERT INTO result (execution) VALUES (?)"

SELECT_RESULT_ID = "SELECT id FROM result WHERE execution = ?"

UPDATE_RESULT_STARTED = "UPDATE result SET started = ? WHERE execution = ?"

UPDATE_RESULT_FINISHED = (
    "UPDATE result SET finished = ?, status = ? WHERE execution = ?"
)

# error

CREATE_ERROR = """
    CREATE TABLE IF NOT EXISTS error (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        message TEXT,
        result INTEGER NOT NULL UNIQUE,
        FOREIGN KEY (result) REFERENCES result(id)
    )
"""

INSERT_ERROR = "INSERT INTO error (message, result) VALUES (?, ?)"

# Creation order respects foreign-key dependencies
CREATE_TABLES = (
    CREATE_NODE,
    CREATE_SESSION_EXECUTION,
    CREATE_SESSION_LOG,
    CREATE_SESSION_LOG_INDEX,
    CREATE_EXECUTION,
    *CREATE_EXECUTION_INDEXES,
    CREATE_LOG,
    CREATE_LOG_INDEX,
    CREATE_SKIPPED,
    CREATE_REASON,
    CREATE_RESULT,
    CREATE_ERROR,
)

TABLES = (
    "node",
    "session_execution",
    "session_log",
    "execution",
    "log",
    "skipped",
    "reason",
    "result",
    "error",
)
