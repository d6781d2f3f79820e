"""
MySQL metadata extractor using mysql-connector-python.

Reads column definitions, foreign keys and unique indexes from the
INFORMATION_SCHEMA views of one database.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional

from relmap.errors import ConnectionFailedError
from relmap.metadata.information_schema import build_snapshot
from relmap.models import SchemaSnapshot

logger = logging.getLogger(__name__)


COLUMNS_QUERY = """
    SELECT
        TABLE_NAME AS TABLE_NAME,
        COLUMN_NAME AS COLUMN_NAME,
        DATA_TYPE AS DATA_TYPE,
        COLUMN_TYPE AS COLUMN_TYPE,
        COLUMN_KEY AS COLUMN_KEY,
        IS_NULLABLE AS IS_NULLABLE,
        COLUMN_COMMENT AS COLUMN_COMMENT,
        EXTRA AS EXTRA
    FROM INFORMATION_SCHEMA.COLUMNS
    WHERE TABLE_SCHEMA = %s
    ORDER BY TABLE_NAME, ORDINAL_POSITION
"""

FOREIGN_KEYS_QUERY = """
    SELECT
        TABLE_NAME AS TABLE_NAME,
        COLUMN_NAME AS COLUMN_NAME,
        REFERENCED_TABLE_NAME AS REFERENCED_TABLE_NAME,
        REFERENCED_COLUMN_NAME AS REFERENCED_COLUMN_NAME,
        CONSTRAINT_NAME AS CONSTRAINT_NAME
    FROM INFORMATION_SCHEMA.KEY_COLUMN_USAGE
    WHERE TABLE_SCHEMA = %s
        AND REFERENCED_TABLE_NAME IS NOT NULL
    ORDER BY TABLE_NAME, ORDINAL_POSITION
"""

UNIQUE_INDEXES_QUERY = """
    SELECT
        TABLE_NAME AS TABLE_NAME,
        COLUMN_NAME AS COLUMN_NAME,
        NON_UNIQUE AS NON_UNIQUE,
        INDEX_NAME AS INDEX_NAME
    FROM INFORMATION_SCHEMA.STATISTICS
    WHERE TABLE_SCHEMA = %s
        AND NON_UNIQUE = 0
        AND INDEX_NAME != 'PRIMARY'
"""


class MySQLMetadataExtractor:
    """
    Extracts schema metadata from a MySQL database catalog.

    Uses INFORMATION_SCHEMA views:
    - COLUMNS (types, COLUMN_KEY PRI/UNI/MUL, nullability)
    - KEY_COLUMN_USAGE (foreign keys)
    - STATISTICS (unique index membership)
    """

    def __init__(
        self,
        host: str,
        user: str,
        database: str,
        password: Optional[str] = None,
        port: int = 3306,
        connect_timeout: int = 20,
        retries: int = 3,
        retry_delay: float = 1.0,
    ):
        """
        Initialize extractor with MySQL connection parameters.

        Args:
            host: Server host name
            user: User name
            database: Database (schema) to inspect
            password: Password, if any
            port: Server port
            connect_timeout: Seconds to wait for each connection attempt
            retries: Number of connection attempts
            retry_delay: Delay before the second attempt; doubles after each failure
        """
        self.host = host
        self.user = user
        self.database = database
        self.password = password
        self.port = port
        self.connect_timeout = connect_timeout
        self.retries = max(1, retries)
        self.retry_delay = retry_delay
        self._conn = None

    @classmethod
    def from_settings(cls, settings: Any) -> MySQLMetadataExtractor:
        """Create an extractor from a relmap.config.Settings object."""
        return cls(
            host=settings.mysql_host,
            user=settings.mysql_user,
            database=settings.mysql_database,
            password=settings.mysql_password,
            port=settings.mysql_port,
            connect_timeout=settings.connect_timeout,
            retries=settings.connect_retries,
            retry_delay=settings.retry_delay,
        )

    def connect(self) -> None:
        """Establish database connection, retrying with exponential backoff."""
        import mysql.connector

        delay = self.retry_delay
        last_error: Optional[Exception] = None

        for attempt in range(self.retries):
            try:
                conn = mysql.connector.connect(
                    host=self.host,
                    port=self.port,
                    user=self.user,
                    password=self.password or "",
                    database=self.database,
                    connection_timeout=self.connect_timeout,
                )
                conn.ping(reconnect=False)
                self._conn = conn
                logger.info(f"Connected to MySQL database {self.database} at {self.host}:{self.port} as {self.user}")
                return
            except mysql.connector.Error as e:
                last_error = e
                if attempt < self.retries - 1:
                    logger.warning(
                        f"Connection attempt {attempt + 1}/{self.retries} failed: {e}. "
                        f"Retrying in {delay:.1f}s..."
                    )
                    time.sleep(delay)
                    delay *= 2

        raise ConnectionFailedError(
            f"Could not connect to MySQL at {self.host}:{self.port} "
            f"after {self.retries} attempts: {last_error}"
        ) from last_error

    def disconnect(self) -> None:
        """Close database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.disconnect()

    def _fetch(self, query: str) -> List[Dict[str, Any]]:
        if not self._conn:
            self.connect()

        cursor = self._conn.cursor(dictionary=True)
        try:
            cursor.execute(query, (self.database,))
            return list(cursor.fetchall())
        finally:
            cursor.close()

    def get_snapshot(self) -> SchemaSnapshot:
        """
        Collect all metadata needed for relationship classification.

        Returns:
            SchemaSnapshot for the configured database
        """
        logger.info(f"Reading information schema for {self.database}")

        column_rows = self._fetch(COLUMNS_QUERY)
        foreign_key_rows = self._fetch(FOREIGN_KEYS_QUERY)
        unique_rows = self._fetch(UNIQUE_INDEXES_QUERY)

        return build_snapshot(
            column_rows,
            foreign_key_rows,
            unique_rows,
            schema=self.database,
        )
