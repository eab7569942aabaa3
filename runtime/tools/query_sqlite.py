"""Built-in query-sqlite tool: queries, CSV import/export, schema, backup."""

from __future__ import annotations

import asyncio
import csv
import json
import re
import shutil
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable

from contracts.api import Outcome
from contracts.tool_sdk import BaseTool, EnumField, StringField, ToolDefinition

from runtime.envelope import error_outcome, text_outcome

if TYPE_CHECKING:
    from runtime.mcp_server import ToolServer

OPERATIONS = [
    "create_db",
    "execute_query",
    "import_csv",
    "export_csv",
    "get_schema",
    "drop_table",
    "backup",
    "restore",
    "transaction",
    "get_stats",
]

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class SqliteOperationError(Exception):
    """A request the tool refuses; the message is returned to the caller."""


def _identifier(name: str) -> str:
    if not _IDENTIFIER.match(name):
        raise SqliteOperationError(f"Error: Invalid table or column name: {name}")
    return f'"{name}"'


def _require(args: dict[str, Any], *names: str) -> None:
    missing = [n for n in names if not args.get(n)]
    if missing:
        quoted = " and ".join(f"'{n}'" for n in missing)
        noun = "parameter is" if len(missing) == 1 else "parameters are"
        raise SqliteOperationError(f"Error: {quoted} {noun} required for {args['operation']} operation.")


def _dump(rows: Any) -> str:
    return json.dumps(rows, indent=2, default=str)


class SqliteOperations:
    """One method per operation, each returning the response text."""

    def __init__(self, args: dict[str, Any]) -> None:
        self.args = args
        self.db_path = Path(args["database_path"])

    def run(self) -> str:
        handler: Callable[[], str] = getattr(self, self.args["operation"])
        return handler()

    def _connect(self) -> sqlite3.Connection:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def create_db(self) -> str:
        self._connect().close()
        return f"SQLite database created at {self.db_path}"

    def execute_query(self) -> str:
        _require(self.args, "query")
        query: str = self.args["query"]
        conn = self._connect()
        try:
            cursor = conn.execute(query)
            if cursor.description is not None:
                return _dump([dict(row) for row in cursor.fetchall()])
            conn.commit()
            return f"Query executed successfully. Rows affected: {max(cursor.rowcount, 0)}"
        finally:
            conn.close()

    def import_csv(self) -> str:
        _require(self.args, "csv_path")
        csv_path = Path(self.args["csv_path"])
        if not csv_path.is_file():
            raise SqliteOperationError(f"Error: CSV file not found at {csv_path}")

        with csv_path.open(newline="", encoding="utf-8") as fh:
            rows = [row for row in csv.reader(fh) if any(cell.strip() for cell in row)]
        if len(rows) < 2:
            raise SqliteOperationError("Error: CSV file must contain at least a header row and one data row.")

        table = self.args.get("table_name") or csv_path.stem
        header = [h.strip() for h in rows[0]]
        columns = ", ".join(f"{_identifier(h)} TEXT" for h in header)
        placeholders = ", ".join("?" for _ in header)
        data = [[v.strip() for v in row] for row in rows[1:] if len(row) == len(header)]

        conn = self._connect()
        try:
            with conn:
                conn.execute(f"CREATE TABLE IF NOT EXISTS {_identifier(table)} ({columns})")
                conn.executemany(f"INSERT INTO {_identifier(table)} VALUES ({placeholders})", data)
        finally:
            conn.close()
        return f"CSV data imported successfully into table {table} ({len(data)} rows)"

    def export_csv(self) -> str:
        _require(self.args, "table_name", "csv_path")
        table, csv_path = self.args["table_name"], Path(self.args["csv_path"])
        conn = self._connect()
        try:
            cursor = conn.execute(f"SELECT * FROM {_identifier(table)}")
            header = [d[0] for d in cursor.description]
            rows = cursor.fetchall()
        finally:
            conn.close()
        if not rows:
            raise SqliteOperationError(f"Table {table} is empty or does not exist.")

        csv_path.parent.mkdir(parents=True, exist_ok=True)
        with csv_path.open("w", newline="", encoding="utf-8") as fh:
            writer = csv.writer(fh)
            writer.writerow(header)
            writer.writerows(tuple(row) for row in rows)
        return f"Table {table} exported successfully to {csv_path}"

    def get_schema(self) -> str:
        conn = self._connect()
        try:
            rows = conn.execute(
                "SELECT name, sql FROM sqlite_master "
                "WHERE type='table' AND name NOT LIKE 'sqlite_%' ORDER BY name"
            ).fetchall()
        finally:
            conn.close()
        return _dump([dict(row) for row in rows])

    def drop_table(self) -> str:
        _require(self.args, "table_name")
        table = self.args["table_name"]
        conn = self._connect()
        try:
            with conn:
                conn.execute(f"DROP TABLE IF EXISTS {_identifier(table)}")
        finally:
            conn.close()
        return f"Table {table} dropped successfully"

    def backup(self) -> str:
        _require(self.args, "backup_path")
        backup_path = Path(self.args["backup_path"])
        backup_path.parent.mkdir(parents=True, exist_ok=True)
        source = self._connect()
        target = sqlite3.connect(backup_path)
        try:
            source.backup(target)
        finally:
            target.close()
            source.close()
        return f"Database backed up successfully to {backup_path}"

    def restore(self) -> str:
        _require(self.args, "backup_path")
        backup_path = Path(self.args["backup_path"])
        if not backup_path.is_file():
            raise SqliteOperationError(f"Error: Backup file not found at {backup_path}")
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(backup_path, self.db_path)
        return f"Database restored successfully from {backup_path}"

    def transaction(self) -> str:
        _require(self.args, "query")
        statements = [q for q in self.args["query"].split(";") if q.strip()]
        conn = self._connect()
        try:
            with conn:
                conn.execute("BEGIN")
                for statement in statements:
                    conn.execute(statement)
        finally:
            conn.close()
        return "Transaction executed successfully"

    def get_stats(self) -> str:
        conn = self._connect()
        try:
            (count,) = conn.execute(
                "SELECT COUNT(*) FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%'"
            ).fetchone()
        finally:
            conn.close()
        st = self.db_path.stat()
        return _dump({
            "fileSize": st.st_size,
            "lastModified": datetime.fromtimestamp(st.st_mtime, tz=timezone.utc).isoformat(),
            "tableCount": count,
        })


class QuerySqliteTool(BaseTool):
    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name="query-sqlite",
            title="Query SQLite",
            description=(
                "Performs operations on a SQLite database: create_db, execute_query, import_csv, "
                "export_csv, get_schema, drop_table, backup, restore, transaction, get_stats."
            ),
            schema={
                "database_path": StringField(description="Path to the SQLite database file."),
                "operation": EnumField(members=OPERATIONS, description="The operation to perform."),
                "query": StringField(required=False, description="SQL for execute_query and transaction."),
                "table_name": StringField(required=False, description="Table for import, export and drop."),
                "csv_path": StringField(required=False, description="CSV file for import_csv and export_csv."),
                "backup_path": StringField(required=False, description="Backup file for backup and restore."),
            },
            handler=self.run,
        )

    async def run(self, args: dict[str, Any]) -> Outcome:
        try:
            text = await asyncio.to_thread(SqliteOperations(args).run)
        except SqliteOperationError as exc:
            return error_outcome(str(exc))
        except (sqlite3.Error, OSError, csv.Error, UnicodeDecodeError) as exc:
            return error_outcome(f"Error performing SQLite operation: {exc}")
        return text_outcome(text)


def register(server: ToolServer) -> None:
    server.register(QuerySqliteTool().definition())
