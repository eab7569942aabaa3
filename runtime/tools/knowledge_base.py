"""Built-in knowledge-base-manager tool: a small SQLite-backed note store.

Items live in one ``knowledge_items`` table in the database named by
``data.knowledge_base_path``; the table is created on first use.
Tags are stored as a single comma- or space-separated string.
"""

from __future__ import annotations

import asyncio
import difflib
import json
import re
import sqlite3
from pathlib import Path
from typing import TYPE_CHECKING, Any

from contracts.api import Outcome
from contracts.config import DataConfig
from contracts.tool_sdk import BaseTool, EnumField, NumberField, StringField, ToolDefinition

from runtime.envelope import error_outcome, text_outcome

if TYPE_CHECKING:
    from runtime.mcp_server import ToolServer

OPERATIONS = [
    "create_db",
    "create_table",
    "drop_table",
    "add_item",
    "get_item",
    "update_item",
    "delete_item",
    "search_items",
    "list_all_items",
    "list_tags",
    "get_schema",
    "execute_sql",
]

_TABLE_DDL = """
CREATE TABLE IF NOT EXISTS knowledge_items (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT NOT NULL,
    content TEXT,
    tags TEXT
)
"""

_TAG_SPLIT = re.compile(r"[\s,]+")
SEARCH_KEYS = ("title", "content", "tags")


class KnowledgeBaseError(Exception):
    pass


def split_tags(tags: str | None) -> list[str]:
    return [t for t in _TAG_SPLIT.split(tags or "") if t]


def fuzzy_score(query: str, text: str) -> float:
    """Best similarity between *query* and any word window of *text*, in [0, 1]."""
    query, text = query.lower(), (text or "").lower()
    if not query or not text:
        return 0.0
    if query in text:
        return 1.0
    words = text.split()
    width = max(len(query.split()), 1)
    windows = [" ".join(words[i:i + width]) for i in range(max(len(words) - width + 1, 1))]
    return max(difflib.SequenceMatcher(None, query, w).ratio() for w in windows)


class KnowledgeBase:
    """Synchronous store; every public method opens and closes its own connection."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _connect(self) -> sqlite3.Connection:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.path)
        conn.row_factory = sqlite3.Row
        conn.execute(_TABLE_DDL)
        return conn

    def _query(self, sql: str, params: tuple = ()) -> list[dict[str, Any]]:
        conn = self._connect()
        try:
            return [dict(row) for row in conn.execute(sql, params).fetchall()]
        finally:
            conn.close()

    def _write(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        conn = self._connect()
        try:
            with conn:
                return conn.execute(sql, params)
        finally:
            conn.close()

    def add(self, title: str, content: str, tags: str = "") -> int:
        cursor = self._write(
            "INSERT INTO knowledge_items (title, content, tags) VALUES (?, ?, ?)",
            (title, content, tags),
        )
        return int(cursor.lastrowid)

    def get(self, item_id: int) -> dict[str, Any] | None:
        rows = self._query("SELECT id, title, content, tags FROM knowledge_items WHERE id = ?", (item_id,))
        return rows[0] if rows else None

    def update(self, item_id: int, **fields: str | None) -> int:
        changes = {k: v for k, v in fields.items() if v is not None}
        if not changes:
            return 0
        assignments = ", ".join(f"{column} = ?" for column in changes)
        cursor = self._write(
            f"UPDATE knowledge_items SET {assignments} WHERE id = ?",
            (*changes.values(), item_id),
        )
        return cursor.rowcount

    def delete(self, item_id: int) -> int:
        return self._write("DELETE FROM knowledge_items WHERE id = ?", (item_id,)).rowcount

    def list_all(self, limit: int = 50, offset: int = 0) -> list[dict[str, Any]]:
        return self._query(
            "SELECT id, title, content, tags FROM knowledge_items ORDER BY id LIMIT ? OFFSET ?",
            (limit, offset),
        )

    def search(
        self,
        query: str | None = None,
        search_tags: str | None = None,
        threshold: float = 0.4,
        limit: int = 50,
        keys: tuple[str, ...] = SEARCH_KEYS,
    ) -> list[dict[str, Any]]:
        """Fuzzy search over *keys* (title, content and tags by default), or filter by any of *search_tags*."""
        unknown = [k for k in keys if k not in SEARCH_KEYS]
        if unknown or not keys:
            raise KnowledgeBaseError(
                f"Error: fuzzy_keys must name fields among {', '.join(SEARCH_KEYS)}; got {', '.join(unknown) or 'none'}"
            )
        items = self._query("SELECT id, title, content, tags FROM knowledge_items ORDER BY id")

        if search_tags:
            wanted = set(split_tags(search_tags))
            items = [i for i in items if wanted & set(split_tags(i["tags"]))]

        if query:
            scored = []
            for item in items:
                score = max(fuzzy_score(query, item[key]) for key in keys)
                if score >= 1 - threshold:
                    scored.append((score, item))
            scored.sort(key=lambda pair: -pair[0])
            items = [item for _, item in scored]

        return items[:limit]

    def tags(self) -> list[str]:
        rows = self._query("SELECT DISTINCT tags FROM knowledge_items WHERE tags IS NOT NULL AND tags != ''")
        seen: dict[str, None] = {}
        for row in rows:
            for tag in split_tags(row["tags"]):
                seen.setdefault(tag, None)
        return list(seen)

    def schema(self) -> list[dict[str, Any]]:
        return self._query("PRAGMA table_info(knowledge_items)")

    def create_table(self) -> None:
        self._connect().close()

    def drop_table(self) -> None:
        # the next connection recreates an empty table
        conn = self._connect()
        try:
            with conn:
                conn.execute("DROP TABLE IF EXISTS knowledge_items")
        finally:
            conn.close()

    def execute(self, sql: str) -> list[dict[str, Any]]:
        """Run one raw statement, committing it; returns any rows it produced."""
        conn = self._connect()
        try:
            with conn:
                return [dict(row) for row in conn.execute(sql).fetchall()]
        finally:
            conn.close()


class KnowledgeBaseTool(BaseTool):
    def __init__(self, data: DataConfig | None = None) -> None:
        self._store = KnowledgeBase((data or DataConfig()).knowledge_base_path)

    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name="knowledge-base-manager",
            title="Knowledge Base Manager",
            description=(
                "Manages a local knowledge base of titled items with content and tags: "
                "create or drop the table, add, get, update, delete, fuzzy search, list items and tags, "
                "show schema, or run raw SQL against the store."
            ),
            schema={
                "operation": EnumField(members=OPERATIONS),
                "title": StringField(required=False),
                "content": StringField(required=False),
                "tags": StringField(required=False, description="Comma- or space-separated tags."),
                "id": NumberField(integer=True, required=False, description="Item id."),
                "query": StringField(required=False, description="Fuzzy search text."),
                "search_tags": StringField(required=False, description="Match items having any of these tags."),
                "fuzzy_threshold": NumberField(
                    minimum=0, maximum=1, default=0.4,
                    description="0 requires an exact match, 1 matches anything.",
                ),
                "fuzzy_keys": StringField(
                    required=False, description="Comma-separated fields to fuzzy search (title, content, tags).",
                ),
                "sql_query": StringField(required=False, description="Raw SQL for execute_sql."),
                "limit": NumberField(integer=True, minimum=1, default=50),
                "offset": NumberField(integer=True, minimum=0, default=0),
            },
            handler=self.run,
        )

    async def run(self, args: dict[str, Any]) -> Outcome:
        try:
            return await asyncio.to_thread(self._run, args)
        except KnowledgeBaseError as exc:
            return error_outcome(str(exc))
        except (sqlite3.Error, OSError) as exc:
            return error_outcome(f"Database error: {exc}")

    def _run(self, args: dict[str, Any]) -> Outcome:
        op = args["operation"]
        item_id = args.get("id")

        if op == "create_db":
            self._store.create_table()
            return text_outcome(f"SQLite database created at {self._store.path}")

        if op == "create_table":
            self._store.create_table()
            return text_outcome("Table 'knowledge_items' created successfully")

        if op == "drop_table":
            self._store.drop_table()
            return text_outcome("Table 'knowledge_items' dropped successfully")

        if op == "execute_sql":
            if args.get("sql_query") is None:
                raise KnowledgeBaseError("Error: sql_query is required for execute_sql operation")
            return text_outcome(json.dumps(self._store.execute(args["sql_query"]), indent=2))

        if op in ("get_item", "update_item", "delete_item") and item_id is None:
            raise KnowledgeBaseError(f"Error: id is required for {op} operation")

        if op == "add_item":
            if args.get("title") is None or args.get("content") is None:
                raise KnowledgeBaseError("Error: title and content are required for add_item operation")
            new_id = self._store.add(args["title"], args["content"], args.get("tags") or "")
            return text_outcome(f"Item added successfully with ID: {new_id}")

        if op == "get_item":
            item = self._store.get(item_id)
            if item is None:
                raise KnowledgeBaseError(f"Item with ID {item_id} not found")
            return text_outcome(json.dumps(item, indent=2))

        if op == "update_item":
            fields = {k: args.get(k) for k in ("title", "content", "tags")}
            if all(v is None for v in fields.values()):
                return text_outcome("No fields provided for update.")
            if not self._store.update(item_id, **fields):
                raise KnowledgeBaseError(f"Item with ID {item_id} not found")
            return text_outcome(f"Item {item_id} updated successfully")

        if op == "delete_item":
            if not self._store.delete(item_id):
                raise KnowledgeBaseError(f"Item with ID {item_id} not found")
            return text_outcome(f"Item {item_id} deleted successfully")

        if op == "search_items":
            keys = SEARCH_KEYS
            if args.get("fuzzy_keys") is not None:
                keys = tuple(k.strip() for k in args["fuzzy_keys"].split(",") if k.strip())
            results = self._store.search(
                args.get("query"), args.get("search_tags"), args["fuzzy_threshold"], args["limit"], keys
            )
            return text_outcome(json.dumps(results, indent=2))

        if op == "list_all_items":
            return text_outcome(json.dumps(self._store.list_all(args["limit"], args["offset"]), indent=2))

        if op == "list_tags":
            return text_outcome(json.dumps(self._store.tags(), indent=2))

        return text_outcome(json.dumps(self._store.schema(), indent=2))


def register(server: ToolServer) -> None:
    server.register(KnowledgeBaseTool(server.config.data).definition())
