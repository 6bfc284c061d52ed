"""SQLite database client wrapper with CRUD operations."""

import asyncio
import json
import logging
import re
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, NamedTuple

import aiosqlite

from tasktracker.core.config import settings


logger = logging.getLogger(__name__)

_IDENTIFIER_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")
_COMPARISON_RE = re.compile(r'^(\w+)\s*(!=|>=|<=|=|>|<|~)\s*"((?:[^"\\]|\\.)*)"$')

MAX_RECORD_ID = 2**63 - 1

_SQL_OPERATORS = {
    "=": "=",
    "!=": "!=",
    ">": ">",
    "<": "<",
    ">=": ">=",
    "<=": "<=",
}


class DatabaseError(RuntimeError):
    """Raised when a database operation fails."""


class RecordNotFoundError(KeyError):
    """Raised when a record id does not exist in a collection."""


class Comparison(NamedTuple):
    """A single ``field op "value"`` term of a filter expression."""

    field: str
    op: str
    value: str


def _validate_collection_name(collection: str) -> None:
    """Validate that a collection name contains only alphanumeric characters and underscores."""
    if not _IDENTIFIER_RE.match(collection):
        msg = f"Invalid collection name: {collection}. Only alphanumeric characters and underscores are allowed."
        raise ValueError(msg)


def sanitize_param(value: str | int | float | bool | None) -> str:
    """Escape a value for safe embedding in filter expressions via json.dumps."""
    return json.dumps(str(value))[1:-1]


def is_record_id(value: str) -> bool:
    """True when ``value`` is an ASCII decimal id that fits a SQLite INTEGER."""
    return value.isascii() and value.isdigit() and int(value) <= MAX_RECORD_ID


def casefold_contains(haystack: object, needle: object) -> int:
    """Case-insensitive substring test using Unicode case folding."""
    if haystack is None or needle is None:
        return 0
    return int(str(needle).casefold() in str(haystack).casefold())


def _convert_record_ids(record: dict[str, Any]) -> dict[str, Any]:
    """Convert integer ID and foreign key fields to strings for Pydantic compatibility."""
    converted = record.copy()
    for key, value in converted.items():
        if isinstance(value, int) and (key == "id" or key.endswith("_id")):
            converted[key] = str(value)
    return converted


def _serialize_value(value: Any) -> Any:
    """Convert Python values into something SQLite can store."""
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict | list):
        return json.dumps(value)
    return value


def get_db_path(db_path: str | None = None) -> Path:
    """Get the resolved SQLite database file path."""
    path_str = db_path or settings.sqlite_db_path
    return Path(path_str).resolve()


def _split_top_level(expression: str, separator: str) -> list[str]:
    """Split on ``separator`` outside quoted strings and parentheses."""
    parts = []
    current = []
    depth = 0
    in_quote = False
    escaped = False
    i = 0

    while i < len(expression):
        char = expression[i]
        if in_quote:
            current.append(char)
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_quote = False
            i += 1
            continue

        if char == '"':
            in_quote = True
        elif char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
        elif depth == 0 and expression.startswith(separator, i):
            parts.append("".join(current).strip())
            current = []
            i += len(separator)
            continue

        current.append(char)
        i += 1

    if in_quote or depth != 0:
        msg = f"Invalid filter syntax: {expression}"
        raise ValueError(msg)

    tail = "".join(current).strip()
    if tail:
        parts.append(tail)
    return parts


def _parse_comparison(term: str) -> Comparison:
    """Parse a single ``field op "value"`` expression."""
    match = _COMPARISON_RE.match(term.strip())
    if not match:
        msg = f"Invalid filter syntax: {term}"
        raise ValueError(msg)

    field, op, raw_value = match.groups()
    return Comparison(field=field, op=op, value=json.loads(f'"{raw_value}"'))


def parse_filter_expression(filter_query: str) -> list[list[Comparison]]:
    """Parse a filter into AND-ed groups of OR-ed comparisons.

    Syntax: ``a = "x" && (b ~ "y" || c ~ "y")``. ``~`` is a case-insensitive
    substring match; values are double-quoted and JSON-escaped.
    """
    if not filter_query:
        return []

    groups = []
    for part in _split_top_level(filter_query, "&&"):
        if part.startswith("(") and part.endswith(")"):
            terms = _split_top_level(part[1:-1], "||")
            groups.append([_parse_comparison(term) for term in terms])
        else:
            groups.append([_parse_comparison(part)])
    return groups


def _comparison_to_sql(comparison: Comparison) -> str:
    """Render a comparison as a parameterised SQL condition."""
    if comparison.op == "~":
        return f"casefold_contains({comparison.field}, ?) = 1"
    return f"{comparison.field} {_SQL_OPERATORS[comparison.op]} ?"


def parse_filter(filter_query: str) -> tuple[str, list[str]]:
    """Parse filter syntax into a SQL WHERE clause and parameter list."""
    conditions = []
    params: list[str] = []

    for group in parse_filter_expression(filter_query):
        rendered = [_comparison_to_sql(comparison) for comparison in group]
        params.extend(comparison.value for comparison in group)
        conditions.append(rendered[0] if len(rendered) == 1 else f"({' OR '.join(rendered)})")

    return " AND ".join(conditions), params


def build_order_by(sort: str) -> str:
    """Translate ``-created_at,id`` style sort specs into an ORDER BY clause."""
    clauses = []
    for raw_field in sort.split(","):
        field = raw_field.strip()
        if not field:
            continue
        direction = "DESC" if field.startswith("-") else "ASC"
        field = field.lstrip("-+")
        if not _IDENTIFIER_RE.match(field):
            msg = f"Invalid sort field: {field}"
            raise ValueError(msg)
        clauses.append(f"{field} {direction}")
    return ", ".join(clauses) or "id ASC"


_db_connections: dict[tuple[int, int, str], aiosqlite.Connection] = {}
_db_lock = asyncio.Lock()


async def get_connection(*, db_path: str | None = None) -> aiosqlite.Connection:
    """Get or create a cached connection for the current thread, loop, and db path."""
    thread_id = threading.get_ident()
    loop = asyncio.get_running_loop()
    loop_id = id(loop)
    path = get_db_path(db_path)
    cache_key = (thread_id, loop_id, str(path))

    if cache_key in _db_connections:
        return _db_connections[cache_key]

    async with _db_lock:
        # Double-check after acquiring lock
        if cache_key in _db_connections:
            return _db_connections[cache_key]

        path.parent.mkdir(parents=True, exist_ok=True)

        conn = await aiosqlite.connect(str(path))
        await conn.execute("PRAGMA foreign_keys = ON")
        await conn.execute("PRAGMA journal_mode = WAL")
        await conn.create_function("casefold_contains", 2, casefold_contains, deterministic=True)

        _db_connections[cache_key] = conn

        logger.info(
            "Created new SQLite connection",
            extra={"db_path": str(path), "thread_id": thread_id, "loop_id": loop_id},
        )
        return conn


async def close_connection(*, db_path: str | None = None) -> None:
    """Close the cached SQLite connection for the current thread, loop, and db path."""
    thread_id = threading.get_ident()
    loop_id = id(asyncio.get_running_loop())
    path = get_db_path(db_path)
    cache_key = (thread_id, loop_id, str(path))

    async with _db_lock:
        conn = _db_connections.pop(cache_key, None)
        if conn is None:
            return
        try:
            await conn.close()
            logger.info("Closed SQLite connection", extra={"db_path": str(path)})
        except Exception as e:
            logger.warning("Error closing SQLite connection", extra={"error": str(e), "db_path": str(path)})


async def init_db(*, db_path: str | None = None) -> None:
    """Initialize the database schema by delegating to schema.init_db()."""
    from tasktracker.core import schema  # noqa: PLC0415 - schema imports this module

    await schema.init_db(db_path=db_path)


def _row_to_record(cursor: aiosqlite.Cursor, row: tuple) -> dict[str, Any]:
    columns = [description[0] for description in cursor.description]
    return _convert_record_ids(dict(zip(columns, row, strict=True)))


async def create_record(*, collection: str, data: dict[str, Any]) -> dict[str, Any]:
    """Insert a new record and return it with its assigned id."""
    try:
        _validate_collection_name(collection)
        conn = await get_connection()

        columns = list(data.keys())
        columns_str = ", ".join(columns)
        placeholders_str = ", ".join("?" for _ in columns)
        values = [_serialize_value(data[key]) for key in columns]

        query = f"INSERT INTO {collection} ({columns_str}) VALUES ({placeholders_str})"  # noqa: S608 - collection is validated
        cursor = await conn.execute(query, values)
        await conn.commit()

        record_id = cursor.lastrowid
        result = await get_record(collection=collection, record_id=str(record_id))

        logger.info("Created record", extra={"collection": collection, "record_id": record_id})
        return result
    except Exception as e:
        if isinstance(e, aiosqlite.OperationalError) and "no such table" in str(e):
            msg = f"Table '{collection}' does not exist. Call init_db() first."
            logger.error("Table not found", extra={"collection": collection})
            raise DatabaseError(msg) from e
        logger.error("create_record_failed", extra={"collection": collection, "error": str(e)})
        msg = f"Failed to create record in {collection}: {e}"
        raise DatabaseError(msg) from e


async def get_record(*, collection: str, record_id: str) -> dict[str, Any]:
    """Fetch a single record by ID, raising RecordNotFoundError if not found."""
    try:
        _validate_collection_name(collection)
        conn = await get_connection()

        query = f"SELECT * FROM {collection} WHERE id = ?"  # noqa: S608 - collection is validated
        cursor = await conn.execute(query, (int(record_id),))
        row = await cursor.fetchone()

        if row is None:
            msg = f"Record not found in {collection}: {record_id}"
            raise RecordNotFoundError(msg)

        logger.debug("Retrieved record", extra={"collection": collection, "record_id": record_id})
        return _row_to_record(cursor, row)
    except RecordNotFoundError:
        raise
    except Exception as e:
        logger.error("get_record_failed", extra={"collection": collection, "record_id": record_id, "error": str(e)})
        msg = f"Failed to get record from {collection}: {e}"
        raise DatabaseError(msg) from e


async def update_record(*, collection: str, record_id: str, data: dict[str, Any]) -> dict[str, Any]:
    """Update a record by ID and return the updated record."""
    if not data:
        msg = "Empty update payload"
        raise ValueError(msg)

    try:
        _validate_collection_name(collection)
        conn = await get_connection()

        set_clause = ", ".join(f"{key} = ?" for key in data)
        values = [_serialize_value(val) for val in data.values()]
        values.append(int(record_id))

        query = f"UPDATE {collection} SET {set_clause} WHERE id = ?"  # noqa: S608 - collection is validated
        await conn.execute(query, values)
        await conn.commit()

        logger.info("Updated record", extra={"collection": collection, "record_id": record_id})
        return await get_record(collection=collection, record_id=record_id)
    except RecordNotFoundError:
        raise
    except Exception as e:
        logger.error("update_record_failed", extra={"collection": collection, "record_id": record_id, "error": str(e)})
        msg = f"Failed to update record in {collection}: {e}"
        raise DatabaseError(msg) from e


async def delete_record(*, collection: str, record_id: str) -> None:
    """Delete a record by ID, raising RecordNotFoundError if not found."""
    try:
        _validate_collection_name(collection)
        conn = await get_connection()

        query = f"DELETE FROM {collection} WHERE id = ?"  # noqa: S608 - collection is validated
        cursor = await conn.execute(query, (int(record_id),))
        await conn.commit()

        if cursor.rowcount == 0:
            msg = f"Record not found in {collection}: {record_id}"
            raise RecordNotFoundError(msg)

        logger.info("Deleted record", extra={"collection": collection, "record_id": record_id})
    except RecordNotFoundError:
        raise
    except Exception as e:
        logger.error("delete_record_failed", extra={"collection": collection, "record_id": record_id, "error": str(e)})
        msg = f"Failed to delete record from {collection}: {e}"
        raise DatabaseError(msg) from e


async def list_records(
    *,
    collection: str,
    page: int = 1,
    per_page: int = 50,
    filter_query: str = "",
    sort: str = "",
) -> list[dict[str, Any]]:
    """List records with optional filtering, sorting, and pagination."""
    try:
        _validate_collection_name(collection)
        conn = await get_connection()

        where_clause, params = parse_filter(filter_query)
        where_sql = f"WHERE {where_clause}" if where_clause else ""
        order_by = build_order_by(sort)
        offset = (page - 1) * per_page

        query = f"SELECT * FROM {collection} {where_sql} ORDER BY {order_by} LIMIT ? OFFSET ?"  # noqa: S608 - collection and sort are validated
        cursor = await conn.execute(query, [*params, per_page, offset])
        rows = await cursor.fetchall()

        records = [_row_to_record(cursor, row) for row in rows]

        logger.debug("Listed records", extra={"collection": collection, "count": len(records)})
        return records
    except Exception as e:
        logger.error("list_records_failed", extra={"collection": collection, "error": str(e)})
        msg = f"Failed to list records from {collection}: {e}"
        raise DatabaseError(msg) from e


async def get_first_record(*, collection: str, filter_query: str) -> dict[str, Any] | None:
    """Return the first record matching the filter, or None."""
    try:
        _validate_collection_name(collection)
        conn = await get_connection()

        where_clause, params = parse_filter(filter_query)
        where_sql = f"WHERE {where_clause}" if where_clause else ""

        query = f"SELECT * FROM {collection} {where_sql} ORDER BY id ASC LIMIT 1"  # noqa: S608 - collection is validated
        cursor = await conn.execute(query, params)
        row = await cursor.fetchone()

        if row is None:
            return None

        logger.debug("Retrieved first record", extra={"collection": collection})
        return _row_to_record(cursor, row)
    except Exception as e:
        logger.error(
            "get_first_record_failed", extra={"collection": collection, "filter_query": filter_query, "error": str(e)}
        )
        msg = f"Failed to get first record from {collection}: {e}"
        raise DatabaseError(msg) from e
