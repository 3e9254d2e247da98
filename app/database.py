import logging
import re
from typing import Optional, Dict, Any, List, Sequence, Tuple, NamedTuple

import sqlalchemy
from sqlalchemy import exc, event
from sqlalchemy.pool import NullPool

from config import get_db_path

logger = logging.getLogger(__name__)


###########################################################
# ERRORS
###########################################################

class SchemaError(ValueError):
    """Caller-side misuse of a table schema. Maps to a client error."""


class DuplicateTable(SchemaError):
    pass


class UnknownTable(SchemaError):
    pass


class SchemaMismatch(SchemaError):
    pass


class NoPrimaryKey(SchemaError):
    pass


class InvalidSchema(SchemaError):
    pass


class InvalidIdentifier(SchemaError):
    pass


class StoreError(RuntimeError):
    """The store rejected a statement (constraint, malformed SQL, I/O)."""


# Validate SQL identifiers
def validate_identifier(name: str) -> bool:
    """
    Validate that a database identifier (table/column) is safe:
    - Non-empty
    - Max 63 chars
    - Starts with letter/underscore
    - Contains only letters, digits, underscores
    """
    if not isinstance(name, str) or len(name) == 0 or len(name) > 63:
        return False
    return bool(re.fullmatch(r"[a-zA-Z_][a-zA-Z0-9_]*", name))


def _require_identifier(name: str, kind: str) -> None:
    if not validate_identifier(name):
        raise InvalidIdentifier(f"Invalid {kind} name: {name!r}")


_STORAGE_TYPE = re.compile(r"[A-Za-z][A-Za-z0-9]*(\s+[A-Za-z][A-Za-z0-9]*)*(\s*\(\s*\d+(\s*,\s*\d+)?\s*\))?")
_FOREIGN_KEY = re.compile(r"([a-zA-Z_][a-zA-Z0-9_]*)\(([a-zA-Z_][a-zA-Z0-9_]*)\)")
_CONSTRAINT_WORDS = {"PRIMARY", "KEY", "NOT", "NULL", "REFERENCES", "FOREIGN", "UNIQUE", "CHECK", "DEFAULT"}


###########################################################
# SCHEMA REGISTRY
###########################################################

class TableEntry(NamedTuple):
    columns: Tuple[str, ...]
    primary_key: Optional[str]


class SchemaRegistry:
    """Table name -> registered columns and primary key. Entries are never removed."""

    def __init__(self):
        self._tables: Dict[str, TableEntry] = {}

    def register(self, table_name: str, columns: Sequence[str], primary_key: Optional[str]) -> TableEntry:
        if table_name.lower() in self._tables:
            raise DuplicateTable(f"Duplicate table definition {table_name}")
        entry = TableEntry(tuple(columns), primary_key)
        self._tables[table_name.lower()] = entry
        return entry

    def lookup(self, table_name: str) -> TableEntry:
        try:
            return self._tables[table_name.lower()]
        except KeyError:
            raise UnknownTable(f"Unknown schema: {table_name}") from None

    def __contains__(self, table_name: str) -> bool:
        return table_name.lower() in self._tables

    def __len__(self) -> int:
        return len(self._tables)


###########################################################
# ENGINE
###########################################################

# SINGLETON ENGINE AND REGISTRY: Module-level variables
_engine = None
_registry = None


def _enable_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.close()


def init_db_engine(db_path: Optional[str] = None):
    """
    Initialize the database engine and schema registry ONCE at application startup.
    Every call site checks out its own connection; NullPool closes it on release.
    """
    global _engine, _registry
    if _engine is not None:
        return _engine

    db_path = db_path or get_db_path()
    logger.info(f"Initializing SQLite engine for {db_path}")

    _engine = sqlalchemy.create_engine(
        sqlalchemy.engine.url.URL.create(drivername="sqlite", database=db_path),
        poolclass=NullPool,
    )
    event.listen(_engine, "connect", _enable_foreign_keys)
    _registry = SchemaRegistry()
    return _engine


def get_db_engine():
    """Get initialized engine. Must be called AFTER init_db_engine()."""
    if _engine is None:
        raise RuntimeError(
            "DB engine not initialized. "
            "Call init_db_engine() in a startup event first."
        )
    return _engine


def get_schema_registry() -> SchemaRegistry:
    get_db_engine()
    return _registry


def dispose_db_engine() -> None:
    """Release the engine and forget every registered table."""
    global _engine, _registry
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _registry = None


def _execute(sql: str, params: Optional[Sequence[Any]] = None) -> int:
    """Run one write statement on a fresh connection; return the affected row count."""
    logger.debug(f"[SQL] {sql} | params={list(params) if params else []}")
    try:
        with get_db_engine().begin() as conn:
            result = conn.exec_driver_sql(sql, tuple(params) if params else None)
            return result.rowcount
    except (exc.SQLAlchemyError, OverflowError) as e:
        logger.error(f"[SQL ERROR] {sql}: {e}")
        raise StoreError(str(e)) from e


def _query(sql: str, params: Optional[Sequence[Any]] = None) -> List[Dict[str, Any]]:
    logger.debug(f"[SQL] {sql} | params={list(params) if params else []}")
    try:
        with get_db_engine().connect() as conn:
            result = conn.exec_driver_sql(sql, tuple(params) if params else None)
            return [dict(row) for row in result.mappings()]
    except (exc.SQLAlchemyError, OverflowError) as e:
        logger.error(f"[SQL ERROR] {sql}: {e}")
        raise StoreError(str(e)) from e


###########################################################
# TABLE DEFINITION
###########################################################

def build_create_table_sql(table_name: str, schema: Dict[str, Dict[str, Any]]) -> Tuple[str, Optional[str]]:
    """
    Render the CREATE TABLE statement for a schema.

    Args:
        table_name: Name of the table
        schema: Ordered mapping of column name to its attributes:
            type (str, required), primary_key (bool), not_null (bool),
            foreign_key ("table(column)")

    Returns:
        (sql, primary key column name or None)
    """
    _require_identifier(table_name, "table")
    if not schema:
        raise InvalidSchema(f"Schema for {table_name} declares no columns")

    columns = []
    foreign_keys = []
    primary_key = None
    for column, attributes in schema.items():
        _require_identifier(column, "column")
        storage_type = attributes.get("type")
        if not isinstance(storage_type, str) or not _STORAGE_TYPE.fullmatch(storage_type):
            raise InvalidIdentifier(f"Invalid storage type for {table_name}.{column}: {storage_type!r}")
        if _CONSTRAINT_WORDS.intersection(storage_type.upper().split()):
            raise InvalidSchema(
                f"Storage type for {table_name}.{column} carries a constraint: {storage_type!r}; "
                f"use primary_key, not_null or foreign_key"
            )

        definition = f"{column} {storage_type.upper()}"
        if attributes.get("primary_key"):
            if primary_key is not None:
                raise InvalidSchema(
                    f"Table {table_name} declares more than one primary key "
                    f"({primary_key}, {column})"
                )
            primary_key = column
            definition += " PRIMARY KEY"
        if attributes.get("not_null"):
            definition += " NOT NULL"
        columns.append(definition)

        reference = attributes.get("foreign_key")
        if reference is not None:
            if not isinstance(reference, str) or not _FOREIGN_KEY.fullmatch(reference):
                raise InvalidIdentifier(f"Invalid foreign key reference for {table_name}.{column}: {reference!r}")
            foreign_keys.append(f"FOREIGN KEY({column}) REFERENCES {reference}")

    body = ", ".join(columns + foreign_keys)
    return f"CREATE TABLE IF NOT EXISTS {table_name} ({body})", primary_key


def define_table_from_schema(table_name: str, schema: Dict[str, Dict[str, Any]]) -> None:
    """
    Create the table if it does not exist and register its schema.
    Must run before any other operation touches the table.

    Raises:
        DuplicateTable: the name is already registered
        InvalidSchema, InvalidIdentifier: the schema cannot be rendered
        StoreError: the store rejected the statement (nothing is registered)
    """
    registry = get_schema_registry()
    if table_name in registry:
        raise DuplicateTable(f"Duplicate table definition {table_name}")

    sql, primary_key = build_create_table_sql(table_name, schema)
    logger.info(f"[DB] initializing table: {table_name}")
    _execute(sql)
    registry.register(table_name, list(schema.keys()), primary_key)


###########################################################
# UPSERT
###########################################################

def build_upsert_sql(table_name: str, obj: Dict[str, Any], force_update: bool = False) -> Tuple[str, List[Any]]:
    """
    Build the INSERT or UPDATE statement for an object.

    The object must only use registered columns. It is an update when it
    carries the table's primary key (the key is also repeated in the SET list),
    otherwise an insert. The key value in the WHERE clause is bound, not
    interpolated.
    """
    entry = get_schema_registry().lookup(table_name)

    for field in obj:
        if field not in entry.columns:
            raise SchemaMismatch(
                f"Schema and object do not match. "
                f"Field {field} not found in schema {table_name}"
            )

    if force_update:
        if entry.primary_key is None:
            raise NoPrimaryKey(f"Table {table_name} declares no primary key; cannot update")
        if entry.primary_key not in obj:
            raise SchemaMismatch(f"Update on {table_name} requires field {entry.primary_key}")

    fields = list(obj.keys())
    values = list(obj.values())

    if entry.primary_key is not None and entry.primary_key in obj:
        assignments = ", ".join(f"{field} = ?" for field in fields)
        sql = f"update {table_name} set {assignments} where {entry.primary_key} = ?"
        return sql, values + [obj[entry.primary_key]]

    if not fields:
        return f"insert into {table_name} default values", []

    placeholders = ", ".join("?" for _ in fields)
    sql = f"insert into {table_name} ({', '.join(fields)}) values ({placeholders})"
    return sql, values


def save_object_to_db(table_name: str, obj: Dict[str, Any]) -> int:
    """
    Insert a new row, or update the existing one when obj carries the primary key.

    Returns:
        Number of rows affected (0 when an update matched nothing)

    Raises:
        UnknownTable: table never defined in this process
        SchemaMismatch: obj has a field that is not a column
        StoreError: constraint violation or store failure
    """
    sql, params = build_upsert_sql(table_name, obj)
    return _execute(sql, params)


def update_object_in_db(table_name: str, obj: Dict[str, Any]) -> int:
    """Update by primary key only; never falls back to an insert."""
    sql, params = build_upsert_sql(table_name, obj, force_update=True)
    return _execute(sql, params)


###########################################################
# FETCH / DELETE
###########################################################

def _with_filter(sql: str, where: Optional[str]) -> str:
    return f"{sql} where {where}" if where else sql


def get_objects_from_table(
    table_name: str,
    where: Optional[str] = None,
    params: Optional[Sequence[Any]] = None,
) -> List[Dict[str, Any]]:
    """
    Fetch rows as dicts, in the order the store returns them.

    Args:
        table_name: Table to read. Not checked against the registry.
        where: Optional condition using ? placeholders, e.g. "projectId = ?"
        params: Values for the placeholders, in order

    Returns:
        List of rows; empty when nothing matches
    """
    _require_identifier(table_name, "table")
    return _query(_with_filter(f"select * from {table_name}", where), params)


def delete_objects_from_table(
    table_name: str,
    where: Optional[str] = None,
    params: Optional[Sequence[Any]] = None,
) -> int:
    """Delete matching rows; without a filter every row goes. Returns the row count."""
    _require_identifier(table_name, "table")
    return _execute(_with_filter(f"delete from {table_name}", where), params)
