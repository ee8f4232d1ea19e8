import logging
import threading
import typing

import attr
from sqlalchemy import inspect
from sqlalchemy.engine import Engine
from sqlalchemy.types import Integer


logger = logging.getLogger(__name__)


@attr.s(auto_attribs=True, frozen=True)
class TableMetadata:
    name: str
    primary_key: str
    is_key_required: bool
    unique_constraints: typing.Tuple[str, ...]
    required_columns: typing.Tuple[str, ...]
    columns: typing.Tuple[str, ...]


def _is_generated(column: dict, primary_key: typing.List[str]) -> bool:
    if len(primary_key) != 1 or column["name"] != primary_key[0]:
        return False
    return column.get("autoincrement", "auto") in (True, "auto") and isinstance(column["type"], Integer)


def introspect(engine: Engine, table: str) -> TableMetadata:
    inspector = inspect(engine)
    columns = inspector.get_columns(table)
    primary_key = inspector.get_pk_constraint(table).get("constrained_columns") or []

    generated = {column["name"] for column in columns if _is_generated(column, primary_key)}
    unique = list(primary_key)
    for constraint in inspector.get_unique_constraints(table):
        if len(constraint["column_names"]) == 1:
            unique.append(constraint["column_names"][0])
    for index in inspector.get_indexes(table):
        if index.get("unique") and len(index["column_names"]) == 1:
            unique.append(index["column_names"][0])

    required = [
        column["name"]
        for column in columns
        if not column["nullable"]
        and column.get("default") is None
        and not column.get("computed")
        and column["name"] not in generated
    ]

    return TableMetadata(
        name=table,
        primary_key=primary_key[0] if primary_key else "",
        is_key_required=bool(primary_key) and primary_key[0] not in generated,
        unique_constraints=tuple(dict.fromkeys(unique)),
        required_columns=tuple(required),
        columns=tuple(column["name"] for column in columns),
    )


class MetadataCache:
    """Table metadata introspected at most once per table.

    Concurrent first accesses to the same table wait for a single
    introspection. Failures are not cached.
    """

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        self._tables: typing.Dict[str, TableMetadata] = {}
        self._lock = threading.Lock()

    def __contains__(self, table: str) -> bool:
        return table in self._tables

    def get(self, table: str) -> TableMetadata:
        try:
            return self._tables[table]
        except KeyError:
            pass
        with self._lock:
            if table not in self._tables:
                logger.debug("Introspecting table %s", table)
                self._tables[table] = introspect(self._engine, table)
            return self._tables[table]

    def clear(self) -> None:
        with self._lock:
            self._tables.clear()
