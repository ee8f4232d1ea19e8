"""
Generic CRUD over a single table, working on flat ``{column: value}`` records.

Every record is sanitized against the table metadata before a statement is
built: unknown columns are dropped, values must be ``int``, ``bool``, ``str``
or ``None``. Storage errors are logged and turned into ``False``/``None``.
"""
import logging
import typing

import inflection
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from entity_orm.storages.sqlalchemy.database import Database
from entity_orm.storages.sqlalchemy.metadata import TableMetadata
from entity_orm.storages.sqlalchemy.types import is_storable


logger = logging.getLogger(__name__)

Record = typing.Dict[str, typing.Any]


class Outcome(typing.NamedTuple):
    rowcount: int
    generated_id: typing.Any


def _only(record: Record, columns: typing.Iterable[str]) -> Record:
    allowed = set(columns)
    return {key: value for key, value in record.items() if key in allowed}


class GenericDao:
    table: typing.Optional[str] = None

    def __init__(self, database: Database, table: typing.Optional[str] = None) -> None:
        self._database = database
        self._table = table or self.table or self.default_table_name()

    @classmethod
    def default_table_name(cls) -> str:
        name = cls.__name__
        if name.endswith("Dao"):
            name = name[: -len("Dao")]
        return inflection.pluralize(inflection.underscore(name))

    @property
    def table_name(self) -> str:
        return self._table

    @property
    def metadata(self) -> TableMetadata:
        return self._database.metadata_cache.get(self._table)

    def _quote(self, identifier: str) -> str:
        return self._database.engine.dialect.identifier_preparer.quote(identifier)

    def _sanitize(self, record: Record) -> typing.Optional[TableMetadata]:
        if not all(is_storable(value) for value in record.values()):
            logger.info("Rejected record for %s: unsupported value type", self._table)
            return None
        try:
            return self.metadata
        except SQLAlchemyError:
            logger.exception("Unable to introspect table %s", self._table)
            return None

    def _execute(self, query: str, parameters: Record, returning: bool = False) -> typing.Optional[Outcome]:
        try:
            with self._database.transaction() as connection:
                result = connection.execute(text(query), parameters)
                if returning:
                    generated_id = result.scalar_one_or_none()
                    return Outcome(int(generated_id is not None), generated_id)
                return Outcome(result.rowcount, result.lastrowid)
        except SQLAlchemyError:
            logger.exception("Query on %s failed", self._table)
            return None

    def _insert(self, record: Record, returning: bool = False) -> typing.Optional[Outcome]:
        metadata = self._sanitize(record)
        if metadata is None:
            return None

        if any(column not in record for column in metadata.required_columns):
            logger.info("Insert into %s is missing required columns", self._table)
            return None
        if not metadata.is_key_required:
            record = {key: value for key, value in record.items() if key != metadata.primary_key}
        record = _only(record, metadata.columns)
        if not record:
            return None

        columns = ", ".join(self._quote(column) for column in record)
        values = ", ".join(f":{column}" for column in record)
        query = f"INSERT INTO {self._quote(self._table)} ({columns}) VALUES ({values})"
        # Drivers such as psycopg leave lastrowid unset.
        returning = (
            returning
            and bool(metadata.primary_key)
            and not metadata.is_key_required
            and self._database.engine.dialect.insert_returning
        )
        if returning:
            query += f" RETURNING {self._quote(metadata.primary_key)}"
        outcome = self._execute(query, record, returning)
        if outcome is None or outcome.rowcount < 1:
            return None
        return outcome

    def create(self, record: Record) -> bool:
        return self._insert(record) is not None

    def read(self, record: Record) -> typing.Optional[Record]:
        metadata = self._sanitize(record)
        if metadata is None:
            return None

        record = _only(record, metadata.unique_constraints)
        if not record:
            return None
        column, value = next(iter(record.items()))

        query = f"SELECT * FROM {self._quote(self._table)} WHERE {self._quote(column)} = :{column} LIMIT 1"
        try:
            with self._database.transaction() as connection:
                row = connection.execute(text(query), {column: value}).mappings().first()
        except SQLAlchemyError:
            logger.exception("Query on %s failed", self._table)
            return None
        return dict(row) if row is not None else None

    def update(self, record: Record) -> bool:
        metadata = self._sanitize(record)
        if metadata is None:
            return False

        record = _only(record, metadata.columns)
        primary_key = metadata.primary_key
        if not primary_key or record.get(primary_key) in (None, ""):
            return False
        columns = [column for column in record if column != primary_key]
        if not columns:
            return False

        assignments = ", ".join(f"{self._quote(column)} = :{column}" for column in columns)
        query = (
            f"UPDATE {self._quote(self._table)} SET {assignments} "
            f"WHERE {self._quote(primary_key)} = :{primary_key}"
        )
        outcome = self._execute(query, record)
        return outcome is not None and outcome.rowcount > 0

    def delete(self, record: Record) -> bool:
        metadata = self._sanitize(record)
        if metadata is None:
            return False

        primary_key = metadata.primary_key
        if not primary_key or record.get(primary_key) in (None, ""):
            return False

        query = f"DELETE FROM {self._quote(self._table)} WHERE {self._quote(primary_key)} = :{primary_key}"
        outcome = self._execute(query, {primary_key: record[primary_key]})
        return outcome is not None and outcome.rowcount > 0

    def create_returning_id(self, record: Record) -> typing.Optional[str]:
        outcome = self._insert(record, returning=True)
        if outcome is None:
            return None

        metadata = self.metadata
        if metadata.is_key_required:
            return str(record[metadata.primary_key])
        if not outcome.generated_id:
            return None
        return str(outcome.generated_id)
