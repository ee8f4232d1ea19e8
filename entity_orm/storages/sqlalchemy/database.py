import contextlib
import logging
import threading
import typing

from sqlalchemy import create_engine
from sqlalchemy.engine import Connection, Engine

from entity_orm.config import Settings, get_settings
from entity_orm.storages.sqlalchemy.metadata import MetadataCache


logger = logging.getLogger(__name__)


class Database:
    """Executes statements for the DAOs of one engine.

    ``transaction()`` calls nest: inner blocks on the same thread join the
    outermost one, which alone commits or rolls back.
    """

    def __init__(self, engine: Engine, metadata_cache: typing.Optional[MetadataCache] = None) -> None:
        self.engine = engine
        self.metadata_cache = metadata_cache or MetadataCache(engine)
        self._local = threading.local()

    @classmethod
    def from_settings(cls, settings: typing.Optional[Settings] = None) -> "Database":
        settings = settings or get_settings()
        return cls(create_engine(settings.DATABASE_URL, echo=settings.DATABASE_ECHO))

    @property
    def in_transaction(self) -> bool:
        return getattr(self._local, "connection", None) is not None

    @contextlib.contextmanager
    def transaction(self) -> typing.Iterator[Connection]:
        current = getattr(self._local, "connection", None)
        if current is not None:
            yield current
            return

        with self.engine.begin() as connection:
            self._local.connection = connection
            try:
                yield connection
            finally:
                self._local.connection = None

    def dispose(self) -> None:
        self.engine.dispose()
