import typing

import pytest

from entity_orm.domain.daos import RequestDao, SessionDao, UserDao
from entity_orm.storages.sqlalchemy.database import Database

HASH = "$2y$10$I8dud/n/.ew89tN/wZ8xw.zEi6U1zrJfS1c8ffqpKIaklmKIw.Wse"

RecordFactory = typing.Callable[..., typing.Dict[str, typing.Any]]


@pytest.fixture()
def user_record() -> RecordFactory:
    def factory(**overrides: typing.Any) -> typing.Dict[str, typing.Any]:
        record = {
            "fullname": "josé valter",
            "email": "uefs@example.net",
            "hash": HASH,
            "salt": "c1pyo375pqt",
            "active": True,
        }
        record.update(overrides)
        return record

    return factory


@pytest.fixture()
def user_dao(database: Database) -> UserDao:
    return UserDao(database)


@pytest.fixture()
def request_dao(database: Database) -> RequestDao:
    return RequestDao(database)


@pytest.fixture()
def session_dao(database: Database) -> SessionDao:
    return SessionDao(database)
