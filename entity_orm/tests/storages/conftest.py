import typing
from pathlib import Path

import pytest
from _pytest.fixtures import SubRequest
from sqlalchemy.engine import Engine, create_engine

from entity_orm.domain.schema import metadata
from entity_orm.storages.sqlalchemy.database import Database


@pytest.fixture()
def engine(request: SubRequest, tmp_path: Path) -> typing.Generator[Engine, None, None]:
    connection_url = request.config.getoption("--sqlalchemy-url") or f"sqlite:///{tmp_path / 'entity_orm.db'}"
    engine = create_engine(connection_url)
    metadata.drop_all(engine)
    metadata.create_all(engine)
    yield engine
    metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture()
def database(engine: Engine) -> Database:
    return Database(engine)
