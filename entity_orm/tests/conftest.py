import typing
from datetime import datetime

import pytest
from _pytest.config.argparsing import Parser
from _pytest.monkeypatch import MonkeyPatch

from entity_orm.attributes import (
    ActiveAttribute,
    DateAttribute,
    EmailAttribute,
    HashAttribute,
    IpAttribute,
    NameAttribute,
    PortAttribute,
    SaltAttribute,
)
from entity_orm.config import get_settings
from entity_orm.domain.entities import Request, User


def pytest_addoption(parser: Parser) -> None:
    parser.addoption("--sqlalchemy-url", action="store", default=None)


@pytest.fixture(autouse=True)
def fast_hashing(monkeypatch: MonkeyPatch) -> typing.Generator[None, None, None]:
    # the lowest cost bcrypt accepts keeps hashing fast
    monkeypatch.setenv("ENTITY_ORM_BCRYPT_ROUNDS", "4")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def new_user() -> typing.Callable[..., User]:
    def factory(email: str = "uefs@example.net", active: bool = True) -> User:
        return User(
            fullname=NameAttribute("José Valter"),
            email=EmailAttribute(email),
            hash=HashAttribute("correct horse battery staple"),
            salt=SaltAttribute("c1pyo375pqt"),
            active=ActiveAttribute(active),
        )

    return factory


@pytest.fixture()
def new_request() -> typing.Callable[..., Request]:
    def factory(access: typing.Optional[datetime] = None, ip: str = "127.0.0.1", port: int = 8080) -> Request:
        return Request(ip=IpAttribute(ip), port=PortAttribute(port), access=DateAttribute(access))

    return factory
