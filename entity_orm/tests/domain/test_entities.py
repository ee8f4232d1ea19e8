import typing
from datetime import datetime, timedelta

import pytest
from _pytest.monkeypatch import MonkeyPatch

from entity_orm.attributes import DateAttribute, EmailAttribute, GeneratedPrimaryKeyAttribute
from entity_orm.config import get_settings
from entity_orm.domain.entities import Request, Session, User
from entity_orm.exceptions import AttributeException, EntityException
from entity_orm.state import EntityState

UserFactory = typing.Callable[..., User]
RequestFactory = typing.Callable[..., Request]


@pytest.mark.parametrize(
    "key, field",
    [("uefs@example.net", "email"), (EmailAttribute("uefs@example.net"), "email"), (1, "id"), ("1", "id")],
)
def test_user_is_looked_up_by_email_or_id(key: typing.Any, field: str) -> None:
    assert User.get_unique_field_for(key) == field


def test_user_setters_validate_their_input(new_user: UserFactory) -> None:
    user = new_user()

    with pytest.raises(AttributeException):
        user.set_email("not an email")
    with pytest.raises(AttributeException):
        user.set_fullname("José")
    with pytest.raises(AttributeException):
        user.set_password("new password", "short")

    assert user.email.representation() == "uefs@example.net"
    assert user.fullname.full_name == "José Valter"
    assert user.hash.is_this_you("correct horse battery staple")


def test_user_password_is_replaced(new_user: UserFactory) -> None:
    user = new_user()

    user.set_password("new password", "c1pyo37a5pqt")

    assert user.hash.is_this_you("new password")
    assert user.salt.representation() == "c1pyo37a5pqt"
    assert user.state is EntityState.TRANSIENT


def test_transient_user_can_not_be_deactivated(new_user: UserFactory) -> None:
    user = new_user()

    assert user.killme() is False
    assert user.is_active() is True


def test_request_can_not_happen_in_the_future(new_request: RequestFactory) -> None:
    with pytest.raises(EntityException):
        new_request(access=datetime.now() + timedelta(days=1))


def test_request_access_only_moves_forward(new_request: RequestFactory) -> None:
    request = new_request(access=datetime(2023, 7, 1, 10, 0, 0))

    with pytest.raises(EntityException):
        request.set_access(DateAttribute("2023-07-01 10:00:00"))
    with pytest.raises(EntityException):
        request.set_access(DateAttribute("2023-06-30 10:00:00"))
    with pytest.raises(EntityException):
        request.set_access(DateAttribute().add(timedelta(days=1)))

    request.set_access(DateAttribute("2023-07-01 10:00:01"))
    assert request.access.representation() == "2023-07-01 10:00:01"


@pytest.mark.parametrize("days, is_old", [(0, False), (364, False), (366, True)])
def test_request_age(new_request: RequestFactory, days: int, is_old: bool) -> None:
    assert new_request(access=datetime.now() - timedelta(days=days)).is_old() is is_old


def test_request_retention_is_configurable(new_request: RequestFactory, monkeypatch: MonkeyPatch) -> None:
    monkeypatch.setenv("ENTITY_ORM_REQUEST_RETENTION_DAYS", "7")
    get_settings.cache_clear()

    assert new_request(access=datetime.now() - timedelta(days=8)).is_old() is True


def test_session_gets_a_generated_id(new_request: RequestFactory) -> None:
    session = Session(request=new_request())

    assert isinstance(session.id, GeneratedPrimaryKeyAttribute)
    assert session.is_user_logged() is False


def test_session_refuses_inactive_user(new_user: UserFactory, new_request: RequestFactory) -> None:
    with pytest.raises(EntityException):
        Session(user=new_user(active=False), request=new_request())

    session = Session(request=new_request())
    with pytest.raises(EntityException):
        session.set_user(new_user(active=False))
    assert session.is_user_logged() is False


def test_session_accepts_one_user(new_user: UserFactory, new_request: RequestFactory) -> None:
    session = Session(request=new_request())

    session.set_user(new_user())

    assert session.is_user_logged() is True
    with pytest.raises(EntityException):
        session.set_user(new_user(email="other@example.net"))


def test_session_request_only_moves_forward(new_request: RequestFactory) -> None:
    session = Session(request=new_request(access=datetime(2023, 7, 1, 10, 0, 0)))

    with pytest.raises(EntityException):
        session.set_request(new_request(access=datetime(2023, 7, 1, 10, 0, 0)))

    newer = new_request(access=datetime(2023, 7, 1, 10, 0, 1))
    session.set_request(newer)
    assert session.request is newer


@pytest.mark.parametrize("hours, is_expired", [(0, False), (23, False), (25, True)])
def test_session_expires_a_day_after_its_request(new_request: RequestFactory, hours: int, is_expired: bool) -> None:
    session = Session(request=new_request(access=datetime.now() - timedelta(hours=hours)))

    assert session.is_expired() is is_expired
