import logging
import typing
from datetime import timedelta

import attr

from entity_orm.attributes import (
    ActiveAttribute,
    DateAttribute,
    EmailAttribute,
    GeneratedPrimaryKeyAttribute,
    HashAttribute,
    IncrementalPrimaryKeyAttribute,
    IpAttribute,
    NameAttribute,
    PortAttribute,
    SaltAttribute,
)
from entity_orm.config import get_settings
from entity_orm.domain.daos import RequestDao, SessionDao, UserDao
from entity_orm.entity import Entity, Identity, column
from entity_orm.exceptions import EntityException
from entity_orm.state import EntityState


logger = logging.getLogger(__name__)


class User(Entity, dao=UserDao):
    id: Identity[IncrementalPrimaryKeyAttribute] = column("user_id", default=None)
    fullname: NameAttribute = column("fullname")
    email: EmailAttribute = column("email")
    hash: HashAttribute = column("hash")
    salt: SaltAttribute = column("salt")
    active: ActiveAttribute = column("active", factory=ActiveAttribute)

    @classmethod
    def get_unique_field_for(cls, value: typing.Any) -> str:
        if isinstance(value, EmailAttribute) or (isinstance(value, str) and "@" in value):
            return "email"
        return cls.get_id_name()

    def set_fullname(self, fullname: str) -> None:
        self._set("fullname", self.fullname.set_complete_name(fullname))

    def set_email(self, email: str) -> None:
        self._set("email", EmailAttribute(email))

    def set_password(self, password: str, salt: str) -> None:
        new_salt = SaltAttribute(salt)
        self._set("hash", self.hash.set_hash(password))
        self._set("salt", new_salt)

    def is_active(self) -> bool:
        return bool(self.active)

    def killme(self) -> bool:
        """Deactivates the user instead of deleting its row."""
        if self.state in (EntityState.TRANSIENT, EntityState.REMOVED) or not self.is_active():
            return False

        previous = self.active
        self._set("active", ActiveAttribute(False))
        if self.flush():
            return True

        self.active = previous
        return False


class Request(Entity, dao=RequestDao):
    id: Identity[IncrementalPrimaryKeyAttribute] = column("request_id", default=None)
    ip: IpAttribute = column("ip")
    port: PortAttribute = column("port")
    access: DateAttribute = column("access_date", factory=DateAttribute)

    @access.validator
    def _check_access(self, _field: attr.Attribute, value: DateAttribute) -> None:
        if not isinstance(value, DateAttribute):
            raise EntityException(f"{value!r} is not a date")
        if value > DateAttribute():
            raise EntityException(f"The access date {value.representation()} is in the future")

    def set_access(self, access: DateAttribute) -> None:
        if not access > self.access:
            raise EntityException(
                f"{access.representation()} is not later than {self.access.representation()}"
            )
        if access > DateAttribute():
            raise EntityException(f"The access date {access.representation()} is in the future")
        self._set("access", access)

    def is_old(self) -> bool:
        retention = timedelta(days=get_settings().REQUEST_RETENTION_DAYS)
        return DateAttribute() > self.access.add(retention)

    def killme(self) -> bool:
        if not self.is_old():
            logger.info("Request %s is within the retention period", self.representation())
            return False
        return super().killme()


class Session(Entity, dao=SessionDao):
    id: Identity[GeneratedPrimaryKeyAttribute] = column("session_id", factory=GeneratedPrimaryKeyAttribute)
    user: typing.Optional[User] = column("user_id", default=None)
    request: Request = column("request_id")

    @user.validator
    def _check_user(self, _field: attr.Attribute, value: typing.Optional[User]) -> None:
        if value is not None and not value.is_active():
            raise EntityException(f"User {value.representation()} isn't active")

    def is_user_logged(self) -> bool:
        return self.user is not None

    def set_user(self, user: User) -> None:
        if self.is_user_logged():
            raise EntityException("A user is already logged in this session")
        if not user.is_active():
            raise EntityException(f"User {user.representation()} isn't active")
        self._set("user", user)

    def set_request(self, request: Request) -> None:
        if not request.access > self.request.access:
            raise EntityException("The new request must be more recent than the current one")
        self._set("request", request)

    def is_expired(self) -> bool:
        expiry = timedelta(days=get_settings().SESSION_EXPIRY_DAYS)
        return DateAttribute() > self.request.access.add(expiry)
