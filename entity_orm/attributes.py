"""
Self-validating value objects wrapping one scalar each.

An attribute is valid by construction: invalid input raises
`AttributeException`, while `new_instance` returns ``None`` instead so that
callers may treat a failure as a value.
"""
import abc
import hashlib
import ipaddress
import logging
import re
import secrets
import typing
from datetime import datetime, timedelta

import attr
import bcrypt
from email_validator import EmailNotValidError, validate_email

from entity_orm.config import get_settings
from entity_orm.exceptions import AttributeException


logger = logging.getLogger(__name__)

A = typing.TypeVar("A", bound="Attribute")


class Attribute(abc.ABC):
    @abc.abstractmethod
    def representation(self) -> typing.Any:
        """Primitive form stored in the database."""

    @classmethod
    def new_instance(cls: typing.Type[A], value: typing.Any) -> typing.Optional[A]:
        try:
            return cls(value)
        except AttributeException as e:
            logger.info("%s rejected %r: %s", cls.__name__, value, e)
            return None


class UniqueAttribute(Attribute):
    """Attribute whose value identifies a single record."""


class PrimaryKeyAttribute(UniqueAttribute):
    pass


def _must_match(pattern: str, description: str) -> typing.Callable[[typing.Any, attr.Attribute, typing.Any], None]:
    regex = re.compile(pattern)

    def validator(_instance: typing.Any, _field: attr.Attribute, value: typing.Any) -> None:
        if not isinstance(value, str) or not regex.match(value):
            raise AttributeException(f"The value '{value}' is not a valid {description}.")

    return validator


def _to_int(value: typing.Any) -> typing.Any:
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return value


@attr.s(frozen=True)
class EmailAttribute(UniqueAttribute):
    email: str = attr.ib()
    _username: str = attr.ib(init=False, eq=False, repr=False)
    _domain: str = attr.ib(init=False, eq=False, repr=False)

    @email.validator
    def _check_email(self, _field: attr.Attribute, value: typing.Any) -> None:
        if not isinstance(value, str):
            raise AttributeException("The email address is not valid")
        try:
            validated = validate_email(value, check_deliverability=False)
        except EmailNotValidError as e:
            raise AttributeException("The email address is not valid") from e
        object.__setattr__(self, "_username", validated.local_part)
        object.__setattr__(self, "_domain", validated.domain)

    @property
    def username(self) -> str:
        return self._username

    @property
    def domain(self) -> str:
        return self._domain

    @property
    def subdomains(self) -> typing.List[str]:
        return self._domain.split(".")

    def representation(self) -> str:
        return self.email


def _lower(value: typing.Any) -> typing.Any:
    return value.lower() if isinstance(value, str) else value


@attr.s(frozen=True)
class NameAttribute(Attribute):
    MAX_LENGTH = 80

    complete_name: str = attr.ib(converter=_lower)

    @complete_name.validator
    def _check_name(self, _field: attr.Attribute, value: typing.Any) -> None:
        if not isinstance(value, str) or len(value) > self.MAX_LENGTH or not re.match(r"^.{3,} .*.{3,}$", value):
            raise AttributeException(f"The value '{value}' is not a valid name.")

    def set_complete_name(self, complete_name: str) -> "NameAttribute":
        return NameAttribute(complete_name)

    @property
    def first_name(self) -> str:
        return self._format(self.complete_name.split(" ")[0])

    @property
    def last_name(self) -> str:
        return self._format(self.complete_name.split(" ")[-1])

    @property
    def full_name(self) -> str:
        return " ".join(self._format(word) for word in self.complete_name.split(" "))

    def representation(self) -> str:
        return self.complete_name

    @staticmethod
    def _format(word: str) -> str:
        return word.capitalize() if len(word) > 2 else word.lower()


BCRYPT_HASH = re.compile(r"^\$2[aby]\$\d{2}\$[./A-Za-z0-9]{53}$")


def _hash(value: typing.Any) -> typing.Any:
    if not isinstance(value, str) or BCRYPT_HASH.match(value):
        return value
    try:
        hashed = bcrypt.hashpw(value.encode("utf-8"), bcrypt.gensalt(rounds=get_settings().BCRYPT_ROUNDS))
    except ValueError as e:
        raise AttributeException("It wasn't possible to hash the value") from e
    return hashed.decode("ascii")


@attr.s(frozen=True, repr=False)
class HashAttribute(Attribute):
    """A bcrypt hash. Raw secrets are hashed on the way in, hashes are kept as they are."""

    hash: str = attr.ib(converter=_hash)

    @hash.validator
    def _check_hash(self, _field: attr.Attribute, value: typing.Any) -> None:
        if not isinstance(value, str) or not BCRYPT_HASH.match(value):
            raise AttributeException("It wasn't possible to hash the value")

    def __repr__(self) -> str:
        return "HashAttribute(hash=<hidden>)"

    def set_hash(self, value: str) -> "HashAttribute":
        return HashAttribute(value)

    def is_this_you(self, value: str) -> bool:
        """Checks a raw secret against the hash.

        The stored hash itself also matches, so callers holding a hash read
        back from storage can compare it without the secret. Never feed it
        user input that may already be a hash.
        """
        if value == self.hash:
            return True
        try:
            return bcrypt.checkpw(value.encode("utf-8"), self.hash.encode("ascii"))
        except ValueError:
            return False

    @staticmethod
    def are_hashes_equal(first: "HashAttribute", second: "HashAttribute") -> bool:
        return secrets.compare_digest(first.representation(), second.representation())

    def representation(self) -> str:
        return self.hash


@attr.s(frozen=True, repr=False)
class SaltAttribute(Attribute):
    MIN_LENGTH = 10

    salt: str = attr.ib()

    @salt.validator
    def _check_salt(self, _field: attr.Attribute, value: typing.Any) -> None:
        if not isinstance(value, str) or len(value) < self.MIN_LENGTH:
            raise AttributeException(f"The value '{value}' is not a valid salt.")

    def __repr__(self) -> str:
        return "SaltAttribute(salt=<hidden>)"

    @classmethod
    def generate(cls) -> "SaltAttribute":
        return cls(secrets.token_hex(cls.MIN_LENGTH))

    def representation(self) -> str:
        return self.salt


def _compress_ip(value: typing.Any) -> typing.Any:
    if not isinstance(value, str):
        raise AttributeException(f"The value '{value}' is not a valid IP address.")
    try:
        return str(ipaddress.ip_address(value))
    except ValueError as e:
        raise AttributeException(f"The value '{value}' is not a valid IP address.") from e


@attr.s(frozen=True)
class IpAttribute(Attribute):
    ip: str = attr.ib(converter=_compress_ip)

    @property
    def version(self) -> int:
        return ipaddress.ip_address(self.ip).version

    def representation(self) -> str:
        return self.ip


@attr.s(frozen=True)
class PortAttribute(Attribute):
    port: int = attr.ib(converter=_to_int)

    @port.validator
    def _check_port(self, _field: attr.Attribute, value: typing.Any) -> None:
        if isinstance(value, bool) or not isinstance(value, int) or not 0 < value <= 65535:
            raise AttributeException(f"The value '{value}' is not a valid port.")

    def representation(self) -> int:
        return self.port


@attr.s(frozen=True)
class IncrementalPrimaryKeyAttribute(PrimaryKeyAttribute):
    id: int = attr.ib(converter=_to_int)

    @id.validator
    def _check_id(self, _field: attr.Attribute, value: typing.Any) -> None:
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise AttributeException(f"The '{value}' is not a valid primary key")

    def representation(self) -> int:
        return self.id


def generate_primary_key() -> str:
    return hashlib.sha256(secrets.token_hex(32).encode("ascii")).hexdigest()


@attr.s(frozen=True)
class GeneratedPrimaryKeyAttribute(PrimaryKeyAttribute):
    id: str = attr.ib(factory=generate_primary_key, validator=_must_match(r"^[a-f0-9]{64}$", "primary key"))

    def representation(self) -> str:
        return self.id


def _to_bool(value: typing.Any) -> typing.Any:
    if isinstance(value, bool):
        return value
    if value in (0, 1, "0", "1"):
        return bool(int(value))
    raise AttributeException(f"The value '{value}' is not a valid flag.")


@attr.s(frozen=True)
class ActiveAttribute(Attribute):
    active: bool = attr.ib(default=True, converter=_to_bool)

    def __bool__(self) -> bool:
        return self.active

    def representation(self) -> bool:
        return self.active


DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _to_datetime(value: typing.Any) -> datetime:
    if value is None:
        return datetime.now().replace(microsecond=0)
    if isinstance(value, datetime):
        return value.replace(microsecond=0, tzinfo=None)
    if isinstance(value, str):
        try:
            return datetime.strptime(value, DATE_FORMAT)
        except ValueError as e:
            raise AttributeException(f"The value '{value}' is not a valid date.") from e
    raise AttributeException(f"The value '{value}' is not a valid date.")


@attr.s(frozen=True, order=True)
class DateAttribute(Attribute):
    value: datetime = attr.ib(default=None, converter=_to_datetime)

    def add(self, interval: timedelta) -> "DateAttribute":
        return DateAttribute(self.value + interval)

    def representation(self) -> str:
        return self.value.strftime(DATE_FORMAT)
