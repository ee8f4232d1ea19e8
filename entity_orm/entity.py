import abc
import logging
import typing

import attr

from entity_orm.exceptions import EntityException, EntityManagerException
from entity_orm.state import MANAGER_STATES, EntityState, is_manager_capability

if typing.TYPE_CHECKING:
    from entity_orm.manager import EntityManager
    from entity_orm.storages.sqlalchemy.dao import GenericDao


logger = logging.getLogger(__name__)


class EntityWithoutIdentity(TypeError):
    pass


class EntityWithManyIdentities(TypeError):
    pass


T = typing.TypeVar("T")
E = typing.TypeVar("E", bound="Entity")


class Identity(typing.Generic[T]):
    @classmethod
    def is_identity(cls, field: attr.Attribute) -> bool:
        return getattr(field.type, "__origin__", None) == cls


def column(name: str, **kwargs: typing.Any) -> typing.Any:
    """Declares the database column an entity field is stored in."""
    metadata = dict(kwargs.pop("metadata", {}))
    metadata["column"] = name
    return attr.ib(metadata=metadata, **kwargs)


class EntityMeta(abc.ABCMeta):
    def __new__(mcs, name: str, bases: tuple, namespace: dict, dao: typing.Optional[type] = None):
        cls = super().__new__(mcs, name, bases, namespace)
        if dao is not None and "__dao__" not in namespace:
            cls.__dao__ = dao
        if name == "Entity" and not bases:
            return cls
        attr_cls = attr.s(auto_attribs=True, kw_only=True)(cls)
        identities = [field for field in attr.fields(attr_cls) if Identity.is_identity(field)]
        if not identities:
            raise EntityWithoutIdentity(name)
        if len(identities) > 1:
            raise EntityWithManyIdentities(name)
        attr_cls.__id_name__ = identities[0].name
        return attr_cls

    def __init__(cls, name: str, bases: tuple, namespace: dict, dao: typing.Optional[type] = None):
        super().__init__(name, bases, namespace)


class Entity(metaclass=EntityMeta):
    """Base of every persistence-aware domain object.

    Subclasses are keyword-only attrs classes; each declares exactly one
    ``Identity[...]`` field and the DAO storing it, e.g.
    ``class User(Entity, dao=UserDao)``.
    """

    __dao__: typing.ClassVar[typing.Optional[typing.Type["GenericDao"]]] = None
    __id_name__: typing.ClassVar[str]
    _manager: typing.ClassVar[typing.Optional["EntityManager"]] = None

    # instance attribute once the state leaves TRANSIENT
    _state = EntityState.TRANSIENT

    @classmethod
    def bind(cls, manager: "EntityManager") -> None:
        cls._manager = manager

    @classmethod
    def manager(cls) -> "EntityManager":
        if cls._manager is None:
            raise EntityManagerException(f"No entity manager bound to {cls.__name__}")
        return cls._manager

    @classmethod
    def get_id_name(cls) -> str:
        return cls.__id_name__

    @classmethod
    def get_unique_field_for(cls, value: typing.Any) -> str:
        """Name of the field to look an entity up by, given a candidate key."""
        return cls.get_id_name()

    def get_id(self) -> typing.Any:
        return getattr(self, self.get_id_name())

    def representation(self) -> typing.Any:
        identity = self.get_id()
        if identity is None:
            return None
        return identity.representation() if hasattr(identity, "representation") else identity

    @property
    def state(self) -> EntityState:
        return self._state

    def set_state(self, state: EntityState, capability: object = None) -> None:
        if self._state is EntityState.REMOVED or state is EntityState.TRANSIENT:
            return
        if state in MANAGER_STATES:
            if not is_manager_capability(capability):
                return
        elif self._state is EntityState.TRANSIENT:
            return
        self._state = state

    def set_id(self, identity: typing.Any, capability: object = None) -> None:
        if is_manager_capability(capability):
            object.__setattr__(self, self.get_id_name(), identity)

    def _set(self, name: str, value: typing.Any) -> None:
        if self._state is EntityState.REMOVED:
            raise EntityException(f"{type(self).__name__} was removed and can not be modified")
        setattr(self, name, value)
        self.set_state(EntityState.DETACHED)

    @classmethod
    def new_instance(cls: typing.Type[E], key: typing.Any) -> typing.Optional[E]:
        try:
            return cls.manager().init(cls, key)
        except EntityManagerException:
            logger.warning("Unable to load %s identified by %r", cls.__name__, key, exc_info=True)
            return None

    def flush(self) -> bool:
        try:
            return self.manager().flush(self)
        except EntityManagerException:
            logger.warning("Unable to flush %s", type(self).__name__, exc_info=True)
            return False

    def killme(self) -> bool:
        try:
            return self.manager().delete(self)
        except EntityManagerException:
            logger.warning("Unable to delete %s", type(self).__name__, exc_info=True)
            return False
