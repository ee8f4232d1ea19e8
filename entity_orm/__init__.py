from entity_orm.entity import Entity, Identity, column
from entity_orm.exceptions import (
    AttributeException,
    EntityException,
    EntityManagerException,
    EntityNotFound,
    OrmError,
)
from entity_orm.manager import EntityManager
from entity_orm.state import EntityState


__all__ = [
    "AttributeException",
    "Entity",
    "EntityException",
    "EntityManager",
    "EntityManagerException",
    "EntityNotFound",
    "EntityState",
    "Identity",
    "OrmError",
    "column",
]
