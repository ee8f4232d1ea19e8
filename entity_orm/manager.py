"""
Maps entities to rows and back.

``init`` hydrates an entity (and, recursively, the entities it references)
from the row matching a unique key; ``flush`` flattens an entity graph and
inserts or updates it inside one transaction; ``delete`` removes the row of a
persistent entity. Lifecycle states are only moved to PERSISTENT or REMOVED
from here.
"""
import contextlib
import logging
import threading
import typing

import attr
from sqlalchemy.exc import SQLAlchemyError

from entity_orm.abstract_entity_tree import AbstractEntityTree, UnsupportedField
from entity_orm.attributes import Attribute
from entity_orm.entity import Entity
from entity_orm.exceptions import EntityManagerException, EntityNotFound
from entity_orm.registry import Registry
from entity_orm.state import EntityState, _manager_capability
from entity_orm.storages.sqlalchemy.dao import GenericDao
from entity_orm.storages.sqlalchemy.database import Database
from entity_orm.storages.sqlalchemy.populating_aggregates.visitor import PopulatingAggregateVisitor
from entity_orm.storages.sqlalchemy.populating_model.visitor import ModelPopulatingVisitor


logger = logging.getLogger(__name__)

E = typing.TypeVar("E", bound=Entity)
IdentityKey = typing.Tuple[typing.Type[Entity], typing.Any]


class IdentityMap:
    """Entities already hydrated in the current unit of work, by type and primary key."""

    def __init__(self) -> None:
        self._entities: typing.Dict[IdentityKey, Entity] = {}

    def get(self, entity_cls: typing.Type[Entity], key: typing.Any) -> typing.Optional[Entity]:
        return self._entities.get((entity_cls, key))

    def add(self, entity_cls: typing.Type[Entity], key: typing.Any, entity: Entity) -> None:
        self._entities[(entity_cls, key)] = entity


@attr.s(auto_attribs=True)
class _FlushPlan:
    """Entities written by one flush, with the id each one had before."""

    written: typing.List[typing.Tuple[Entity, typing.Any]] = attr.Factory(list)

    def __contains__(self, entity: Entity) -> bool:
        return any(written is entity for written, _ in self.written)

    def add(self, entity: Entity, previous_id: typing.Any) -> None:
        self.written.append((entity, previous_id))

    def commit(self) -> None:
        for entity, _ in self.written:
            entity.set_state(EntityState.PERSISTENT, _manager_capability)

    def rollback(self) -> None:
        for entity, previous_id in reversed(self.written):
            entity.set_id(previous_id, _manager_capability)


class EntityManager:
    def __init__(self, database: Database, registry: typing.Optional[Registry] = None) -> None:
        self._database = database
        self._registry = registry or Registry()
        self._local = threading.local()

    @property
    def database(self) -> Database:
        return self._database

    def _tree(self, entity_cls: typing.Type[Entity]) -> AbstractEntityTree:
        try:
            return self._registry.tree_for(entity_cls)
        except UnsupportedField as e:
            raise EntityManagerException(f"{entity_cls.__name__} can't be mapped") from e

    def _dao(self, entity_cls: typing.Type[Entity]) -> GenericDao:
        dao_cls = getattr(entity_cls, "__dao__", None)
        if dao_cls is None or not (isinstance(dao_cls, type) and issubclass(dao_cls, GenericDao)):
            raise EntityManagerException(f"Couldn't instantiate object dao from {entity_cls.__name__}")
        return dao_cls(self._database)

    @contextlib.contextmanager
    def unit_of_work(self) -> typing.Iterator[IdentityMap]:
        """Shares hydrated entities between every ``init`` issued inside the block."""
        current = getattr(self._local, "identity_map", None)
        if current is not None:
            yield current
            return

        self._local.identity_map = IdentityMap()
        try:
            yield self._local.identity_map
        finally:
            self._local.identity_map = None

    def init(self, entity_cls: typing.Type[E], key: typing.Any) -> E:
        if not (isinstance(entity_cls, type) and issubclass(entity_cls, Entity)):
            raise EntityManagerException(f"{entity_cls!r} is not an entity")
        with self.unit_of_work() as identity_map:
            return self._init(entity_cls, key, identity_map)

    def _init(self, entity_cls: typing.Type[E], key: typing.Any, identity_map: IdentityMap) -> E:
        tree = self._tree(entity_cls)
        dao = self._dao(entity_cls)

        if isinstance(key, (Attribute, Entity)):
            key = key.representation()
        try:
            unique_field = entity_cls.get_unique_field_for(key)
            unique_column = next(child.column for child in tree.root.children if child.name == unique_field)
        except StopIteration:
            raise EntityManagerException(f"{entity_cls.__name__} has no field {unique_field}") from None

        row = dao.read({unique_column: key})
        if row is None:
            raise EntityNotFound(f"No {entity_cls.__name__} matching {key!r} was found")

        identity_column = tree.root.identity.column
        primary_key = row.get(identity_column)
        if primary_key is not None:
            known = identity_map.get(entity_cls, primary_key)
            if known is not None:
                return typing.cast(E, known)

        visitor = PopulatingAggregateVisitor(
            row, lambda child_cls, raw: self._init(child_cls, raw, identity_map)
        )
        try:
            visitor.traverse_from(tree.root)
        except EntityManagerException as e:
            raise EntityManagerException(f"Unable to process the parameters of {entity_cls.__name__}") from e

        entity = typing.cast(E, visitor.result)
        entity.set_state(EntityState.PERSISTENT, _manager_capability)
        if primary_key is not None:
            identity_map.add(entity_cls, primary_key, entity)
        logger.debug("Loaded %s %r", entity_cls.__name__, primary_key)
        return entity

    def flush(self, entity: Entity) -> bool:
        """Writes ``entity`` and the entities it references.

        Returns ``False`` when there is nothing to synchronize, ``True`` once
        the graph is stored; raises `EntityManagerException` otherwise, in
        which case nothing was written.
        """
        if entity.state in (EntityState.PERSISTENT, EntityState.REMOVED):
            return False

        plan = _FlushPlan()
        try:
            with self._database.transaction():
                self._flush(entity, plan)
        except SQLAlchemyError as e:
            plan.rollback()
            logger.exception("Flush of %s failed", type(entity).__name__)
            raise EntityManagerException(f"Unable to flush {type(entity).__name__}") from e
        except Exception:
            plan.rollback()
            raise
        plan.commit()
        return True

    def _flush(self, entity: Entity, plan: _FlushPlan) -> None:
        state = entity.state
        if state in (EntityState.PERSISTENT, EntityState.REMOVED) or entity in plan:
            return

        tree = self._tree(type(entity))
        visitor = ModelPopulatingVisitor(entity, lambda child: self._flush(child, plan))
        visitor.traverse_from(tree.root)
        record = visitor.result
        dao = self._dao(type(entity))

        previous_id = entity.get_id()
        if state is EntityState.TRANSIENT:
            new_id = dao.create_returning_id(record)
            if new_id is None:
                raise EntityManagerException(f"Unable to insert {type(entity).__name__}")
            if previous_id is None:
                identity_node = tree.root.identity
                identity = (
                    identity_node.type.new_instance(new_id)
                    if issubclass(identity_node.type, Attribute)
                    else identity_node.type(new_id)
                )
                if identity is None:
                    raise EntityManagerException(f"{new_id!r} is not a valid {identity_node.type.__name__}")
                entity.set_id(identity, _manager_capability)
        elif state is EntityState.DETACHED:
            if not dao.update(record):
                raise EntityManagerException(f"Unable to update {type(entity).__name__}")
        plan.add(entity, previous_id)
        logger.debug("Flushed %s %r", type(entity).__name__, entity.representation())

    def delete(self, entity: Entity) -> bool:
        if entity.state is not EntityState.PERSISTENT:
            return False

        tree = self._tree(type(entity))
        dao = self._dao(type(entity))
        deleted = dao.delete({tree.root.identity.column: entity.representation()})
        if deleted:
            entity.set_state(EntityState.REMOVED, _manager_capability)
        return deleted
