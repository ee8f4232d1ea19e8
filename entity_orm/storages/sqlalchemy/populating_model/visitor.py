import typing

from entity_orm.abstract_entity_tree import AttributeNode, FieldNode, ReferenceNode, Visitor
from entity_orm.attributes import Attribute
from entity_orm.entity import Entity
from entity_orm.exceptions import EntityManagerException
from entity_orm.storages.sqlalchemy import types

ReferenceFlusher = typing.Callable[[Entity], None]


class ModelPopulatingVisitor(Visitor):
    """Flattens an entity into a ``{column: value}`` record.

    Referenced entities are handed to ``flush_reference`` before their key is
    read, so that a new child has an id by the time its parent is written.
    """

    def __init__(self, entity: Entity, flush_reference: ReferenceFlusher) -> None:
        self._entity = entity
        self._flush_reference = flush_reference
        self._result: typing.Dict[str, typing.Any] = {}

    @property
    def result(self) -> typing.Dict[str, typing.Any]:
        return self._result

    def visit_field(self, field: FieldNode) -> None:
        value = getattr(self._entity, field.name)
        if isinstance(value, (Attribute, Entity)):
            value = value.representation()
        self._result[field.column] = types.to_storage(value)

    def visit_attribute(self, attribute: AttributeNode) -> None:
        value = getattr(self._entity, attribute.name)
        if value is not None and not isinstance(value, Attribute):
            raise EntityManagerException(
                f"{type(self._entity).__name__}.{attribute.name} holds {type(value).__name__}, not an Attribute"
            )
        self._result[attribute.column] = None if value is None else value.representation()

    def visit_reference(self, reference: ReferenceNode) -> None:
        value = getattr(self._entity, reference.name)
        if value is None:
            self._result[reference.column] = None
            return
        if not isinstance(value, Entity):
            raise EntityManagerException(
                f"{type(self._entity).__name__}.{reference.name} holds {type(value).__name__}, not an Entity"
            )
        self._flush_reference(value)
        self._result[reference.column] = value.representation()
