import typing

from entity_orm.abstract_entity_tree import AttributeNode, EntityNode, FieldNode, Node, ReferenceNode, Visitor
from entity_orm.entity import Entity
from entity_orm.exceptions import AttributeException, EntityException, EntityManagerException
from entity_orm.storages.sqlalchemy import types

ReferenceLoader = typing.Callable[[typing.Type[Entity], typing.Any], Entity]


class PopulatingAggregateVisitor(Visitor):
    """Builds an entity out of one row, loading referenced entities through ``load_reference``."""

    def __init__(self, row: typing.Mapping[str, typing.Any], load_reference: ReferenceLoader) -> None:
        self._row = row
        self._load_reference = load_reference
        self._arguments: typing.Dict[str, typing.Any] = {}
        self._result: typing.Optional[Entity] = None

    @property
    def result(self) -> Entity:
        if self._result is None:
            raise EntityManagerException("No entity was populated")
        return self._result

    def _raw(self, node: Node) -> typing.Tuple[bool, typing.Any]:
        """Returns whether an argument must be passed for ``node`` and the raw value."""
        if node.column in self._row:
            return True, self._row[node.column]
        if node.nullable:
            return True, None
        if node.optional:
            return False, None
        raise EntityManagerException(f"The {node.name} field is mapped to {node.column}, but the row doesn't have it")

    def visit_field(self, field: FieldNode) -> None:
        present, raw = self._raw(field)
        if not present:
            return
        if raw is None and not field.nullable:
            raise EntityManagerException(f"The {field.column} column is NULL but {field.name} isn't nullable")
        try:
            self._arguments[field.name] = types.from_storage(raw, field.type)
        except (TypeError, ValueError) as e:
            raise EntityManagerException(f"Unable to cast {field.column} to {field.type.__name__}") from e

    def visit_attribute(self, attribute: AttributeNode) -> None:
        present, raw = self._raw(attribute)
        if not present:
            return
        if raw is None:
            if not attribute.nullable:
                raise EntityManagerException(
                    f"The {attribute.column} column is NULL but {attribute.name} isn't nullable"
                )
            self._arguments[attribute.name] = None
            return
        try:
            self._arguments[attribute.name] = attribute.type(raw)
        except AttributeException as e:
            raise EntityManagerException(f"The {attribute.column} column holds an invalid {attribute.type.__name__}") from e

    def visit_reference(self, reference: ReferenceNode) -> None:
        present, raw = self._raw(reference)
        if not present:
            return
        if not raw:
            if not reference.nullable:
                raise EntityManagerException(f"{reference.name} is required but {reference.column} is empty")
            self._arguments[reference.name] = None
            return
        try:
            self._arguments[reference.name] = self._load_reference(reference.type, raw)
        except EntityManagerException as e:
            raise EntityManagerException(
                f"{reference.type.__name__} couldn't be instantiated using a recursive call"
            ) from e

    def leave_entity(self, entity: EntityNode) -> None:
        missing = [
            child.name for child in entity.children if not child.optional and child.name not in self._arguments
        ]
        if missing:
            raise EntityManagerException(f"{entity.type.__name__} is missing arguments: {', '.join(missing)}")
        try:
            self._result = entity.type(**self._arguments)
        except (AttributeException, EntityException, TypeError) as e:
            raise EntityManagerException(f"Couldn't instantiate {entity.type.__name__}") from e
