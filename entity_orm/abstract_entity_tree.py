import abc
import inspect
import typing
from collections import deque

import attr
import inflection

from entity_orm.attributes import Attribute
from entity_orm.entity import Entity, Identity


BUILTIN_TYPES = (bool, int, float, str)


class UnsupportedField(TypeError):
    pass


def _is_generic(field_type: typing.Type) -> bool:
    return hasattr(field_type, "__origin__")


def _get_wrapped_type(wrapped_type: typing.Any) -> typing.Type:
    return wrapped_type.__args__[0]


def _is_field_nullable(field_type: typing.Type) -> bool:
    return (
        _is_generic(field_type)
        and field_type.__origin__ == typing.Union
        and len(field_type.__args__) == 2
        and isinstance(None, field_type.__args__[1])
    )


def _is_identity(field_type: typing.Type) -> bool:
    return getattr(field_type, "__origin__", None) == Identity


def _is_subclass(field_type: typing.Any, parent: typing.Type) -> bool:
    return inspect.isclass(field_type) and issubclass(field_type, parent)


def _required_arguments(attribute_type: typing.Type[Attribute]) -> int:
    parameters = list(inspect.signature(attribute_type).parameters.values())
    return sum(
        1
        for parameter in parameters
        if parameter.default is inspect.Parameter.empty
        and parameter.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
    )


class Visitor:
    def traverse_from(self, node: "Node") -> None:
        node.accept(self)
        for child in node.children:
            self.traverse_from(child)
        node.farewell(self)

    def visit_field(self, field: "FieldNode") -> None:
        pass

    def leave_field(self, field: "FieldNode") -> None:
        pass

    def visit_attribute(self, attribute: "AttributeNode") -> None:
        pass

    def leave_attribute(self, attribute: "AttributeNode") -> None:
        pass

    def visit_reference(self, reference: "ReferenceNode") -> None:
        pass

    def leave_reference(self, reference: "ReferenceNode") -> None:
        pass

    def visit_entity(self, entity: "EntityNode") -> None:
        pass

    def leave_entity(self, entity: "EntityNode") -> None:
        pass


@attr.s(auto_attribs=True)
class Node(abc.ABC):
    name: str
    type: typing.Type
    column: str = ""
    nullable: bool = False
    optional: bool = False
    is_identity: bool = False
    children: typing.List["Node"] = attr.Factory(list)

    @abc.abstractmethod
    def accept(self, visitor: Visitor) -> None:
        pass

    @abc.abstractmethod
    def farewell(self, visitor: Visitor) -> None:
        pass


class FieldNode(Node):
    """A builtin scalar stored as is."""

    def accept(self, visitor: Visitor) -> None:
        visitor.visit_field(self)

    def farewell(self, visitor: Visitor) -> None:
        visitor.leave_field(self)


class AttributeNode(Node):
    """A value object stored through its representation."""

    def accept(self, visitor: Visitor) -> None:
        visitor.visit_attribute(self)

    def farewell(self, visitor: Visitor) -> None:
        visitor.leave_attribute(self)


class ReferenceNode(Node):
    """A nested entity stored as the key of its own row."""

    def accept(self, visitor: Visitor) -> None:
        visitor.visit_reference(self)

    def farewell(self, visitor: Visitor) -> None:
        visitor.leave_reference(self)


class EntityNode(Node):
    def accept(self, visitor: Visitor) -> None:
        visitor.visit_entity(self)

    def farewell(self, visitor: Visitor) -> None:
        visitor.leave_entity(self)

    @property
    def identity(self) -> Node:
        return next(child for child in self.children if child.is_identity)

    @property
    def columns(self) -> typing.Dict[str, Node]:
        return {child.column: child for child in self.children}


@attr.s(auto_attribs=True)
class AbstractEntityTree:
    root: EntityNode

    def __iter__(self) -> typing.Generator[Node, None, None]:
        def iterate_dfs() -> typing.Generator[Node, None, None]:
            nodes_left: typing.Deque[Node] = deque([self.root])

            while nodes_left:
                current = nodes_left.pop()
                yield current
                nodes_left.extend(current.children[::-1])

        return iterate_dfs()


def parse_field(owner: typing.Type[Entity], field: attr.Attribute) -> Node:
    field_type = field.type
    is_identity = False
    nullable = False

    if _is_identity(field_type):
        field_type = _get_wrapped_type(field_type)
        is_identity = True
    if _is_field_nullable(field_type):
        field_type = _get_wrapped_type(field_type)
        nullable = True

    optional = field.default is not attr.NOTHING
    if optional and field.default is None:
        nullable = True

    kwargs = dict(
        name=field.name,
        type=field_type,
        column=field.metadata.get("column", inflection.underscore(field.name)),
        nullable=nullable,
        optional=optional,
        is_identity=is_identity,
    )

    if _is_generic(field_type):
        raise UnsupportedField(f"{owner.__name__}.{field.name}: unhandled generic type {field_type}")
    if field_type in BUILTIN_TYPES:
        return FieldNode(**kwargs)
    if _is_subclass(field_type, Entity):
        return ReferenceNode(**kwargs)
    if _is_subclass(field_type, Attribute):
        if _required_arguments(field_type) > 1:
            raise UnsupportedField(
                f"{owner.__name__}.{field.name}: {field_type.__name__} needs more than one argument"
            )
        return AttributeNode(**kwargs)
    raise UnsupportedField(f"{owner.__name__}.{field.name}: {field_type} is neither a builtin, Attribute nor Entity")


def build(root: typing.Type[Entity]) -> AbstractEntityTree:
    children = [parse_field(root, field) for field in attr.fields(root)]
    root_node = EntityNode(name=inflection.underscore(root.__name__), type=root, children=children)
    return AbstractEntityTree(root_node)
