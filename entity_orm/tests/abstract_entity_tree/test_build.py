import typing

import pytest

from entity_orm import abstract_entity_tree
from entity_orm.abstract_entity_tree import (
    AbstractEntityTree,
    AttributeNode,
    EntityNode,
    FieldNode,
    ReferenceNode,
    UnsupportedField,
)
from entity_orm.attributes import Attribute, DateAttribute, IncrementalPrimaryKeyAttribute, NameAttribute
from entity_orm.entity import Entity, Identity, column


class Rider(Entity):
    riderId: Identity[IncrementalPrimaryKeyAttribute] = column("rider_id", default=None)
    name: NameAttribute


class Dragon(Entity):
    name: Identity[str]
    age: int
    wingSpan: typing.Optional[float]
    born: DateAttribute = column("born_at", factory=DateAttribute)
    rider: typing.Optional[Rider] = column("rider_id", default=None)
    tamer: Rider = column("tamer_id")


def test_builds_flat_entity() -> None:
    result = abstract_entity_tree.build(Rider)

    assert result == AbstractEntityTree(
        root=EntityNode(
            name="rider",
            type=Rider,
            children=[
                AttributeNode(
                    name="riderId",
                    type=IncrementalPrimaryKeyAttribute,
                    column="rider_id",
                    nullable=True,
                    optional=True,
                    is_identity=True,
                ),
                AttributeNode(name="name", type=NameAttribute, column="name"),
            ],
        )
    )


def test_builds_entity_with_references() -> None:
    result = abstract_entity_tree.build(Dragon)

    assert result.root.name == "dragon"
    assert result.root.children == [
        FieldNode(name="name", type=str, column="name", is_identity=True),
        FieldNode(name="age", type=int, column="age"),
        FieldNode(name="wingSpan", type=float, column="wing_span", nullable=True),
        AttributeNode(name="born", type=DateAttribute, column="born_at", optional=True),
        ReferenceNode(name="rider", type=Rider, column="rider_id", nullable=True, optional=True),
        ReferenceNode(name="tamer", type=Rider, column="tamer_id"),
    ]
    assert result.root.identity.name == "name"
    assert list(result.root.columns) == ["name", "age", "wing_span", "born_at", "rider_id", "tamer_id"]


def test_references_are_not_expanded() -> None:
    result = abstract_entity_tree.build(Dragon)

    assert all(not node.children for node in result.root.children)


class Coordinates(Attribute):
    def __init__(self, latitude: float, longitude: float) -> None:
        self.latitude = latitude
        self.longitude = longitude

    def representation(self) -> str:
        return f"{self.latitude},{self.longitude}"


class Lair(Entity):
    id: Identity[int]
    coordinates: Coordinates


class Hoard(Entity):
    id: Identity[int]
    coins: typing.List[int]


class Den(Entity):
    id: Identity[int]
    opened: bytes


@pytest.mark.parametrize("entity_cls", [Lair, Hoard, Den])
def test_unsupported_fields_are_rejected(entity_cls: typing.Type[Entity]) -> None:
    with pytest.raises(UnsupportedField):
        abstract_entity_tree.build(entity_cls)
