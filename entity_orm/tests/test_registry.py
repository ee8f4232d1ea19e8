import typing
from concurrent.futures import ThreadPoolExecutor

from _pytest.monkeypatch import MonkeyPatch

from entity_orm import registry as registry_module
from entity_orm.abstract_entity_tree import AbstractEntityTree
from entity_orm.domain.entities import Request, Session, User
from entity_orm.entity import Entity
from entity_orm.registry import Registry


def test_builds_one_tree_per_entity(monkeypatch: MonkeyPatch) -> None:
    built: typing.List[typing.Type[Entity]] = []
    original = registry_module.build

    def counting_build(entity_cls: typing.Type[Entity]) -> AbstractEntityTree:
        built.append(entity_cls)
        return original(entity_cls)

    monkeypatch.setattr(registry_module, "build", counting_build)
    registry = Registry()

    with ThreadPoolExecutor(max_workers=8) as executor:
        trees = list(executor.map(lambda _: registry.tree_for(Session), range(32)))
    registry.tree_for(User)
    registry.tree_for(User)

    assert built == [Session, User]
    assert all(tree is trees[0] for tree in trees)
    assert set(registry.entities_to_aets) == {Session, User}


def test_domain_entities_are_mapped_to_their_columns() -> None:
    registry = Registry()

    assert list(registry.tree_for(User).root.columns) == ["user_id", "fullname", "email", "hash", "salt", "active"]
    assert list(registry.tree_for(Request).root.columns) == ["request_id", "ip", "port", "access_date"]
    assert list(registry.tree_for(Session).root.columns) == ["session_id", "user_id", "request_id"]
