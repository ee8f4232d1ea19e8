import threading
from typing import Dict, Type

import attr

from entity_orm.abstract_entity_tree import AbstractEntityTree, build
from entity_orm.entity import Entity


@attr.s(auto_attribs=True)
class Registry:
    entities_to_aets: Dict[Type[Entity], AbstractEntityTree] = attr.Factory(dict)
    _lock: threading.Lock = attr.ib(factory=threading.Lock, init=False, repr=False, eq=False)

    def tree_for(self, entity_cls: Type[Entity]) -> AbstractEntityTree:
        try:
            return self.entities_to_aets[entity_cls]
        except KeyError:
            pass
        with self._lock:
            if entity_cls not in self.entities_to_aets:
                self.entities_to_aets[entity_cls] = build(entity_cls)
            return self.entities_to_aets[entity_cls]
