import enum


class EntityState(enum.Enum):
    TRANSIENT = "TRANSIENT"  # created, never stored
    PERSISTENT = "PERSISTENT"  # in sync with its row
    DETACHED = "DETACHED"  # stored, then modified in memory
    REMOVED = "REMOVED"  # row deleted


MANAGER_STATES = frozenset({EntityState.PERSISTENT, EntityState.REMOVED})


class Capability:
    """Permission to move entities into the states owned by the manager.

    Only the instance created below is honoured; the entity manager is the
    only module importing it.
    """

    __slots__ = ()

    def __repr__(self) -> str:
        return "<Capability>"


_manager_capability = Capability()


def is_manager_capability(capability: object) -> bool:
    return capability is _manager_capability
