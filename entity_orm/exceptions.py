class OrmError(Exception):
    pass


class AttributeException(OrmError, ValueError):
    """An attribute was given a value it can not represent."""


class EntityException(OrmError):
    """A business rule spanning several fields of an entity was violated."""


class EntityManagerException(OrmError):
    """The declared shape of an entity does not match what is stored.

    These are schema or implementation defects, not user input errors. The
    public entity API converts them to ``None``/``False`` after logging them.
    """


class EntityNotFound(EntityManagerException):
    pass
