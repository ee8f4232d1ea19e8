from entity_orm.domain.daos import RequestDao, SessionDao, UserDao
from entity_orm.domain.entities import Request, Session, User
from entity_orm.domain.schema import metadata


__all__ = ["Request", "RequestDao", "Session", "SessionDao", "User", "UserDao", "metadata"]
