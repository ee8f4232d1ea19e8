from entity_orm.storages.sqlalchemy.dao import GenericDao


class UserDao(GenericDao):
    table = "users"


class RequestDao(GenericDao):
    pass


class SessionDao(GenericDao):
    pass
