from entity_orm.storages.sqlalchemy.dao import GenericDao, Record
from entity_orm.storages.sqlalchemy.database import Database
from entity_orm.storages.sqlalchemy.metadata import MetadataCache, TableMetadata


__all__ = ["Database", "GenericDao", "MetadataCache", "Record", "TableMetadata"]
