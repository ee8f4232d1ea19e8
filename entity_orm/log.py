import logging
import os
from typing import Dict, Optional

from entity_orm.config import Settings, get_settings


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s (%(filename)s:%(lineno)d): %(message)s"

# logger name -> file inside LOG_DIRECTORY
LOG_FILES: Dict[str, str] = {
    "entity_orm.attributes": "attribute.log",
    "entity_orm.storages": "sql.log",
    "entity_orm.manager": "entity_manager.log",
    "entity_orm.entity": "entity_manager.log",
}


def configure_logging(settings: Optional[Settings] = None) -> logging.Logger:
    settings = settings or get_settings()
    root = logging.getLogger("entity_orm")
    root.setLevel(settings.LOG_LEVEL.upper())

    if not settings.LOG_DIRECTORY:
        return root

    os.makedirs(settings.LOG_DIRECTORY, exist_ok=True)
    formatter = logging.Formatter(LOG_FORMAT)
    handlers: Dict[str, logging.FileHandler] = {}
    for logger_name, filename in LOG_FILES.items():
        path = os.path.abspath(os.path.join(settings.LOG_DIRECTORY, filename))
        logger = logging.getLogger(logger_name)
        if any(getattr(h, "baseFilename", None) == path for h in logger.handlers):
            continue
        handler = handlers.get(path)
        if handler is None:
            handler = logging.FileHandler(path, encoding="utf-8")
            handler.setFormatter(formatter)
            handlers[path] = handler
        logger.addHandler(handler)
    return root
