import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError

from coursepath.exceptions import PersistenceError


logger = logging.getLogger(__name__)


@contextmanager
def translate_store_errors(operation: str) -> Iterator[None]:
    """Re-raise driver/ORM failures inside the block as PersistenceError."""
    try:
        yield
    except SQLAlchemyError as e:
        logger.exception(f"Store failure while trying to {operation}")
        msg = f"Failed to {operation}"
        raise PersistenceError(msg) from e
