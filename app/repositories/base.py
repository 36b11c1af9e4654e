# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Shared transaction plumbing for the SQL repositories.

Every repository method accepts an optional ``conn``; when given, the
statement joins the caller's transaction, otherwise a short one is opened.
Driver errors surface as ConflictError (constraint violations) or
StoreUnavailableError (everything else).
"""

from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app.core.errors import ConflictError, StoreUnavailableError
from app.core.logging import get_logger

logger = get_logger(__name__)


class BaseRepository:
    def __init__(self, engine: Engine):
        self._engine = engine

    @property
    def engine(self) -> Engine:
        return self._engine

    @contextmanager
    def transaction(self, conn: Optional[Connection] = None) -> Iterator[Connection]:
        if conn is not None:
            yield conn
            return
        try:
            with self._engine.begin() as own:
                yield own
        except IntegrityError as exc:
            logger.warning("Constraint violation: %s", exc.orig)
            raise ConflictError("Record conflicts with an existing record") from exc
        except SQLAlchemyError as exc:
            logger.error("Store failure: %s", exc, exc_info=True)
            raise StoreUnavailableError("Membership store is unavailable") from exc

    def verify_connection(self) -> bool:
        try:
            with self._engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError:
            return False
