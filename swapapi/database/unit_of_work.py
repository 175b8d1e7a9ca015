"""
Unit of work - the single commit/rollback boundary for multi-entity writes.

Services open a unit of work around every operation that mutates more than
one record (shift create/update, subscription purchase, booking completion).
Repositories only flush; the unit of work commits when the block exits
normally and rolls back every participating row when anything is raised.
"""

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from swapapi.core.exceptions import DomainError, InternalError

logger = logging.getLogger(__name__)


class UnitOfWork:
    def __init__(self, db: Session):
        self.db = db

    def _ensure_clean_session(self) -> None:
        """Close out a read transaction left open by earlier queries."""
        if not self.db.is_active:
            self.db.rollback()
            return
        if self.db.in_transaction():
            self.db.rollback()

    @contextmanager
    def begin(self) -> Iterator[Session]:
        self._ensure_clean_session()
        try:
            yield self.db
            self.db.commit()
        except DomainError:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Unit of work rolled back on storage failure: {str(e)}")
            raise InternalError() from e
        except Exception:
            self.db.rollback()
            raise
