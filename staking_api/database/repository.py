"""
Staking Record Store

Data access for StakingRecord rows. Every operation opens its own short-lived
session, so a single repository instance can be shared by request handlers
and by the refresh worker threads.
"""

import logging
import threading
from contextlib import nullcontext
from typing import Any, Callable, Dict, List

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ..api.error_handling import StoreError
from ..models.staking import StakingRecord

logger = logging.getLogger(__name__)


class StakingRepository:
    """
    Reads and upserts staking records.

    Objects returned by the repository are detached from their session with
    all columns loaded, ready for `to_dict()`.
    """

    def __init__(self, session_factory: Callable[[], Session], serialize_writes: bool = False):
        """
        Args:
            session_factory: Callable returning a new SQLAlchemy session
            serialize_writes: Run upserts one at a time (SQLite allows a single writer)
        """
        self.session_factory = session_factory
        self._write_lock = threading.Lock() if serialize_writes else None

    @classmethod
    def from_engine(cls, engine, serialize_writes: bool = False) -> "StakingRepository":
        factory = sessionmaker(bind=engine, expire_on_commit=False)
        return cls(factory, serialize_writes=serialize_writes)

    def find_all(self) -> List[StakingRecord]:
        """Return every staking record in insertion order"""
        try:
            with self.session_factory() as session:
                stmt = select(StakingRecord).order_by(StakingRecord.id)
                return list(session.scalars(stmt).all())
        except SQLAlchemyError as e:
            logger.error(f"Failed to fetch staking records: {e}")
            raise StoreError(f"Failed to fetch staking records: {e}", operation="find_all") from e

    def find_by_id_protocol(self, id_protocol: str) -> List[StakingRecord]:
        """Return the records whose natural key matches (zero or one)"""
        try:
            with self.session_factory() as session:
                stmt = select(StakingRecord).where(StakingRecord.id_protocol == id_protocol)
                return list(session.scalars(stmt).all())
        except SQLAlchemyError as e:
            logger.error(f"Failed to fetch staking record {id_protocol}: {e}")
            raise StoreError(
                f"Failed to fetch staking record {id_protocol}: {e}",
                operation="find_by_id_protocol",
            ) from e

    def count(self) -> int:
        try:
            with self.session_factory() as session:
                return session.scalar(select(func.count()).select_from(StakingRecord)) or 0
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to count staking records: {e}", operation="count") from e

    def upsert(
        self,
        key: str,
        update_fields: Dict[str, Any],
        create_fields: Dict[str, Any],
    ) -> StakingRecord:
        """
        Update the record stored under `key`, or insert a new one.

        The lookup, the write and the commit happen in one transaction; on any
        failure the transaction is rolled back and StoreError is raised. An
        insert that loses a race with a concurrent insert of the same key is
        retried once as an update of the winning row.

        Args:
            key: Natural key (`id_protocol`) to look up
            update_fields: Columns applied in place when the record exists
            create_fields: Columns of the new record when it does not exist

        Returns:
            The stored record
        """
        lock = self._write_lock if self._write_lock is not None else nullcontext()
        with lock:
            session = self.session_factory()
            try:
                record = self._find_record(session, key)

                if record is not None:
                    self._apply_update(record, update_fields)
                    action = "updated"
                else:
                    record = StakingRecord(**{**create_fields, "id_protocol": key})
                    session.add(record)
                    action = "created"

                try:
                    session.commit()
                except IntegrityError:
                    if action != "created":
                        raise
                    session.rollback()
                    logger.info(f"Staking record {key} was created concurrently, updating it instead")
                    record = self._find_record(session, key)
                    if record is None:
                        raise
                    self._apply_update(record, update_fields)
                    session.commit()
                    action = "updated"

                logger.debug(f"Staking record {key} {action}")
                return record
            except SQLAlchemyError as e:
                session.rollback()
                logger.error(f"Upsert of staking record {key} failed: {e}")
                raise StoreError(f"Upsert of staking record {key} failed: {e}", operation="upsert") from e
            finally:
                session.close()

    @staticmethod
    def _find_record(session: Session, key: str):
        stmt = select(StakingRecord).where(StakingRecord.id_protocol == key)
        return session.scalars(stmt).one_or_none()

    @staticmethod
    def _apply_update(record: StakingRecord, update_fields: Dict[str, Any]):
        for field, value in update_fields.items():
            setattr(record, field, value)
