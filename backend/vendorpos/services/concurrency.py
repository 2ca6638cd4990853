# Overview: Row locking, conditional updates and retry helpers for write paths.

from __future__ import annotations

import logging
import time

from sqlalchemy import text, update
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db
from ..models import StockItem

logger = logging.getLogger(__name__)


def begin_immediate() -> None:
    """
    Take the SQLite write lock up front so the read-validate-write in a
    checkout cannot interleave with another writer. No-op on other dialects,
    which honor SELECT ... FOR UPDATE instead.
    """
    if db.engine.dialect.name == "sqlite":
        db.session.execute(text("BEGIN IMMEDIATE"))


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def decrement_stock_if_available(vendor_id: int, stock_item_id: int, quantity: int) -> bool:
    """
    Compare-and-swap decrement: only applies when at least `quantity` units
    are on hand. Returns False when the row did not match (sold out
    concurrently, wrong vendor, or deleted).
    """
    stmt = (
        update(StockItem)
        .where(
            StockItem.id == stock_item_id,
            StockItem.vendor_id == vendor_id,
            StockItem.quantity >= quantity,
        )
        .values(
            quantity=StockItem.quantity - quantity,
            version_id=StockItem.version_id + 1,
        )
        .execution_options(synchronize_session=False)
    )
    result = db.session.execute(stmt)
    return result.rowcount == 1


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (optimistic locking conflicts).
    """
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            if attempt >= attempts - 1:
                raise
            logger.warning("Retrying after concurrency failure (attempt %d/%d): %s", attempt + 1, attempts, exc)
            time.sleep(backoff_base * (2 ** attempt))
