"""
Ledger unit of work.

ledger_transaction() is the single serialization boundary for balance
mutations: it holds the owners' locks from the first read until the
session commits, and rolls everything back on failure. An expense write
and its wallet entries, or both legs of a wallet/reserve transfer, run in
one unit.

Nested calls on the same session (within one task) join the outer unit
and leave the commit to it. They may only name keys the outer unit already
holds; all keys are taken up front, in one sorted pass.
"""

import logging
from contextlib import asynccontextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import AsyncIterator, Optional, Set

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core import locks
from backend.app.core.exceptions import StorageError

logger = logging.getLogger("household_ledger.ledger.unit")


@dataclass
class _Unit:
    db: AsyncSession
    keys: Set[str] = field(default_factory=set)


_active_unit: ContextVar[Optional[_Unit]] = ContextVar("ledger_active_unit", default=None)


@asynccontextmanager
async def ledger_transaction(db: AsyncSession, *keys: str) -> AsyncIterator[None]:
    registry = locks.owner_locks
    unit = _active_unit.get()

    if unit is not None and unit.db is db:
        extra = sorted(set(keys) - unit.keys)
        if extra:
            # Acquiring after the outer keys would break the global lock order
            raise RuntimeError(
                f"Nested ledger unit requested locks {extra} not held by the outer unit; "
                "declare every key on the outermost ledger_transaction"
            )
        yield
        return

    token = _active_unit.set(_Unit(db=db, keys=set(keys)))
    try:
        async with registry.hold(*keys):
            try:
                yield
                await db.commit()
            except SQLAlchemyError as exc:
                await db.rollback()
                logger.error("Ledger transaction on %s failed: %s", sorted(keys), exc)
                raise StorageError(details={"keys": sorted(keys)}) from exc
            except BaseException:
                await db.rollback()
                raise
    finally:
        _active_unit.reset(token)
