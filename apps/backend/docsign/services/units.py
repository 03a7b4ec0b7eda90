"""Per-document units of work."""

import asyncio
import weakref
from contextlib import asynccontextmanager
from contextvars import ContextVar
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession

_locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()
_held: ContextVar[frozenset[str]] = ContextVar("held_documents", default=frozenset())


def _lock_for(document_id: str) -> asyncio.Lock:
    lock = _locks.get(document_id)
    if lock is None:
        lock = asyncio.Lock()
        _locks[document_id] = lock
    return lock


@asynccontextmanager
async def document_unit(db: AsyncSession, document_id: str) -> AsyncIterator[None]:
    """
    Run a block as one serialized transaction on a document.

    Operations on the same document queue on a lock; operations on different
    documents run freely. The session is committed once when the outermost
    unit exits cleanly and rolled back if anything raises, so readers never
    see a half-applied change. A unit entered while the same document is
    already held by the current task joins the outer unit.
    """
    held = _held.get()
    if document_id in held:
        yield
        return

    lock = _lock_for(document_id)
    async with lock:
        token = _held.set(held | {document_id})
        try:
            yield
            await db.commit()
        except BaseException:
            await db.rollback()
            raise
        finally:
            _held.reset(token)
