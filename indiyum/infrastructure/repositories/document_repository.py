import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, List

from indiyum.core.clock import now_ms
from indiyum.domain.models import Document, Order
from indiyum.interfaces.IDocumentStore import IDocumentStore
from indiyum.interfaces.IOrderRepository import IOrderRepository


def find_order_index(document: Document, key: str) -> int:
    """
    Position of the order a caller means by ``key``.
    Gateway order ids win; receipts are only a fallback. -1 when nothing matches.
    """
    for i, order in enumerate(document.orders):
        if order.razorpay_order_id == key:
            return i
    for i, order in enumerate(document.orders):
        if order.receipt == key:
            return i
    return -1


def next_record_id(records: list) -> int:
    """Millisecond timestamp, bumped past the largest id already stored."""
    candidate = now_ms()
    if records:
        candidate = max(candidate, max(r.id for r in records) + 1)
    return candidate


class DocumentRepository(IOrderRepository):
    """
    Load-mutate-save access to the document store.
    All writers go through ``edit()``, which holds one lock for the whole
    cycle, so two requests can no longer overwrite each other's changes.
    """

    def __init__(self, store: IDocumentStore):
        self.store = store
        self._lock = asyncio.Lock()

    async def read(self) -> Document:
        return await asyncio.to_thread(self.store.load)

    @asynccontextmanager
    async def edit(self) -> AsyncIterator[Document]:
        async with self._lock:
            document = await asyncio.to_thread(self.store.load)
            yield document
            # Only reached when the block exits cleanly.
            await asyncio.to_thread(self.store.save, document)

    async def list_orders(self) -> List[Order]:
        document = await self.read()
        return document.orders

