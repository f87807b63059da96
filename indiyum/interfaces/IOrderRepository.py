from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager
from typing import List
from indiyum.domain.models import Document, Order

class IOrderRepository(ABC):
    @abstractmethod
    async def read(self) -> Document:
        pass

    @abstractmethod
    def edit(self) -> AbstractAsyncContextManager[Document]:
        pass

    @abstractmethod
    async def list_orders(self) -> List[Order]:
        pass
