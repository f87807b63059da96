from abc import ABC, abstractmethod
from typing import Optional
from indiyum.domain.models import RemoteOrder

class IPaymentGateway(ABC):
    @property
    @abstractmethod
    def key_id(self) -> Optional[str]:
        pass

    @abstractmethod
    async def create_remote_order(self, amount_minor: int, currency: str, receipt: str) -> RemoteOrder:
        pass
