from abc import ABC, abstractmethod
from indiyum.domain.models import Document

class IDocumentStore(ABC):
    @abstractmethod
    def load(self) -> Document:
        pass

    @abstractmethod
    def save(self, document: Document) -> None:
        pass
