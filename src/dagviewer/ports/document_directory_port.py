from __future__ import annotations

from abc import ABC, abstractmethod

from dagviewer.core.dto import ResolvedDocument


class DocumentDirectoryPort(ABC):

    @abstractmethod
    def resolve_document(self, identifier: str) -> ResolvedDocument:
        raise NotImplementedError
