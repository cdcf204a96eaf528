from __future__ import annotations

from typing import FrozenSet, Iterable, List

from dagviewer.core.dto import Document


class SeedSet:
    """
    Identifiers under analysis. Grows while seeds are resolved, then frozen.

    Only direct controllers of the seed documents are added; controllers of
    those controllers are not followed.
    """

    def __init__(self, identifiers: Iterable[str] = ()) -> None:
        self._ids: List[str] = []
        self._frozen = False
        for i in identifiers:
            self.add(i)

    def add(self, identifier: str) -> None:
        if self._frozen:
            raise RuntimeError("SeedSet is frozen")
        if identifier not in self._ids:
            self._ids.append(identifier)

    def add_document(self, document: Document) -> None:
        self.add(document.id)
        for c in document.controllers:
            self.add(c)

    def freeze(self) -> FrozenSet[str]:
        self._frozen = True
        return frozenset(self._ids)

    @property
    def identifiers(self) -> List[str]:
        return list(self._ids)


def is_relevant(document: Document, seeds: FrozenSet[str]) -> bool:
    if document.id in seeds:
        return True
    return any(c in seeds for c in document.controllers)
