from dagviewer.core.dto import ResolvedDocument
from dagviewer.core.errors import NotFoundError
from dagviewer.ports.document_directory_port import DocumentDirectoryPort
from typing import Dict, Optional

class StaticDirectoryAdapter(DocumentDirectoryPort):
    def __init__(self, documents: Optional[Dict[str, ResolvedDocument]] = None):
        self._docs = dict(documents or {})

    def resolve_document(self, identifier):
        resolved = self._docs.get(identifier)
        if resolved is None:
            raise NotFoundError(f"no DID document found: {identifier}")
        return resolved
