from __future__ import annotations

from typing import Any, Dict
from urllib.parse import quote

from dagviewer.adapters.nuts_http import NutsHttpClient
from dagviewer.config import settings
from dagviewer.core.dto import ResolvedDocument, TransactionHash
from dagviewer.core.errors import DagViewerError, NotFoundError, TransportError
from dagviewer.ports.document_directory_port import DocumentDirectoryPort
from dagviewer.services.document_decoder import parse_document


class NutsVDRAdapter(NutsHttpClient, DocumentDirectoryPort):

    def resolve_document(self, identifier: str) -> ResolvedDocument:
        data = self._get_json(f"{settings.NUTS_VDR_PATH}/did/{quote(identifier, safe=':')}")
        if not isinstance(data, dict) or not data.get("document"):
            raise NotFoundError(f"no DID document found: {identifier}")

        meta: Dict[str, Any] = data.get("documentMetadata") or {}
        try:
            sources = [TransactionHash.parse_hex(str(h)) for h in meta.get("sourceTransactions") or []]
        except DagViewerError as e:
            raise TransportError(f"invalid sourceTransactions for {identifier}: {e}") from e

        return ResolvedDocument(document=parse_document(data["document"]), source_transactions=sources)
