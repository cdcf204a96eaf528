from __future__ import annotations

import base64
import binascii
import json
from typing import Any, Dict, List

from dagviewer.adapters.nuts_http import NutsHttpClient
from dagviewer.config import settings
from dagviewer.core.dto import Transaction, TransactionHash
from dagviewer.core.errors import DagViewerError, TransportError
from dagviewer.ports.transaction_store_port import TransactionStorePort


def _b64url_decode(part: str) -> bytes:
    return base64.urlsafe_b64decode(part + "=" * (-len(part) % 4))


def parse_transaction(data: bytes) -> Transaction:
    """
    Parse a network transaction in JWS compact form (header.payload.signature).

    The protected header carries the DAG fields (cty, jwk/kid, lc, prevs), the
    JWS payload is the hex SHA-256 of the transaction payload. The signature is
    not verified.
    """
    try:
        text = data.decode("ascii").strip()
        parts = text.split(".")
        if len(parts) != 3:
            raise ValueError(f"expected 3 JWS parts, got {len(parts)}")
        header: Dict[str, Any] = json.loads(_b64url_decode(parts[0]))
        if not isinstance(header, dict):
            raise ValueError("JWS header is not an object")
        payload_hash = TransactionHash.parse_hex(_b64url_decode(parts[1]).decode("ascii"))
        prevs = header.get("prevs") or []
        if not isinstance(prevs, list):
            raise ValueError("prevs is not a list")
        clock = int(header.get("lc", 0))
        if clock < 0:
            raise ValueError(f"negative Lamport clock: {clock}")
        return Transaction(
            ref=TransactionHash.from_data(text.encode("ascii")),
            payload_type=str(header.get("cty") or ""),
            payload_hash=payload_hash,
            previous=tuple(TransactionHash.parse_hex(str(p)) for p in prevs),
            clock=clock,
            signing_key=header.get("jwk") if isinstance(header.get("jwk"), dict) else None,
            signing_key_id=str(header["kid"]) if header.get("kid") else None,
        )
    except (ValueError, TypeError, RecursionError, binascii.Error, DagViewerError) as e:
        raise TransportError(f"failed to parse transaction: {e}") from e


class NutsNetworkAdapter(NutsHttpClient, TransactionStorePort):

    # ---------- port methods ----------

    def fetch_transaction(self, tx_hash: TransactionHash) -> Transaction:
        resp = self._get(f"{settings.NUTS_NETWORK_PATH}/transaction/{tx_hash}", accept="application/jose")
        return parse_transaction(resp.content)

    def fetch_payload(self, tx_hash: TransactionHash) -> bytes:
        resp = self._get(
            f"{settings.NUTS_NETWORK_PATH}/transaction/{tx_hash}/payload",
            accept="application/octet-stream",
        )
        return resp.content

    def list_transactions(self, start: int, end: int) -> List[str]:
        data = self._get_json(
            f"{settings.NUTS_NETWORK_PATH}/transaction",
            params={"start": int(start), "end": int(end)},
        )
        if not isinstance(data, list):
            raise TransportError(f"invalid transaction list: {data!r}")
        return [str(t) for t in data]
