from dagviewer.core.dto import Transaction, TransactionHash
from dagviewer.core.errors import NotFoundError
from dagviewer.ports.transaction_store_port import TransactionStorePort
from typing import Dict, List, Optional

class StaticStoreAdapter(TransactionStorePort):
    def __init__(self,
                 transactions: Optional[List[Transaction]] = None,
                 payloads: Optional[Dict[TransactionHash, bytes]] = None,
                 raw: Optional[Dict[TransactionHash, str]] = None,
                 ):
        self._txs = {t.ref: t for t in (transactions or [])}
        self._payloads = dict(payloads or {})
        self._raw = dict(raw or {})
        self.fetch_counts: Dict[TransactionHash, int] = {}

    def fetch_transaction(self, tx_hash):
        self.fetch_counts[tx_hash] = self.fetch_counts.get(tx_hash, 0) + 1
        tx = self._txs.get(tx_hash)
        if tx is None:
            raise NotFoundError(f"transaction not found: {tx_hash}")
        return tx

    def fetch_payload(self, tx_hash):
        payload = self._payloads.get(tx_hash)
        if payload is None:
            raise NotFoundError(f"payload not found: {tx_hash}")
        return payload

    def list_transactions(self, start, end):
        items = [t for t in self._txs.values() if start <= t.clock < end]
        items.sort(key=lambda t: (t.clock, t.ref))
        return [self._raw.get(t.ref, str(t.ref)) for t in items]
