from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List
from dagviewer.core.dto import Transaction, TransactionHash

class TransactionStorePort(ABC):
    """
    Abstract Class for fetching transactions and their payloads from the DAG.
    """

    # --- Transactions ---

    @abstractmethod
    def fetch_transaction(self, tx_hash: TransactionHash) -> Transaction:
        raise NotImplementedError

    # --- Payloads ---

    @abstractmethod
    def fetch_payload(self, tx_hash: TransactionHash) -> bytes:
        raise NotImplementedError

    # --- Raw transactions by Lamport clock range [start, end) ---

    @abstractmethod
    def list_transactions(self, start: int, end: int) -> List[str]:
        raise NotImplementedError
