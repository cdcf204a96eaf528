from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from dagviewer.core.errors import InvalidReferenceError

HASH_SIZE = 32    # SHA-256


@dataclass(frozen=True, order=True)
class TransactionHash:
    digest: bytes

    def __post_init__(self) -> None:
        if len(self.digest) != HASH_SIZE:
            raise InvalidReferenceError(
                f"hash must be {HASH_SIZE} bytes, got {len(self.digest)}"
            )

    @classmethod
    def parse_hex(cls, value: str) -> "TransactionHash":
        s = value.strip()
        if len(s) != HASH_SIZE * 2:
            raise InvalidReferenceError(f"invalid TX reference: {value!r}")
        try:
            return cls(bytes.fromhex(s))
        except ValueError as e:
            raise InvalidReferenceError(f"invalid TX reference: {value!r}") from e

    @classmethod
    def from_data(cls, data: bytes) -> "TransactionHash":
        return cls(hashlib.sha256(data).digest())

    def hex(self) -> str:
        return self.digest.hex()

    def __str__(self) -> str:
        return self.hex()


@dataclass(frozen=True)
class Transaction:
    ref: TransactionHash
    payload_type: str
    payload_hash: TransactionHash
    previous: Tuple[TransactionHash, ...] = ()
    clock: int = 0                                  # Lamport clock
    signing_key: Optional[Dict[str, Any]] = None    # full JWK: document creation
    signing_key_id: Optional[str] = None            # key id only: update


@dataclass(frozen=True)
class VerificationMethod:
    id: str
    type: str = ""
    controller: str = ""


@dataclass(frozen=True)
class Service:
    id: str
    type: str = ""
    service_endpoint: Any = None


@dataclass(frozen=True)
class Document:
    id: str
    controllers: Tuple[str, ...] = ()
    verification_methods: Tuple[VerificationMethod, ...] = ()
    services: Tuple[Service, ...] = ()


@dataclass(frozen=True)
class ResolvedDocument:
    document: Document
    source_transactions: List[TransactionHash] = field(default_factory=list)


@dataclass(frozen=True)
class DecodeResult:
    """
    Outcome of decoding a transaction payload: either a document or "not a document".
    """

    transaction: Transaction
    document: Optional[Document] = None

    @property
    def is_document(self) -> bool:
        return self.document is not None
