from __future__ import annotations

import json
from typing import Any, Dict, List, Tuple

from dagviewer.config import settings
from dagviewer.core.dto import DecodeResult, Document, Service, Transaction, VerificationMethod
from dagviewer.core.errors import MalformedDocumentError


def decode_document(tx: Transaction, payload: bytes) -> DecodeResult:
    """
    Decode the payload of `tx` as a DID document.

    Transactions carrying another payload type are not an error: the result
    simply has no document. A payload that claims to be a DID document but
    does not parse raises MalformedDocumentError.
    """
    if not carries_document(tx):
        return DecodeResult(transaction=tx)

    try:
        raw = json.loads(payload)
    except (ValueError, UnicodeDecodeError, RecursionError) as e:
        raise MalformedDocumentError(f"failed to unmarshal DID document: {e}") from e

    return DecodeResult(transaction=tx, document=parse_document(raw))


def carries_document(tx: Transaction) -> bool:
    return tx.payload_type == settings.DID_DOCUMENT_TYPE


def parse_document(raw: Any) -> Document:
    if not isinstance(raw, dict):
        raise MalformedDocumentError("DID document must be a JSON object")

    doc_id = raw.get("id")
    if not isinstance(doc_id, str) or not doc_id:
        raise MalformedDocumentError("DID document has no valid id")

    return Document(
        id=doc_id,
        controllers=_controllers(raw.get("controller")),
        verification_methods=_verification_methods(raw.get("verificationMethod"), doc_id),
        services=_services(raw.get("service")),
    )


# -------------------------
# Helpers
# -------------------------

def _controllers(val: Any) -> Tuple[str, ...]:
    # controller may be a single DID or a list of DIDs
    if val is None:
        return ()
    if isinstance(val, str):
        return (val,)
    if isinstance(val, list) and all(isinstance(c, str) for c in val):
        return tuple(val)
    raise MalformedDocumentError(f"invalid controller: {val!r}")


def _verification_methods(val: Any, doc_id: str) -> Tuple[VerificationMethod, ...]:
    out: List[VerificationMethod] = []
    for vm in _entries(val, "verificationMethod"):
        vm_id = vm.get("id")
        if not isinstance(vm_id, str) or not vm_id:
            raise MalformedDocumentError("verificationMethod without id")
        out.append(
            VerificationMethod(
                id=vm_id,
                type=str(vm.get("type") or ""),
                controller=str(vm.get("controller") or doc_id),
            )
        )
    return tuple(out)


def _services(val: Any) -> Tuple[Service, ...]:
    out: List[Service] = []
    for svc in _entries(val, "service"):
        svc_id = svc.get("id")
        if not isinstance(svc_id, str) or not svc_id:
            raise MalformedDocumentError("service without id")
        out.append(
            Service(
                id=svc_id,
                type=str(svc.get("type") or ""),
                service_endpoint=svc.get("serviceEndpoint"),
            )
        )
    return tuple(out)


def _entries(val: Any, name: str) -> List[Dict[str, Any]]:
    if val is None:
        return []
    if not isinstance(val, list) or not all(isinstance(e, dict) for e in val):
        raise MalformedDocumentError(f"invalid {name}: expected a list of objects")
    return val
