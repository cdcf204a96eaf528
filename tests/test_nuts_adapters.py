import base64
import json
import unittest

import requests

from dagviewer.adapters.network.nuts_network_adapter import NutsNetworkAdapter, parse_transaction
from dagviewer.adapters.vdr.nuts_vdr_adapter import NutsVDRAdapter
from dagviewer.core.dto import TransactionHash
from dagviewer.core.errors import NotFoundError, TransportError

from dag_fixtures import JWK, did_payload, tx_hash

BASE = "http://node.test"


def _b64(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode()


def _jws(header: dict, payload_hash: TransactionHash) -> str:
    return ".".join([_b64(json.dumps(header).encode()), _b64(str(payload_hash).encode()), "c2ln"])


def _response(status: int, body: bytes) -> requests.Response:
    r = requests.Response()
    r.status_code = status
    r._content = body
    r.url = BASE
    return r


class _FakeSession:
    def __init__(self, routes) -> None:
        self.routes = routes
        self.calls = []

    def get(self, url, params=None, headers=None, timeout=None):
        self.calls.append((url, params))
        route = self.routes.get(url)
        if route is None:
            return _response(404, b"")
        if isinstance(route, Exception):
            raise route
        return route


class ParseTransactionTests(unittest.TestCase):
    def test_parses_header_fields(self) -> None:
        prev = tx_hash("prev")
        raw = _jws(
            {"alg": "ES256", "cty": "application/did+json", "jwk": JWK, "lc": 7, "prevs": [str(prev)]},
            tx_hash("payload"),
        )

        tx = parse_transaction(raw.encode())

        self.assertEqual(tx.ref, TransactionHash.from_data(raw.encode()))
        self.assertEqual(tx.payload_type, "application/did+json")
        self.assertEqual(tx.payload_hash, tx_hash("payload"))
        self.assertEqual(tx.previous, (prev,))
        self.assertEqual(tx.clock, 7)
        self.assertEqual(tx.signing_key, JWK)
        self.assertIsNone(tx.signing_key_id)

    def test_key_id_only(self) -> None:
        raw = _jws({"cty": "application/did+json", "kid": "did:example:a#key-1", "lc": 1}, tx_hash("p"))

        tx = parse_transaction(raw.encode())

        self.assertIsNone(tx.signing_key)
        self.assertEqual(tx.signing_key_id, "did:example:a#key-1")
        self.assertEqual(tx.previous, ())

    def test_garbage_is_transport_error(self) -> None:
        for raw in (b"nope", b"a.b.c", _jws({"lc": -1}, tx_hash("p")).encode(), _jws({"prevs": ["xx"]}, tx_hash("p")).encode()):
            with self.subTest(raw=raw):
                with self.assertRaises(TransportError):
                    parse_transaction(raw)


class NutsNetworkAdapterTests(unittest.TestCase):
    def _adapter(self, routes) -> NutsNetworkAdapter:
        return NutsNetworkAdapter(base_url=BASE + "/", requests_per_sec=1000, session=_FakeSession(routes))

    def test_fetch_transaction_and_payload(self) -> None:
        ref = tx_hash("t")
        raw = _jws({"cty": "application/did+json", "jwk": JWK, "lc": 0}, tx_hash("p"))
        payload = did_payload("did:example:alice")
        adapter = self._adapter(
            {
                f"{BASE}/internal/network/v1/transaction/{ref}": _response(200, raw.encode()),
                f"{BASE}/internal/network/v1/transaction/{ref}/payload": _response(200, payload),
            }
        )

        self.assertEqual(adapter.fetch_transaction(ref).payload_type, "application/did+json")
        self.assertEqual(adapter.fetch_payload(ref), payload)

    def test_not_found(self) -> None:
        with self.assertRaises(NotFoundError):
            self._adapter({}).fetch_transaction(tx_hash("missing"))

    def test_transport_failures(self) -> None:
        ref = tx_hash("t")
        url = f"{BASE}/internal/network/v1/transaction/{ref}"
        for route in (requests.ConnectionError("refused"), _response(500, b"boom")):
            with self.subTest(route=route):
                with self.assertRaises(TransportError):
                    self._adapter({url: route}).fetch_transaction(ref)

    def test_list_transactions(self) -> None:
        session = _FakeSession({f"{BASE}/internal/network/v1/transaction": _response(200, b'["a.b.c", "d.e.f"]')})
        adapter = NutsNetworkAdapter(base_url=BASE, requests_per_sec=1000, session=session)

        self.assertEqual(adapter.list_transactions(3, 4), ["a.b.c", "d.e.f"])
        self.assertEqual(session.calls[0][1], {"start": 3, "end": 4})


    def test_deeply_nested_json_is_transport_error(self) -> None:
        session = _FakeSession({f"{BASE}/internal/network/v1/transaction": _response(200, b"[" * 100000)})
        adapter = NutsNetworkAdapter(base_url=BASE, requests_per_sec=1000, session=session)

        with self.assertRaises(TransportError):
            adapter.list_transactions(0, 1)


class NutsVDRAdapterTests(unittest.TestCase):
    def test_resolve_document(self) -> None:
        did = "did:example:alice"
        body = {
            "document": json.loads(did_payload(did, controllers=["did:example:bob"])),
            "documentMetadata": {"sourceTransactions": [str(tx_hash("T1"))]},
        }
        session = _FakeSession({f"{BASE}/internal/vdr/v1/did/{did}": _response(200, json.dumps(body).encode())})
        adapter = NutsVDRAdapter(base_url=BASE, requests_per_sec=1000, session=session)

        resolved = adapter.resolve_document(did)

        self.assertEqual(resolved.document.controllers, ("did:example:bob",))
        self.assertEqual(resolved.source_transactions, [tx_hash("T1")])

    def test_unknown_did(self) -> None:
        adapter = NutsVDRAdapter(base_url=BASE, requests_per_sec=1000, session=_FakeSession({}))

        with self.assertRaises(NotFoundError):
            adapter.resolve_document("did:example:nobody")


if __name__ == "__main__":
    unittest.main()
