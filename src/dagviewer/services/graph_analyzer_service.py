from __future__ import annotations

import logging
import time
from collections import deque
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import dataclass
from typing import Any, Callable, Deque, Dict, FrozenSet, List, Optional, Sequence, Set, Tuple, Union

from dagviewer.config import settings
from dagviewer.core.dto import DecodeResult, TransactionHash
from dagviewer.core.errors import CancelledError, DagViewerError, NotADocumentError
from dagviewer.core.models import (
    NOTE_CREATED,
    NOTE_DEACTIVATED,
    NOTE_UPDATE,
    AnalyzeConfig,
    Graph,
    GraphNode,
)
from dagviewer.io.dot_renderer import render_dot
from dagviewer.ports.document_directory_port import DocumentDirectoryPort
from dagviewer.ports.transaction_store_port import TransactionStorePort
from dagviewer.services.document_decoder import carries_document, decode_document
from dagviewer.services.relevance import SeedSet, is_relevant

log = logging.getLogger(__name__)

ProgressFn = Callable[[str, dict], None]

# how often a blocked wait re-checks for cancellation
_POLL_SEC = 0.1


@dataclass(frozen=True)
class _visitItem:
    referrer: Optional[TransactionHash]
    tx_hash: TransactionHash


class _CancelGuard:
    def __init__(self, cfg: AnalyzeConfig) -> None:
        self._event = cfg.cancel
        timeout = cfg.timeout_sec or 0
        self._deadline = (time.monotonic() + timeout) if timeout > 0 else None

    def check(self) -> None:
        if self._event is not None and self._event.is_set():
            raise CancelledError("analysis cancelled")
        if self._deadline is not None and time.monotonic() >= self._deadline:
            raise CancelledError("analysis timed out")


class GraphAnalyzerService:
    """
    Renders the causal history of one or more DID documents as a DOT digraph.

    - Seeds: DIDs (resolved through the document directory) or hex TX references
    - Relevant: DID documents of a seed DID or one of its direct controllers
    - Ignores: controllers-of-controllers, signature validation
    """

    def __init__(self, store: TransactionStorePort, directory: DocumentDirectoryPort) -> None:
        self.store = store
        self.directory = directory

    def analyze(
        self,
        cfg: Union[AnalyzeConfig, Sequence[str]],
        on_progress: Optional[ProgressFn] = None,
    ) -> str:
        if not isinstance(cfg, AnalyzeConfig):
            cfg = AnalyzeConfig(seeds=tuple(cfg))
        return render_dot(self.build_graph(cfg, on_progress=on_progress))

    def build_graph(self, cfg: AnalyzeConfig, on_progress: Optional[ProgressFn] = None) -> Graph:
        guard = _CancelGuard(cfg)
        progress = on_progress or (lambda event, data: None)

        workers = max(1, int(cfg.max_workers or 1))
        # reads always run on the pool so a blocked fetch can be abandoned
        pool = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="dagviewer")
        try:
            roots, seeds, preloaded = self.resolve_seeds(cfg.seeds, guard, pool)
            progress("start", {"seeds": sorted(seeds), "roots": len(roots)})
            log.debug("analyzing %d root(s) for %s", len(roots), sorted(seeds))

            graph = self._traverse(roots, seeds, preloaded, guard, progress, pool, workers)
            guard.check()
        finally:
            # in-flight fetches are abandoned, not awaited
            pool.shutdown(wait=False, cancel_futures=True)

        progress("done", {"nodes": len(graph.nodes), "edges": graph.edge_count()})
        return graph

    # -------------------------
    # Seed resolution
    # -------------------------

    def resolve_seeds(
        self,
        seeds: Sequence[str],
        guard: Optional[_CancelGuard] = None,
        pool: Optional[ThreadPoolExecutor] = None,
    ) -> Tuple[List[TransactionHash], FrozenSet[str], Dict[TransactionHash, DecodeResult]]:
        roots: List[TransactionHash] = []
        seed_set = SeedSet()
        preloaded: Dict[TransactionHash, DecodeResult] = {}

        for seed in seeds:
            if guard is not None:
                guard.check()
            seed = seed.strip()
            if seed.startswith(settings.DID_PREFIX):
                try:
                    resolved = self._await(pool, guard, self.directory.resolve_document, seed)
                except DagViewerError as e:
                    raise e.with_context(f"failed to get DID document (did={seed})")
                roots.extend(resolved.source_transactions)
                seed_set.add(seed)
                # We're interested in the controllers as well
                seed_set.add_document(resolved.document)
                continue

            tx_ref = TransactionHash.parse_hex(seed)
            try:
                result = self._await(pool, guard, self._read, tx_ref)
            except DagViewerError as e:
                raise e.with_context(f"failed to read DID document (tx={tx_ref})")
            if not result.is_document:
                raise NotADocumentError(f"specified TX {tx_ref} does not contain a DID document")
            preloaded[tx_ref] = result
            roots.append(tx_ref)
            seed_set.add_document(result.document)

        return roots, seed_set.freeze(), preloaded

    # -------------------------
    # Traversal
    # -------------------------

    def _traverse(
        self,
        roots: List[TransactionHash],
        seeds: FrozenSet[str],
        preloaded: Dict[TransactionHash, DecodeResult],
        guard: _CancelGuard,
        progress: ProgressFn,
        pool: ThreadPoolExecutor,
        batch_size: int,
    ) -> Graph:
        graph = Graph()
        visited: Set[TransactionHash] = set()
        # referrers waiting for a claimed transaction to be classified
        waiting: Dict[TransactionHash, List[TransactionHash]] = {}
        # first referrer per transaction, for error paths
        reached_from: Dict[TransactionHash, Optional[TransactionHash]] = {}

        q: Deque[_visitItem] = deque(_visitItem(None, r) for r in roots)
        processed = 0

        while q:
            batch: List[TransactionHash] = []
            while q and len(batch) < batch_size:
                item = q.popleft()
                tx_hash = item.tx_hash

                # memoization gate: claim each transaction once
                if tx_hash in visited:
                    if item.referrer is None:
                        continue
                    if tx_hash in graph.nodes:
                        graph.add_edge(item.referrer, tx_hash)
                    elif tx_hash in waiting:
                        waiting[tx_hash].append(item.referrer)
                    continue

                visited.add(tx_hash)
                reached_from[tx_hash] = item.referrer
                waiting[tx_hash] = [item.referrer] if item.referrer is not None else []
                batch.append(tx_hash)

            if not batch:
                continue

            results = self._load(batch, preloaded, guard, pool, reached_from)

            for tx_hash in batch:
                referrers = waiting.pop(tx_hash)
                node = self._classify(tx_hash, results[tx_hash], seeds)
                processed += 1
                if node is None:
                    # non-document or irrelevant: dead end
                    continue

                graph.add_node(node)
                for referrer in referrers:
                    graph.add_edge(referrer, tx_hash)
                for prev in results[tx_hash].transaction.previous:
                    q.append(_visitItem(tx_hash, prev))

            progress(
                "visit",
                {
                    "processed": processed,
                    "queue": len(q),
                    "nodes": len(graph.nodes),
                    "edges": graph.edge_count(),
                },
            )

        return graph

    def _load(
        self,
        batch: List[TransactionHash],
        preloaded: Dict[TransactionHash, DecodeResult],
        guard: _CancelGuard,
        pool: ThreadPoolExecutor,
        reached_from: Dict[TransactionHash, Optional[TransactionHash]],
    ) -> Dict[TransactionHash, DecodeResult]:
        results: Dict[TransactionHash, DecodeResult] = {}
        todo = []
        for tx_hash in batch:
            if tx_hash in preloaded:
                results[tx_hash] = preloaded[tx_hash]
            else:
                todo.append(tx_hash)

        guard.check()
        futures: Dict[TransactionHash, Future] = {h: pool.submit(self._read, h) for h in todo}
        not_done = set(futures.values())
        while not_done:
            guard.check()
            _, not_done = wait(not_done, timeout=_POLL_SEC, return_when=FIRST_EXCEPTION)
            if any(f.done() and f.exception() is not None for f in futures.values()):
                break

        # report the first failure in batch order
        for tx_hash in todo:
            f = futures[tx_hash]
            if f.done() and f.exception() is not None:
                e = f.exception()
                if isinstance(e, DagViewerError):
                    raise self._wrap(e, tx_hash, reached_from)
                raise e
        for tx_hash in todo:
            results[tx_hash] = futures[tx_hash].result()
        return results

    @staticmethod
    def _await(
        pool: Optional[ThreadPoolExecutor],
        guard: Optional[_CancelGuard],
        fn: Callable[..., Any],
        *args: Any,
    ) -> Any:
        if pool is None or guard is None:
            return fn(*args)
        guard.check()
        f = pool.submit(fn, *args)
        while True:
            guard.check()
            try:
                return f.result(timeout=_POLL_SEC)
            except FutureTimeout:
                if f.done():
                    raise

    def _read(self, tx_hash: TransactionHash) -> DecodeResult:
        tx = self.store.fetch_transaction(tx_hash)
        payload = self.store.fetch_payload(tx_hash) if carries_document(tx) else b""
        return decode_document(tx, payload)

    @staticmethod
    def _classify(
        tx_hash: TransactionHash,
        result: DecodeResult,
        seeds: FrozenSet[str],
    ) -> Optional[GraphNode]:
        document = result.document
        if document is None or not is_relevant(document, seeds):
            return None

        tx = result.transaction
        notes: List[str] = []
        if tx.signing_key is not None:
            notes.append(NOTE_CREATED)
        elif tx.signing_key_id:
            notes.append(NOTE_UPDATE)
        if not document.controllers and not document.verification_methods:
            notes.append(NOTE_DEACTIVATED)

        return GraphNode(tx=tx_hash, did=document.id, clock=tx.clock, notes=tuple(notes))

    @staticmethod
    def _wrap(
        err: DagViewerError,
        tx_hash: TransactionHash,
        reached_from: Dict[TransactionHash, Optional[TransactionHash]],
    ) -> DagViewerError:
        path = [tx_hash]
        cur = reached_from.get(tx_hash)
        while cur is not None:
            path.append(cur)
            cur = reached_from.get(cur)
        trail = " -> ".join(str(h) for h in reversed(path))
        return err.with_context(f"failed to read DID document (tx={tx_hash}, path={trail})")
