from __future__ import annotations

import argparse
import datetime as dt
import logging
import sys
import time
from typing import List, Optional

from dagviewer.adapters.network.nuts_network_adapter import NutsNetworkAdapter
from dagviewer.adapters.vdr.nuts_vdr_adapter import NutsVDRAdapter
from dagviewer.cli.logging_utils import configure_logging
from dagviewer.config import settings
from dagviewer.core.errors import DagViewerError
from dagviewer.core.models import AnalyzeConfig
from dagviewer.io.dot_renderer import render_dot
from dagviewer.io.output_writer import write_graph_dot
from dagviewer.services.graph_analyzer_service import GraphAnalyzerService


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="dagviewer", description="DID document DAG graph analyzer (DOT output)")
    p.add_argument("seeds", nargs="*", help="DIDs and/or hex transaction references (must be DID documents)")
    p.add_argument("--node-url", default=settings.NUTS_NODE_URL, help="Nuts node base URL")
    p.add_argument("--out", help="Output folder; writes graph.dot instead of printing")
    p.add_argument("--workers", type=int, default=settings.ANALYZE_MAX_WORKERS, help="Parallel fetch workers (1=sequential)")
    p.add_argument("--timeout", type=float, default=settings.ANALYZE_TIMEOUT_SEC, help="Abort the analysis after N seconds (0=no limit)")
    p.add_argument("--range", nargs=2, type=int, metavar=("START", "END"), help="List raw transactions with Lamport clock in [START, END) instead of analyzing")
    p.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return p


def _make_progress_reporter():
    start_time = time.time()
    last_print = 0.0
    is_tty = sys.stderr.isatty()

    def _ts() -> str:
        return dt.datetime.now().strftime("%H:%M:%S")

    def _print_line(message: str) -> None:
        if is_tty:
            sys.stderr.write("\r" + message.ljust(88))
            sys.stderr.flush()
        else:
            print(message, file=sys.stderr)

    def _clear_line() -> None:
        if is_tty:
            sys.stderr.write("\r" + (" " * 88) + "\r")
            sys.stderr.flush()

    def progress(event: str, data: dict) -> None:
        nonlocal last_print
        now = time.time()
        if event == "start":
            print(f"[{_ts()}] Analyzing {', '.join(data['seeds'])} • {data['roots']} root(s)", file=sys.stderr)
            return
        if event == "visit":
            if not is_tty and data["processed"] % 100 != 0:
                return
            if is_tty and now - last_print < 0.2:
                return
            _print_line(
                f"queue {data['queue']} • "
                f"processed {data['processed']} • "
                f"nodes {data['nodes']} • "
                f"edges {data['edges']}"
            )
            last_print = now
            return
        if event == "done":
            _clear_line()
            elapsed = time.time() - start_time
            print(
                f"[{_ts()}] Done in {elapsed:.1f}s • "
                f"{data['nodes']} nodes • {data['edges']} edges",
                file=sys.stderr,
            )
            return
        if event == "error":
            _clear_line()
            print(f"[{_ts()}] Error: {data.get('message', 'Unknown error')}", file=sys.stderr)

    return progress


def main(argv: Optional[List[str]] = None, svc: Optional[GraphAnalyzerService] = None) -> int:
    args = build_arg_parser().parse_args(argv)
    configure_logging(logging.DEBUG if args.verbose else logging.WARNING)

    if args.range:
        start, end = args.range
        if start < 0 or end < start:
            print("--range needs 0 <= START <= END", file=sys.stderr)
            return 2
        store = svc.store if svc is not None else NutsNetworkAdapter(base_url=args.node_url)
        try:
            raw = store.list_transactions(start, end)
        except DagViewerError as exc:
            print(f"Error: {exc.__class__.__name__}: {exc}", file=sys.stderr)
            return 1
        for tx in raw:
            print(tx)
        return 0

    if not args.seeds:
        print("Missing DID or transaction reference to analyze", file=sys.stderr)
        return 2
    if args.workers < 1:
        print("--workers must be >= 1", file=sys.stderr)
        return 2

    cfg = AnalyzeConfig(
        seeds=tuple(args.seeds),
        max_workers=args.workers,
        timeout_sec=args.timeout or None,
    )
    progress = _make_progress_reporter()

    if svc is None:
        svc = GraphAnalyzerService(
            store=NutsNetworkAdapter(base_url=args.node_url),
            directory=NutsVDRAdapter(base_url=args.node_url),
        )
    try:
        graph = svc.build_graph(cfg, on_progress=progress)
    except DagViewerError as exc:
        progress("error", {"message": f"{exc.__class__.__name__}: {exc}"})
        return 1

    dot = render_dot(graph)
    if args.out:
        print(f"Wrote: {write_graph_dot(dot, args.out)}", file=sys.stderr)
    else:
        print(dot)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
