#!/usr/bin/env python3
"""Send a query to the router from the command line. Prints intent, sources and the final answer."""
import argparse
import json
import os
import sys
from typing import Any

import httpx

ROUTER_URL = os.environ.get("ROUTER_BASE_URL", "http://127.0.0.1:8000")


def _trunc(s: str, max_len: int = 100) -> str:
    s = str(s)
    return (s[:max_len] + "…") if len(s) > max_len else s


def _trace_request(method: str, url: str, body: dict | None, trace: bool) -> None:
    if not trace:
        return
    print(f"[REQUEST] {method} {url}", flush=True)
    if body is not None:
        print(json.dumps(body, indent=2), flush=True)
    print(flush=True)


def _trace_response(status: int, body: Any, trace: bool, max_body_len: int = 2000) -> None:
    if not trace:
        return
    print(f"[RESPONSE] {status}", flush=True)
    raw = json.dumps(body, indent=2) if isinstance(body, (dict, list)) else str(body)
    if len(raw) > max_body_len:
        raw = raw[:max_body_len] + "\n… (truncated)"
    print(raw, flush=True)
    print("---", flush=True)


def _print_responders(base: str, request_id: str, trace: bool) -> None:
    url = f"{base}/request/{request_id}"
    _trace_request("GET", url, None, trace)
    r = httpx.get(url, timeout=10)
    if r.status_code != 200:
        return
    body = r.json()
    _trace_response(r.status_code, body, trace)
    print(f"Reasoning: {body.get('reasoning')}", flush=True)
    for rr in body.get("responder_results") or []:
        lat = rr.get("latency_ms")
        lat_str = f" ({lat} ms)" if lat is not None else ""
        print(f"  → {rr['role']}: {_trunc(rr.get('query', ''))}", flush=True)
        print(f"  ← {rr['role']} [{rr.get('status')}]: {_trunc(rr.get('output', ''), 150)}{lat_str}", flush=True)
    print("---", flush=True)


def main():
    parser = argparse.ArgumentParser(description="Send a query to the commerce router and print the answer.")
    parser.add_argument("query", nargs="*", help="Query text")
    parser.add_argument("--url", default=ROUTER_URL, help="Router base URL")
    parser.add_argument("--chat-id", default=None, help="Conversation id; enables stored history")
    parser.add_argument("--trace", action="store_true", help="Print each request and response body")
    args = parser.parse_args()
    query = " ".join(args.query).strip()
    if not query:
        print('Usage: python scripts/query_cli.py "Your question here"', file=sys.stderr)
        sys.exit(1)

    base = args.url.rstrip("/")
    body = {"query": query, "chat_id": args.chat_id}
    try:
        print("Query:", query, flush=True)
        print("---", flush=True)
        _trace_request("POST", f"{base}/query", body, args.trace)
        r = httpx.post(f"{base}/query", json=body, timeout=180)
        data = r.json()
        _trace_response(r.status_code, data, args.trace)
        if r.status_code == 400:
            print(f"Rejected: {data.get('detail')}", file=sys.stderr)
            sys.exit(2)
        r.raise_for_status()
        print(f"Intent: {data.get('intent')} (confidence {data.get('confidence')})", flush=True)
        print(f"Sources: {', '.join(data.get('sources') or []) or '(none)'}", flush=True)
        try:
            _print_responders(base, data["request_id"], args.trace)
        except httpx.HTTPError:
            pass  # trace is optional; the router may run without a session store
        print("Answer:", flush=True)
        print(data.get("response"), flush=True)
    except httpx.ConnectError:
        print(f"Cannot reach router at {args.url}. Is it running?", file=sys.stderr)
        sys.exit(1)
    except httpx.HTTPError as e:
        print(e, file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
