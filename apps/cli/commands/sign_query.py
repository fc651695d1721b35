from __future__ import annotations

import argparse
import json
import sys
from typing import Sequence, TextIO

from credbroker.contexts.exchange.application.errors import SignatureError
from credbroker.contexts.exchange.application.services import (
    DEFAULT_RECV_WINDOW_MS,
    canonical_query_string,
    sign_query,
)
from credbroker.platform.time import SystemClock


class SignQueryCli:
    """
    `sign-query` — print the canonical query string with its HMAC-SHA256 signature.

    Useful for reproducing a request by hand: the printed string is exactly what the
    exchange client would send.
    """

    def __init__(self, *, stdin: TextIO | None = None) -> None:
        self._stdin = stdin if stdin is not None else sys.stdin

    def run(self, argv: Sequence[str]) -> int:
        ns = _build_parser().parse_args(list(argv))
        secret = ns.secret if ns.secret is not None else self._stdin.read().rstrip("\r\n")

        params: dict[str, str | int] = {}
        for raw in ns.param:
            key, sep, value = raw.partition("=")
            if not sep:
                print(f"error: --param must be key=value, got {raw!r}", file=sys.stderr)
                return 2
            params[key] = value
        if not ns.raw:
            params["timestamp"] = (
                ns.timestamp if ns.timestamp is not None else SystemClock().now_ms()
            )
            if ns.recv_window > 0:
                params["recvWindow"] = ns.recv_window

        try:
            canonical = canonical_query_string(params=params)
            signature = sign_query(secret=secret, canonical_query_string=canonical)
        except SignatureError as error:
            print(f"error: {error.message}", file=sys.stderr)
            return 2

        if ns.format == "json":
            print(json.dumps({"query_string": canonical, "signature": signature}))
        else:
            print(f"{canonical}&signature={signature}")
        return 0


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="sign-query")
    p.add_argument("--secret", default=None, help="API secret (default: read stdin)")
    p.add_argument(
        "--param",
        action="append",
        default=[],
        help="Request parameter as key=value; repeat in wire order",
    )
    p.add_argument("--timestamp", type=int, default=None, help="Epoch ms (default: now)")
    p.add_argument(
        "--recv-window",
        type=int,
        default=DEFAULT_RECV_WINDOW_MS,
        help="recvWindow in ms; 0 omits the parameter",
    )
    p.add_argument(
        "--raw",
        action="store_true",
        help="Sign parameters verbatim without timestamp/recvWindow",
    )
    p.add_argument("--format", choices=("text", "json"), default="text", help="Output format")
    return p
