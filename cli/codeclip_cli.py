#!/usr/bin/env python3
"""
CodeClip CLI: create and open clipboards on a CodeClip server from a terminal.

Only external dependency: httpx

Usage:
    echo "hello" | python codeclip_cli.py create
    python codeclip_cli.py create "some text" --access view
    python codeclip_cli.py share 1234!
    python codeclip_cli.py view 54321
    python codeclip_cli.py update 7 1234! "new text"
    python codeclip_cli.py delete 7 1234!
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from typing import Optional
from urllib.parse import quote

import httpx

DEFAULT_SERVER = "http://localhost:8080"


# ---------------------------------------------------------------------------
# CodeClip API client
# ---------------------------------------------------------------------------

class CodeClipAPIError(Exception):
    def __init__(self, status_code: int, detail: str):
        super().__init__(f"HTTP {status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail


class CodeClipClient:
    def __init__(
        self,
        server: str,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.client = httpx.Client(
            base_url=server.rstrip("/"),
            timeout=timeout,
            transport=transport,
        )

    @staticmethod
    def _check(resp: httpx.Response) -> dict:
        if resp.is_success:
            return resp.json()
        try:
            detail = resp.json().get("detail", resp.text)
        except ValueError:
            detail = resp.text
        raise CodeClipAPIError(resp.status_code, str(detail))

    def create(
        self,
        content: str,
        access_type: str = "edit",
        expiry_hours: Optional[float] = None,
    ) -> dict:
        body: dict = {"content": content, "accessType": access_type}
        if expiry_hours is not None:
            body["expiryHours"] = expiry_hours
        return self._check(self.client.post("/api/clipboard", json=body))

    def open_share(self, code: str) -> dict:
        # Share codes end in characters such as '#' and '?' that must be escaped
        return self._check(self.client.get(f"/api/clipboard/share/{quote(code, safe='')}"))

    def open_view(self, code: str) -> dict:
        return self._check(self.client.get(f"/api/clipboard/view/{quote(code, safe='')}"))

    def update(self, clipboard_id: int, share_code: str, content: str) -> dict:
        resp = self.client.put(
            f"/api/clipboard/{clipboard_id}",
            json={"content": content, "shareCode": share_code},
        )
        return self._check(resp)

    def delete(self, clipboard_id: int, share_code: str) -> dict:
        resp = self.client.request(
            "DELETE",
            f"/api/clipboard/{clipboard_id}",
            json={"shareCode": share_code},
        )
        return self._check(resp)

    def health(self) -> dict:
        return self._check(self.client.get("/api/health"))

    def close(self) -> None:
        self.client.close()


# ---------------------------------------------------------------------------
# CLI mode
# ---------------------------------------------------------------------------

def _read_content(value: Optional[str]) -> str:
    """Use the positional argument, or read stdin when it is absent or '-'."""
    if value is not None and value != "-":
        return value
    return sys.stdin.read()


def _print_result(result: dict, as_json: bool) -> None:
    if as_json:
        print(json.dumps(result, indent=2))
        return
    # Opened clipboards print just their text so output can be piped
    if "isEditable" in result:
        print(result["content"])
        return
    for key, value in result.items():
        if value is not None:
            print(f"{key}: {value}")


def run_cli(args: argparse.Namespace, client: CodeClipClient) -> int:
    """Execute one subcommand. Returns the process exit code."""
    try:
        if args.command == "create":
            result = client.create(
                _read_content(args.content),
                access_type=args.access,
                expiry_hours=args.expiry_hours,
            )
        elif args.command == "share":
            result = client.open_share(args.code)
        elif args.command == "view":
            result = client.open_view(args.code)
        elif args.command == "update":
            result = client.update(args.id, args.share_code, _read_content(args.content))
        elif args.command == "delete":
            result = client.delete(args.id, args.share_code)
        else:
            result = client.health()
    except CodeClipAPIError as exc:
        print(f"ERROR: {exc.detail} (HTTP {exc.status_code})", file=sys.stderr)
        return 1
    except httpx.HTTPError as exc:
        print(f"ERROR: Could not reach server: {exc}", file=sys.stderr)
        return 1

    _print_result(result, args.json)
    return 0


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="CodeClip -- share short-lived text by code."
    )
    parser.add_argument(
        "--server",
        type=str,
        default=os.environ.get("CODECLIP_SERVER", DEFAULT_SERVER),
        help="CodeClip server URL (default: $CODECLIP_SERVER or %(default)s).",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the raw JSON response.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    create = sub.add_parser("create", help="Create a clipboard.")
    create.add_argument("content", nargs="?", help="Text to share (default: stdin).")
    create.add_argument(
        "--access",
        choices=["edit", "view", "private"],
        default="edit",
        help="Which code to receive: edit (share code), view (view code) or private (none).",
    )
    create.add_argument(
        "--expiry-hours",
        type=float,
        default=None,
        help="Hours until an edit clipboard expires (server default: 30 minutes).",
    )

    share = sub.add_parser("share", help="Open a clipboard by share code.")
    share.add_argument("code")

    view = sub.add_parser("view", help="Open a clipboard by view code.")
    view.add_argument("code")

    update = sub.add_parser("update", help="Replace clipboard content.")
    update.add_argument("id", type=int)
    update.add_argument("share_code")
    update.add_argument("content", nargs="?", help="New text (default: stdin).")

    delete = sub.add_parser("delete", help="Delete a clipboard.")
    delete.add_argument("id", type=int)
    delete.add_argument("share_code")

    sub.add_parser("health", help="Check server health.")
    return parser


def main(argv: Optional[list[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    client = CodeClipClient(args.server)
    try:
        code = run_cli(args, client)
    finally:
        client.close()
    sys.exit(code)


if __name__ == "__main__":
    main()
