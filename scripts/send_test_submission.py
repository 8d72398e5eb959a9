#!/usr/bin/env python3
"""
Dev helper: post a test contact form submission to the local backend.

Builds the same multipart body the website form sends (name, email,
message, honeypot and an optional attachment) and POST-s it to
/contact/api.

Usage
-----
# Basic submission against localhost:8000
python scripts/send_test_submission.py

# Attach a file
python scripts/send_test_submission.py --file path/to/brief.pdf

# Simulate a bot by filling the honeypot
python scripts/send_test_submission.py --honeypot "http://spam.example.com"

# Target a different backend URL
python scripts/send_test_submission.py --url http://staging.example.com

Environment / .env
------------------
HOST_PORT   Port the backend is published on (default: 8000). Used to build
            the default --url.

The script reads .env from the project root and from backend/ if present.
"""

import argparse
import json
import mimetypes
import os
import sys
import textwrap
from pathlib import Path

import httpx


# ---------------------------------------------------------------------------
# .env loader
# ---------------------------------------------------------------------------

def _load_dotenv(path: Path) -> None:
    """Set variables from a .env file that are not already in os.environ."""
    if not path.exists():
        return
    with path.open() as fh:
        for line in fh:
            line = line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            key, _, value = line.partition("=")
            os.environ.setdefault(key.strip(), value.strip().strip('"').strip("'"))


# ---------------------------------------------------------------------------
# Request building
# ---------------------------------------------------------------------------

def _build_fields(args: argparse.Namespace) -> dict:
    return {
        "name": args.name,
        "email": args.email,
        "message": args.message,
        "honeypot": args.honeypot,
    }


def _build_files(path: Path | None) -> dict | None:
    if path is None:
        return None
    content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
    return {"attachment": (path.name, path.read_bytes(), content_type)}


def _print_response(response: httpx.Response) -> None:
    status = response.status_code
    symbol = "OK" if status == 200 else "FAIL"
    print(f"\n[{symbol}] HTTP {status}")
    try:
        print(json.dumps(response.json(), indent=2))
    except ValueError:
        print(response.text)


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main() -> int:
    project_root = Path(__file__).resolve().parent.parent
    _load_dotenv(project_root / ".env")
    _load_dotenv(project_root / "backend" / ".env")

    parser = argparse.ArgumentParser(
        prog="send_test_submission.py",
        description="Send a test contact form submission to the backend.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            Examples:
              python scripts/send_test_submission.py
              python scripts/send_test_submission.py --file brief.pdf
              python scripts/send_test_submission.py --honeypot bot
              python scripts/send_test_submission.py --dry-run
        """),
    )
    parser.add_argument(
        "--url",
        default=f"http://localhost:{os.getenv('HOST_PORT', '8000')}",
        help="Backend base URL (default: http://localhost:$HOST_PORT)",
    )
    parser.add_argument("--name", default="Jo Tester", help='Sender name (default: "Jo Tester")')
    parser.add_argument("--email", default="jo@example.com", help="Sender email (default: jo@example.com)")
    parser.add_argument(
        "--message",
        default="Hello! I'd like to ask about availability for a small project next month.",
        help="Message body",
    )
    parser.add_argument("--honeypot", default="", help="Honeypot value; anything non-empty marks a bot")
    parser.add_argument("--file", default=None, metavar="PATH", help="File to attach")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the form fields without sending them.",
    )

    args = parser.parse_args()

    file_path = Path(args.file) if args.file else None
    if file_path is not None and not file_path.exists():
        print(f"ERROR: File not found: {file_path}", file=sys.stderr)
        return 1

    fields = _build_fields(args)
    endpoint = f"{args.url.rstrip('/')}/contact/api"

    print(f"Endpoint  : {endpoint}")
    print(f"From      : {args.name} <{args.email}>")
    print(f"Honeypot  : {args.honeypot or '(empty)'}")
    if file_path is not None:
        print(f"Attachment: {file_path.name} ({file_path.stat().st_size:,} bytes)")

    if args.dry_run:
        print("\n[DRY RUN] Fields:")
        print(json.dumps(fields, indent=2))
        return 0

    try:
        response = httpx.post(endpoint, data=fields, files=_build_files(file_path), timeout=60)
    except httpx.ConnectError:
        print(
            f"\nERROR: Could not connect to {endpoint}\n"
            "Is the backend running? Start it with:\n"
            "  cd backend && uvicorn app.main:app --reload",
            file=sys.stderr,
        )
        return 1

    _print_response(response)
    return 0 if response.status_code == 200 else 1


if __name__ == "__main__":
    sys.exit(main())
