"""Serve the API with uvicorn: `entitlement-gate` or `python -m entitlement_gate`."""

from __future__ import annotations

import argparse
import os

import uvicorn

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8000


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="entitlement-gate")
    parser.add_argument("--host", default=os.environ.get("ENTITLEMENT_HOST", DEFAULT_HOST))
    parser.add_argument(
        "--port", type=int, default=int(os.environ.get("PORT", DEFAULT_PORT))
    )
    args = parser.parse_args(argv)

    from entitlement_gate.api.main import app

    uvicorn.run(app, host=args.host, port=args.port, log_level="info")


if __name__ == "__main__":
    main()
