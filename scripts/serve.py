"""
HTTP server entry point.

Run with: python scripts/serve.py [--host HOST] [--port PORT]
"""
from __future__ import annotations

import argparse

import uvicorn

from replicate_imagegen.api import configure_logging, create_app


def main() -> None:
    parser = argparse.ArgumentParser(description="Serve the image generation API.")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=3000)
    args = parser.parse_args()

    configure_logging()
    uvicorn.run(create_app(), host=args.host, port=args.port)


if __name__ == "__main__":
    main()
