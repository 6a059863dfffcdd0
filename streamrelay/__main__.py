"""Run the relay server with uvicorn."""

from __future__ import annotations

import os

import uvicorn


def main() -> None:
    host = (os.getenv("HOST") or "").strip() or "0.0.0.0"
    try:
        port = int((os.getenv("PORT") or "").strip() or 8000)
    except ValueError:
        port = 8000
    uvicorn.run("streamrelay.server:app", host=host, port=port, log_config=None)


if __name__ == "__main__":
    main()
