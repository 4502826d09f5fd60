#!/usr/bin/env python3
"""
Uvicorn launcher for the Deal Relay API.

- Reads PORT and LOG_LEVEL from the environment (or .env).
- Logging is configured before uvicorn starts.
- Single worker only: deals live in process memory.

Usage:
    python scripts/run_server.py
"""

import sys
from pathlib import Path

# Add parent directory to path so we can import api, services, etc.
sys.path.insert(0, str(Path(__file__).parent.parent))

import uvicorn

from api.config import load_settings
from api.logging_config import configure_logging


def main() -> None:
    settings = load_settings()
    configure_logging(settings.log_level)

    print(f"Deal Relay listening on http://localhost:{settings.port}")
    if not settings.webhook_accept_url:
        print("[WARN] WEBHOOK_ACCEPT_URL not configured - accepted deals will not be notified")

    uvicorn.run(
        "api.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=settings.port,
        reload=False,
        workers=1,
        log_config=None,
        use_colors=False,
    )


if __name__ == "__main__":
    main()
