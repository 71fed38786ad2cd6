"""
Deskmate Backend — Development Entry Point
============================================

Usage:
    python -m deskmate

Production deployments run uvicorn directly against `deskmate.main:app`.
"""

import uvicorn

from deskmate.config import settings


def main() -> None:
    uvicorn.run(
        "deskmate.main:app",
        host=settings.backend_host,
        port=settings.backend_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
