"""Run the API with uvicorn: `python -m app.web.run` or the `pricing-profiles-api` script."""

from __future__ import annotations

import os

import uvicorn

from app.core.config import get_settings
from app.core.logging import setup_logging


def main() -> None:
    settings = get_settings()
    setup_logging(
        level=settings.log_level,
        file_path=settings.log_file_path,
        json_output=settings.log_json,
    )
    uvicorn.run(
        "app.web.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        log_config=None,
    )


if __name__ == "__main__":
    main()
