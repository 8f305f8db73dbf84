# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""ASGI entry point.

Run with ``uvicorn classroom.main:app`` or the ``classroom-api`` script.
"""

import uvicorn

from classroom.api.app import create_app
from classroom.core.config import get_settings

app = create_app()


def run() -> None:
    """Serve the API with uvicorn using the configured host and port."""
    settings = get_settings()
    uvicorn.run(
        "classroom.main:app",
        host=settings.api.host,
        port=settings.api.port,
        log_config=None,
    )
