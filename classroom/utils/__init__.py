# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Cross-cutting utilities.

- logging: Structured logging with structlog
- datetime: Timezone-aware datetime operations
- numbers: Rounding helpers for statistics
"""

from classroom.utils.datetime import ensure_utc, utc_now
from classroom.utils.logging import bind_context, clear_context, get_logger, setup_logging
from classroom.utils.numbers import percentage, round_half_up

__all__ = [
    "setup_logging",
    "get_logger",
    "bind_context",
    "clear_context",
    "utc_now",
    "ensure_utc",
    "percentage",
    "round_half_up",
]
