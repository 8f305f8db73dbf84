# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Activity log sink.

Services report what an actor did through ``ActivityLog.record``. Logging
is best effort: ``record_activity`` swallows and logs any failure so that
the primary operation, already committed, still succeeds.

The database sink writes with its own session so a failed insert cannot
poison the caller's session.
"""

from __future__ import annotations

import logging
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from classroom.infrastructure.database.models.activity import ActivityLogEntry

logger = logging.getLogger(__name__)


class ActivityLog(Protocol):
    """Sink receiving one line per user-visible change."""

    async def record(self, actor_id: str | None, action: str, description: str) -> None:
        """Record an activity.

        Args:
            actor_id: Authenticated actor, if known.
            action: Short verb such as ``create``, ``update`` or ``delete``.
            description: Human-readable description of the change.
        """
        ...


class NullActivityLog:
    """Sink that drops every activity."""

    async def record(self, actor_id: str | None, action: str, description: str) -> None:
        return None


class DatabaseActivityLog:
    """Sink writing activities to the ``activity_logs`` table.

    Attributes:
        sessionmaker: Factory for the sink's own short-lived sessions.
    """

    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession]) -> None:
        self.sessionmaker = sessionmaker

    async def record(self, actor_id: str | None, action: str, description: str) -> None:
        async with self.sessionmaker() as session:
            session.add(
                ActivityLogEntry(
                    actor_id=actor_id,
                    action=action,
                    description=description,
                )
            )
            await session.commit()


async def record_activity(
    activity_log: ActivityLog | None,
    actor_id: str | None,
    action: str,
    description: str,
) -> None:
    """Record an activity without ever failing the caller.

    Args:
        activity_log: Sink to write to; None disables logging.
        actor_id: Authenticated actor, if known.
        action: Short verb such as ``create``.
        description: Human-readable description of the change.
    """
    if activity_log is None:
        return

    try:
        await activity_log.record(actor_id, action, description)
    except Exception as e:
        logger.warning(
            "Failed to record activity (%s by %s): %s",
            action,
            actor_id,
            str(e),
        )
