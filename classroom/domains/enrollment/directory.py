# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Person directory and display-name helpers.

Person records are owned by the authentication service; the core only asks
for a person's role and reads profile names for rosters.
"""

from __future__ import annotations

from typing import Protocol
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from classroom.core.exceptions import NotFoundError
from classroom.infrastructure.database.models import Profile, User
from classroom.models.common import Role


class PersonNotFoundError(NotFoundError):
    """Raised when a person id is unknown to the directory."""

    pass


class PersonDirectory(Protocol):
    """Source of truth for a person's role."""

    async def role_of(self, person_id: UUID) -> Role:
        """Return the role of a person.

        Raises:
            PersonNotFoundError: If the person is unknown.
        """
        ...


class SqlPersonDirectory:
    """Directory reading roles from the ``users`` table."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def role_of(self, person_id: UUID) -> Role:
        result = await self.db.execute(select(User.role).where(User.id == str(person_id)))
        role = result.scalar_one_or_none()

        if role is None:
            raise PersonNotFoundError(f"Person {person_id} not found")

        return Role(role)


def display_name(
    first_name: str | None,
    middle_name: str | None,
    last_name: str | None,
    username: str,
) -> str:
    """Build a display name from the non-empty name parts.

    Args:
        first_name: Given name.
        middle_name: Middle name.
        last_name: Family name.
        username: Fallback when no name part is set.

    Returns:
        Name parts joined with single spaces, or the username.
    """
    parts = [part.strip() for part in (first_name, middle_name, last_name) if part and part.strip()]
    return " ".join(parts) if parts else username


def roster_order():
    """Order clauses for person listings: last name, first name, username."""
    return (
        func.coalesce(Profile.last_name, "").asc(),
        func.coalesce(Profile.first_name, "").asc(),
        User.username.asc(),
    )
