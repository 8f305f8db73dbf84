# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Relational storage for the classroom core.

Example:
    from classroom.infrastructure.database import init_database, get_session

    await init_database(settings)
    async with get_session() as session:
        service = HierarchyService(db=session)
"""

from classroom.infrastructure.database.connection import (
    DatabaseError,
    check_database_connection,
    close_database,
    commit_or_raise,
    create_engine_from_settings,
    create_sessionmaker,
    get_engine,
    get_session,
    get_sessionmaker,
    init_database,
    run_with_deadline,
)

__all__ = [
    "DatabaseError",
    "check_database_connection",
    "close_database",
    "commit_or_raise",
    "create_engine_from_settings",
    "create_sessionmaker",
    "get_engine",
    "get_session",
    "get_sessionmaker",
    "init_database",
    "run_with_deadline",
]
