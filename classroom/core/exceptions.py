# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Error taxonomy shared by all classroom domains.

Every domain service raises subclasses of these four categories so that
adapters (HTTP, CLI, jobs) can map failures to a transport status without
knowing the individual domain errors:

- NotFoundError: the referenced id does not exist
- ValidationError: missing/blank field, out-of-range value, role mismatch
- DuplicateError: uniqueness violation on a natural key or enrollment pair
- StorageError: persistence failure, connectivity, aborted transaction
"""


class ClassroomError(Exception):
    """Base exception for all classroom core errors.

    Attributes:
        message: Human-readable error description.
    """

    def __init__(self, message: str) -> None:
        """Initialize the error.

        Args:
            message: Human-readable error description.
        """
        super().__init__(message)
        self.message = message


class NotFoundError(ClassroomError):
    """Raised when a referenced entity does not exist."""

    pass


class ValidationError(ClassroomError):
    """Raised when input fails validation before any write."""

    pass


class DuplicateError(ClassroomError):
    """Raised when a write would violate a uniqueness constraint."""

    pass


class StorageError(ClassroomError):
    """Raised when the underlying storage fails.

    Attributes:
        message: Human-readable error description.
        original_error: The underlying driver or SQLAlchemy error.
    """

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        """Initialize the storage error.

        Args:
            message: Human-readable error description.
            original_error: The underlying exception that caused this error.
        """
        super().__init__(message)
        self.original_error = original_error

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.original_error:
            return f"{self.message}: {self.original_error}"
        return self.message
