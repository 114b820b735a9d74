"""Domain exceptions for the persistence layer.

Infrastructure errors (connection, migrations) and domain errors
(missing records, lost compare-and-swap races) share the StoreError base.
"""


class StoreError(Exception):
    """Base exception for all store errors."""


class StoreConnectionError(StoreError):
    """Raised when the database connection is missing or broken."""

    def __init__(self, message: str = "Database not connected") -> None:
        super().__init__(message)


class ProfileNotFoundError(StoreError):
    """Raised when a user has no profile.

    No default profile is synthesized; callers decide whether to create one.
    """

    def __init__(self, user_id: str) -> None:
        """Initialize the error with the missing user ID.

        Args:
            user_id: The user whose profile was not found.
        """
        self.user_id = user_id
        super().__init__(f"User profile not found for user {user_id}")


class ConcurrentUpdateError(StoreError):
    """Raised when a compare-and-swap write keeps losing to other writers."""

    def __init__(self, user_id: str, attempts: int) -> None:
        """Initialize the error.

        Args:
            user_id: Profile being updated.
            attempts: Number of compare-and-swap attempts made.
        """
        self.user_id = user_id
        self.attempts = attempts
        super().__init__(
            f"Interest vector for user {user_id} changed concurrently "
            f"({attempts} attempts)"
        )


class MigrationError(StoreError):
    """Raised when a schema migration fails."""

    def __init__(self, version: int, message: str) -> None:
        self.version = version
        super().__init__(f"Migration {version} failed: {message}")
