"""Store error classes.

Every failure of the account stores is a StoreError carrying a
machine-readable code and a human-readable message, so callers can map
them to whatever surface they expose (packets, HTTP, logs).

Authentication failures are not errors: the user registry returns them as
AuthenticationResult values.
"""


class StoreError(Exception):
    """Base class for store errors.

    Attributes:
        code: Machine-readable error code (e.g., "NOT_FOUND").
        message: Human-readable error message.
        details: Optional list of additional error details.
    """

    def __init__(
        self,
        code: str,
        message: str,
        details: list[dict] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details
        super().__init__(message)


class ValidationError(StoreError):
    """Field validation failed.

    Use for unknown/immutable update fields, NULL for a non-null column,
    login name or password rule violations, unpaired hash/salt.
    """

    def __init__(
        self,
        message: str,
        details: list[dict] | None = None,
    ) -> None:
        super().__init__(
            code="VALIDATION_ERROR",
            message=message,
            details=details,
        )


class NotFoundError(StoreError):
    """Row not found.

    Args:
        resource: Human-readable resource name (e.g., "User").
        resource_id: Lookup key. Omitted from the message for secrets
            such as token values.
    """

    def __init__(self, resource: str, resource_id: str | None = None) -> None:
        if resource_id:
            message = f"{resource} with id '{resource_id}' not found"
        else:
            message = f"{resource} not found"
        super().__init__(
            code="NOT_FOUND",
            message=message,
        )


class DuplicateKeyError(StoreError):
    """Primary key or unique column already taken.

    Raised for a duplicate user_id or a login name owned by another user.
    """

    def __init__(self, resource: str, key: str, value: str) -> None:
        super().__init__(
            code="DUPLICATE_KEY",
            message=f"{resource} with {key} '{value}' already exists",
            details=[{"key": key, "value": value}],
        )


class ForeignKeyViolationError(StoreError):
    """Dependent row references a user that does not exist."""

    def __init__(self, resource: str, user_id: str) -> None:
        super().__init__(
            code="FOREIGN_KEY_VIOLATION",
            message=f"{resource} references unknown user '{user_id}'",
            details=[{"user_id": user_id}],
        )
