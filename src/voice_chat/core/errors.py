"""Typed domain exceptions for API error mapping.

Repositories raise these; the FastAPI app maps each type to an HTTP
status code. Input validation failures are not defined here, they are
raised by pydantic before a repository is ever called.

Usage:
    # In a repository
    raise NotFoundError("Chat session", session_id)

    # In the app
    @app.exception_handler(NotFoundError)
    async def not_found(request, exc): ...
"""


class DomainError(Exception):
    """Base exception for all domain errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)


class NotFoundError(DomainError):
    """Referenced entity does not exist. Maps to HTTP 404."""

    def __init__(self, resource_type: str, identifier: str) -> None:
        super().__init__(f"{resource_type} with id {identifier} not found")
        self.resource_type = resource_type
        self.identifier = identifier


class DataCorruptionError(DomainError):
    """Stored value cannot be decoded. Maps to HTTP 500."""

    def __init__(self, field: str, raw_value: object) -> None:
        super().__init__(f"Stored value for {field} is not a valid decimal: {raw_value!r}")
        self.field = field
        self.raw_value = raw_value


class StorageUnavailableError(DomainError):
    """Persistence layer is unreachable. Maps to HTTP 503."""

    def __init__(self, operation: str) -> None:
        super().__init__(f"Storage unavailable during {operation}")
        self.operation = operation
