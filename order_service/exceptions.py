"""
Order Service exceptions
"""


class OrderServiceError(Exception):
    """Base exception for order operations"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(OrderServiceError):
    """Missing or malformed input, detected before the store is touched"""
    pass


class NotFoundError(OrderServiceError):
    """No matching order"""
    pass


class ConflictError(OrderServiceError):
    """Status change refused by the order state machine"""
    pass


class StorageError(OrderServiceError):
    """Failure reported by the database, including constraint violations"""
    pass


class OrderCodeCollisionError(StorageError):
    """Generated order code already exists"""
    pass


def format_validation_errors(errors) -> str:
    """Join pydantic error dicts into one readable message"""
    messages = []
    for error in errors:
        location = ".".join(
            str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")
        )
        messages.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return "; ".join(messages) or "Invalid request"
