"""Errors raised while turning client query parameters into database reads."""


class QueryError(Exception):
    """Base class for query-layer failures that surface to API clients."""


class InvalidFilterArgument(QueryError):
    """Raised when a scope filter receives an argument it cannot interpret."""

    def __init__(self, filter_name: str, message: str):
        self.filter_name = filter_name
        self.message = message
        super().__init__(f"{filter_name}: {message}")


class StorageError(QueryError):
    """Raised when the backing store fails while executing a query."""


__all__ = ["QueryError", "InvalidFilterArgument", "StorageError"]
