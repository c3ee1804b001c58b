class CatalogError(ValueError):
    """Base class for every failure raised by the catalog core."""


class ValidationError(CatalogError):
    """Client-supplied input fails a precondition (missing or too short)."""


class DuplicateUserError(CatalogError):
    pass


class AuthenticationError(CatalogError):
    pass


class NotFoundError(CatalogError):
    """A referenced username or product id is absent."""


class CorruptStoreError(CatalogError):
    """A backing JSON document exists but cannot be parsed."""


class StorageWriteFailed(CatalogError):
    """Persisting a document or blob to disk failed."""
