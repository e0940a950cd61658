"""Exceptions raised by the catalog store and handlers."""


class CatalogError(Exception):
    """Base class for catalog failures."""


class NotFoundError(CatalogError, LookupError):
    """The primary record of a detail or update page does not exist."""

    status_code = 404


class StoreError(CatalogError):
    """A read or write against the document store failed."""

    status_code = 500
