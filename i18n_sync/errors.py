"""Exception types raised while synchronizing locale catalogs."""


class CatalogSyncError(Exception):
    """Base class for all catalog sync errors."""


class StructuralError(CatalogSyncError):
    """A catalog could not be parsed as a JSON object tree."""


class ProviderError(CatalogSyncError):
    """A translation call failed or returned an unusable payload."""


class UnrecoverableError(CatalogSyncError):
    """The run cannot continue (e.g. the source catalog is unreadable)."""
