class PlexgaugeError(RuntimeError):
    """Base error type."""


class ConfigError(PlexgaugeError):
    """Missing or invalid startup configuration."""


class CatalogError(PlexgaugeError):
    """Plex catalog could not be fetched."""


class SchemaError(PlexgaugeError):
    """Catalog content did not match the expected shape."""


class UnknownNodeTypeError(SchemaError):
    def __init__(self, node_type):
        self.node_type = node_type
        super().__init__(f"Unknown item type: {node_type}")


class RefreshTimeoutError(PlexgaugeError):
    """Refresh cycle exceeded its deadline."""


class RefreshInProgressError(PlexgaugeError):
    """A refresh cycle is already running."""
