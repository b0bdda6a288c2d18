class RoutingError(Exception):
    """Base exception for graph and route calculation failures."""


class VertexNotFoundError(RoutingError, LookupError):
    """Raised when a query names a vertex that is not in the graph."""


class InvalidArgumentError(RoutingError, ValueError):
    """Raised for malformed input such as None vertices or foreign vertices."""


class InconsistentPathError(RoutingError, RuntimeError):
    """Raised when a search marks a destination as reached but its predecessor chain is broken."""


class MapFormatError(RoutingError, ValueError):
    """Raised when a map file cannot be parsed."""
