"""
Domain exceptions for the placement engine.

Services raise these; batch operations (flush, discover, fan-out) catch them per
item and report counts instead. The web layer maps them to HTTP status codes.
"""


class PlacementError(Exception):
    """Base exception for all engine errors."""
    pass


class ValidationError(PlacementError):
    """Bad input, illegal transition or terminal request. Nothing was changed."""
    pass


class NotFoundError(ValidationError):
    """Referenced entity does not exist."""

    def __init__(self, entity: str, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class IllegalTransitionError(ValidationError):
    """Requested status change is not an edge of the status graph."""

    def __init__(self, current, target):
        self.current = current
        self.target = target
        super().__init__(f"Illegal transition {_name(current)} -> {_name(target)}")


class AuthorizationError(PlacementError):
    """Actor is not allowed to act on the entity (wrong reviewer, not the owner)."""
    pass


class ConflictError(ValidationError):
    """The operation collides with existing state (duplicate application, second request)."""
    pass


class CapacityError(PlacementError):
    """No reviewer is available for routing."""
    pass


class TransientDeliveryError(PlacementError):
    """Delivery failed in a way that may succeed on a later flush."""
    pass


class ScannerError(PlacementError):
    """A discovery scanner failed; wraps the underlying exception."""

    def __init__(self, scanner: str, cause: Exception):
        self.scanner = scanner
        self.cause = cause
        super().__init__(f"Scanner '{scanner}' failed: {cause}")


class ConfigurationError(PlacementError):
    """Invalid or missing configuration. Fatal."""
    pass


def _name(status):
    return getattr(status, "value", status)
