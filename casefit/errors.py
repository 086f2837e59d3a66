"""Engine exceptions.

Degenerate geometry and payloads that do not fit are scoring outcomes, not
errors, so they have no exception type here.
"""


class CaseFitError(Exception):
    """Base class for engine errors."""
    pass


class NotFoundError(CaseFitError):
    """Raised when a payload, container or match identity cannot be resolved."""

    def __init__(self, entity: str, identity):
        self.entity = entity
        self.identity = identity
        super().__init__(f"{entity} with ID {identity} not found")


class InvalidInputError(CaseFitError):
    """Raised for malformed options or entity attributes, before any query runs."""
    pass
