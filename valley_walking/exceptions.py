"""
Error types for input-contract violations.

Control-flow outcomes (a point that is not a valley, a walk that leaves the
manifold, a projection that does not converge) are return values, never
exceptions. The classes here cover malformed calls only, and all of them are
``ValueError`` subclasses so callers can catch them broadly.
"""


class ValleyWalkingError(Exception):
    """Base class for valley walking errors."""


class MissingCoordinatesError(ValleyWalkingError, ValueError):
    """A candidate table does not carry the expected coordinate columns."""


class DimensionMismatchError(ValleyWalkingError, ValueError):
    """A point, direction or bound vector has the wrong length."""


class UnknownWalkMethodError(ValleyWalkingError, ValueError):
    """The requested walking method is not one of the known tags."""
