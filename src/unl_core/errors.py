"""
Error kinds raised by unl-core.

Every error is a ValueError so callers validating input can catch the
whole family at once.
"""


class UnlCoreError(ValueError):
    """Base class for all unl-core errors."""


class InvalidCoordinate(UnlCoreError):
    """Latitude/longitude is not a finite number or is out of range."""


class InvalidCellId(UnlCoreError):
    """Location id is empty, has characters outside the alphabet or a bad elevation suffix."""


class InvalidDirection(UnlCoreError):
    """Direction is not one of n, s, e, w."""


class PrecisionOutOfRange(UnlCoreError):
    """Requested precision is outside the supported range."""


class InvalidPolygon(UnlCoreError):
    """Polygon input could not be interpreted."""


class MalformedPolyhash(UnlCoreError):
    """Binary polyhash could not be decoded."""
