"""Domain exceptions raised by the configurator services."""

from __future__ import annotations


class ZoneOrderingError(ValueError):
    """A zone was selected, removed or opened out of sequence."""


class ZoneLockedError(ValueError):
    """A complete zone was mutated without being re-opened."""


class EmptyZoneError(ValueError):
    """A zone was saved without any cities while cities were still available."""


class CityUnavailableError(ValueError):
    """A city is owned by another zone or does not belong to the zone's region."""


class UnknownZoneError(ValueError):
    """A zone code, zone index, region or state does not exist."""


class PriceValidationError(ValueError):
    """A price is outside the accepted range or precision."""


class PriceMatrixImportError(ValueError):
    """An uploaded price matrix does not match the finalized zones."""
