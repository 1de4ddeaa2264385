"""Exceptions raised by the scheduling engine."""


class SRSTrackerError(Exception):
    """Base class for srs_tracker errors."""


class InvalidConfigurationError(SRSTrackerError, ValueError):
    """The interval table or initial interval cannot be used for scheduling."""
