class WundergroundError(Exception):
    """Base error for the Weather Underground plugin"""


class ConfigurationError(WundergroundError):
    """Raised when the station configuration is incomplete"""


class EmptyObservationError(WundergroundError):
    """Raised when an observation has no wind speed samples to report"""
