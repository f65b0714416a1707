"""coinhist exception hierarchy.

All package-specific exceptions derive from :class:`CoinHistError` so callers
can catch every pipeline error uniformly.
"""


class CoinHistError(Exception):
    """Base class for coinhist exceptions."""


class ConfigError(CoinHistError):
    """Raised when configuration files or options are invalid."""


class FetchError(CoinHistError):
    """Raised when fetching or parsing the history of a single coin fails.

    The dispatcher treats this (and any other task exception) as a removed
    task; it never propagates out of a batch.
    """


class NoDataError(CoinHistError):
    """Raised when a run produced no usable records at all."""


# Name used by callers that think of the condition as an empty result.
EmptyResultError = NoDataError


__all__ = [
    "CoinHistError",
    "ConfigError",
    "FetchError",
    "NoDataError",
    "EmptyResultError",
]
