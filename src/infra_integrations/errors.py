"""Exception hierarchy shared by the integration SDK."""

from __future__ import annotations


class IntegrationError(RuntimeError):
    """Base class for every error raised by the SDK."""


class ConfigurationError(IntegrationError):
    """Raised when an integration, its arguments or a metric set is misconfigured."""


class MetricError(IntegrationError):
    """Raised when a metric cannot be recorded in a metric set."""


class UnknownSourceType(MetricError):
    pass


class InvalidValueType(MetricError):
    pass


class NoStorerConfigured(MetricError):
    pass


class StoreError(IntegrationError):
    """Raised by persistence stores."""


class StoreLoadCorrupt(StoreError):
    """The backing file of a store cannot be parsed.

    Recovered from inside ``FileStore``: the store starts empty and the
    problem is only logged.
    """


class StoreSaveFailed(StoreError):
    """The store could not be written to disk."""


__all__ = [
    "ConfigurationError",
    "IntegrationError",
    "InvalidValueType",
    "MetricError",
    "NoStorerConfigured",
    "StoreError",
    "StoreLoadCorrupt",
    "StoreSaveFailed",
    "UnknownSourceType",
]
