"""Stateful core of metrics-collection integrations."""

from .args import DefaultArgs, setup_args
from .builder import IntegrationBuilder
from .clock import SteppingClock, system_clock
from .config import IntegrationConfig, load_config
from .errors import (
    ConfigurationError,
    IntegrationError,
    InvalidValueType,
    MetricError,
    NoStorerConfigured,
    StoreError,
    StoreLoadCorrupt,
    StoreSaveFailed,
    UnknownSourceType,
)
from .integration import PROTOCOL_VERSION, Entity, Integration
from .metric import MetricSet, SourceType, new_metric_set
from .persist import DEFAULT_TTL, FileStore, InMemoryStore, StoredEntry, Storer, default_path

__all__ = [
    "ConfigurationError",
    "DEFAULT_TTL",
    "DefaultArgs",
    "Entity",
    "FileStore",
    "InMemoryStore",
    "Integration",
    "IntegrationBuilder",
    "IntegrationConfig",
    "IntegrationError",
    "InvalidValueType",
    "MetricError",
    "MetricSet",
    "NoStorerConfigured",
    "PROTOCOL_VERSION",
    "SourceType",
    "SteppingClock",
    "StoreError",
    "StoreLoadCorrupt",
    "StoreSaveFailed",
    "StoredEntry",
    "Storer",
    "UnknownSourceType",
    "default_path",
    "load_config",
    "new_metric_set",
    "setup_args",
    "system_clock",
]
