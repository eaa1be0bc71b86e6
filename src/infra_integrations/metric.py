"""Metric sets: validated metric values for one event type."""

from __future__ import annotations

import math
import numbers
from decimal import Decimal
from enum import IntEnum
from typing import Any, Dict, Optional, Union

from .encoding import dumps
from .errors import ConfigurationError, InvalidValueType, NoStorerConfigured, UnknownSourceType
from .logging_setup import get_logger
from .persist import Storer

logger = get_logger(__name__)

EVENT_TYPE_FIELD = "event_type"

MetricValue = Union[int, float, str]


class SourceType(IntEnum):
    """How the value given to ``MetricSet.set_metric`` must be interpreted."""

    GAUGE = 0
    RATE = 1
    DELTA = 2
    ATTRIBUTE = 3


def _to_number(name: str, value: Any) -> Union[int, float]:
    """Return ``value`` as a built-in finite ``int`` or ``float``.

    ``bool`` is not numeric; ``Decimal`` and other reals are converted.
    """

    if isinstance(value, bool) or not isinstance(value, (numbers.Real, Decimal)):
        raise InvalidValueType(f"non-numeric source type for metric {name}")
    if isinstance(value, numbers.Integral):
        return int(value)
    try:
        number = float(value)
    except (OverflowError, ValueError):
        raise InvalidValueType(f"out of range value for metric {name}") from None
    if not math.isfinite(number):
        raise InvalidValueType(f"non-finite value for metric {name}")
    return number


class MetricSet:
    """Bag of metrics reported under one ``event_type``.

    RATE and DELTA metrics read their baseline from the bound storer and
    write the new raw value back, so consecutive calls (within a run or
    across runs through a durable store) observe each other. Storer keys
    are the bare metric names: reusing a name with another source type
    shares its baseline.
    """

    def __init__(self, event_type: str, storer: Optional[Storer] = None) -> None:
        if not event_type:
            raise ConfigurationError("metric set event type can't be empty")
        self.event_type = event_type
        self.storer = storer
        self.metrics: Dict[str, MetricValue] = {}

    def set_metric(self, name: str, value: Any, source_type: Union[SourceType, int]) -> None:
        try:
            source_type = SourceType(source_type)
        except (ValueError, TypeError):
            raise UnknownSourceType(f"unknown source type {source_type!r} for metric {name}") from None

        if source_type is SourceType.ATTRIBUTE:
            if not isinstance(value, str):
                raise InvalidValueType(f"non-string source type for attribute {name}")
            self.metrics[name] = value
            return

        storer = self.storer
        if source_type in (SourceType.RATE, SourceType.DELTA) and storer is None:
            raise NoStorerConfigured("integrations built with no store can't use deltas and rates")

        number = _to_number(name, value)

        if source_type is SourceType.GAUGE or storer is None:
            self.metrics[name] = number
            return

        try:
            raw = float(number)
        except OverflowError:
            raise InvalidValueType(f"out of range value for metric {name}") from None
        self.metrics[name] = self._sample(storer, name, raw, source_type)

    def _sample(self, storer: Storer, name: str, value: float, source_type: SourceType) -> float:
        previous = storer.get(name)
        timestamp = storer.set(name, value)

        if previous is None:
            logger.debug("metric.baseline.created", metric=name, source_type=source_type.name)
            return 0.0

        elapsed = timestamp - previous.timestamp
        if elapsed <= 0:
            logger.debug("metric.baseline.no_elapsed_time", metric=name, elapsed=elapsed)
            return 0.0

        difference = value - previous.value
        derived = difference if source_type is SourceType.DELTA else difference / elapsed
        if not math.isfinite(derived):
            raise InvalidValueType(f"out of range {source_type.name.lower()} for metric {name}")
        return derived

    def to_dict(self) -> Dict[str, MetricValue]:
        payload: Dict[str, MetricValue] = dict(self.metrics)
        payload[EVENT_TYPE_FIELD] = self.event_type
        return payload

    def to_json(self, pretty: bool = False) -> str:
        return dumps(self.to_dict(), pretty=pretty)

    def serialize(self) -> bytes:
        """Return the compact, key-sorted JSON encoding of this set."""

        return self.to_json().encode("utf-8")


def new_metric_set(event_type: str, storer: Optional[Storer] = None) -> MetricSet:
    return MetricSet(event_type, storer)


__all__ = ["EVENT_TYPE_FIELD", "MetricSet", "MetricValue", "SourceType", "new_metric_set"]
