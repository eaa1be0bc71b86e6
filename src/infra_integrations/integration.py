"""Integration payload: entities, their metric sets, inventory and events."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import Any, ContextManager, Dict, List, Optional, TextIO

from .args import DefaultArgs
from .encoding import dumps
from .errors import ConfigurationError
from .logging_setup import get_logger
from .metric import MetricSet
from .persist import Storer

PROTOCOL_VERSION = "2"
DEFAULT_EVENT_CATEGORY = "notifications"

logger = get_logger(__name__)


class DisabledLock:
    """Lock that never blocks, used when the integration is not synchronized."""

    def acquire(self, blocking: bool = True, timeout: float = -1) -> bool:
        return True

    def release(self) -> None:
        return None

    def __enter__(self) -> "DisabledLock":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        return None


@dataclass(slots=True, frozen=True)
class EntityMetadata:
    name: str
    type: str


class Entity:
    """Data reported for one monitored entity.

    An entity without metadata is the local entity: the host running the
    integration.
    """

    def __init__(self, integration: "Integration", metadata: Optional[EntityMetadata] = None) -> None:
        self._integration = integration
        self.metadata = metadata
        self.metrics: List[MetricSet] = []
        self.inventory: Dict[str, Dict[str, Any]] = {}
        self.events: List[Dict[str, str]] = []

    def new_metric_set(self, event_type: str) -> MetricSet:
        metric_set = MetricSet(event_type, self._integration.storer)
        with self._integration.lock:
            self.metrics.append(metric_set)
        return metric_set

    def set_inventory_item(self, item: str, field: str, value: Any) -> None:
        if not item or not field:
            raise ConfigurationError("inventory item and field names can't be empty")
        with self._integration.lock:
            self.inventory.setdefault(item, {})[field] = value

    def add_event(self, summary: str, category: str = DEFAULT_EVENT_CATEGORY) -> None:
        if not summary:
            raise ConfigurationError("event summary can't be empty")
        with self._integration.lock:
            self.events.append({"summary": summary, "category": category})

    def to_dict(self, args: DefaultArgs) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "metrics": [metric_set.to_dict() for metric_set in self.metrics] if args.publishes("metrics") else [],
            "inventory": dict(self.inventory) if args.publishes("inventory") else {},
            "events": list(self.events) if args.publishes("events") else [],
        }
        if self.metadata is not None:
            payload["entity"] = {"name": self.metadata.name, "type": self.metadata.type}
        return payload


class Integration:
    """Container of entity data, written to ``writer`` by ``publish``."""

    def __init__(
        self,
        name: str,
        version: str,
        *,
        writer: Optional[TextIO] = None,
        storer: Optional[Storer] = None,
        lock: Optional[ContextManager[Any]] = None,
        args: Optional[DefaultArgs] = None,
        pretty: bool = False,
    ) -> None:
        self.name = name
        self.integration_version = version
        self.protocol_version = PROTOCOL_VERSION
        self.entities: List[Entity] = []
        self.writer: TextIO = writer if writer is not None else sys.stdout
        self.storer = storer
        self.lock: ContextManager[Any] = lock if lock is not None else DisabledLock()
        self.args = args if args is not None else DefaultArgs()
        self.pretty = pretty

    def entity(self, name: str, entity_type: str) -> Entity:
        """Return the entity identified by ``name`` and ``entity_type``, creating it if needed."""

        if not name or not entity_type:
            raise ConfigurationError("entity name and type can't be empty")
        metadata = EntityMetadata(name=name, type=entity_type)
        with self.lock:
            for existing in self.entities:
                if existing.metadata == metadata:
                    return existing
            entity = Entity(self, metadata)
            self.entities.append(entity)
        return entity

    def local_entity(self) -> Entity:
        with self.lock:
            for existing in self.entities:
                if existing.metadata is None:
                    return existing
            entity = Entity(self)
            self.entities.append(entity)
        return entity

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "protocol_version": self.protocol_version,
            "integration_version": self.integration_version,
            "data": [entity.to_dict(self.args) for entity in self.entities],
        }

    def serialize(self) -> bytes:
        return dumps(self.to_dict(), pretty=self.pretty).encode("utf-8")

    def clear(self) -> None:
        with self.lock:
            self._reset()

    def _reset(self) -> None:
        self.entities = []

    def publish(self) -> None:
        """Write the payload, persist the store and reset the collected data.

        Raises ``StoreSaveFailed`` when the store cannot be persisted; the
        payload has already been written at that point.
        """

        with self.lock:
            output = dumps(self.to_dict(), pretty=self.pretty)
            self.writer.write(output + "\n")
            self.writer.flush()
            logger.debug("integration.publish", integration=self.name, entities=len(self.entities))

            if self.storer is not None:
                self.storer.save()
            self._reset()


__all__ = [
    "DEFAULT_EVENT_CATEGORY",
    "DisabledLock",
    "Entity",
    "EntityMetadata",
    "Integration",
    "PROTOCOL_VERSION",
]
