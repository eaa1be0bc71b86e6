"""Fluent builder producing configured ``Integration`` instances."""

from __future__ import annotations

import sys
import threading
from datetime import timedelta
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence, TextIO, Type

from .args import DefaultArgs, setup_args
from .clock import Clock, system_clock
from .config import IntegrationConfig
from .errors import ConfigurationError
from .integration import DisabledLock, Integration
from .logging_setup import configure_logging, get_logger
from .persist import DEFAULT_TTL, FileStore, InMemoryStore, Storer, default_path

logger = get_logger(__name__)


class IntegrationBuilder:
    """Collects the pieces of an integration and validates them in ``build``.

    By default the integration writes to stdout, is not synchronized, parses
    ``DefaultArgs`` from ``sys.argv`` and the environment, and keeps its
    baselines in a ``FileStore`` at ``default_path(name)``.
    """

    def __init__(self, name: str, version: str) -> None:
        self.name = name
        self.version = version
        self._writer: Optional[TextIO] = sys.stdout
        self._synchronized = False
        self._arguments: Any = None
        self._storer: Optional[Storer] = None
        self._has_store = True
        self._store_path: Optional[Path] = None
        self._store_ttl: timedelta = DEFAULT_TTL
        self._clock: Clock = system_clock
        self._argv: Optional[Sequence[str]] = None
        self._environ: Optional[Mapping[str, str]] = None
        self._logging: Optional[dict[str, Any]] = None

    @classmethod
    def from_config(cls, config: IntegrationConfig) -> "IntegrationBuilder":
        builder = cls(config.name, config.version)
        if config.synchronized:
            builder.synchronized()
        if config.store.kind == "memory":
            builder.in_memory_store()
        elif config.store.kind == "none":
            builder.no_store()
        else:
            builder.file_store(
                Path(config.store.path) if config.store.path else None,
                ttl=timedelta(seconds=config.store.ttl_seconds),
            )
        builder._logging = {
            "level": config.logging.level,
            "json": config.logging.json_logs,
            "log_file": config.logging.log_file,
        }
        return builder

    def synchronized(self) -> "IntegrationBuilder":
        """Guard entity and metric set creation with a lock for multi-threaded use."""

        self._synchronized = True
        return self

    def writer(self, writer: Optional[TextIO]) -> "IntegrationBuilder":
        self._writer = writer
        return self

    def parsed_arguments(self, model_cls: Optional[Type[DefaultArgs]]) -> "IntegrationBuilder":
        self._arguments = model_cls
        return self

    def argv(self, argv: Sequence[str]) -> "IntegrationBuilder":
        self._argv = list(argv)
        return self

    def environ(self, environ: Mapping[str, str]) -> "IntegrationBuilder":
        self._environ = environ
        return self

    def storer(self, storer: Storer) -> "IntegrationBuilder":
        self._storer = storer
        self._has_store = True
        return self

    def in_memory_store(self) -> "IntegrationBuilder":
        return self.storer(InMemoryStore(clock=self._clock))

    def file_store(self, path: Optional[Path] = None, ttl: timedelta = DEFAULT_TTL) -> "IntegrationBuilder":
        self._storer = None
        self._has_store = True
        self._store_path = path
        self._store_ttl = ttl
        return self

    def no_store(self) -> "IntegrationBuilder":
        """Build without a store: RATE and DELTA metrics will be rejected."""

        self._storer = None
        self._has_store = False
        return self

    def clock(self, clock: Clock) -> "IntegrationBuilder":
        self._clock = clock
        if isinstance(self._storer, InMemoryStore):
            self._storer.clock = clock
        return self

    def _check_arguments(self) -> Type[DefaultArgs]:
        if self._arguments is None:
            return DefaultArgs
        if isinstance(self._arguments, type) and issubclass(self._arguments, DefaultArgs):
            return self._arguments
        raise ConfigurationError("arguments must be a DefaultArgs subclass (or None)")

    def build(self) -> Integration:
        if self._writer is None:
            raise ConfigurationError("integration writer can't be None")
        if not self.name:
            raise ConfigurationError("integration name can't be empty")

        lock = threading.Lock() if self._synchronized else DisabledLock()

        model_cls = self._check_arguments()
        argv = self._argv if self._argv is not None else sys.argv[1:]
        args = setup_args(model_cls, argv, self._environ)

        configure_logging(self._logging, verbose=args.verbose)

        storer = self._storer
        if storer is None and self._has_store:
            path = self._store_path or default_path(self.name)
            storer = FileStore(path, clock=self._clock, ttl=self._store_ttl)

        logger.debug(
            "integration.build",
            integration=self.name,
            synchronized=self._synchronized,
            store=type(storer).__name__ if storer is not None else None,
        )

        return Integration(
            self.name,
            self.version,
            writer=self._writer,
            storer=storer,
            lock=lock,
            args=args,
            pretty=args.pretty,
        )


__all__ = ["IntegrationBuilder"]
