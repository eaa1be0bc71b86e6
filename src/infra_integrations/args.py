"""Integration arguments loaded from the command line or environment variables."""

from __future__ import annotations

import argparse
import os
from typing import Any, Dict, Mapping, NoReturn, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel, Field, ValidationError, model_validator

from .errors import ConfigurationError


class DefaultArgs(BaseModel):
    """Arguments every integration accepts. Subclass to add your own."""

    verbose: bool = Field(default=False, description="Print more information to logs")
    pretty: bool = Field(default=False, description="Print pretty formatted JSON")
    all: bool = Field(default=False, description="Publish all kind of data (metrics, inventory, events)")
    metrics: bool = Field(default=False, description="Publish metrics data")
    inventory: bool = Field(default=False, description="Publish inventory data")
    events: bool = Field(default=False, description="Publish events data")

    @model_validator(mode="after")
    def _default_to_all(self) -> "DefaultArgs":
        if not (self.metrics or self.inventory or self.events):
            self.all = True
        return self

    def publishes(self, kind: str) -> bool:
        """Return whether data of ``kind`` (metrics, inventory, events) is published."""

        return self.all or bool(getattr(self, kind))


ArgsT = TypeVar("ArgsT", bound=DefaultArgs)


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> NoReturn:
        raise ConfigurationError(f"invalid arguments: {message}")


def _build_parser(model_cls: Type[BaseModel]) -> _ArgumentParser:
    parser = _ArgumentParser(add_help=False, allow_abbrev=False)
    for name, field in model_cls.model_fields.items():
        flags = {f"--{name}", f"--{name.replace('_', '-')}"}
        if field.annotation is bool:
            parser.add_argument(
                *sorted(flags), dest=name, action="store_true", default=None, help=field.description
            )
        else:
            parser.add_argument(*sorted(flags), dest=name, default=None, help=field.description)
    return parser


def setup_args(
    model_cls: Type[ArgsT],
    argv: Optional[Sequence[str]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> ArgsT:
    """Resolve ``model_cls`` from command-line flags, then environment variables.

    Every field ``foo`` is read from ``--foo`` (or ``--foo`` with dashes) and
    from the ``FOO`` environment variable; the command line wins. Unset
    fields keep their model default.
    """

    if not (isinstance(model_cls, type) and issubclass(model_cls, DefaultArgs)):
        raise ConfigurationError("arguments must be a DefaultArgs subclass (or None)")

    environ = os.environ if environ is None else environ
    parsed = vars(_build_parser(model_cls).parse_args(list(argv) if argv is not None else []))

    raw: Dict[str, Any] = {}
    for name in model_cls.model_fields:
        if parsed.get(name) is not None:
            raw[name] = parsed[name]
        elif name.upper() in environ:
            raw[name] = environ[name.upper()]

    try:
        return model_cls.model_validate(raw)
    except ValidationError as exc:
        raise ConfigurationError(f"invalid arguments: {exc}") from exc


__all__ = ["DefaultArgs", "setup_args"]
