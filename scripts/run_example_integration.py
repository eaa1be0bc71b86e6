#!/usr/bin/env python3
"""Example integration reporting CPU usage of the current process."""
from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Optional

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = PROJECT_ROOT / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from infra_integrations import (
    ConfigurationError,
    DefaultArgs,
    IntegrationBuilder,
    SourceType,
    StoreSaveFailed,
    load_config,
    setup_args,
)
from infra_integrations.logging_setup import get_logger

NAME = "com.example.process"
VERSION = "0.1.0"

logger = get_logger(__name__)


class ExampleArgs(DefaultArgs):
    config: Optional[str] = None


def main(argv: list[str] | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    try:
        args = setup_args(ExampleArgs, argv)
        if args.config:
            builder = IntegrationBuilder.from_config(load_config(Path(args.config)))
        else:
            builder = IntegrationBuilder(NAME, VERSION)
        integration = builder.parsed_arguments(ExampleArgs).argv(argv).build()
    except ConfigurationError as exc:
        logger.error("example.configuration_error", error=str(exc))
        return 2

    times = os.times()
    sample = integration.local_entity().new_metric_set("ProcessSample")
    sample.set_metric("processId", str(os.getpid()), SourceType.ATTRIBUTE)
    sample.set_metric("cpuUserSeconds", times.user, SourceType.GAUGE)
    sample.set_metric("cpuSystemSeconds", times.system, SourceType.GAUGE)
    if integration.storer is not None:
        sample.set_metric("cpuUserPerSecond", times.user, SourceType.RATE)
        sample.set_metric("cpuSystemDelta", times.system, SourceType.DELTA)

    try:
        integration.publish()
    except StoreSaveFailed as exc:
        logger.error("example.store_save_failed", error=str(exc))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
