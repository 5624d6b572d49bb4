#!/usr/bin/env python3
"""Seed a demo classroom economy.

This script bootstraps a classroom (bank account 100), creates students,
posts jobs, lets students apply, accepts one applicant per job, runs a
payday and a round of student transfers. Everything goes through the
public engine API, so the configured notification sink sees every event.
A classroom exported with ``--export`` can be loaded again with ``--import``.

Store and sink default to the ``ECONSIM_*`` environment variables and can
be overridden on the command line.
"""

import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from econsim.config import SINK_TYPES, STORE_BACKENDS, EconSimConfig
from econsim.engine import ClassroomEngine
from econsim.exceptions import EconSimError
from econsim.logging import setup_logging
from econsim.models import Principal
from econsim.scenarios import DEFAULT_TEACHER, ClassroomScenario

logger = logging.getLogger(__name__)


def write_document(path: Path, document: dict) -> None:
    """Write an ``export_data`` document as pretty-printed JSON."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(document, f, indent=2, ensure_ascii=False)


def read_document(path: Path) -> dict:
    """Read a document written by ``write_document``."""
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Seed a demo classroom economy")
    parser.add_argument(
        "--students",
        type=int,
        default=20,
        help="Number of students to create (default: 20)",
    )
    parser.add_argument(
        "--jobs",
        type=int,
        default=6,
        help="Number of jobs to post (default: 6)",
    )
    parser.add_argument(
        "--transfers",
        type=int,
        default=15,
        help="Number of student transfers to attempt (default: 15)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=42,
        help="Random seed for reproducibility (default: 42)",
    )
    parser.add_argument(
        "--store",
        choices=STORE_BACKENDS,
        default=None,
        help="Store backend (default: ECONSIM_STORE or memory)",
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=None,
        help="Directory for the json store",
    )
    parser.add_argument(
        "--postgres-url",
        type=str,
        default=None,
        help="PostgreSQL connection string for the postgres store",
    )
    parser.add_argument(
        "--sink",
        choices=SINK_TYPES,
        default=None,
        help="Notification sink (default: ECONSIM_SINK or none)",
    )
    parser.add_argument(
        "--import",
        dest="import_file",
        type=Path,
        default=None,
        help="Replace the classroom with this exported JSON document before seeding",
    )
    parser.add_argument(
        "--export",
        type=Path,
        default=None,
        help="Write the whole classroom as one JSON document to this file",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )
    parser.add_argument(
        "--log-format",
        default="standard",
        choices=["standard", "json"],
        help="Log output format (default: standard)",
    )
    args = parser.parse_args()

    setup_logging(args.log_level, args.log_format)

    try:
        config = EconSimConfig.from_env()
        store = config.store
        if args.store:
            store = replace(store, backend=args.store)
        if args.data_dir:
            store = replace(store, json_dir=args.data_dir)
        config = replace(config, store=store, sink=args.sink or config.sink)

        if args.postgres_url:
            config = replace(config, postgres=replace(config.postgres, url=args.postgres_url))

        engine = ClassroomEngine.from_config(config)
    except EconSimError as exc:
        logger.error("Cannot set up engine: %s", exc)
        return 1

    try:
        if args.import_file:
            bank = engine.initialize(DEFAULT_TEACHER)
            counts = engine.import_data(Principal.of(bank), read_document(args.import_file))
            logger.info("Imported %s from %s", counts, args.import_file)

        summary = ClassroomScenario(
            engine,
            num_students=args.students,
            num_jobs=args.jobs,
            num_transfers=args.transfers,
            seed=args.seed,
        ).run()

        if args.export:
            write_document(args.export, engine.export_data())
            logger.info("Exported classroom to %s", args.export)
    except (EconSimError, OSError, json.JSONDecodeError) as exc:
        logger.error("Seeding failed: %s", exc)
        return 1
    finally:
        engine.close()

    print("\nClassroom summary")
    for key, value in summary.items():
        print(f"  {key}: {value}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
