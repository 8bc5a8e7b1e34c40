from __future__ import annotations

import argparse
import os
import sys
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from opentelemetry import trace
from pydantic import ValidationError
from pymongo import MongoClient
from pymongo.errors import ConnectionFailure, DuplicateKeyError, InvalidName, PyMongoError

from db import observability
from db.errors import InvalidTarget, SeedError, StoreUnavailable, WriteFailure
from db.logging import configure_logging, logger
from db.records import TEST_APPLICATION, BootstrapRecord
from db.settings import SETTINGS


COMPLETION_MARKER = "MongoDB initialization complete"

_ID_KEY_PATTERN = {"_id": 1}


class SeedOutcome(str, Enum):
    CREATED = "created"
    ALREADY_EXISTS = "already_exists"


@dataclass(frozen=True)
class SeedConfig:
    record: BootstrapRecord = TEST_APPLICATION
    collection: str = field(default_factory=lambda: SETTINGS.mongo_collection)
    # Prefix of the human-readable status lines.
    label: str = "Test application"


class BootstrapSeeder:
    """
    Make sure one well-known record exists in a collection, inserting it only if absent.

    `database` is anything indexable by collection name (a pymongo `Database` in
    production, an in-memory fake in tests). The seeder does not own it: it never
    opens or closes the connection behind it.

    The lookup-then-insert is not atomic. Two seeders racing on an empty store are
    settled by the unique index on `_id`: the losing insert gets a duplicate-key
    error, which is reported the same way as finding the record up front.
    """

    def __init__(self, database: Any, config: SeedConfig | None = None, *, tracer: trace.Tracer | None = None) -> None:
        self.database = database
        self.config = config or SeedConfig()
        self._tracer = tracer or observability.get_tracer()

    def ensure_seeded(self) -> SeedOutcome:
        name = self.config.collection
        record = self.config.record
        log = logger.bind(collection=name, record_id=str(record.id))

        with self._tracer.start_as_current_span("seed.ensure_seeded") as span:
            span.set_attribute("db.mongodb.collection", name)
            try:
                collection = self.database[name]
                existing = collection.find_one({"_id": record.id})
            except InvalidName as exc:
                log.error("seed_invalid_collection", error=str(exc))
                raise InvalidTarget(f"collection name {name!r} rejected: {exc}") from exc
            except PyMongoError as exc:
                log.error("seed_lookup_failed", error=str(exc))
                raise StoreUnavailable(f"lookup of {record.id} in {name!r} failed: {exc}") from exc

            if existing is not None:
                outcome = self._report_exists(log)
            else:
                outcome = self._insert(collection, log)
            span.set_attribute("seed.outcome", outcome.value)
        return outcome

    def _insert(self, collection: Any, log: Any) -> SeedOutcome:
        record = self.config.record
        try:
            collection.insert_one(record.to_document())
        except DuplicateKeyError as exc:
            if _is_id_conflict(exc):
                # Another seeder inserted it between our lookup and our insert.
                return self._report_exists(log, raced=True)
            log.error("seed_insert_failed", error=str(exc))
            raise WriteFailure(f"insert of {record.id} into {self.config.collection!r} hit a unique index: {exc}") from exc
        except ConnectionFailure as exc:
            log.error("seed_insert_failed", error=str(exc))
            raise StoreUnavailable(f"insert of {record.id} into {self.config.collection!r} failed: {exc}") from exc
        except PyMongoError as exc:
            log.error("seed_insert_failed", error=str(exc))
            raise WriteFailure(f"insert of {record.id} into {self.config.collection!r} was rejected: {exc}") from exc

        log.info("seed_record_created")
        print(f"{self.config.label} created successfully")
        return SeedOutcome.CREATED

    def _report_exists(self, log: Any, *, raced: bool = False) -> SeedOutcome:
        log.info("seed_record_exists", raced=raced)
        print(f"{self.config.label} already exists, skipping insert")
        return SeedOutcome.ALREADY_EXISTS


def _is_id_conflict(exc: DuplicateKeyError) -> bool:
    details = exc.details or {}
    key_pattern = details.get("keyPattern")
    if key_pattern is not None:
        return key_pattern == _ID_KEY_PATTERN
    # Servers that omit keyPattern still name the index in the message.
    return " index: _id_ " in str(details.get("errmsg", exc))


def load_record(path: str | Path) -> BootstrapRecord:
    return BootstrapRecord.model_validate_json(Path(path).read_text(encoding="utf-8"))


def seed(
    mongo_url: str,
    database_name: str,
    config: SeedConfig | None = None,
    *,
    timeout_ms: int | None = None,
) -> SeedOutcome:
    if timeout_ms is None:
        timeout_ms = SETTINGS.server_selection_timeout_ms
    try:
        client: MongoClient = MongoClient(mongo_url, tz_aware=True, serverSelectionTimeoutMS=timeout_ms)
    except PyMongoError as exc:
        # Malformed URIs and unresolvable SRV records surface here, before any I/O.
        raise StoreUnavailable(f"cannot create client for {database_name!r}: {exc}") from exc

    try:
        try:
            database = client[database_name]
        except InvalidName as exc:
            raise InvalidTarget(f"database name {database_name!r} rejected: {exc}") from exc
        outcome = BootstrapSeeder(database, config).ensure_seeded()
    finally:
        client.close()

    print(COMPLETION_MARKER)
    return outcome


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Insert the sample land application into MongoDB if it is missing.")
    parser.add_argument("--mongo-url", default=os.getenv("MONGO_URL") or SETTINGS.mongo_url)
    parser.add_argument("--database", default=os.getenv("MONGO_DATABASE") or SETTINGS.mongo_database)
    parser.add_argument("--collection", default=os.getenv("MONGO_COLLECTION") or SETTINGS.mongo_collection)
    parser.add_argument("--record-file", default=None, help="JSON file with a record to seed instead of the sample.")
    parser.add_argument("--timeout-ms", type=int, default=SETTINGS.server_selection_timeout_ms)
    args = parser.parse_args(argv)

    configure_logging(SETTINGS.log_level, service_name=SETTINGS.service_name)

    record = TEST_APPLICATION
    if args.record_file:
        try:
            record = load_record(args.record_file)
        except (OSError, ValidationError) as exc:
            parser.error(f"cannot load --record-file {args.record_file}: {exc}")

    if SETTINGS.otel_enabled:
        observability.setup_tracing(SETTINGS.service_name)
        observability.instrument_pymongo()

    config = SeedConfig(record=record, collection=args.collection)
    try:
        outcome = seed(args.mongo_url, args.database, config, timeout_ms=args.timeout_ms)
    except SeedError as exc:
        logger.error("seed_failed", error_type=type(exc).__name__, error=str(exc))
        return 1
    finally:
        if SETTINGS.otel_enabled:
            observability.shutdown_tracing()

    logger.info(
        "seed_finished",
        database=args.database,
        collection=args.collection,
        record_id=str(record.id),
        outcome=outcome.value,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
