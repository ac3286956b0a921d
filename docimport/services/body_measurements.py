"""Body measurements import - scale exports, analyzer reports, coach sheets.

Entries without a date or without any headline metric are dropped.
The rest are upserted per (user, date); unparsable dates are skipped with
a warning.
"""

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from docimport.core.import_logger import get_logger
from docimport.prompts import build_body_measurements_prompt
from docimport.pydantic_models.body_measurements import (
    BodyMeasurementsImportResult,
    ImportedBodyMeasurements,
    ImportedMeasurement,
)
from docimport.pydantic_models.import_models import ImportOptions
from docimport.workflow import ImportStrategy


@dataclass
class StoredMeasurement:
    id: str
    user_id: str
    date: date
    values: dict[str, Any] = field(default_factory=dict)


class MeasurementRepository(ABC):
    """Persistence for body measurements."""

    @abstractmethod
    async def find_by_date(self, user_id: str, measured_on: date) -> StoredMeasurement | None:
        ...

    @abstractmethod
    async def create(self, user_id: str, measured_on: date, values: dict[str, Any]) -> StoredMeasurement:
        ...

    @abstractmethod
    async def update(self, measurement_id: str, values: dict[str, Any]) -> StoredMeasurement:
        ...


class InMemoryMeasurementRepository(MeasurementRepository):
    def __init__(self):
        self.records: dict[str, StoredMeasurement] = {}

    async def find_by_date(self, user_id: str, measured_on: date) -> StoredMeasurement | None:
        for record in self.records.values():
            if record.user_id == user_id and record.date == measured_on:
                return record
        return None

    async def create(self, user_id: str, measured_on: date, values: dict[str, Any]) -> StoredMeasurement:
        record = StoredMeasurement(id=uuid.uuid4().hex, user_id=user_id, date=measured_on, values=dict(values))
        self.records[record.id] = record
        return record

    async def update(self, measurement_id: str, values: dict[str, Any]) -> StoredMeasurement:
        record = self.records[measurement_id]
        record.values.update(values)
        return record

    def for_user(self, user_id: str) -> list[StoredMeasurement]:
        return sorted((r for r in self.records.values() if r.user_id == user_id), key=lambda r: r.date)


def parse_measurement_date(value: str) -> date | None:
    """Parse YYYY-MM-DD or an ISO timestamp. None if unparsable."""
    try:
        return datetime.fromisoformat(value.strip()).date()
    except ValueError:
        return None


def measurement_values(measurement: ImportedMeasurement) -> dict[str, Any]:
    """Fields to store, without the date and without empty values."""
    return measurement.model_dump(exclude={"date"}, exclude_none=True)


class BodyMeasurementsImportStrategy(ImportStrategy[ImportedBodyMeasurements, list[ImportedMeasurement]]):
    name = "body-measurements-import"
    schema = ImportedBodyMeasurements
    result_model = BodyMeasurementsImportResult

    def __init__(self, repository: MeasurementRepository):
        self.repository = repository
        self.logger = get_logger(self.name)

    def build_prompt(self, options: ImportOptions) -> str:
        return build_body_measurements_prompt(options.locale)

    async def process_parsed(
        self,
        parsed: ImportedBodyMeasurements,
        user_id: str,
        options: ImportOptions,
    ) -> list[ImportedMeasurement]:
        valid = [m for m in parsed.measurements if m.date and m.has_metric()]
        dropped = len(parsed.measurements) - len(valid)
        if dropped:
            self.logger.debug("Dropped measurements without date or metric", user_id=user_id, dropped=dropped)
        return valid

    async def persist(self, processed: list[ImportedMeasurement], user_id: str) -> dict[str, Any]:
        count = 0
        warnings: list[str] = []

        for measurement in processed:
            if not measurement.date:
                continue

            measured_on = parse_measurement_date(measurement.date)
            if measured_on is None:
                message = f"Invalid date found: {measurement.date}"
                self.logger.warning(message, user_id=user_id)
                warnings.append(message)
                continue

            values = measurement_values(measurement)
            existing = await self.repository.find_by_date(user_id, measured_on)
            if existing:
                await self.repository.update(existing.id, values)
            else:
                await self.repository.create(user_id, measured_on, values)
            count += 1

        return {"measurements_imported": count, "warnings": warnings}

    def create_error_result(self, errors: list[str]) -> dict[str, Any]:
        return {"measurements_imported": 0}
