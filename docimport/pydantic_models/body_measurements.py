"""Schema for body measurements parsed from files (CSV, XLSX, PDF, images)."""

from typing import ClassVar, Literal

from pydantic import BaseModel, Field

from docimport.pydantic_models.import_models import ImportResult


class ImportedMeasurement(BaseModel):
    """A single body measurement entry."""

    date: str | None = Field(default=None, description="Measurement date, ISO or YYYY-MM-DD")

    # Base metrics
    weight: float | None = Field(default=None, description="Weight in kg")
    height: float | None = Field(default=None, description="Height in cm")

    # Body composition
    body_fat: float | None = Field(default=None, description="Body fat percentage (%)")
    muscle_mass: float | None = Field(default=None, description="Muscle mass in kg")
    visceral_fat: float | None = Field(default=None, description="Visceral fat rating (1-59)")
    water_percentage: float | None = Field(default=None, description="Body water percentage (%)")
    bone_mass: float | None = Field(default=None, description="Bone mass in kg")
    metabolic_age: int | None = Field(default=None, description="Metabolic age in years")
    bmr: int | None = Field(default=None, description="Basal metabolic rate in kcal")

    # Circumferences (cm)
    chest: float | None = Field(default=None, description="Chest circumference in cm")
    waist: float | None = Field(default=None, description="Waist circumference in cm")
    hips: float | None = Field(default=None, description="Hips circumference in cm")
    shoulders: float | None = Field(default=None, description="Shoulders circumference in cm")
    arm: float | None = Field(default=None, description="Arm circumference in cm")
    forearm: float | None = Field(default=None, description="Forearm circumference in cm")
    thigh: float | None = Field(default=None, description="Thigh circumference in cm")
    calf: float | None = Field(default=None, description="Calf circumference in cm")
    neck: float | None = Field(default=None, description="Neck circumference in cm")

    notes: str | None = Field(default=None, description="Additional notes")

    METRIC_FIELDS: ClassVar[tuple[str, ...]] = ("weight", "body_fat", "chest", "waist", "hips")

    def has_metric(self) -> bool:
        """True if at least one headline metric is present."""
        return any(getattr(self, name) for name in self.METRIC_FIELDS)


class MeasurementSourceMetadata(BaseModel):
    athlete_name: str | None = None
    measurement_unit: Literal["metric", "imperial"] = "metric"
    source_type: str | None = None


class ImportedBodyMeasurements(BaseModel):
    """A batch of measurements extracted from one document."""

    source_name: str = Field(
        default="Imported Measurements", description="Name of the source document"
    )
    description: str | None = Field(default=None, description="Optional dataset description")
    measurements: list[ImportedMeasurement] = Field(
        min_length=1, description="Measurements extracted from the document"
    )
    metadata: MeasurementSourceMetadata | None = None


class BodyMeasurementsImportResult(ImportResult):
    measurements_imported: int = 0
