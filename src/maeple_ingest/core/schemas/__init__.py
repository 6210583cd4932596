"""Feature schemas for provider responses."""

from maeple_ingest.core.schemas.base import ResponseSchema
from maeple_ingest.core.schemas.facs import (
    ActionUnit,
    AUIntensity,
    FacialAnalysis,
    FacialCategory,
    FacialObservation,
    FacsInterpretation,
)
from maeple_ingest.core.schemas.mood import (
    Medication,
    MoodAnalysis,
    NeuroMetrics,
    StrategyRecommendation,
    StrategyType,
    Symptom,
)
from maeple_ingest.core.schemas.observations import (
    ObjectiveObservation,
    Observation,
    ObservationCategory,
    ObservationSource,
    ObservationType,
    Severity,
)
from maeple_ingest.core.schemas.registry import SCHEMA_REGISTRY, get_schema, list_schemas

__all__ = [
    "ResponseSchema",
    "MoodAnalysis",
    "NeuroMetrics",
    "Medication",
    "Symptom",
    "StrategyRecommendation",
    "StrategyType",
    "FacialAnalysis",
    "FacialObservation",
    "FacsInterpretation",
    "FacialCategory",
    "ActionUnit",
    "AUIntensity",
    "Observation",
    "ObjectiveObservation",
    "ObservationCategory",
    "ObservationSource",
    "ObservationType",
    "Severity",
    "SCHEMA_REGISTRY",
    "get_schema",
    "list_schemas",
]
