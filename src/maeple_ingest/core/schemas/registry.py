"""Named schemas available to the CLI and to feature code."""

from __future__ import annotations

from typing import Dict, List, Type

from maeple_ingest.core.schemas.base import ResponseSchema
from maeple_ingest.core.schemas.facs import FacialAnalysis
from maeple_ingest.core.schemas.mood import MoodAnalysis
from maeple_ingest.core.schemas.observations import Observation, ObjectiveObservation

SCHEMA_REGISTRY: Dict[str, Type[ResponseSchema]] = {
    "mood": MoodAnalysis,
    "facs": FacialAnalysis,
    "observation": Observation,
    "objective-observation": ObjectiveObservation,
}


def get_schema(name: str) -> Type[ResponseSchema]:
    """Look up a registered schema by name.

    Raises:
        KeyError: If no schema is registered under ``name``.
    """
    try:
        return SCHEMA_REGISTRY[name]
    except KeyError:
        known = ", ".join(sorted(SCHEMA_REGISTRY))
        raise KeyError(f"Unknown schema '{name}' (known: {known})") from None


def list_schemas() -> List[Dict[str, str]]:
    """Describe every registered schema."""
    return [
        {
            "name": name,
            "model": schema.__name__,
            "fields": ", ".join(
                field.alias or key for key, field in schema.model_fields.items()
            ),
        }
        for name, schema in sorted(SCHEMA_REGISTRY.items())
    ]
