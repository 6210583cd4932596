"""Facial Action Coding System (FACS) analysis schema for state checks."""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import Field

from maeple_ingest.core.schemas.base import ResponseSchema
from maeple_ingest.core.schemas.observations import Severity


class AUIntensity(str, Enum):
    """FACS intensity grades, trace (A) to maximum (E)."""

    A = "A"
    B = "B"
    C = "C"
    D = "D"
    E = "E"


class FacialCategory(str, Enum):
    TENSION = "tension"
    FATIGUE = "fatigue"
    LIGHTING = "lighting"
    ENVIRONMENTAL = "environmental"


class ActionUnit(ResponseSchema):
    au_code: str = Field(..., pattern=r"^AU\d{1,2}$")
    name: str = Field(..., min_length=1)
    intensity: AUIntensity
    intensity_numeric: int = Field(..., ge=1, le=5)
    confidence: float = Field(..., ge=0, le=1)


class FacsInterpretation(ResponseSchema):
    duchenn_smile: bool
    social_smile: bool
    masking_indicators: List[str]
    fatigue_indicators: List[str]
    tension_indicators: List[str]


class FacialObservation(ResponseSchema):
    category: FacialCategory
    value: str = Field(..., min_length=1, max_length=500)
    evidence: str = Field(..., min_length=1, max_length=500)


class FacialAnalysis(ResponseSchema):
    """Action units detected in a captured frame, plus their reading."""

    confidence: float = Field(..., ge=0, le=1)
    action_units: List[ActionUnit]
    facs_interpretation: FacsInterpretation
    observations: List[FacialObservation]
    lighting: str = Field(..., min_length=1, max_length=100)
    lighting_severity: Severity
    environmental_clues: List[str]
    jaw_tension: Optional[float] = Field(None, ge=1, le=10)
    eye_fatigue: Optional[float] = Field(None, ge=1, le=10)
    masking_score: Optional[float] = Field(None, ge=1, le=10)
    primary_emotion: Optional[str] = Field(None, max_length=100)
