"""Journal-entry mood analysis schema."""

from __future__ import annotations

from enum import Enum
from typing import List

from pydantic import Field

from maeple_ingest.core.schemas.base import ResponseSchema


class StrategyType(str, Enum):
    REST = "REST"
    FOCUS = "FOCUS"
    SOCIAL = "SOCIAL"
    SENSORY = "SENSORY"
    EXECUTIVE = "EXECUTIVE"


class Medication(ResponseSchema):
    name: str = Field(..., min_length=1, max_length=200)
    amount: str = Field(..., max_length=100)
    unit: str = Field(..., max_length=50)


class Symptom(ResponseSchema):
    name: str = Field(..., min_length=1, max_length=200)
    severity: float = Field(..., ge=1, le=10, description="1-10 scale")


class NeuroMetrics(ResponseSchema):
    """Load estimates inferred from the entry's language."""

    sensory_load: float = Field(..., ge=0, le=10)
    context_switches: int = Field(..., ge=0)
    masking_score: float = Field(..., ge=1, le=10)


class StrategyRecommendation(ResponseSchema):
    id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1, max_length=200)
    action: str = Field(..., min_length=1, max_length=500)
    type: StrategyType
    relevance_score: float = Field(..., ge=0, le=1)


class MoodAnalysis(ResponseSchema):
    """Structured reading of a free-text journal entry."""

    mood_score: float = Field(..., ge=1, le=5, description="1 (terrible) to 5 (excellent)")
    mood_label: str = Field(..., min_length=1, max_length=100)
    neuro_metrics: NeuroMetrics
    activity_types: List[str]
    strengths: List[str]
    summary: str
    strategies: List[StrategyRecommendation]
    analysis_reasoning: str
    medications: List[Medication] = Field(default_factory=list)
    symptoms: List[Symptom] = Field(default_factory=list)
