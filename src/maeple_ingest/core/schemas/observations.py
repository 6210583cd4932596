"""Objective observation schema shared by the camera, voice and text paths."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List

from pydantic import Field

from maeple_ingest.core.schemas.base import ResponseSchema


class ObservationCategory(str, Enum):
    LIGHTING = "lighting"
    NOISE = "noise"
    TENSION = "tension"
    FATIGUE = "fatigue"
    SPEECH_PACE = "speech-pace"
    TONE = "tone"


class Severity(str, Enum):
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"


class ObservationType(str, Enum):
    VISUAL = "visual"
    AUDIO = "audio"
    TEXT = "text"


class ObservationSource(str, Enum):
    BIO_MIRROR = "bio-mirror"
    VOICE = "voice"
    TEXT_INPUT = "text-input"


class Observation(ResponseSchema):
    """A single measurable signal, with the evidence the provider cited."""

    category: ObservationCategory
    value: str = Field(..., min_length=1, max_length=500)
    severity: Severity
    evidence: str = Field(..., min_length=1, max_length=500)


class ObjectiveObservation(ResponseSchema):
    type: ObservationType
    source: ObservationSource
    observations: List[Observation]
    confidence: float = Field(..., ge=0, le=1)
    timestamp: datetime
