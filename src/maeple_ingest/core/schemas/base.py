"""Base model for provider response schemas."""

from __future__ import annotations

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class ResponseSchema(BaseModel):
    """Strict, immutable record parsed from provider output.

    Fields are declared in snake_case and matched against the camelCase keys
    the provider is prompted to produce. Unknown keys are violations, and no
    value is coerced across types.
    """

    model_config = {
        "extra": "forbid",
        "strict": True,
        "frozen": True,
        "alias_generator": to_camel,
        "populate_by_name": True,
    }

    def to_record(self) -> dict:
        """Dump to a JSON-compatible dict keyed the way the provider sent it."""
        return self.model_dump(mode="json", by_alias=True)
