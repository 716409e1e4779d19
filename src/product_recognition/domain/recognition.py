"""Models for recognition results."""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class RecognitionItem(BaseModel):
    """Single recognized product."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str
    category: str
    expiry_date: date | None = None
    production_date: date | None = None
    shelf_life_days: int | None = Field(default=None, ge=0)
    quantity: int = Field(default=1, ge=1)


class NormalizedResponse(BaseModel):
    """Items extracted from one provider answer."""

    items: list[RecognitionItem]
    confidence: float = Field(ge=0.0, le=1.0)


class RecognitionResult(BaseModel):
    """Outcome of a successful fallback run."""

    success: bool = True
    items: list[RecognitionItem]
    confidence: float
    provider: str
    attempted_providers: list[str]
    processed_at: datetime
