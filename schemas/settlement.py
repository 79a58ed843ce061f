from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from models.transaction import TransactionType

MAX_DESCRIPTION_LEN = 200
MIN_AMOUNT = 0.01
MAX_AMOUNT = 1e12


class TransactionCreate(BaseModel):
    type: TransactionType
    amount: float = Field(ge=MIN_AMOUNT, le=MAX_AMOUNT, allow_inf_nan=False)
    description: Optional[str] = None

    @field_validator("description")
    @classmethod
    def validate_description(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        text = value.strip()
        if len(text) > MAX_DESCRIPTION_LEN:
            raise ValueError(f"description must be at most {MAX_DESCRIPTION_LEN} characters")
        return text or None
