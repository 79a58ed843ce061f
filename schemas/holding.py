from __future__ import annotations

from datetime import date
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationInfo, field_validator

from models.holding import AssetType

MAX_SYMBOL_LEN = 10
MAX_NAME_LEN = 100
MIN_QUANTITY = 0.001
MIN_PRICE = 0.01
# upper bounds keep every derived figure (value, return %, variance) a finite float
MAX_QUANTITY = 1e12
MAX_PRICE = 1e9


def _normalize_symbol(value: str) -> str:
    symbol = (value or "").strip().upper()
    if not symbol or len(symbol) > MAX_SYMBOL_LEN:
        raise ValueError(f"symbol must be 1-{MAX_SYMBOL_LEN} characters")
    return symbol


def _normalize_name(value: str) -> str:
    name = (value or "").strip()
    if not name or len(name) > MAX_NAME_LEN:
        raise ValueError(f"name must be 1-{MAX_NAME_LEN} characters")
    return name


class HoldingCreate(BaseModel):
    symbol: str
    name: str
    type: AssetType
    quantity: float = Field(ge=MIN_QUANTITY, le=MAX_QUANTITY, allow_inf_nan=False)
    purchase_price: float = Field(ge=MIN_PRICE, le=MAX_PRICE, allow_inf_nan=False)
    current_price: float = Field(ge=MIN_PRICE, le=MAX_PRICE, allow_inf_nan=False)
    purchase_date: date

    @field_validator("symbol")
    @classmethod
    def validate_symbol(cls, value: str) -> str:
        return _normalize_symbol(value)

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        return _normalize_name(value)


class HoldingUpdate(BaseModel):
    """PATCH body: any subset of the HoldingCreate fields, none of them null."""

    symbol: Optional[str] = None
    name: Optional[str] = None
    type: Optional[AssetType] = None
    quantity: Optional[float] = Field(default=None, ge=MIN_QUANTITY, le=MAX_QUANTITY, allow_inf_nan=False)
    purchase_price: Optional[float] = Field(default=None, ge=MIN_PRICE, le=MAX_PRICE, allow_inf_nan=False)
    current_price: Optional[float] = Field(default=None, ge=MIN_PRICE, le=MAX_PRICE, allow_inf_nan=False)
    purchase_date: Optional[date] = None

    @field_validator("*")
    @classmethod
    def reject_null(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            raise ValueError(f"{info.field_name} may not be null")
        return value

    @field_validator("symbol")
    @classmethod
    def validate_symbol(cls, value: str) -> str:
        return _normalize_symbol(value)

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        return _normalize_name(value)

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class SellRequest(BaseModel):
    quantity: float = Field(gt=0, allow_inf_nan=False)
