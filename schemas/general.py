from __future__ import annotations

from typing import Any, Dict, List, Mapping, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from services.errors import ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)


def validation_details(exc: PydanticValidationError | Any) -> List[Dict[str, str]]:
    """Flatten pydantic errors into [{"field", "message"}], one per violation."""
    details: List[Dict[str, str]] = []
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "path", "query")]
        field = ".".join(loc) or "body"
        message = str(err.get("msg", "Invalid value"))
        # "Value error, symbol must be ..." -> "symbol must be ..."
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        details.append({"field": field, "message": message})
    return details


def parse_model(model: Type[ModelT], data: Mapping[str, Any] | ModelT) -> ModelT:
    """Validate `data` into `model`, raising our ValidationError with every failing field."""
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(dict(data))
    except PydanticValidationError as exc:
        raise ValidationError(validation_details(exc)) from exc


def ok(data: Any, **extra: Any) -> Dict[str, Any]:
    """Success envelope used by every route: {"success": true, "data": ...}."""
    payload: Dict[str, Any] = {"success": True, "data": data}
    payload.update(extra)
    return payload
