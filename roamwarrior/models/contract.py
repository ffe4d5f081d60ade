"""
Contract layer - validates requests before they reach the completion service
and responses before they reach the session.

Both entry points are pure: the same input always yields the same result and,
on rejection, the same ordered list of violations.
"""
from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from .itinerary import ItineraryPlan
from .travel_request import TravelRequest
from ..errors import FieldViolation, ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)


# Friendlier wording for the pydantic error types the contract can produce
_MESSAGES = {
    "missing": "is required",
    "string_too_short": "must not be empty",
    "too_short": "must contain at least one entry",
    "greater_than": "must be a positive number",
    "greater_than_equal": "must not be negative",
    "int_parsing": "must be a whole number",
    "int_from_float": "must be a whole number",
    "string_type": "must be text",
    "list_type": "must be a list",
    "date_parsing": "must be a date (YYYY-MM-DD)",
    "date_from_datetime_parsing": "must be a date (YYYY-MM-DD)",
    "model_type": "must be an object",
    "model_attributes_type": "must be an object",
}


def violations_from_pydantic(error: PydanticValidationError) -> list[FieldViolation]:
    """Translate every pydantic error into a FieldViolation, keeping their order."""
    violations = []
    for item in error.errors():
        field = ".".join(str(part) for part in item["loc"]) or "__root__"
        message = _MESSAGES.get(item["type"], item["msg"])
        violations.append(FieldViolation(field=field, message=message))
    return violations


def validate_model(model: type[ModelT], data: Any) -> ModelT:
    """Validate raw data as a model, converting pydantic errors to ValidationError."""
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(violations_from_pydantic(e)) from e


def validate_travel_request(data: Any) -> TravelRequest:
    """
    Check a travel request and return it as a TravelRequest.

    Raises:
        ValidationError: listing every violated field, not just the first.
    """
    if isinstance(data, TravelRequest):
        data = data.model_dump(by_alias=True)
    if not isinstance(data, dict):
        raise ValidationError([FieldViolation("__root__", "must be an object")])
    return validate_model(TravelRequest, data)


def validate_itinerary_plan(candidate: Any) -> ItineraryPlan:
    """
    Check an itinerary candidate and return it as an ItineraryPlan.

    Accepts a bare sequence of days or an object with a ``plan`` key.

    Raises:
        ValidationError: listing every violated field.
    """
    if isinstance(candidate, ItineraryPlan):
        candidate = candidate.model_dump(by_alias=True)
    if isinstance(candidate, (list, tuple)):
        candidate = {"plan": list(candidate)}
    if not isinstance(candidate, dict):
        raise ValidationError([FieldViolation("plan", "must be a sequence of days")])
    if isinstance(candidate.get("plan"), tuple):
        candidate = {**candidate, "plan": list(candidate["plan"])}
    return validate_model(ItineraryPlan, candidate)
