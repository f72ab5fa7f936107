"""Base schemas shared by every domain"""

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel

from .time_utils import to_naive_utc

T = TypeVar("T")

# Monetary amounts are Decimal internally and JSON numbers on the wire
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class CamelModel(BaseModel):
    """snake_case attributes, camelCase JSON keys"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class ApiResponse(BaseModel, Generic[T]):
    success: bool = True
    data: T


class MessageResponse(BaseModel):
    message: str


class UserSummary(CamelModel):
    id: int
    first_name: str
    last_name: str


class PatientSummary(CamelModel):
    id: int
    first_name: str
    last_name: str
    phone: Optional[str] = None


def normalize_datetime(value: Optional[datetime]) -> Optional[datetime]:
    """field_validator helper: store every incoming instant as naive UTC"""
    if value is None:
        return value
    return to_naive_utc(value)
