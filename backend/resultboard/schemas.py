"""Pydantic v2 request schemas for the JSON bodies and query strings.

Field aliases carry the camelCase wire names; ``populate_by_name`` lets
services and tests build the models with the snake_case names too.
"""
import json
from datetime import datetime
from typing import Annotated, Any, List, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from resultboard.errors import ValidationError
from resultboard.services.timecodec import to_minutes

DATE_PATTERN = r'^[0-9]{4}-[0-9]{2}-[0-9]{2}$'


def _real_calendar_date(value: str) -> str:
    datetime.strptime(value, '%Y-%m-%d')
    return value


DateStr = Annotated[str, Field(pattern=DATE_PATTERN), AfterValidator(_real_calendar_date)]


def _checked_time(value: Optional[str]) -> Optional[str]:
    # InvalidTimeFormat is not a ValueError, so pydantic lets it propagate as-is
    if value:
        to_minutes(value, compact=True)
    return value


class _Schema(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True, extra='ignore')


def parse(schema, data):
    """Validate *data* against *schema*, raising our ``ValidationError``."""
    try:
        return schema.model_validate(data or {})
    except PydanticValidationError as exc:
        details = json.loads(exc.json(include_url=False))
        raise ValidationError('Invalid request', details=details) from exc


class CreateResult(_Schema):
    game_code: str = Field(..., min_length=1, alias='gameCode')
    date_str: DateStr = Field(..., alias='dateStr')
    time: str = Field(..., min_length=3)
    value: str = Field(..., min_length=1, max_length=4)
    note: Optional[str] = None

    @field_validator('game_code')
    @classmethod
    def _upper(cls, v: str) -> str:
        return v.upper()


class TimewiseQuery(_Schema):
    date_str: DateStr = Field(..., alias='dateStr')


class SnapshotQuery(_Schema):
    date_str: DateStr = Field(..., alias='dateStr')
    time: str = Field(..., min_length=3)


class HomeQuery(_Schema):
    date_str: Optional[DateStr] = Field(default=None, alias='dateStr')

    @field_validator('date_str', mode='before')
    @classmethod
    def _empty_is_missing(cls, v):
        return v or None


class MonthlyChartQuery(_Schema):
    year: int = Field(..., ge=2000, le=2100)
    month: int = Field(..., ge=1, le=12)
    games: Optional[List[str]] = None

    @field_validator('games', mode='before')
    @classmethod
    def _split_codes(cls, v):
        if v is None or v == '':
            return None
        if isinstance(v, str):
            v = v.split(',')
        codes = [str(c).strip().upper() for c in v if str(c).strip()]
        return codes or None


class CreateGame(_Schema):
    name: str = Field(..., min_length=1)
    code: str = Field(..., min_length=1)
    default_time: Optional[str] = Field(default='', alias='defaultTime')
    # Any shape: unusable values (non-numeric, non-positive) mean "append"
    order_index: Any = Field(default=None, alias='orderIndex')
    is_active: bool = Field(default=True, alias='isActive')

    @field_validator('code')
    @classmethod
    def _upper(cls, v: str) -> str:
        return v.upper()

    @field_validator('default_time')
    @classmethod
    def _blank_time(cls, v: Optional[str]) -> str:
        return _checked_time(v) or ''


class UpdateGame(_Schema):
    name: Optional[str] = Field(default=None, min_length=1)
    new_code: Optional[str] = Field(default=None, min_length=1, alias='newCode')
    default_time: Optional[str] = Field(default=None, alias='defaultTime')
    order_index: Any = Field(default=None, alias='orderIndex')
    is_active: Optional[bool] = Field(default=None, alias='isActive')

    @field_validator('new_code')
    @classmethod
    def _upper(cls, v: Optional[str]) -> Optional[str]:
        return v.upper() if v else v

    @field_validator('default_time')
    @classmethod
    def _parseable_time(cls, v: Optional[str]) -> Optional[str]:
        return _checked_time(v)
