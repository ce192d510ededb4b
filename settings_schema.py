from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, ValidationError, field_validator

from models import TimeWindow


class SettingsSchema(BaseModel):
    language: Literal["en", "vi"] = "en"
    timezone: str = "UTC"
    default_time_window: TimeWindow = TimeWindow.WEEK
    chart_days: int = Field(7, ge=1, le=366)
    default_sets: int = Field(3, ge=1, le=10)
    app_version: str = "1.0.0"

    @field_validator("timezone")
    @classmethod
    def known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"unknown timezone: {value}")
        return value


def validate_settings(data: dict) -> None:
    try:
        SettingsSchema(**data)
    except ValidationError as e:
        raise ValueError(str(e))
