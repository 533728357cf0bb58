from typing import Annotated, List, Literal, Optional

from pydantic import AfterValidator, BeforeValidator, EmailStr, Field, field_validator

from kitchen.schemas.base import CamelModel

PreferenceType = Literal["ALLERGY", "DIETARY_RESTRICTION", "PREFERENCE", "MEDICAL"]


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


class PreferenceIn(CamelModel):
    type: PreferenceType
    value: str = Field(..., min_length=2, max_length=50)
    notes: Optional[str] = Field(default=None, max_length=200)

    @field_validator("type", mode="before")
    @classmethod
    def _upper_type(cls, value):
        return value.strip().upper() if isinstance(value, str) else value


class PreferenceUpdate(CamelModel):
    type: Optional[PreferenceType] = None
    value: Optional[str] = Field(default=None, min_length=2, max_length=50)
    notes: Optional[str] = Field(default=None, max_length=200)

    @field_validator("type", mode="before")
    @classmethod
    def _upper_type(cls, value):
        return value.strip().upper() if isinstance(value, str) else value


def _reject_duplicate_preferences(preferences):
    if not preferences:
        return preferences
    seen = set()
    for preference in preferences:
        key = (preference.type, preference.value.lower())
        if key in seen:
            raise ValueError(f"duplicate preference {preference.type}:{preference.value}")
        seen.add(key)
    return preferences


OptionalEmail = Annotated[Optional[EmailStr], BeforeValidator(_blank_to_none)]
PreferenceList = Annotated[List[PreferenceIn], AfterValidator(_reject_duplicate_preferences)]


class CustomerCreate(CamelModel):
    name: str = Field(..., min_length=2, max_length=100)
    phone: str = Field(..., min_length=9, max_length=15)
    email: OptionalEmail = None
    address: Optional[str] = Field(default=None, max_length=200)
    notes: Optional[str] = Field(default=None, max_length=500)
    preferences: PreferenceList = Field(default_factory=list)


class CustomerUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    phone: Optional[str] = Field(default=None, min_length=9, max_length=15)
    email: OptionalEmail = None
    address: Optional[str] = Field(default=None, max_length=200)
    notes: Optional[str] = Field(default=None, max_length=500)
    preferences: Optional[PreferenceList] = None
