#
# passes.py
# Pydantic schemas for PassSlot API payloads
#

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any, List, Optional


class Pass(BaseModel):
    """A pass issued by PassSlot, addressed by type identifier and serial number."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    pass_type_identifier: str = Field("", alias="passTypeIdentifier")
    serial_number: str = Field("", alias="serialNumber")
    url: Optional[str] = None

    @property
    def resource(self) -> str:
        return f"/passes/{self.pass_type_identifier}/{self.serial_number}"


class PassURL(BaseModel):
    model_config = ConfigDict(extra="ignore")

    url: str


class FieldError(BaseModel):
    model_config = ConfigDict(extra="ignore")

    field: str = ""
    reasons: List[str] = []

    @field_validator("field", mode="before")
    @classmethod
    def coerce_field(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("reasons", mode="before")
    @classmethod
    def coerce_reasons(cls, v: Any) -> List[str]:
        """Tolerate a missing reason list or a single bare reason."""
        if v is None:
            return []
        if not isinstance(v, list):
            v = [v]
        return [str(reason) for reason in v if reason is not None]


class ApiErrorBody(BaseModel):
    """Error envelope returned by the API on non-2xx responses."""

    model_config = ConfigDict(extra="ignore")

    message: str = ""
    errors: List[FieldError] = []

    @field_validator("message", mode="before")
    @classmethod
    def coerce_message(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("errors", mode="before")
    @classmethod
    def coerce_errors(cls, v: Any) -> List[Any]:
        if v is None:
            return []
        if isinstance(v, list):
            return [error for error in v if error is not None]
        return v
