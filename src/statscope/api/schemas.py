"""Request / response schemas for the session API."""

from pydantic import BaseModel, Field

from statscope.engine.types import (
    OutlierAction,
    OutlierMethod,
    QualityAction,
)


class SessionState(BaseModel):
    session_id: str
    step: str
    version: int
    loaded: bool
    dependent: str | None = None
    independents: list[str] = Field(default_factory=list)
    outlier_method: str
    busy: bool = False


class VariableSelection(BaseModel):
    dependent: str = Field(min_length=1)
    independents: list[str] = Field(min_length=1)


class RemediationRequest(BaseModel):
    action: QualityAction
    columns: list[str] | None = Field(
        default=None,
        description="Columns to impute; all columns when omitted (ignored by delete)",
    )
    expected_version: int | None = None


class CellEdit(BaseModel):
    row: int = Field(ge=0)
    column: str
    value: str = Field(description="User text; must parse as a finite number")
    strict: bool = Field(
        default=False,
        description="Reject unparseable text with 422 instead of reporting applied=false",
    )
    expected_version: int | None = None


class OutlierMethodUpdate(BaseModel):
    method: OutlierMethod


class TreatmentRequest(BaseModel):
    action: OutlierAction
    expected_version: int | None = None
