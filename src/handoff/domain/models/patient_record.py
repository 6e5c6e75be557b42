from __future__ import annotations

import datetime as dt
from typing import Annotated, Dict, List, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.handoff.domain.models.systems_review import SYSTEMS_REVIEW, system_ids


class ChartModel(BaseModel):
    """Base for documents kept in the record store.

    Documents travel in camelCase (``quickOneLiner``, ``systemsReview``) while
    Python code uses snake_case attribute names.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SystemState(ChartModel):
    # True = normal/expected finding, False = deviation.
    checks: Dict[str, bool] = Field(default_factory=dict)
    notes: str = ""


class TimelineEntry(ChartModel):
    date: dt.date
    event: str


class TodoItem(ChartModel):
    task: str
    completed: bool = False


def _known_systems(review: Dict[str, SystemState]) -> Dict[str, SystemState]:
    unknown = sorted(set(review) - set(system_ids()))
    if unknown:
        raise ValueError(f"unknown system id(s): {', '.join(unknown)}")
    return review


SystemsReview = Annotated[Dict[str, SystemState], AfterValidator(_known_systems)]


def new_systems_review() -> Dict[str, SystemState]:
    """Return a systems review with every configured check marked normal."""

    return {
        system.id: SystemState(checks={item.key: True for item in system.checklist}, notes="")
        for system in SYSTEMS_REVIEW
    }


class PatientRecord(ChartModel):
    """One patient's chart as held by the record store.

    ``id`` is assigned by the store on create and ``last_updated`` is stamped
    by the store on every accepted write.
    """

    id: str
    room_number: str = ""
    name: str = ""
    age: int = Field(default=0, ge=0)
    code_status: str = "Full Code"
    isolation: str = "None"
    quick_one_liner: str = ""
    admission_date: Optional[dt.date] = None
    diagnosis: str = ""
    allergies: List[str] = Field(default_factory=list)
    # Past medical history; not edited by any current endpoint.
    pmh: List[str] = Field(default_factory=list)
    hospital_course: List[TimelineEntry] = Field(default_factory=list)
    systems_review: SystemsReview = Field(default_factory=dict)
    todos: List[TodoItem] = Field(default_factory=list)
    notes: str = ""
    last_updated: Optional[dt.datetime] = None


def _require_text(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be empty")
    return value


RequiredText = Annotated[str, AfterValidator(_require_text)]


class PatientCreate(ChartModel):
    room_number: RequiredText
    name: RequiredText
    age: int = Field(default=0, ge=0)
    code_status: str = "Full Code"
    isolation: str = "None"
    quick_one_liner: str = ""
    admission_date: Optional[dt.date] = None
    diagnosis: str = ""
    allergies: List[str] = Field(default_factory=list)


class PatientUpdate(ChartModel):
    """Partial update: only fields explicitly set are merged into the record."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    room_number: Optional[str] = None
    name: Optional[str] = None
    age: Optional[int] = Field(default=None, ge=0)
    code_status: Optional[str] = None
    isolation: Optional[str] = None
    quick_one_liner: Optional[str] = None
    admission_date: Optional[dt.date] = None
    diagnosis: Optional[str] = None
    allergies: Optional[List[str]] = None
    pmh: Optional[List[str]] = None
    hospital_course: Optional[List[TimelineEntry]] = None
    systems_review: Optional[SystemsReview] = None
    todos: Optional[List[TodoItem]] = None
    notes: Optional[str] = None

    def changed_fields(self) -> Dict[str, object]:
        """Fields to merge, with systems review changes as dotted paths.

        Only the systems, checks and notes actually supplied are written, so
        systems the caller did not mention keep their recorded state.
        """

        fields = self.model_dump(mode="json", exclude_unset=True, exclude={"systems_review"})
        for system_id, state in (self.systems_review or {}).items():
            supplied = state.model_dump(mode="json", exclude_unset=True)
            for key, value in supplied.get("checks", {}).items():
                fields[f"systems_review.{system_id}.checks.{key}"] = value
            if "notes" in supplied:
                fields[f"systems_review.{system_id}.notes"] = supplied["notes"]
        return fields


class PatientSnapshot(ChartModel):
    """Full, ordered copy of one identity's patient collection."""

    collection_path: str
    patients: List[PatientRecord]
