####################################
# --- Request/response schemas --- #
####################################

from datetime import date
from datetime import datetime
from typing import Any
from typing import Dict
from typing import List
from typing import Optional
from typing import Union

from pydantic import AliasChoices
from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import field_validator
from pydantic import model_validator

from persons_console.schemas.enums import DeleteOutcomeStatus
from persons_console.schemas.enums import DeletePhase
from persons_console.schemas.enums import JobPhase
from persons_console.schemas.enums import NotificationLevel
from persons_console.schemas.enums import SortDirection
from persons_console.schemas.enums import SortField
from persons_console.schemas.enums import TaskStatus

PersonId = Union[int, str]


def parse_person_id(raw: str) -> PersonId:
    """Convert a path parameter into the id type used by the persons API (integers stay integers)."""
    raw = raw.strip()
    if raw.isdigit():
        return int(raw)
    return raw


# ════════════════════════════════════════════════════════════════════════════
# Records and pages (read side of the persons API)
# ════════════════════════════════════════════════════════════════════════════


class Person(BaseModel):
    """A person record as returned by the persons API (read cache only)."""

    model_config = ConfigDict(frozen=True)

    id: PersonId
    name: str = Field(validation_alias=AliasChoices("person_name", "name"))
    age: int
    hobbies: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = Field(default=None, validation_alias=AliasChoices("created_date", "created_at"))

    @field_validator("hobbies", mode="before")
    @classmethod
    def null_hobbies_as_empty(cls, v):
        """Records without hobbies may carry null."""
        if v is None:
            return []
        return v


class Page(BaseModel):
    """One page of the person list; rebuilt on every fetch, never mutated."""

    model_config = ConfigDict(frozen=True)

    items: List[Person] = Field(default_factory=list)
    next_cursor: Optional[str] = None
    previous_cursor: Optional[str] = None
    total_count: int = 0

    @property
    def ids(self) -> List[PersonId]:
        """Record ids in display order."""
        return [person.id for person in self.items]


# read (cRud)
class FilterSpec(BaseModel):
    """Creation date filter."""

    model_config = ConfigDict(frozen=True)

    start_date: Optional[date] = None
    end_date: Optional[date] = None

    def to_query_params(self) -> Dict[str, str]:
        """Query parameters understood by the list endpoint; absent bounds are omitted."""
        params = {}
        if self.start_date is not None:
            params["start_date"] = self.start_date.isoformat()
        if self.end_date is not None:
            params["end_date"] = self.end_date.isoformat()
        return params


class OrderSpec(BaseModel):
    """Sort key and direction."""

    model_config = ConfigDict(frozen=True)

    field: SortField = SortField.CREATED_AT
    direction: SortDirection = SortDirection.DESCENDING

    def to_ordering(self) -> str:
        """Render as the `ordering` query parameter (`field` or `-field`)."""
        prefix = "-" if self.direction is SortDirection.DESCENDING else ""
        return f"{prefix}{self.field.wire_name}"

    @classmethod
    def from_ordering(cls, ordering: str) -> "OrderSpec":
        """Parse an `ordering` query parameter."""
        ordering = ordering.strip()
        if ordering.startswith("-"):
            return cls(field=SortField.from_wire_name(ordering[1:]), direction=SortDirection.DESCENDING)
        return cls(field=SortField.from_wire_name(ordering), direction=SortDirection.ASCENDING)


# ════════════════════════════════════════════════════════════════════════════
# Statistics job
# ════════════════════════════════════════════════════════════════════════════


class StatsSummary(BaseModel):
    """Aggregate statistics computed remotely; the algorithm is opaque to the console."""

    model_config = ConfigDict(frozen=True, extra="allow")

    mean_age: Optional[float] = Field(default=None, validation_alias=AliasChoices("mean_age", "media_idade"))
    stddev_age: Optional[float] = Field(default=None, validation_alias=AliasChoices("stddev_age", "desvio_padrao"))
    total: int = 0


class TaskStatusResponse(BaseModel):
    """Payload of the long-task status endpoint."""

    status: str
    result: Optional[StatsSummary] = None

    @model_validator(mode="before")
    @classmethod
    def drop_result_unless_success(cls, data: Any) -> Any:
        """Only SUCCESS carries a StatsSummary; a FAILURE result is typically an error string."""
        if isinstance(data, dict) and data.get("status") != TaskStatus.SUCCESS.value:
            return {key: value for key, value in data.items() if key != "result"}
        return data


class JobState(BaseModel):
    """Observable state of the statistics job (the job handle while one exists)."""

    model_config = ConfigDict(frozen=True)

    phase: JobPhase = JobPhase.IDLE
    task_id: Optional[str] = None
    result: Optional[StatsSummary] = None
    error: Optional[str] = None
    attempts: int = 0


# ════════════════════════════════════════════════════════════════════════════
# Bulk delete
# ════════════════════════════════════════════════════════════════════════════


class DeleteOutcome(BaseModel):
    """Outcome of deleting one selected record."""

    model_config = ConfigDict(frozen=True)

    person_id: PersonId
    status: DeleteOutcomeStatus
    reason: Optional[str] = None


class BulkDeleteReport(BaseModel):
    """Per-id result list of a bulk delete run, in selection order."""

    model_config = ConfigDict(frozen=True)

    outcomes: List[DeleteOutcome] = Field(default_factory=list)

    def _ids_with(self, status: DeleteOutcomeStatus) -> List[PersonId]:
        return [outcome.person_id for outcome in self.outcomes if outcome.status is status]

    @property
    def deleted_ids(self) -> List[PersonId]:
        return self._ids_with(DeleteOutcomeStatus.DELETED)

    @property
    def failed_ids(self) -> List[PersonId]:
        return self._ids_with(DeleteOutcomeStatus.FAILED)

    @property
    def not_attempted_ids(self) -> List[PersonId]:
        return self._ids_with(DeleteOutcomeStatus.NOT_ATTEMPTED)

    @property
    def succeeded(self) -> bool:
        """True when every selected record was deleted."""
        return all(outcome.status is DeleteOutcomeStatus.DELETED for outcome in self.outcomes)


# ════════════════════════════════════════════════════════════════════════════
# View model
# ════════════════════════════════════════════════════════════════════════════


class ListViewState(BaseModel):
    """Everything the presentation layer needs to render the person list."""

    model_config = ConfigDict(frozen=True)

    rows: List[Person] = Field(default_factory=list)
    total_count: int = 0
    loading: bool = True
    next_cursor: Optional[str] = None
    previous_cursor: Optional[str] = None
    can_go_next: bool = False
    can_go_previous: bool = False
    filter: FilterSpec = Field(default_factory=FilterSpec)
    order: OrderSpec = Field(default_factory=OrderSpec)
    selection: List[PersonId] = Field(default_factory=list)
    all_selected: bool = False
    delete_phase: DeletePhase = DeletePhase.IDLE
    last_delete_report: Optional[BulkDeleteReport] = None
    job: JobState = Field(default_factory=JobState)
    refresh_signal: int = 0


class Notification(BaseModel):
    """Transient message for the operator (toast)."""

    model_config = ConfigDict(frozen=True)

    level: NotificationLevel
    message: str
    created_at: datetime


# ════════════════════════════════════════════════════════════════════════════
# Request bodies
# ════════════════════════════════════════════════════════════════════════════


class ToggleAllRequest(BaseModel):
    """Body of the select-all checkbox command."""

    checked: bool


def _split_hobbies(v: Any) -> Any:
    """Accept hobbies as a list or as a comma separated string; drop blank entries."""
    if v is None:
        return v
    if isinstance(v, str):
        v = v.split(",")
    if isinstance(v, (list, tuple)):
        return [str(h).strip() for h in v if str(h).strip()]
    return v


# create (Crud)
class PersonCreateRequest(BaseModel):
    """Form submission for a new person."""

    name: str = Field(validation_alias=AliasChoices("person_name", "name"))
    age: int = 18
    hobbies: List[str] = Field(default_factory=list)

    @field_validator("hobbies", mode="before")
    @classmethod
    def split_hobbies(cls, v):
        """Split comma separated hobbies."""
        return _split_hobbies(v)

    def to_api(self) -> Dict[str, Any]:
        """Payload in the persons API wire format."""
        return {"person_name": self.name, "age": self.age, "hobbies": self.hobbies}


# update (crUd)
class PersonUpdateRequest(BaseModel):
    """Partial form submission for an existing person."""

    name: Optional[str] = Field(default=None, validation_alias=AliasChoices("person_name", "name"))
    age: Optional[int] = None
    hobbies: Optional[List[str]] = None

    @field_validator("hobbies", mode="before")
    @classmethod
    def split_hobbies(cls, v):
        """Split comma separated hobbies."""
        return _split_hobbies(v)

    @model_validator(mode="after")
    def validate_not_empty(self):
        """Reject updates that change nothing."""
        if self.name is None and self.age is None and self.hobbies is None:
            raise ValueError("At least one of name, age or hobbies must be provided")
        return self

    def to_api(self) -> Dict[str, Any]:
        """Payload in the persons API wire format, without untouched fields."""
        payload: Dict[str, Any] = {}
        if self.name is not None:
            payload["person_name"] = self.name
        if self.age is not None:
            payload["age"] = self.age
        if self.hobbies is not None:
            payload["hobbies"] = self.hobbies
        return payload
