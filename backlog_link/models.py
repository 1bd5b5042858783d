"""Shared types for Backlog custom fields and field updates"""
import enum
from dataclasses import dataclass
from typing import Any, Dict, List, NamedTuple, Optional, Protocol


class FieldValueState(str, enum.Enum):
    """State of a custom field value"""
    ABSENT = "absent"
    EMPTY = "empty"
    TEXT = "text"


@dataclass
class CustomField:
    """A Backlog custom field, optionally carrying an issue's value for it"""

    id: int
    name: str
    value: Optional[str] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "CustomField":
        """Build from a Backlog API object (project field or issue field)"""
        value = data.get("value")
        if value is not None and not isinstance(value, str):
            value = str(value)
        return cls(id=int(data["id"]), name=str(data.get("name") or ""), value=value)

    @property
    def value_state(self) -> FieldValueState:
        if self.value is None:
            return FieldValueState.ABSENT
        if not self.value.strip():
            return FieldValueState.EMPTY
        return FieldValueState.TEXT

    @property
    def text(self) -> str:
        """Value with absent mapped to the empty string"""
        return self.value or ""


class ParsedReference(NamedTuple):
    """Backlog issue reference found in free text"""
    url: str
    project_key: str
    issue_key: str


class UpdateOutcome(str, enum.Enum):
    """Outcome of a single field update"""
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    FETCH_FAILED = "fetch_failed"
    PERSIST_FAILED = "persist_failed"


@dataclass
class FieldUpdateResult:
    """Result of one field update; truthy only when a write happened"""

    outcome: UpdateOutcome
    issue_key: str
    field_id: int
    value: Optional[str] = None
    reason: Optional[str] = None

    @property
    def updated(self) -> bool:
        return self.outcome == UpdateOutcome.UPDATED

    @property
    def failed(self) -> bool:
        return self.outcome in (UpdateOutcome.FETCH_FAILED, UpdateOutcome.PERSIST_FAILED)

    def __bool__(self) -> bool:
        return self.updated


class IssueTracker(Protocol):
    """Remote issue-tracker operations used by the link service"""

    def get_project(self, project_key: str) -> Dict[str, Any]: ...

    def get_custom_fields(self, project_key: str) -> List[Dict[str, Any]]: ...

    def create_custom_field(
        self, project_key: str, *, name: str, type_id: int, description: str
    ) -> Dict[str, Any]: ...

    def get_issue(self, issue_key: str) -> Dict[str, Any]: ...

    def patch_issue(self, issue_key: str, data: Dict[str, Any]) -> Dict[str, Any]: ...
