"""
Schemas for reminders, due notifications and reminder emails.

JSON bodies use camelCase (``userId``, ``sendDate``); Python code uses the
snake_case field names. Both are accepted on input.
"""
from datetime import datetime
from typing import Annotated, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator, model_validator
from pydantic.alias_generators import to_camel

from adaptonia.utils.timezone import to_utc_aware


NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]

ReminderStatus = Literal["pending", "sent", "failed"]
TerminalStatus = Literal["sent", "failed"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _blank_to_none(v):
    if isinstance(v, str) and v.strip() == "":
        return None
    return v


class ReminderCreate(CamelModel):
    """Schema for creating a reminder for a goal"""
    goal_id: NonEmptyStr
    user_id: NonEmptyStr
    title: NonEmptyStr
    description: Optional[str] = None
    send_date: datetime
    due_date: Optional[datetime] = None
    user_email: Optional[str] = None
    user_name: Optional[str] = None

    @field_validator("description", "user_email", "user_name", mode="before")
    @classmethod
    def normalize_optional(cls, v):
        return _blank_to_none(v)


class ReminderRead(CamelModel):
    """Schema for reading a reminder"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: str
    goal_id: str
    user_id: str
    title: str
    description: Optional[str] = None
    user_email: Optional[str] = None
    user_name: Optional[str] = None
    send_date: datetime
    due_date: Optional[datetime] = None
    status: ReminderStatus
    retry_count: int
    last_sent_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    @field_validator("send_date", "due_date", "last_sent_date", "created_at", "updated_at")
    @classmethod
    def as_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_utc_aware(v)


class ReminderStatusUpdate(BaseModel):
    """Partial update applied by the status writer.

    ``pending`` is not a valid target: a reminder only ever leaves pending.
    """
    status: Optional[TerminalStatus] = None
    retry_count: Optional[int] = Field(default=None, ge=0)

    @model_validator(mode="after")
    def require_change(self) -> "ReminderStatusUpdate":
        if self.status is None and self.retry_count is None:
            raise ValueError("status or retry_count is required")
        return self


class UserReminderQuery(CamelModel):
    """Body of the per-user due/pending lookups"""
    user_id: NonEmptyStr


class DueNotification(CamelModel):
    id: str
    goal_id: str
    title: str
    description: Optional[str] = None
    send_date: datetime
    user_id: str

    @field_validator("send_date")
    @classmethod
    def as_utc(cls, v: datetime) -> datetime:
        return to_utc_aware(v)


class PendingReminder(DueNotification):
    source: Literal["server"] = "server"


class DueNotificationsResponse(CamelModel):
    success: bool = True
    notifications: List[DueNotification]
    count: int
    fetched_at: datetime


class PendingRemindersResponse(CamelModel):
    success: bool = True
    reminders: List[PendingReminder]
    count: int
    fetched_at: datetime


class GoalReminderEmail(CamelModel):
    """Payload for a single goal reminder email.

    Optional fields are normalized to None when missing or blank so the
    template can branch on presence.
    """
    to: NonEmptyStr
    user_name: Optional[str] = None
    goal_title: NonEmptyStr
    goal_description: Optional[str] = None
    due_date: Optional[datetime] = None

    @field_validator("user_name", "goal_description", "due_date", mode="before")
    @classmethod
    def normalize_optional(cls, v):
        return _blank_to_none(v)

    @property
    def has_user_name(self) -> bool:
        return self.user_name is not None

    @property
    def has_description(self) -> bool:
        return self.goal_description is not None

    @property
    def has_due_date(self) -> bool:
        return self.due_date is not None


class RemindersDeletedResponse(CamelModel):
    success: bool = True
    deleted: int


class EmailSentResponse(CamelModel):
    success: bool = True
    id: str


class DispatchError(CamelModel):
    reminder_id: str
    error: str


class DispatchOutcome(CamelModel):
    """Result of one dispatch attempt"""
    reminder_id: str
    delivered: bool
    skipped: bool = False
    status: ReminderStatus
    retry_count: int
    error: Optional[str] = None


class DispatchResults(CamelModel):
    processed: int = 0
    successful: int = 0
    failed: int = 0
    skipped: int = 0
    errors: List[DispatchError] = Field(default_factory=list)

    @classmethod
    def from_outcomes(cls, outcomes: List[DispatchOutcome]) -> "DispatchResults":
        results = cls()
        for outcome in outcomes:
            if outcome.skipped:
                results.skipped += 1
                continue
            results.processed += 1
            if outcome.delivered:
                results.successful += 1
            else:
                results.failed += 1
                results.errors.append(
                    DispatchError(reminder_id=outcome.reminder_id, error=outcome.error or "unknown error")
                )
        return results


class CronRunResponse(CamelModel):
    success: bool = True
    message: str
    results: DispatchResults
