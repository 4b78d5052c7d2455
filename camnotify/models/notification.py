"""
Notification data models for the camera event store.

This module defines the Pydantic models for stored notifications (a tagged
union of system and camera notifications), the raw events they are built
from, the list filters and the alert payload handed to the alert sink.

Stored documents use camelCase keys (fileName, recordType, recordStoring);
Python attributes stay snake_case.
"""

import re
import secrets
from datetime import date, datetime
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

import pytz
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    computed_field,
    field_validator,
)
from pydantic.alias_generators import to_camel

from camnotify.config import settings

# Identifier generation
NOTIFICATION_ID_ALPHABET = "1234567890abcdef"
NOTIFICATION_ID_LENGTH = 10

DEFAULT_LABEL = "no label"
TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
DATE_FORMAT = "%Y-%m-%d"

# File naming
FILE_MARKER = "_CUI"
TRIGGER_SUFFIXES = {"motion": "_m", "doorbell": "_d"}
GENERIC_TRIGGER_SUFFIX = "_c"


class NotificationKind(str, Enum):
    """Discriminator for the two notification variants."""

    SYSTEM = "system"
    CAMERA = "camera"


class RecordType(str, Enum):
    """Recording types that produce a stored media file."""

    VIDEO = "Video"
    SNAPSHOT = "Snapshot"


def generate_notification_id() -> str:
    """Generate a 10-character identifier from the hexadecimal alphabet."""
    return "".join(
        secrets.choice(NOTIFICATION_ID_ALPHABET) for _ in range(NOTIFICATION_ID_LENGTH)
    )


def render_time(timestamp: int, timezone: Optional[str] = None) -> str:
    """
    Render epoch seconds as "YYYY-MM-DD HH:mm:ss".

    Args:
        timestamp: Epoch seconds
        timezone: IANA timezone name (defaults to settings.timezone)

    Returns:
        Formatted local time string
    """
    tz = pytz.timezone(timezone or settings.timezone)
    return datetime.fromtimestamp(timestamp, tz=tz).strftime(TIME_FORMAT)


def calendar_date(time: str) -> date:
    """Extract the calendar date from a rendered notification time."""
    return datetime.strptime(time, TIME_FORMAT).date()


def build_file_name(camera_name: str, notification_id: str, timestamp: int, trigger: Optional[str]) -> str:
    """
    Build the media base name for a camera notification.

    Whitespace runs in the camera name collapse to a single underscore, so
    "Front Door" + "abc123def0" + 1700000000 + "motion" gives
    "Front_Door-abc123def0-1700000000_m_CUI".
    """
    suffix = TRIGGER_SUFFIXES.get(trigger or "", GENERIC_TRIGGER_SUFFIX)
    camera_part = re.sub(r"\s+", "_", camera_name)
    return f"{camera_part}-{notification_id}-{timestamp}{suffix}{FILE_MARKER}"


def file_extension(record_type: Optional[str]) -> str:
    return "mp4" if record_type == RecordType.VIDEO.value else "jpeg"


def is_record_storing(record_type: Optional[str]) -> bool:
    return record_type in (RecordType.VIDEO.value, RecordType.SNAPSHOT.value)


class NotificationBase(BaseModel):
    """
    Fields shared by every stored notification.

    `time` is computed from `timestamp` on every access and dump; a `time`
    key in input data is ignored.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )

    id: str = Field(..., min_length=1)
    label: str = DEFAULT_LABEL
    timestamp: int = Field(..., ge=0)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def time(self) -> str:
        return render_time(self.timestamp)

    @property
    def day(self) -> date:
        """Calendar date of the notification, taken from `time`."""
        return calendar_date(self.time)

    def to_document(self) -> dict[str, Any]:
        """Serialize to the JSON document stored in the collection."""
        return self.model_dump(mode="json", by_alias=True)


class SystemNotification(NotificationBase):
    """Notification raised by the system itself, with no camera linkage."""

    kind: Literal["system"] = "system"
    title: Optional[str] = None
    message: Optional[str] = None

    @property
    def camera(self) -> None:
        return None

    @property
    def room(self) -> None:
        return None

    @property
    def record_type(self) -> None:
        return None


class CameraNotification(NotificationBase):
    """Notification for a camera event (motion, doorbell, recording)."""

    kind: Literal["camera"] = "camera"
    camera: str
    room: str
    trigger: Optional[str] = None
    record_type: Optional[str] = None
    record_storing: bool = False
    file_name: str
    name: str
    extension: str


Notification = Annotated[
    Union[SystemNotification, CameraNotification],
    Field(discriminator="kind"),
]

_notification_adapter: TypeAdapter[Notification] = TypeAdapter(Notification)


def parse_notification(document: dict[str, Any]) -> Union[SystemNotification, CameraNotification]:
    """
    Load a stored document into its notification variant.

    Documents written without a `kind` key are classified by the presence of
    a `camera` field.
    """
    if "kind" not in document:
        kind = NotificationKind.CAMERA if document.get("camera") else NotificationKind.SYSTEM
        document = {**document, "kind": kind.value}
    return _notification_adapter.validate_python(document)


class NotificationEvent(BaseModel):
    """
    Raw event a notification is created from.

    `system=True` selects the system path (title/message/subtxt); otherwise
    the event describes a camera event (camera/trigger/type).
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Optional[str] = None
    label: Optional[str] = None
    timestamp: Optional[int] = None
    system: bool = False

    # System path
    title: Optional[str] = None
    message: Optional[str] = None
    subtxt: Optional[str] = None

    # Camera path
    camera: Optional[str] = None
    trigger: Optional[str] = None
    type: Optional[str] = None

    @field_validator("label", mode="before")
    @classmethod
    def stringify_label(cls, v: Any) -> Optional[str]:
        """Falsy labels fall back to the default; anything else is stringified."""
        if not v:
            return None
        return str(v)

    @field_validator("id", mode="before")
    @classmethod
    def blank_id_to_none(cls, v: Any) -> Optional[str]:
        if not v:
            return None
        return str(v)


class NotificationFilters(BaseModel):
    """
    Filters accepted by NotificationStore.list().

    Every filter is optional; the allow-lists are comma-separated strings.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    from_date: Optional[str] = Field(default=None, alias="from")
    to_date: Optional[str] = Field(default=None, alias="to")
    cameras: Optional[str] = None
    labels: Optional[str] = None
    rooms: Optional[str] = None
    types: Optional[str] = None

    @staticmethod
    def split(value: Optional[str]) -> Optional[list[str]]:
        """Split a comma-separated allow-list; empty values disable the filter."""
        if not value:
            return None
        return value.split(",")


class Camera(BaseModel):
    """Camera record from the cameras collection (only `name` is required)."""

    model_config = ConfigDict(extra="allow")

    name: str


class CameraSetting(BaseModel):
    """Per-camera entry of the camera settings collection."""

    model_config = ConfigDict(extra="allow")

    name: str
    room: Optional[str] = None


class AlertPayload(BaseModel):
    """
    Human-readable notification handed to the alert sink.

    `media_source` is a /files/ path when a media file is stored, False
    otherwise. Camera fields are only present for camera notifications.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    label: str
    time: str
    timestamp: int
    title: Optional[str] = None
    message: Optional[str] = None
    subtxt: Union[str, bool] = False
    media_source: Union[str, bool] = False
    count: bool = True
    is_notification: bool

    camera: Optional[str] = None
    room: Optional[str] = None
    trigger: Optional[str] = None
    record_type: Optional[str] = None
    record_storing: Optional[bool] = None
    file_name: Optional[str] = None
    name: Optional[str] = None
    extension: Optional[str] = None

    def to_message(self) -> dict[str, Any]:
        """Serialize for delivery, omitting camera fields that do not apply."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
