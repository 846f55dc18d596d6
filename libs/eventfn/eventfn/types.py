"""
Type definitions for eventfn
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Union


class TriggerType(Enum):
    HTTP = "http"
    MESSAGE = "message"
    STORAGE = "storage"
    EVENT = "event"


class InvocationState(Enum):
    """Lifecycle of a single invocation. Every state but PENDING is terminal."""
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    REPORTED_FAILURE = "reported_failure"
    SILENT_FAILURE = "silent_failure"


# ---------------------------------------------------------------------------
# Trigger envelopes (raw payloads as delivered by the platform)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class HttpEnvelope:
    """Incoming HTTP request"""
    method: str = "GET"
    path: str = "/"
    headers: Dict[str, str] = field(default_factory=dict)
    query_params: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    content_type: Optional[str] = None


@dataclass(frozen=True)
class EventContext:
    """Metadata delivered alongside a background event"""
    event_id: Optional[str] = None
    event_type: Optional[str] = None
    timestamp: Optional[str] = None
    resource: Any = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "EventContext":
        if not data:
            return cls()
        return cls(
            event_id=data.get("eventId"),
            event_type=data.get("eventType"),
            timestamp=data.get("timestamp"),
            resource=data.get("resource"),
        )


@dataclass(frozen=True)
class EventEnvelope:
    """Background event: a JSON payload plus its event metadata"""
    data: Any = None
    context: EventContext = field(default_factory=EventContext)


TriggerEnvelope = Union[HttpEnvelope, EventEnvelope]


# ---------------------------------------------------------------------------
# Decoded inputs (what handlers receive)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class NameInput:
    name: str


@dataclass(frozen=True)
class MessageInput:
    name: str
    attributes: Dict[str, str] = field(default_factory=dict)
    message_id: Optional[str] = None


@dataclass(frozen=True)
class StorageObject:
    """A storage object change notification"""
    bucket: str
    name: str
    metageneration: Optional[str] = None
    resource_state: Optional[str] = None
    time_created: Optional[str] = None
    updated: Optional[str] = None
    event_id: Optional[str] = None
    event_type: Optional[str] = None

    @property
    def deleted(self) -> bool:
        return self.resource_state == "not_exists"

    @property
    def created(self) -> bool:
        # metageneration is bumped on every metadata change; it is "1" on create
        return self.metageneration == "1"


@dataclass(frozen=True)
class EventInput:
    data: Dict[str, Any] = field(default_factory=dict)


DecodedInput = Union[NameInput, MessageInput, StorageObject, EventInput]


# ---------------------------------------------------------------------------
# Handler results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Success:
    output: Any = None


@dataclass(frozen=True)
class Failure:
    """A structured fault. Delivered to the error-reporting sink."""
    error: BaseException


@dataclass(frozen=True)
class SilentFailure:
    """A failure signal that is logged but never reported"""
    signal: Any = None
    message: Optional[str] = None

    def describe(self) -> str:
        if self.message:
            return self.message
        if isinstance(self.signal, str):
            return self.signal
        return f"non-error failure value: {self.signal!r}"


HandlerResult = Union[Success, Failure, SilentFailure]


# ---------------------------------------------------------------------------
# Runtime objects
# ---------------------------------------------------------------------------

@dataclass
class InvocationContext:
    """Execution context passed to functions"""
    function_name: str
    invocation_id: str
    timestamp: str
    logger: Union[logging.Logger, logging.LoggerAdapter]
    event: Optional[EventContext] = None


@dataclass
class Response:
    """Normalized HTTP response"""
    body: str
    status_code: int = 200
    headers: Dict[str, str] = field(default_factory=dict)
    media_type: str = "text/plain"

    @classmethod
    def text(cls, body: str, status_code: int = 200) -> "Response":
        return cls(body=body, status_code=status_code)

    @classmethod
    def error(cls, message: str, status_code: int = 500) -> "Response":
        return cls(body=message, status_code=status_code)


@dataclass
class FunctionEntry:
    """One registered function in the dispatch table"""
    name: str
    handler: Callable
    trigger_type: TriggerType
    path: Optional[str] = None
    methods: List[str] = field(default_factory=lambda: ["GET", "POST"])
    module: Optional[str] = None

    @property
    def route(self) -> str:
        return self.path or f"/{self.name}"
