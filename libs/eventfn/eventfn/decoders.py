"""
Payload decoders

Each decoder turns a raw trigger envelope into the typed input its handler
consumes. Decoders are pure and raise MalformedPayloadError on input they
cannot make sense of.
"""

import base64
import binascii
import json
from typing import Any, Callable, Dict, Mapping, Optional
from urllib.parse import parse_qs

from .errors import MalformedPayloadError
from .types import (
    EventContext,
    EventEnvelope,
    EventInput,
    HttpEnvelope,
    MessageInput,
    NameInput,
    StorageObject,
    TriggerType,
)

DEFAULT_NAME = "World"

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"

# Keys that mark the flat (non-legacy) background event body
_FLAT_CONTEXT_KEYS = ("eventId", "eventType", "timestamp", "resource")


def _media_type(content_type: Optional[str]) -> str:
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


def _first_name(value: Any) -> Optional[str]:
    # Falsy values ("", 0, false, null, []) count as absent
    if isinstance(value, list):
        value = value[0] if value else None
    if not value:
        return None
    if isinstance(value, str):
        return value
    # Non-strings render as JSON does: true, 1.5, {"a": 1}
    return json.dumps(value, separators=(",", ":"))


def _body_name(envelope: HttpEnvelope) -> Optional[str]:
    if not envelope.body:
        return None

    media_type = _media_type(envelope.content_type)
    if media_type == FORM_CONTENT_TYPE:
        try:
            form = parse_qs(envelope.body.decode("utf-8"))
        except UnicodeDecodeError as e:
            raise MalformedPayloadError(f"Form body is not valid UTF-8: {e}") from e
        return _first_name(form.get("name"))

    if media_type == "application/json" or media_type.endswith("+json"):
        try:
            payload = json.loads(envelope.body)
        except ValueError as e:
            raise MalformedPayloadError(f"Request body is not valid JSON: {e}") from e
        if isinstance(payload, dict):
            return _first_name(payload.get("name"))
    return None


def decode_http_request(envelope: HttpEnvelope) -> NameInput:
    """Pick `name` from the query string, then the body, then the default"""
    name = _first_name(envelope.query_params.get("name"))
    if name is None:
        name = _body_name(envelope)
    return NameInput(name=name or DEFAULT_NAME)


def _require_mapping(data: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise MalformedPayloadError(f"{what} must be a JSON object, got {type(data).__name__}")
    return data


def decode_message(envelope: EventEnvelope) -> MessageInput:
    """Decode a Pub/Sub style message with a base64 `data` field"""
    message = _require_mapping(envelope.data if envelope.data is not None else {}, "Message")

    raw = message.get("data")
    if not raw:
        name = DEFAULT_NAME
    elif not isinstance(raw, str):
        raise MalformedPayloadError("Message data must be a base64 string")
    else:
        try:
            name = base64.b64decode(raw, validate=True).decode("utf-8")
        except (binascii.Error, ValueError) as e:
            raise MalformedPayloadError(f"Message data is not valid base64 UTF-8: {e}") from e

    attributes = message.get("attributes") or {}
    if not isinstance(attributes, Mapping):
        raise MalformedPayloadError("Message attributes must be a JSON object")

    return MessageInput(
        name=name,
        attributes={str(k): str(v) for k, v in attributes.items()},
        message_id=message.get("messageId") or message.get("message_id"),
    )


def _optional_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def decode_storage_event(envelope: EventEnvelope) -> StorageObject:
    """Extract storage object fields. Only `bucket` and `name` are required."""
    obj = _require_mapping(envelope.data, "Storage event")

    missing = [key for key in ("bucket", "name") if not obj.get(key)]
    if missing:
        raise MalformedPayloadError(f"Storage event missing field(s): {', '.join(missing)}")

    return StorageObject(
        bucket=str(obj["bucket"]),
        name=str(obj["name"]),
        metageneration=_optional_str(obj.get("metageneration")),
        resource_state=_optional_str(obj.get("resourceState")),
        time_created=_optional_str(obj.get("timeCreated")),
        updated=_optional_str(obj.get("updated")),
        event_id=envelope.context.event_id,
        event_type=envelope.context.event_type,
    )


def decode_event(envelope: EventEnvelope) -> EventInput:
    data = envelope.data if envelope.data is not None else {}
    return EventInput(data=dict(_require_mapping(data, "Event data")))


def parse_event_body(body: Any) -> EventEnvelope:
    """
    Build an EventEnvelope from a background event request body.

    Accepts the legacy shape ``{"context": {...}, "data": ...}`` and the
    flat shape ``{"eventId": ..., "eventType": ..., "data": ...}``.
    """
    if isinstance(body, (bytes, bytearray)):
        if not body:
            return EventEnvelope()
        try:
            body = json.loads(body)
        except ValueError as e:
            raise MalformedPayloadError(f"Event body is not valid JSON: {e}") from e

    payload = _require_mapping(body, "Event body")

    if "context" in payload:
        context = EventContext.from_dict(_require_mapping(payload["context"], "Event context"))
        return EventEnvelope(data=payload.get("data"), context=context)

    if any(key in payload for key in _FLAT_CONTEXT_KEYS):
        return EventEnvelope(data=payload.get("data"), context=EventContext.from_dict(payload))

    # A bare {"data": {...}} wrapper; anything else is the payload itself,
    # e.g. a Pub/Sub message posted as {"data": "<base64>"}
    if isinstance(payload.get("data"), Mapping):
        return EventEnvelope(data=payload["data"])
    return EventEnvelope(data=dict(payload))


DECODERS: Dict[TriggerType, Callable[[Any], Any]] = {
    TriggerType.HTTP: decode_http_request,
    TriggerType.MESSAGE: decode_message,
    TriggerType.STORAGE: decode_storage_event,
    TriggerType.EVENT: decode_event,
}


def decode(trigger_type: TriggerType, envelope: Any) -> Any:
    """Decode `envelope` with the decoder registered for `trigger_type`"""
    if trigger_type is TriggerType.HTTP:
        if not isinstance(envelope, HttpEnvelope):
            raise MalformedPayloadError("HTTP functions require an HTTP request")
    elif not isinstance(envelope, EventEnvelope):
        raise MalformedPayloadError(f"{trigger_type.value} functions require an event payload")
    return DECODERS[trigger_type](envelope)
