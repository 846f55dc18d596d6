"""
eventfn - dispatch core for event-driven functions

Usage:
    from eventfn import http_trigger, message_trigger, storage_trigger

    @http_trigger(methods=["GET", "POST"])
    def hello_http(request, context):
        return f"Hello {request.name}!"

    @message_trigger
    def hello_pubsub(message, context):
        context.logger.info(f"Hello, {message.name}!")
"""

from .config import Settings, load_settings
from .decorators import (
    DispatchTable,
    discover_functions,
    event_trigger,
    get_default_table,
    http_trigger,
    message_trigger,
    storage_trigger,
)
from .errors import (
    ConfigError,
    DispatchError,
    DispatchTableFrozenError,
    DuplicateKindError,
    EventFnError,
    MalformedPayloadError,
    UnknownKindError,
)
from .reporting import ErrorReporter, LogErrorReporter, NullErrorReporter, ReportedFault
from .runtime import Invocation, create_app, invoke
from .types import (
    EventContext,
    EventEnvelope,
    EventInput,
    Failure,
    HttpEnvelope,
    InvocationContext,
    InvocationState,
    MessageInput,
    NameInput,
    Response,
    SilentFailure,
    StorageObject,
    Success,
    TriggerType,
)

__version__ = "0.1.0"
__all__ = [
    "http_trigger",
    "message_trigger",
    "storage_trigger",
    "event_trigger",
    "DispatchTable",
    "get_default_table",
    "discover_functions",
    "create_app",
    "invoke",
    "Invocation",
    "Settings",
    "load_settings",
    "ErrorReporter",
    "LogErrorReporter",
    "NullErrorReporter",
    "ReportedFault",
    "EventFnError",
    "DispatchError",
    "DuplicateKindError",
    "UnknownKindError",
    "DispatchTableFrozenError",
    "MalformedPayloadError",
    "ConfigError",
    "TriggerType",
    "InvocationState",
    "HttpEnvelope",
    "EventEnvelope",
    "EventContext",
    "NameInput",
    "MessageInput",
    "StorageObject",
    "EventInput",
    "Success",
    "Failure",
    "SilentFailure",
    "InvocationContext",
    "Response",
]
