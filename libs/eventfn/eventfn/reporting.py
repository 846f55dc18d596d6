"""
Error-reporting sink

Structured faults (Failure results) are handed to an ErrorReporter. The
default reporter writes a log entry in the shape Cloud Error Reporting
ingests from Cloud Logging; anything that logs at error severity without
going through a reporter is plain logging and is not aggregated.
"""

import logging
import traceback
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol, runtime_checkable

REPORTED_ERROR_EVENT_TYPE = (
    "type.googleapis.com/google.devtools.clouderrorreporting.v1beta1.ReportedErrorEvent"
)

error_logger = logging.getLogger("eventfn.errors")


@dataclass(frozen=True)
class ReportedFault:
    """A fault as handed to the error-reporting sink"""
    message: str
    stack: str
    exception_type: str
    function_name: Optional[str] = None
    invocation_id: Optional[str] = None
    event_id: Optional[str] = None

    @classmethod
    def from_exception(
        cls,
        error: BaseException,
        function_name: Optional[str] = None,
        invocation_id: Optional[str] = None,
        event_id: Optional[str] = None,
    ) -> "ReportedFault":
        stack = "".join(traceback.format_exception(type(error), error, error.__traceback__))
        return cls(
            message=str(error) or type(error).__name__,
            stack=stack,
            exception_type=type(error).__name__,
            function_name=function_name,
            invocation_id=invocation_id,
            event_id=event_id,
        )


@runtime_checkable
class ErrorReporter(Protocol):
    def report(self, fault: ReportedFault) -> None:
        ...


class LogErrorReporter:
    """Report faults as ReportedErrorEvent log entries"""

    def __init__(self, service: str = "eventfn", version: str = "1", logger: Optional[logging.Logger] = None):
        self.service = service
        self.version = version
        self.logger = logger or error_logger

    def build_event(self, fault: ReportedFault) -> Dict[str, Any]:
        context: Dict[str, Any] = {}
        if fault.function_name:
            context["functionName"] = fault.function_name
        if fault.invocation_id:
            context["invocationId"] = fault.invocation_id
        if fault.event_id:
            context["eventId"] = fault.event_id

        return {
            "@type": REPORTED_ERROR_EVENT_TYPE,
            # Error Reporting groups on the stack trace carried in `message`
            "message": fault.stack,
            "serviceContext": {"service": self.service, "version": self.version},
            "context": context,
        }

    def report(self, fault: ReportedFault) -> None:
        self.logger.error(
            f"{fault.exception_type}: {fault.message}",
            extra={"json_fields": self.build_event(fault)},
        )


class NullErrorReporter:
    """Drop every report"""

    def report(self, fault: ReportedFault) -> None:
        return None


def create_reporter(settings: Any = None) -> ErrorReporter:
    """Build the reporter selected by settings (LogErrorReporter by default)"""
    if settings is None:
        return LogErrorReporter()
    if not settings.error_reporting:
        return NullErrorReporter()
    return LogErrorReporter(service=settings.service, version=settings.version)
