"""
Result normalization

Turns a HandlerResult into the effect the trigger kind calls for: an HTTP
response, or a completion outcome for background events. Structured
failures go to the error-reporting sink; silent failures are only logged.
"""

import logging
from typing import Any, Optional

from .reporting import ErrorReporter, ReportedFault
from .types import (
    Failure,
    HandlerResult,
    InvocationContext,
    InvocationState,
    Response,
    SilentFailure,
    Success,
)

logger = logging.getLogger(__name__)


def coerce_result(value: Any) -> HandlerResult:
    """Map a handler's return value onto a HandlerResult"""
    if isinstance(value, (Success, Failure, SilentFailure)):
        return value
    return Success(value)


def state_for(result: HandlerResult) -> InvocationState:
    if isinstance(result, Success):
        return InvocationState.SUCCEEDED
    if isinstance(result, Failure):
        return InvocationState.REPORTED_FAILURE
    return InvocationState.SILENT_FAILURE


def to_http_response(result: HandlerResult, failure_message: str) -> Response:
    """Success -> 200 with the output; any failure -> 500 with a fixed message"""
    if isinstance(result, Success):
        body = "" if result.output is None else str(result.output)
        return Response.text(body)
    return Response.error(failure_message)


def record_failure(
    result: HandlerResult,
    context: InvocationContext,
    reporter: Optional[ErrorReporter],
) -> None:
    """Log a failed result, and report it when it is a structured fault"""
    if isinstance(result, Failure):
        error = result.error
        context.logger.error(
            f"Function {context.function_name} failed: {error}",
            exc_info=(type(error), error, error.__traceback__),
        )
        if reporter is not None:
            reporter.report(
                ReportedFault.from_exception(
                    error,
                    function_name=context.function_name,
                    invocation_id=context.invocation_id,
                    event_id=context.event.event_id if context.event else None,
                )
            )
    elif isinstance(result, SilentFailure):
        context.logger.error(f"Function {context.function_name} failed: {result.describe()}")


def complete_event(
    result: HandlerResult,
    context: InvocationContext,
    reporter: Optional[ErrorReporter],
) -> InvocationState:
    """Record the outcome of a background invocation and return its final state"""
    record_failure(result, context, reporter)
    state = state_for(result)
    logger.debug(f"Invocation {context.invocation_id} of {context.function_name}: {state.value}")
    return state
