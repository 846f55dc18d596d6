"""
Generic background Functions

helloworld's faulting handlers live here too. Only a raised exception is a
structured fault and reaches error reporting; the other two failure
channels are logged and nothing more.
"""

from eventfn import EventInput, InvocationContext, SilentFailure, event_trigger


@event_trigger
def hello_background(event: EventInput, context: InvocationContext) -> str:
    name = event.data.get("name") or "World"
    return f"Hello {name}!"


@event_trigger
def hello_error(event: EventInput, context: InvocationContext) -> None:
    """Raise a structured fault. Reported to error reporting."""
    raise RuntimeError("I failed you")


@event_trigger
def hello_error_2(event: EventInput, context: InvocationContext) -> SilentFailure:
    """Fail with a non-error value. Not reported, only a generic failure is logged."""
    # Neither log line is reportable, whatever its severity
    context.logger.info("I failed you")
    context.logger.error("I failed you")
    return SilentFailure(1)


@event_trigger
def hello_error_3(event: EventInput, context: InvocationContext) -> SilentFailure:
    """Signal failure through the result. Not reported."""
    return SilentFailure("I failed you")
