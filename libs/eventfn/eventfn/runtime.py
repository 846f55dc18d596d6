"""
Runtime for eventfn

Invokes registered functions and serves them over HTTP with FastAPI.
HTTP functions answer plain text; background functions accept an event
body with POST and answer with a completion status.
"""

import asyncio
import inspect
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from .config import Settings, load_settings
from .decoders import decode, parse_event_body
from .decorators import DispatchTable, discover_functions, get_default_table
from .errors import MalformedPayloadError, UnknownKindError
from .logs import configure_logging, invocation_logger
from .reporting import ErrorReporter, create_reporter
from .results import coerce_result, complete_event, record_failure, state_for, to_http_response
from .types import (
    EventEnvelope,
    Failure,
    FunctionEntry,
    HandlerResult,
    HttpEnvelope,
    InvocationContext,
    InvocationState,
    Response,
    TriggerType,
)

logger = logging.getLogger(__name__)


@dataclass
class Invocation:
    """Outcome of one invocation"""
    function_name: str
    invocation_id: str
    result: HandlerResult
    state: InvocationState
    response: Optional[Response] = None


async def _invoke_handler(func: Callable, payload: Any, context: InvocationContext) -> Any:
    """Invoke a handler, passing the context only if it asks for one

    Handlers take `(input, context)` or `(input)`. The context goes to the
    second positional parameter whatever its name; a keyword-only
    `context` or `ctx` parameter also receives it.
    """
    params = list(inspect.signature(func).parameters.values())
    positional = [
        p for p in params
        if p.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
    ]
    takes_varargs = any(p.kind is inspect.Parameter.VAR_POSITIONAL for p in params)

    args: List[Any] = []
    if positional or takes_varargs:
        args.append(payload)
    if len(positional) >= 2 or (takes_varargs and len(positional) < 2):
        args.append(context)

    kwargs: Dict[str, Any] = {}
    for param in params:
        if param.kind is inspect.Parameter.KEYWORD_ONLY and param.name in ("context", "ctx"):
            kwargs[param.name] = context

    result = func(*args, **kwargs)

    # Always await if result is a coroutine (handles wrapped async functions)
    if asyncio.iscoroutine(result):
        return await result
    return result


async def invoke(
    kind: str,
    envelope: Any,
    table: Optional[DispatchTable] = None,
    reporter: Optional[ErrorReporter] = None,
    settings: Optional[Settings] = None,
) -> Invocation:
    """
    Run one invocation end to end.

    Args:
        kind: Registered function kind
        envelope: HttpEnvelope for HTTP functions; an EventEnvelope, or the
            raw event body (bytes or dict), for background functions
        table: Dispatch table (defaults to the process table)
        reporter: Error-reporting sink (defaults to one built from settings)
        settings: Runtime settings (defaults to Settings())

    Returns:
        The Invocation, with its HTTP response when the trigger is HTTP.
        Dispatch and decode errors are folded into a Failure result.
    """
    table = table if table is not None else get_default_table()
    settings = settings or Settings()
    if reporter is None:
        reporter = create_reporter(settings)

    invocation_id = str(uuid.uuid4())[:8]
    is_http = isinstance(envelope, HttpEnvelope)
    event = envelope.context if isinstance(envelope, EventEnvelope) else None

    context = InvocationContext(
        function_name=kind,
        invocation_id=invocation_id,
        timestamp=datetime.now(timezone.utc).isoformat(),
        logger=invocation_logger(kind, invocation_id, event.event_id if event else None),
        event=event,
    )

    result: HandlerResult
    entry: Optional[FunctionEntry] = None
    try:
        entry = table.resolve(kind)
        is_http = entry.trigger_type is TriggerType.HTTP

        if not is_http and not isinstance(envelope, EventEnvelope):
            envelope = parse_event_body(envelope)
            context.event = envelope.context
            context.logger = invocation_logger(kind, invocation_id, envelope.context.event_id)

        payload = decode(entry.trigger_type, envelope)
    except (UnknownKindError, MalformedPayloadError) as e:
        result = Failure(e)
    else:
        try:
            result = coerce_result(await _invoke_handler(entry.handler, payload, context))
        except Exception as e:
            result = Failure(e)

    if is_http:
        record_failure(result, context, reporter)
        return Invocation(
            function_name=kind,
            invocation_id=invocation_id,
            result=result,
            state=state_for(result),
            response=to_http_response(result, settings.failure_message),
        )

    state = complete_event(result, context, reporter)
    return Invocation(function_name=kind, invocation_id=invocation_id, result=result, state=state)


def create_app(
    table: Optional[DispatchTable] = None,
    settings: Optional[Settings] = None,
    reporter: Optional[ErrorReporter] = None,
    function_filter: Optional[str] = None,
    title: str = "eventfn",
    version: str = "1.0.0",
):
    """
    Create a FastAPI application serving registered functions.

    The dispatch table is frozen here; nothing may register afterwards.

    Args:
        table: Dispatch table (defaults to the process table)
        settings: Runtime settings
        reporter: Error-reporting sink
        function_filter: If set, only serve this function, also at "/"

    Returns:
        FastAPI application instance
    """
    from fastapi import FastAPI, Request as FastAPIRequest
    from fastapi.responses import JSONResponse, PlainTextResponse

    table = table if table is not None else get_default_table()
    settings = settings or Settings()
    if reporter is None:
        reporter = create_reporter(settings)
    target = function_filter or settings.function_target

    table.freeze()
    if target is not None:
        # Fail at startup rather than on first request
        table.resolve(target)

    app = FastAPI(title=title, version=version)

    @app.get("/health")
    async def health():
        return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}

    @app.get("/ready")
    async def ready():
        return {"ready": True}

    @app.get("/live")
    async def live():
        return {"alive": True}

    @app.get("/_functions")
    async def list_functions():
        return {
            "functions": [
                {
                    "name": entry.name,
                    "trigger_type": entry.trigger_type.value,
                    "path": entry.route,
                    "methods": entry.methods if entry.trigger_type is TriggerType.HTTP else ["POST"],
                }
                for entry in table.entries()
                if target is None or entry.name == target
            ]
        }

    def make_endpoint(entry: FunctionEntry):
        if entry.trigger_type is TriggerType.HTTP:

            async def http_endpoint(request: FastAPIRequest) -> PlainTextResponse:
                envelope = HttpEnvelope(
                    method=request.method,
                    path=str(request.url.path),
                    headers=dict(request.headers),
                    query_params=dict(request.query_params),
                    body=await request.body(),
                    content_type=request.headers.get("content-type"),
                )
                invocation = await invoke(entry.name, envelope, table, reporter, settings)
                response = invocation.response
                return PlainTextResponse(
                    content=response.body,
                    status_code=response.status_code,
                    headers=response.headers,
                )

            http_endpoint.__name__ = f"handle_{entry.name}"
            return http_endpoint, entry.methods

        async def event_endpoint(request: FastAPIRequest) -> JSONResponse:
            invocation = await invoke(entry.name, await request.body(), table, reporter, settings)
            # Completion signal only; failure details stay in logs
            return JSONResponse(content={"status": invocation.state.value})

        event_endpoint.__name__ = f"handle_{entry.name}"
        return event_endpoint, ["POST"]

    for entry in table.entries():
        if target is not None and entry.name != target:
            continue

        endpoint, methods = make_endpoint(entry)
        paths = [entry.route]
        if target is not None and entry.route != "/":
            paths.append("/")

        for path in paths:
            app.add_api_route(
                path,
                endpoint,
                methods=methods,
                name=f"{entry.name}_{path}",
                tags=[entry.name],
            )

    return app


def run_function(
    source_dir: str,
    module_name: str = "functions",
    function_name: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> None:
    """
    Serve the functions of a module with uvicorn.

    Args:
        source_dir: Directory containing the functions module
        module_name: Module or package to import
        function_name: Specific function to serve (optional)
        settings: Runtime settings (defaults to load_settings() searching from source_dir)
    """
    import uvicorn

    settings = settings or load_settings(start=source_dir)
    configure_logging(settings.log_level, settings.log_format)

    try:
        discover_functions(source_dir, module_name)
    except ImportError as e:
        logger.error(f"Failed to import module {module_name}: {e}")
        raise

    target = function_name or settings.function_target
    app = create_app(
        settings=settings,
        function_filter=target,
        title=f"Function: {target or 'all'}",
    )

    logger.info(f"Starting function server on {settings.host}:{settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    import sys

    if len(sys.argv) < 2:
        print("Usage: python -m eventfn.runtime <source_dir> [module] [function_name]")
        sys.exit(1)

    run_function(
        sys.argv[1],
        sys.argv[2] if len(sys.argv) > 2 else "functions",
        sys.argv[3] if len(sys.argv) > 3 else None,
    )
