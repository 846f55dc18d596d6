"""Tests for the invoker and the FastAPI runtime."""

import base64
import logging

import pytest
from fastapi.testclient import TestClient

from eventfn.config import Settings
from eventfn.decorators import event_trigger, http_trigger, message_trigger, storage_trigger
from eventfn.errors import DispatchTableFrozenError, MalformedPayloadError, UnknownKindError
from eventfn.runtime import create_app, invoke
from eventfn.types import (
    EventContext,
    EventEnvelope,
    Failure,
    HttpEnvelope,
    InvocationState,
    SilentFailure,
    Success,
)


@pytest.fixture
def functions(table):
    """A small table covering every trigger kind and failure channel."""

    @http_trigger(table=table, methods=["GET", "POST"])
    def greet(request, context):
        return f"Hello {request.name}!"

    @http_trigger(table=table, path="/boom")
    def http_boom(request):
        raise RuntimeError("database password is hunter2")

    @http_trigger(table=table)
    def http_refuse(request):
        return SilentFailure("nope")

    @message_trigger(table=table)
    def consume(message, context):
        context.logger.info(f"Hello, {message.name}!")

    @storage_trigger(table=table)
    async def on_object(file, context):
        context.logger.info(f"File {file.name} in {file.bucket}")
        return Success()

    @event_trigger(table=table)
    def crash(event, context):
        raise ValueError("I failed you")

    @event_trigger(table=table)
    def give_up(event):
        return SilentFailure(1)

    @event_trigger(table=table)
    def no_args():
        return "done"

    @event_trigger(table=table)
    def renamed_context(event, invocation):
        return invocation.function_name

    @event_trigger(table=table)
    def keyword_context(event, *, ctx):
        return ctx.invocation_id

    return table


class TestInvoke:
    def test_http_success(self, functions, reporter, run):
        invocation = run(invoke("greet", HttpEnvelope(query_params={"name": "Ada"}), functions, reporter))

        assert invocation.state == InvocationState.SUCCEEDED
        assert invocation.result == Success("Hello Ada!")
        assert invocation.response.status_code == 200
        assert invocation.response.body == "Hello Ada!"
        assert len(invocation.invocation_id) == 8

    def test_http_fault_is_reported_but_not_leaked(self, functions, reporter, run):
        invocation = run(invoke("http_boom", HttpEnvelope(), functions, reporter))

        assert invocation.state == InvocationState.REPORTED_FAILURE
        assert invocation.response.status_code == 500
        assert invocation.response.body == "I failed you"
        assert "hunter2" not in invocation.response.body
        assert len(reporter.faults) == 1

    def test_http_silent_failure(self, functions, reporter, run):
        settings = Settings(failure_message="Try again later")
        invocation = run(invoke("http_refuse", HttpEnvelope(), functions, reporter, settings))

        assert invocation.state == InvocationState.SILENT_FAILURE
        assert invocation.response.status_code == 500
        assert invocation.response.body == "Try again later"
        assert reporter.faults == []

    def test_http_malformed_body(self, functions, reporter, run):
        envelope = HttpEnvelope(method="POST", body=b"{", content_type="application/json")
        invocation = run(invoke("greet", envelope, functions, reporter))

        assert isinstance(invocation.result, Failure)
        assert isinstance(invocation.result.error, MalformedPayloadError)
        assert invocation.response.status_code == 500

    def test_message_event(self, functions, reporter, run, info_logs):
        envelope = EventEnvelope(data={"data": base64.b64encode(b"Alice").decode()})
        invocation = run(invoke("consume", envelope, functions, reporter))

        assert invocation.state == InvocationState.SUCCEEDED
        assert invocation.response is None
        assert "Hello, Alice!" in info_logs.messages

    def test_raw_event_body_is_parsed(self, functions, reporter, run, info_logs):
        body = b'{"context": {"eventId": "e-1"}, "data": {"bucket": "b", "name": "f.txt"}}'
        invocation = run(invoke("on_object", body, functions, reporter))

        assert invocation.state == InvocationState.SUCCEEDED
        record = [r for r in info_logs.records if r.getMessage() == "File f.txt in b"][0]
        assert record.event_id == "e-1"

    def test_raised_exception_is_reported(self, functions, reporter, run):
        invocation = run(invoke("crash", EventEnvelope(data={}), functions, reporter))

        assert invocation.state == InvocationState.REPORTED_FAILURE
        assert isinstance(invocation.result.error, ValueError)
        assert len(reporter.faults) == 1
        assert reporter.faults[0].function_name == "crash"

    def test_silent_failure_is_not_reported(self, functions, reporter, run, caplog):
        invocation = run(invoke("give_up", EventEnvelope(data={}), functions, reporter))

        assert invocation.state == InvocationState.SILENT_FAILURE
        assert reporter.faults == []
        assert any(r.levelno == logging.ERROR for r in caplog.records)

    def test_handler_without_parameters(self, functions, reporter, run):
        invocation = run(invoke("no_args", EventEnvelope(), functions, reporter))
        assert invocation.result == Success("done")

    def test_context_passed_positionally_whatever_its_name(self, functions, reporter, run):
        invocation = run(invoke("renamed_context", EventEnvelope(data={}), functions, reporter))

        assert invocation.state == InvocationState.SUCCEEDED
        assert invocation.result == Success("renamed_context")
        assert reporter.faults == []

    def test_keyword_only_context(self, functions, reporter, run):
        invocation = run(invoke("keyword_context", EventEnvelope(data={}), functions, reporter))
        assert invocation.result == Success(invocation.invocation_id)

    def test_malformed_event_is_reported(self, functions, reporter, run):
        invocation = run(invoke("on_object", EventEnvelope(data={"bucket": "b"}), functions, reporter))

        assert invocation.state == InvocationState.REPORTED_FAILURE
        assert isinstance(invocation.result.error, MalformedPayloadError)
        assert len(reporter.faults) == 1

    def test_unknown_kind_event(self, functions, reporter, run):
        invocation = run(invoke("missing", EventEnvelope(), functions, reporter))

        assert invocation.state == InvocationState.REPORTED_FAILURE
        assert isinstance(invocation.result.error, UnknownKindError)

    def test_unknown_kind_http(self, functions, reporter, run):
        invocation = run(invoke("missing", HttpEnvelope(), functions, reporter))
        assert invocation.response.status_code == 500

    def test_event_context_threaded_to_fault(self, functions, reporter, run):
        envelope = EventEnvelope(data={}, context=EventContext(event_id="evt-7"))
        run(invoke("crash", envelope, functions, reporter))
        assert reporter.faults[0].event_id == "evt-7"


class TestCreateApp:
    @pytest.fixture
    def client(self, functions, reporter):
        return TestClient(create_app(functions, reporter=reporter))

    def test_health_endpoints(self, client):
        assert client.get("/health").json()["status"] == "healthy"
        assert client.get("/ready").json() == {"ready": True}
        assert client.get("/live").json() == {"alive": True}

    def test_list_functions(self, client):
        functions = {f["name"]: f for f in client.get("/_functions").json()["functions"]}
        assert functions["greet"]["trigger_type"] == "http"
        assert functions["greet"]["path"] == "/greet"
        assert functions["http_boom"]["path"] == "/boom"
        assert functions["consume"]["methods"] == ["POST"]

    def test_http_get(self, client):
        response = client.get("/greet", params={"name": "Ada"})
        assert response.status_code == 200
        assert response.text == "Hello Ada!"
        assert response.headers["content-type"].startswith("text/plain")

    def test_http_post_json(self, client):
        response = client.post("/greet", json={"name": "Grace"})
        assert response.text == "Hello Grace!"

    def test_http_post_form(self, client):
        response = client.post("/greet", data={"name": "Linus"})
        assert response.text == "Hello Linus!"

    def test_http_failure(self, client, reporter):
        response = client.get("/boom")
        assert response.status_code == 500
        assert response.text == "I failed you"
        assert len(reporter.faults) == 1

    def test_method_not_allowed(self, client):
        assert client.delete("/boom").status_code == 405

    def test_event_completion(self, client, reporter):
        response = client.post("/crash", json={"context": {"eventId": "1"}, "data": {}})
        assert response.status_code == 200
        assert response.json() == {"status": "reported_failure"}
        assert len(reporter.faults) == 1

    def test_event_malformed_body_still_completes(self, client, reporter):
        response = client.post("/consume", content=b"not json")
        assert response.status_code == 200
        assert response.json() == {"status": "reported_failure"}

    def test_table_frozen(self, functions, client):
        assert functions.frozen
        with pytest.raises(DispatchTableFrozenError):
            functions.register("late", lambda e: None, None)

    def test_function_filter(self, functions, reporter):
        client = TestClient(create_app(functions, reporter=reporter, function_filter="greet"))

        names = [f["name"] for f in client.get("/_functions").json()["functions"]]
        assert names == ["greet"]
        assert client.get("/", params={"name": "Root"}).text == "Hello Root!"
        assert client.post("/crash", json={}).status_code == 404

    def test_function_filter_unknown(self, functions):
        with pytest.raises(UnknownKindError):
            create_app(functions, function_filter="missing")

    def test_filter_from_settings(self, functions, reporter):
        app = create_app(functions, settings=Settings(function_target="consume"), reporter=reporter)
        response = TestClient(app).post("/", json={"data": {"data": ""}})
        assert response.json() == {"status": "succeeded"}
