"""Tests for the error-reporting sink."""

import json
import logging

from eventfn.config import Settings
from eventfn.logs import JsonFormatter
from eventfn.reporting import (
    REPORTED_ERROR_EVENT_TYPE,
    ErrorReporter,
    LogErrorReporter,
    NullErrorReporter,
    ReportedFault,
    create_reporter,
)


def make_fault():
    try:
        raise RuntimeError("I failed you")
    except RuntimeError as e:
        return ReportedFault.from_exception(e, function_name="hello_error", invocation_id="inv-1")


class TestReportedFault:
    def test_from_exception(self):
        fault = make_fault()
        assert fault.message == "I failed you"
        assert fault.exception_type == "RuntimeError"
        assert "RuntimeError: I failed you" in fault.stack
        assert "Traceback" in fault.stack
        assert fault.event_id is None

    def test_empty_message_uses_type_name(self):
        fault = ReportedFault.from_exception(KeyError())
        assert fault.message == "KeyError"


class TestLogErrorReporter:
    def test_build_event(self):
        reporter = LogErrorReporter(service="helloworld", version="7")
        event = reporter.build_event(make_fault())

        assert event["@type"] == REPORTED_ERROR_EVENT_TYPE
        assert event["serviceContext"] == {"service": "helloworld", "version": "7"}
        assert event["context"] == {"functionName": "hello_error", "invocationId": "inv-1"}
        assert "RuntimeError: I failed you" in event["message"]

    def test_report_logs_error_event(self, caplog):
        LogErrorReporter().report(make_fault())

        records = [r for r in caplog.records if r.name == "eventfn.errors"]
        assert len(records) == 1
        assert records[0].levelno == logging.ERROR
        assert records[0].getMessage() == "RuntimeError: I failed you"
        assert records[0].json_fields["@type"] == REPORTED_ERROR_EVENT_TYPE

    def test_json_output_carries_error_event_at_top_level(self, caplog):
        LogErrorReporter().report(make_fault())
        record = [r for r in caplog.records if r.name == "eventfn.errors"][0]

        payload = json.loads(JsonFormatter().format(record))
        assert payload["@type"] == REPORTED_ERROR_EVENT_TYPE
        assert payload["severity"] == "ERROR"
        assert payload["serviceContext"]["service"] == "eventfn"
        assert "json_fields" not in payload


class TestCreateReporter:
    def test_default(self):
        assert isinstance(create_reporter(), LogErrorReporter)

    def test_from_settings(self):
        reporter = create_reporter(Settings(service="svc", version="3"))
        assert isinstance(reporter, LogErrorReporter)
        assert reporter.service == "svc"
        assert reporter.version == "3"

    def test_disabled(self):
        reporter = create_reporter(Settings(error_reporting=False))
        assert isinstance(reporter, NullErrorReporter)
        assert reporter.report(make_fault()) is None

    def test_protocol(self):
        assert isinstance(LogErrorReporter(), ErrorReporter)
        assert isinstance(NullErrorReporter(), ErrorReporter)
