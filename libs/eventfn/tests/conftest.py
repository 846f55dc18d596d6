"""Shared fixtures for eventfn tests."""

import asyncio
import logging

import pytest

from eventfn import decorators
from eventfn.config import Settings
from eventfn.decorators import DispatchTable


class RecordingReporter:
    """ErrorReporter that keeps every fault it is handed."""

    def __init__(self):
        self.faults = []

    def report(self, fault):
        self.faults.append(fault)


@pytest.fixture
def reporter():
    return RecordingReporter()


@pytest.fixture
def table():
    return DispatchTable()


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def default_table(monkeypatch):
    """Swap in an empty process-wide table for the duration of a test."""
    fresh = DispatchTable()
    monkeypatch.setattr(decorators, "_default_table", fresh)
    return fresh


@pytest.fixture
def run():
    """Run a coroutine to completion."""
    return asyncio.run


@pytest.fixture
def info_logs(caplog):
    caplog.set_level(logging.INFO)
    return caplog
