"""Shared fixtures: an event log and a recording sleep."""

import pytest


@pytest.fixture
def event_log():
    return []


@pytest.fixture
def recording_sleep(event_log):
    """Sleep that returns immediately and records the requested delay"""
    delays = []

    async def sleep(delay):
        delays.append(delay)
        event_log.append(("sleep", delay))

    sleep.delays = delays
    return sleep
