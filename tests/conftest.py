# -*- coding: utf-8 -*-
import json

import pytest

from blob2spo.spo_api import ChunkOutcome


class FakeResponse:
    """Minimal stand-in for requests.Response"""

    def __init__(self, status_code=200, payload=None, text=None, headers=None, reason="OK"):
        self.status_code = status_code
        self._payload = payload
        if text is None:
            text = json.dumps(payload) if payload is not None else ""
        self.text = text
        self.content = text.encode()
        self.headers = headers or {}
        self.reason = reason

    def json(self):
        if self._payload is None:
            return json.loads(self.text)
        return self._payload


class FakeSPOClient:
    """Records every write instead of calling SharePoint"""

    def __init__(self, outcomes=None):
        # operation -> ChunkOutcome returned instead of accepted()
        self.outcomes = outcomes or {}
        self.calls = []

    def _record(self, operation, descriptor, data):
        self.calls.append({
            'operation': operation,
            'descriptor': descriptor,
            'data': bytes(data),
            'offset': descriptor.file_offset,
            'upload_id': descriptor.upload_session_id,
        })
        return self.outcomes.get(operation, ChunkOutcome.accepted())

    def upload_one_time(self, descriptor, data):
        return self._record('one_time', descriptor, data)

    def upload_start(self, descriptor, data):
        return self._record('start', descriptor, data)

    def upload_continue(self, descriptor, data):
        return self._record('continue', descriptor, data)

    def upload_finish(self, descriptor, data):
        return self._record('finish', descriptor, data)

    def operations(self):
        return [call['operation'] for call in self.calls]


def fragments_of(data, size):
    """Split data into fragments of at most size bytes."""
    for start in range(0, len(data), size):
        yield data[start:start + size]


@pytest.fixture(autouse=True)
def quiet_debug(monkeypatch):
    monkeypatch.delenv('DEBUG', raising=False)
    monkeypatch.delenv('DEBUG_METADATA', raising=False)
    monkeypatch.delenv('BLOB2SPO_CHUNK_SIZE_MB', raising=False)


@pytest.fixture
def fake_spo():
    return FakeSPOClient()
