# in-process transport doubles, they answer synchronously so tests never wait on threads

from datetime import datetime, timezone
from typing import List, Optional

import pytest

from jsonfetch.models import Outcome, RequestDescriptor


class RecordingTransport:
    # spy: keeps every request and never calls back
    def __init__(self):
        self.requests: List[RequestDescriptor] = []

    def perform_request(self, request, callback):
        self.requests.append(request)

    @property
    def last_request(self) -> Optional[RequestDescriptor]:
        return self.requests[-1] if self.requests else None


class StubTransport(RecordingTransport):
    # records like the spy, then replies with a canned outcome on the caller's thread
    def __init__(self, outcome: Outcome):
        super().__init__()
        self.outcome = outcome

    def perform_request(self, request, callback):
        super().perform_request(request, callback)
        callback(self.outcome)


@pytest.fixture
def recording_transport():
    return RecordingTransport()


@pytest.fixture
def stub_transport():
    return StubTransport


@pytest.fixture
def fixed_now():
    return datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
