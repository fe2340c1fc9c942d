import pytest
from fakes import RecordingNotifier, StubQrEncoder

from xscard.infrastructure import InMemoryDocumentStore


@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def encoder():
    return StubQrEncoder()
