import logging
from logging import NullHandler

import pytest

from pureami.config import ManagerConfig
from pureami.protocol.correlator import ActionIDGenerator, Correlator
from pureami.protocol.events import EventDispatcher
from pureami.protocol.framing import FrameReader
from pureami.session import Session
from tests.mocks.network_handlers import MockManagerSocket, MockSocket


@pytest.fixture
def mock_socket():
    """Fixture providing an empty MockSocket; tests queue data with feed()."""
    return MockSocket()


@pytest.fixture
def dispatcher():
    """Fixture providing an EventDispatcher bound to a test host."""
    return EventDispatcher(server="pbx.test", port=5038)


@pytest.fixture
def frame_reader(mock_socket, dispatcher):
    """Fixture providing a FrameReader wired to the mock socket and dispatcher."""
    return FrameReader(
        mock_socket, on_event=dispatcher.dispatch, host="pbx.test", port=5038
    )


@pytest.fixture
def correlator(frame_reader, mock_socket):
    """Fixture providing a Correlator with predictable ActionIDs (test-1, test-2, ...)."""
    return Correlator(frame_reader, mock_socket, id_generator=ActionIDGenerator("test"))


@pytest.fixture
def manager_socket():
    """Fixture providing a MockManagerSocket that accepts the login."""
    return MockManagerSocket()


@pytest.fixture
def make_session():
    """
    Factory fixture building a Session whose socket factory returns ``sock``.

    A list of sockets is handed out one per connect.
    """

    def _make(sock, config=None, **kwargs):
        opened = []

        def factory(address, timeout=None):
            opened.append((address, timeout))
            item = sock.pop(0) if isinstance(sock, list) else sock
            if isinstance(item, BaseException):
                raise item
            return item

        session = Session(
            config or ManagerConfig(username="admin", secret="s3cret"),
            socket_factory=factory,
            **kwargs,
        )
        session.correlator.next_action_id = ActionIDGenerator("test")
        session.opened = opened
        return session

    return _make


@pytest.fixture(autouse=True)
def suppress_logging():
    logger = logging.getLogger()
    old_handlers = logger.handlers[:]
    null_handler = NullHandler()
    logger.addHandler(null_handler)
    yield
    try:
        logger.removeHandler(null_handler)
    except ValueError:
        pass
    current_handlers = logger.handlers[:]
    for h in old_handlers:
        if h not in current_handlers:
            logger.addHandler(h)
    for h in logger.handlers[:]:
        if h not in old_handlers:
            logger.removeHandler(h)


@pytest.fixture
def preserve_root_logger():
    """Restore the root logger level and handlers after tests that reconfigure it."""
    root = logging.getLogger()
    level = root.level
    handlers = root.handlers[:]
    yield
    root.setLevel(level)
    for h in root.handlers[:]:
        if h not in handlers:
            root.removeHandler(h)
    for h in handlers:
        if h not in root.handlers:
            root.addHandler(h)


def pytest_configure(config):
    config.addinivalue_line("markers", "property: property-based tests (hypothesis)")
