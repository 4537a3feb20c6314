"""Request/response correlation and event-list aggregation."""

import itertools
import logging
import uuid
from typing import Any, List, Optional

from ..utils.logging_utils import log_protocol_event
from .errors import raise_protocol_error, safe_socket_operation
from .exceptions import NotConnectedError
from .framing import FrameReader, Parameters, encode_request, find_action_id
from .message import Message
from .utils import EVENT_LIST_COMPLETE, EVENT_LIST_START, HEADER_MESSAGE

logger = logging.getLogger(__name__)

DEFAULT_MAX_LIST_MESSAGES = 100000


class ActionIDGenerator:
    """
    Produces correlation identifiers of the form ``<prefix>-<n>``.

    The prefix is random per generator and ``n`` increases monotonically,
    so identifiers never repeat within one connection and are easy to
    follow in logs.
    """

    def __init__(self, prefix: Optional[str] = None) -> None:
        self.prefix = prefix or uuid.uuid4().hex[:8]
        self._counter = itertools.count(1)

    def __call__(self) -> str:
        return f"{self.prefix}-{next(self._counter)}"


class Correlator:
    """
    Sends actions and waits for the response carrying the same ActionID.

    Only one request is in flight at a time. While waiting, every block the
    reader produces goes through its normal classification, so interleaved
    events are dispatched before the wait resumes.
    """

    def __init__(
        self,
        reader: FrameReader,
        sock: Any = None,
        id_generator: Optional[ActionIDGenerator] = None,
        max_list_messages: int = DEFAULT_MAX_LIST_MESSAGES,
    ) -> None:
        self.reader = reader
        self._sock = sock
        self.next_action_id = id_generator or ActionIDGenerator()
        self.max_list_messages = max_list_messages

    def attach(self, sock: Any) -> None:
        self._sock = sock

    def detach(self) -> None:
        self._sock = None

    def send_request(self, action: str, parameters: Parameters = None) -> Message:
        """
        Send ``action`` and return its correlated response.

        A fresh ActionID is generated unless ``parameters`` already carries
        one. When the response opens an event list, the list is collected
        and returned on the completion message's ``events``.
        """
        if self._sock is None:
            raise NotConnectedError(
                "Not connected to a manager", context={"action": action}
            )
        if parameters is not None and not hasattr(parameters, "items"):
            # Materialize one-shot iterables; they are walked twice below.
            parameters = list(parameters)
        action_id = find_action_id(parameters)
        generated = None
        if action_id is None:
            action_id = generated = self.next_action_id()
        block = encode_request(action, parameters, generated)

        log_protocol_event(logger, "Sending action", action, action_id=action_id)
        with safe_socket_operation("write", self.reader.host, self.reader.port):
            self._sock.sendall(block)
        return self.wait_response(False, action_id)

    def wait_response(
        self, allow_timeout: bool = False, action_id: Optional[str] = None
    ) -> Message:
        """
        Wait for the next message, or for the one correlated with ``action_id``.

        Without an ``action_id`` exactly one message is read and returned
        unfiltered. With one, messages are read until a matching ActionID is
        seen; everything else is dropped after its dispatch side effect.
        When ``allow_timeout`` is set, an empty read caused by end of stream
        ends the wait and the empty message is returned.
        """
        if action_id is None:
            return self.reader.read_one_message(allow_timeout)

        response = self._wait_for_correlated(allow_timeout, action_id)
        if (response.event_list or "").lower() == EVENT_LIST_START.lower():
            return self._collect_event_list(response, action_id)
        return response

    def _wait_for_correlated(self, allow_timeout: bool, action_id: str) -> Message:
        while True:
            message = self.reader.read_one_message(allow_timeout)
            if message.action_id == action_id:
                log_protocol_event(
                    logger, "Correlated response", message.response or "", action_id
                )
                return message
            if allow_timeout and message.is_empty():
                log_protocol_event(logger, "Wait ended on timeout", action_id=action_id)
                return message

    def _collect_event_list(self, start: Message, action_id: str) -> Message:
        """Fold correlated messages into one result until ``EventList: Complete``."""
        log_protocol_event(
            logger, "Event list started", start.get(HEADER_MESSAGE, ""), action_id
        )
        events: List[Message] = []
        while True:
            message = self._wait_for_correlated(False, action_id)
            if (message.event_list or "").lower() == EVENT_LIST_COMPLETE.lower():
                log_protocol_event(
                    logger,
                    "Event list complete",
                    f"{len(events)} records",
                    action_id=action_id,
                )
                return message.with_events(events)
            events.append(message)
            if len(events) > self.max_list_messages:
                raise_protocol_error(
                    "Event list exceeded the configured limit without completing",
                    context={"action_id": action_id, "limit": self.max_list_messages},
                )
