"""
Declarative catalog of manager actions.

Each :class:`ActionSpec` names an action and the headers it takes. One
generic :meth:`ActionCatalog.call` maps keyword arguments onto those
headers and forwards the request to the session's ``send_request``.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from .protocol.message import Message
from .protocol.utils import HEADER_ACTION_ID
from .utils.logging_utils import log_action

logger = logging.getLogger(__name__)

_WORD_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


@dataclass(frozen=True)
class ActionSpec:
    """Header names an action requires and accepts."""

    name: str
    required: Tuple[str, ...] = ()
    optional: Tuple[str, ...] = ()
    # Overrides the derived attribute where acronyms run into words.
    alias: Optional[str] = None

    @property
    def headers(self) -> Tuple[str, ...]:
        return self.required + self.optional

    @property
    def attribute(self) -> str:
        """snake_case attribute name, e.g. ``SetCDRUserField`` -> ``set_cdr_user_field``."""
        return self.alias or _WORD_BOUNDARY.sub("_", self.name).lower()


_CHANNEL_TARGET = ("Channel", "Exten", "Context", "Priority")

ACTIONS: Dict[str, ActionSpec] = {
    spec.name.lower(): spec
    for spec in (
        ActionSpec("AbsoluteTimeout", ("Channel", "Timeout")),
        ActionSpec("Atxfer", _CHANNEL_TARGET),
        ActionSpec("ChangeMonitor", ("Channel", "File")),
        ActionSpec("Command", ("Command",)),
        ActionSpec("Events", ("EventMask",)),
        ActionSpec("ExtensionState", ("Exten", "Context")),
        ActionSpec("GetVar", ("Channel", "Variable")),
        ActionSpec("Hangup", ("Channel",)),
        ActionSpec("IAXPeers"),
        ActionSpec("ListCommands"),
        ActionSpec("Logoff"),
        ActionSpec("MailboxCount", ("Mailbox",)),
        ActionSpec("MailboxStatus", ("Mailbox",)),
        ActionSpec("Monitor", ("Channel",), ("File", "Format", "Mix")),
        ActionSpec(
            "Originate",
            ("Channel",),
            (
                "Exten",
                "Context",
                "Priority",
                "Application",
                "Data",
                "Timeout",
                "CallerID",
                "Variable",
                "Account",
                "Async",
            ),
        ),
        ActionSpec("ParkedCalls"),
        ActionSpec("Ping"),
        ActionSpec("QueueAdd", ("Queue", "Interface"), ("Penalty", "MemberName")),
        ActionSpec("QueueReload"),
        ActionSpec("QueueRemove", ("Queue", "Interface")),
        ActionSpec("Queues"),
        ActionSpec("QueueStatus"),
        ActionSpec("Redirect", ("Channel", "ExtraChannel", "Exten", "Context", "Priority")),
        ActionSpec("SetCDRUserField", ("UserField", "Channel"), ("Append",)),
        ActionSpec("SetVar", ("Channel", "Variable", "Value")),
        ActionSpec("Status", ("Channel",)),
        ActionSpec("StopMonitor", ("Channel",)),
        ActionSpec("ZapDialOffhook", ("ZapChannel", "Number")),
        ActionSpec("ZapDNDoff", ("ZapChannel",), alias="zap_dnd_off"),
        ActionSpec("ZapDNDon", ("ZapChannel",), alias="zap_dnd_on"),
        ActionSpec("ZapHangup", ("ZapChannel",)),
        ActionSpec("ZapShowChannels"),
        ActionSpec("ZapTransfer", ("ZapChannel",)),
    )
}

def _normalize(name: str) -> str:
    return name.replace("_", "").lower()


def _lookup(name: str) -> Optional[ActionSpec]:
    return ACTIONS.get(_normalize(name))


class ActionCatalog:
    """
    Builds catalog requests and hands them to ``send_request``.

    ``catalog.call("Originate", channel="SIP/100", caller_id="100")`` and
    ``catalog.originate(channel="SIP/100", caller_id="100")`` are
    equivalent. Keyword names match header names once underscores are
    dropped and case is ignored; ``action_id`` is accepted by every action.
    Action names resolve the same way, so ``set_cdr_user_field`` and
    ``setcdruserfield`` both reach ``SetCDRUserField``.
    """

    def __init__(self, session: Any) -> None:
        self._session = session

    @staticmethod
    def get_spec(action: str) -> ActionSpec:
        spec = _lookup(action)
        if spec is None:
            raise KeyError(f"Unknown manager action: {action}")
        return spec

    @staticmethod
    def build_parameters(spec: ActionSpec, **kwargs: Any) -> List[Tuple[str, Any]]:
        """
        Map keyword arguments onto the action's headers, in declaration order.

        Raises:
            TypeError: A required header is missing or an argument is unknown.
        """
        headers = {_normalize(h): h for h in spec.headers + (HEADER_ACTION_ID,)}
        supplied: Dict[str, Any] = {}
        for key, value in kwargs.items():
            header = headers.get(_normalize(key))
            if header is None:
                raise TypeError(f"{spec.name}() got an unexpected argument '{key}'")
            if value is not None:
                supplied[header] = value

        missing = [h for h in spec.required if h not in supplied]
        if missing:
            raise TypeError(f"{spec.name}() missing required argument(s): {', '.join(missing)}")

        # Mix only means something alongside a recording file, where it
        # defaults to false.
        if spec.name == "Monitor":
            if "File" in supplied:
                supplied.setdefault("Mix", False)
            else:
                supplied.pop("Mix", None)

        return [
            (header, supplied[header])
            for header in spec.headers + (HEADER_ACTION_ID,)
            if header in supplied
        ]

    def call(self, action: str, **kwargs: Any) -> Message:
        """Send a catalog action built from keyword arguments."""
        spec = self.get_spec(action)
        parameters = self.build_parameters(spec, **kwargs)
        log_action(logger, spec.name, ", ".join(name for name, _ in parameters))
        return self._session.send_request(spec.name, parameters)

    def db_get(self, family: str, key: str, action_id: Optional[str] = None) -> str:
        """
        Fetch one value from the manager's database.

        The value arrives in a second message correlated with the same
        ActionID after a Success response; an empty string is returned when
        the lookup fails.
        """
        if action_id is None:
            action_id = self._session.new_action_id()
        response = self._session.send_request(
            "DBGet", [("Family", family), ("Key", key), (HEADER_ACTION_ID, action_id)]
        )
        if not response.is_success:
            return ""
        result = self._session.wait_response(False, action_id)
        return result.get("Val", "")

    def __getattr__(self, name: str) -> Callable[..., Message]:
        spec = None if name.startswith("_") else _lookup(name)
        if spec is None:
            raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}")

        def action(**kwargs: Any) -> Message:
            return self.call(spec.name, **kwargs)

        action.__name__ = name
        action.__doc__ = f"Send the {spec.name} action."
        return action

    def __dir__(self) -> List[str]:
        return sorted(set(super().__dir__()) | {spec.attribute for spec in ACTIONS.values()})
