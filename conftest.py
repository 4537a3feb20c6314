import logging
import os
import socket
import threading

import pytest

# Test configuration - allow override via environment variables
TEST_HOST = os.environ.get("PUREAMI_TEST_HOST", "127.0.0.1")
TEST_USERNAME = "admin"
TEST_SECRET = "s3cret"

logger = logging.getLogger(__name__)


def _block(*pairs):
    return "".join(f"{k}: {v}\r\n" for k, v in pairs).encode() + b"\r\n"


class MockAMIServer:
    """
    Threaded stand-in for an Asterisk manager on a loopback port.

    Answers login, ping (preceded by an unsolicited event), queuestatus
    (as an event list) and logoff. Anything else gets ``Response: Error``.
    """

    def __init__(self, host: str = TEST_HOST):
        self.sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self.sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self.sock.bind((host, 0))
        self.sock.listen(1)
        self.sock.settimeout(5.0)
        self.host, self.port = self.sock.getsockname()
        self.received = []
        self.thread = threading.Thread(target=self._serve, name="MockAMIServer", daemon=True)

    def __enter__(self):
        self.thread.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.sock.close()
        self.thread.join(timeout=2.0)

    def _serve(self):
        try:
            client, _ = self.sock.accept()
        except OSError:
            return
        with client:
            client.sendall(b"Asterisk Call Manager/5.0.1\r\n")
            buffer = b""
            while True:
                try:
                    data = client.recv(4096)
                except OSError:
                    break
                if not data:
                    break
                buffer += data
                while b"\r\n\r\n" in buffer:
                    raw, buffer = buffer.split(b"\r\n\r\n", 1)
                    headers = {}
                    for line in raw.decode().split("\r\n"):
                        if ":" in line:
                            k, v = line.split(":", 1)
                            headers[k.strip().lower()] = v.strip()
                    self.received.append(headers)
                    if not self._reply(client, headers):
                        return

    def _reply(self, client, headers):
        action = headers.get("action", "").lower()
        action_id = headers.get("actionid", "")
        if action == "login":
            ok = (
                headers.get("username") == TEST_USERNAME
                and headers.get("secret") == TEST_SECRET
            )
            client.sendall(
                _block(
                    ("Response", "Success" if ok else "Error"),
                    ("ActionID", action_id),
                    ("Message", "Authentication accepted" if ok else "Authentication failed"),
                )
            )
        elif action == "ping":
            client.sendall(
                _block(("Event", "FullyBooted"), ("Privilege", "system,all"))
                + _block(("Response", "Success"), ("ActionID", action_id), ("Ping", "Pong"))
            )
        elif action == "queuestatus":
            client.sendall(
                _block(
                    ("Response", "Success"),
                    ("ActionID", action_id),
                    ("EventList", "start"),
                    ("Message", "Queue status will follow"),
                )
                + _block(("Event", "QueueParams"), ("Queue", "support"), ("ActionID", action_id))
                + _block(("Event", "QueueMember"), ("Queue", "support"), ("ActionID", action_id))
                + _block(
                    ("Event", "QueueStatusComplete"),
                    ("ActionID", action_id),
                    ("EventList", "Complete"),
                    ("ListItems", "2"),
                )
            )
        elif action == "logoff":
            client.sendall(
                _block(("Response", "Goodbye"), ("ActionID", action_id), ("Message", "Thanks for all the fish."))
            )
            return False
        else:
            client.sendall(
                _block(("Response", "Error"), ("ActionID", action_id), ("Message", "Invalid/unknown command"))
            )
        return True


@pytest.fixture
def mock_ami_server():
    """Fixture running a MockAMIServer on an ephemeral loopback port."""
    with MockAMIServer() as server:
        yield server
