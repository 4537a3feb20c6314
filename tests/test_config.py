import pytest

from pureami.config import ManagerConfig


def test_defaults():
    config = ManagerConfig()
    assert config.server == "localhost"
    assert config.port == 5038
    assert config.username is None
    assert config.write_log is False
    assert config.connect_timeout is None
    assert config.read_timeout is None


@pytest.mark.parametrize(
    "server, expected",
    [
        (None, ("localhost", 5038)),
        ("pbx", ("pbx", 5038)),
        ("pbx:5039", ("pbx", 5039)),
        ("10.0.0.1:15038", ("10.0.0.1", 15038)),
        ("::1", ("::1", 5038)),
        ("[::1]:5039", ("::1", 5039)),
        ("[fe80::1]", ("fe80::1", 5038)),
    ],
)
def test_split_server(server, expected):
    assert ManagerConfig().split_server(server) == expected


@pytest.mark.parametrize("server", ["pbx:", "pbx:abc", "pbx:70000", "pbx:0", "[::1]5039"])
def test_split_server_rejects_malformed_port(server):
    with pytest.raises(ValueError):
        ManagerConfig().split_server(server)


def test_split_configured_server():
    assert ManagerConfig(server="pbx:6000", port=7000).split_server() == ("pbx", 6000)
    assert ManagerConfig(server="pbx", port=7000).split_server() == ("pbx", 7000)


def test_from_env():
    config = ManagerConfig.from_env(
        environ={
            "PUREAMI_SERVER": "pbx.example.com",
            "PUREAMI_PORT": "5039",
            "PUREAMI_USERNAME": "admin",
            "PUREAMI_SECRET": "s3cret",
            "PUREAMI_WRITE_LOG": "Yes",
            "PUREAMI_CONNECT_TIMEOUT": "2.5",
            "PUREAMI_READ_TIMEOUT": "none",
        }
    )
    assert config.split_server() == ("pbx.example.com", 5039)
    assert config.username == "admin"
    assert config.secret == "s3cret"
    assert config.write_log is True
    assert config.connect_timeout == 2.5
    assert config.read_timeout is None


def test_from_env_custom_prefix(monkeypatch):
    monkeypatch.setenv("AMI_SERVER", "asterisk")
    monkeypatch.setenv("AMI_WRITE_LOG", "0")
    config = ManagerConfig.from_env(prefix="AMI_")
    assert config.server == "asterisk"
    assert config.write_log is False


def test_from_env_rejects_bad_port():
    with pytest.raises(ValueError):
        ManagerConfig.from_env(environ={"PUREAMI_PORT": "manager"})


def test_repr_masks_secret():
    text = repr(ManagerConfig(username="admin", secret="s3cret"))
    assert "s3cret" not in text
    assert "'***'" in text
