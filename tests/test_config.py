"""
Tests for configuration loading.
"""
from ipaddress import IPv4Address

import pytest

from sse_bridge.core.config import ConfigError, Settings, load_settings

BROKER_SECTION = """
[broker]
host = "broker.local"
port = 4222
client_id = "bridge-1"
topic = "sensors.>"
"""


@pytest.fixture
def write_config(tmp_path):
    def _write(content: str):
        path = tmp_path / "Config.toml"
        path.write_text(content, encoding="utf-8")
        return path
    return _write


class TestLoadSettings:

    def test_streaming_defaults(self, write_config):
        settings = load_settings(write_config(BROKER_SECTION))

        assert settings.sse.ip == IPv4Address("127.0.0.1")
        assert settings.sse.port == 3030
        assert settings.sse.endpoint == "events"
        assert settings.sse.buffer_size == 1024
        assert settings.sse.fanout_mode == "broadcast"
        assert settings.sse.url == "http://127.0.0.1:3030/events"
        assert settings.debug is False

    def test_broker_fields(self, write_config):
        settings = load_settings(write_config(BROKER_SECTION))

        assert settings.broker.host == "broker.local"
        assert settings.broker.port == 4222
        assert settings.broker.client_id == "bridge-1"
        assert settings.broker.topic == "sensors.>"
        assert settings.broker.credentials is None
        assert settings.broker.adapter == "nats"
        assert settings.broker.jetstream is True

    def test_sse_section(self, write_config):
        settings = load_settings(write_config(
            '[sse]\nip = "0.0.0.0"\nport = 8080\nendpoint = "stream"\n'
            'buffer_size = 64\nfanout_mode = "queue"\n' + BROKER_SECTION
        ))

        assert settings.sse.port == 8080
        assert settings.sse.path == "/stream"
        assert settings.sse.buffer_size == 64
        assert settings.sse.fanout_mode == "queue"

    def test_mqtt_section_alias(self, write_config):
        settings = load_settings(write_config(BROKER_SECTION.replace("[broker]", "[mqtt]")))

        assert settings.broker.client_id == "bridge-1"

    def test_mqtt_section_alias_warns(self, write_config, caplog):
        with caplog.at_level("WARNING", logger="sse_bridge.core.config"):
            load_settings(write_config(BROKER_SECTION.replace("[broker]", "[mqtt]")))

        assert "[mqtt]" in caplog.text
        assert "NATS" in caplog.text

    def test_broker_section_does_not_warn(self, write_config, caplog):
        with caplog.at_level("WARNING", logger="sse_bridge.core.config"):
            load_settings(write_config(BROKER_SECTION))

        assert caplog.records == []

    def test_ipv6_url(self, write_config):
        settings = load_settings(write_config('[sse]\nip = "::1"\n' + BROKER_SECTION))

        assert settings.sse.url == "http://[::1]:3030/events"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="Could not read"):
            load_settings(tmp_path / "missing.toml")

    def test_unparsable_file(self, write_config):
        with pytest.raises(ConfigError, match="Failed to parse"):
            load_settings(write_config("[broker\nhost = "))

    def test_invalid_ip(self, write_config):
        with pytest.raises(ConfigError, match="Invalid configuration"):
            load_settings(write_config('[sse]\nip = "localhost"\n' + BROKER_SECTION))

    def test_missing_broker_field(self, write_config):
        with pytest.raises(ConfigError, match="topic"):
            load_settings(write_config(BROKER_SECTION.replace('topic = "sensors.>"', "")))

    def test_missing_broker_section(self, write_config):
        with pytest.raises(ConfigError):
            load_settings(write_config('[sse]\nport = 3030\n'))

    def test_zero_buffer_size_rejected(self, write_config):
        with pytest.raises(ConfigError):
            load_settings(write_config("[sse]\nbuffer_size = 0\n" + BROKER_SECTION))

    def test_environment_overrides_file(self, write_config, monkeypatch):
        monkeypatch.setenv("BRIDGE_BROKER__TOPIC", "override.topic")
        monkeypatch.setenv("BRIDGE_SSE__PORT", "9999")

        settings = load_settings(write_config(BROKER_SECTION))

        assert settings.broker.topic == "override.topic"
        assert settings.broker.host == "broker.local"
        assert settings.sse.port == 9999


class TestBrokerSummary:

    def make(self, **broker):
        values = {"host": "h", "port": 1883, "client_id": "c", "topic": "t"}
        values.update(broker)
        return Settings(broker=values).broker

    def test_credentials_provided(self):
        broker = self.make(username="alice", password="s3cret")

        summary = broker.summary()

        assert "Credentials: provided" in summary
        assert "alice" not in summary
        assert "s3cret" not in summary
        assert broker.credentials == ("alice", "s3cret")

    def test_credentials_need_both_fields(self):
        broker = self.make(username="alice")

        assert broker.credentials is None
        assert "Credentials: none" in broker.summary()

    def test_summary_fields(self):
        summary = self.make().summary()

        assert "Client ID: c" in summary
        assert "Host: h" in summary
        assert "Port: 1883" in summary
        assert "Topic: t" in summary
