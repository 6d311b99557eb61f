"""Tests for YAML configuration loading."""

import tempfile
from pathlib import Path

import pytest

from netradar.config import AppConfig, load_config

SAMPLE = """
paths:
  logs_dir: var/logs
  scratch_dir: var/scratch

speedtest:
  candidate_limit: 2
  latency_host: 1.1.1.1
  servers:
    - name: Local
      location: Lab
      download: http://lab.test/100MB.bin

probes:
  ping_timeout_ms: 500

monitor:
  enabled: true
  hosts: [192.0.2.1]
"""


class TestLoadConfig:
    def test_values_from_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(SAMPLE, encoding="utf-8")

        config = load_config(str(path))

        assert config.root_dir == tmp_path.resolve()
        assert config.paths.logs_dir == (tmp_path / "var" / "logs").resolve()
        assert config.paths.logs_dir.is_dir()
        assert config.paths.scratch_dir.is_dir()
        assert config.speedtest.candidate_limit == 2
        assert config.speedtest.latency_host == "1.1.1.1"
        assert config.speedtest.servers[0]["name"] == "Local"
        assert config.probes.ping_timeout_ms == 500
        assert config.probes.upload_timeout == 120.0
        assert config.monitor.enabled is True
        assert config.monitor.hosts == ["192.0.2.1"]
        assert config.logging.level == "INFO"
        assert config.logging.file_name == "netradar.log"
        assert config.dns.domains == ["google.com", "cloudflare.com", "github.com"]

    def test_empty_file_uses_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("", encoding="utf-8")

        config = load_config(str(path))

        assert config.paths.logs_dir == (tmp_path / "logs").resolve()
        assert config.paths.scratch_dir == Path(tempfile.gettempdir())
        assert len(config.speedtest.servers) == 5

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(str(tmp_path / "nope.yaml"))

    def test_unknown_key_rejected(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("probes:\n  bogus: 1\n", encoding="utf-8")
        with pytest.raises(TypeError):
            load_config(str(path))


class TestDefaults:
    def test_default_config_touches_nothing(self, tmp_path):
        config = AppConfig.default(tmp_path)

        assert config.paths.logs_dir == tmp_path / "logs"
        assert not config.paths.logs_dir.exists()
        assert config.speedtest.quick_server_index == 1
        assert config.speedtest.servers[1]["name"] == "Tele2"
        assert config.probes.transfer_timeouts["small"] == 30.0
        assert [t["name"] for t in config.speedtest.upload_targets] == ["httpbin", "file.io", "transfer.sh"]

    def test_default_lists_are_not_shared(self):
        first, second = AppConfig.default(), AppConfig.default()
        first.monitor.hosts.append("192.0.2.1")
        assert second.monitor.hosts == ["8.8.8.8", "1.1.1.1"]

    def test_dns_and_log_rotation_from_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "dns:\n  domains: [example.org]\n  timeout: 2.5\n"
            "logging:\n  level: DEBUG\n  file_name: runs.log\n  backup_count: 2\n",
            encoding="utf-8",
        )

        config = load_config(str(path))

        assert config.dns.domains == ["example.org"]
        assert config.dns.timeout == 2.5
        assert config.dns.resolv_conf == "/etc/resolv.conf"
        assert (config.logging.file_name, config.logging.backup_count) == ("runs.log", 2)
        assert config.logging.max_bytes == 5 * 1024 * 1024
