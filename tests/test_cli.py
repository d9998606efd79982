"""Tests for the command-line front end."""

import json

import pytest

import cli
from surfacecheck.core.domain import OverallVerdict


class TestParser:
    def test_requires_input(self, monkeypatch):
        monkeypatch.setattr("sys.argv", ["surfacecheck"])
        with pytest.raises(SystemExit) as exc_info:
            cli.main()
        assert exc_info.value.code == 2

    def test_read_domains_dedupes_in_order(self, tmp_path):
        domains_file = tmp_path / "domains.txt"
        domains_file.write_text("# comment\nexample.org\n\nexample.com\n")
        args = cli.create_parser().parse_args(["-d", "example.com", "-i", str(domains_file)])

        assert cli.read_domains(args) == ["example.com", "example.org"]


class TestMain:
    """Test a full CLI run against a stubbed scanner."""

    @pytest.fixture
    def stub_scanner(self, make_scanner, monkeypatch):
        scanner = make_scanner()
        monkeypatch.setattr(cli, "SurfaceScanner", lambda config: scanner)
        return scanner

    def test_json_output(self, stub_scanner, config, monkeypatch, capsys):
        monkeypatch.setattr(cli, "Config", lambda config_path=None, env_path=None: config)
        monkeypatch.setattr("sys.argv", ["surfacecheck", "-d", "example.com", "--json"])

        with pytest.raises(SystemExit) as exc_info:
            cli.main()

        assert exc_info.value.code == 0
        reports = json.loads(capsys.readouterr().out)
        assert reports[0]["domain"] == "example.com"
        assert reports[0]["overallVerdict"] == OverallVerdict.SECURE.value

    def test_invalid_domain_exit_code(self, stub_scanner, config, monkeypatch, capsys):
        monkeypatch.setattr(cli, "Config", lambda config_path=None, env_path=None: config)
        monkeypatch.setattr("sys.argv", ["surfacecheck", "-q", "-d", "localhost"])

        with pytest.raises(SystemExit) as exc_info:
            cli.main()

        assert exc_info.value.code == 1
        assert "VALID-004" in capsys.readouterr().err
