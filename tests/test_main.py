"""Tests for the command-line entry point."""

from unittest.mock import patch

import pytest

from jobboard import main as cli


@pytest.fixture(autouse=True)
def isolated(tmp_path, monkeypatch):
    """Run from an empty directory and leave the root logger alone."""
    monkeypatch.chdir(tmp_path)
    with patch("jobboard.main.configure_logging") as mock_configure:
        yield mock_configure


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "custom.yaml"
    path.write_text(
        "email:\n"
        "  max_retries: 2\n"
        "  retry_delay_ms: 500\n"
        "  verified_domains: [jobboard.dev]\n"
        "logging:\n"
        "  level: WARNING\n"
        "  format: json\n"
    )
    return path


class TestCheckConfig:
    def test_defaults(self, capsys):
        assert cli.main(["check-config"]) == 0

        output = capsys.readouterr().out
        assert "Configuration OK" in output
        assert "development (emails are logged)" in output
        assert "retries: 3 x 1000ms (linear)" in output

    def test_config_file(self, capsys, config_file, isolated):
        assert cli.main(["--config", str(config_file), "check-config"]) == 0

        output = capsys.readouterr().out
        assert "retries: 2 x 500ms" in output
        assert "verified domains: jobboard.dev" in output
        isolated.assert_called_once_with(level="WARNING", format_type="json", environment="development")

    def test_missing_config_file(self, capsys, tmp_path):
        assert cli.main(["--config", str(tmp_path / "nope.yaml"), "check-config"]) == 1

        assert "Configuration Error" in capsys.readouterr().err

    def test_invalid_config_value(self, capsys, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("email:\n  max_retries: -1\n")

        assert cli.main(["--config", str(path), "check-config"]) == 1

        assert "max_retries" in capsys.readouterr().err

    def test_invalid_environment(self, capsys, monkeypatch):
        monkeypatch.setenv("APP_ENV", "moon")

        assert cli.main(["check-config"]) == 1

        assert "Invalid APP_ENV" in capsys.readouterr().err


class TestLogLevelPriority:
    def test_cli_beats_environment(self, monkeypatch, config_file):
        monkeypatch.setenv("LOG_LEVEL", "ERROR")

        _, env_config = cli.load_runtime_config(config_file, "DEBUG")

        assert env_config.log_level == "DEBUG"

    def test_environment_beats_file(self, monkeypatch, config_file):
        monkeypatch.setenv("LOG_LEVEL", "error")

        _, env_config = cli.load_runtime_config(config_file, None)

        assert env_config.log_level == "ERROR"

    def test_file_is_fallback(self, config_file):
        _, env_config = cli.load_runtime_config(config_file, None)

        assert env_config.log_level == "WARNING"


class TestInitDb:
    def test_creates_database(self, capsys, monkeypatch, tmp_path):
        db_path = tmp_path / "data" / "jobboard.db"
        monkeypatch.setenv("DATABASE_URL", f"sqlite:///{db_path}")

        assert cli.main(["init-db"]) == 0

        assert db_path.exists()
        assert "Database schema is ready" in capsys.readouterr().out


class TestSendTestEmail:
    def test_dev_mode_logs_message(self, capsys):
        exit_code = cli.main(["send-test-email", "--kind", "status-update", "--to", "casey@example.com"])

        assert exit_code == 0
        output = capsys.readouterr().out
        assert output.startswith("dev-logged: 🗓️ Interview Invitation")
        assert "-> casey@example.com" in output

    def test_production_blocks_unverified_domain(self, capsys, monkeypatch):
        monkeypatch.setenv("APP_ENV", "production")

        exit_code = cli.main(["send-test-email", "--kind", "welcome", "--to", "casey@example.com"])

        assert exit_code == 1
        assert "blocked_unverified_domain" in capsys.readouterr().err

    @pytest.mark.filterwarnings("ignore::UserWarning")
    def test_production_without_smtp_host(self, capsys, monkeypatch):
        monkeypatch.setenv("APP_ENV", "production")

        exit_code = cli.main(["send-test-email", "--kind", "welcome", "--to", "ada@jobboard.dev"])

        assert exit_code == 1
        assert "mail_configuration_error" in capsys.readouterr().err

    @pytest.mark.parametrize("kind", ["welcome", "password-reset", "employer-new-application"])
    def test_every_sample_renders(self, capsys, kind):
        assert cli.main(["send-test-email", "--kind", kind, "--to", "ada@jobboard.dev"]) == 0

    def test_unknown_kind_rejected_by_parser(self):
        with pytest.raises(SystemExit):
            cli.main(["send-test-email", "--kind", "newsletter", "--to", "ada@jobboard.dev"])
