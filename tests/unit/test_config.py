"""Tests for configuration loading."""

from __future__ import annotations

from datetime import date, datetime, timezone
from pathlib import Path

import pytest

from cloudsweep.config import Config, OrchestrationSettings, parse_time
from cloudsweep.errors import ConfigurationError
from cloudsweep.models.candidate import Candidate

SAMPLE = """
settings:
  log_level: debug
  max_concurrency: 5
  confirm_timeout: 600
resources:
  nat-gateway:
    include:
      names_regex: ["^dev-", {regex: "^tmp-"}]
      tags: {env: "^dev$"}
    exclude:
      names_regex: ["keep"]
      time_before: "2023-01-01T00:00:00Z"
    max_concurrency: 2
  cloudwatch-dashboard:
    exclude:
      tags: {owner: {regex: "platform"}}
"""


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "cloudsweep.yaml"
    path.write_text(SAMPLE)
    return path


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("CLOUDSWEEP_CONFIG", raising=False)
    monkeypatch.delenv("CLOUDSWEEP_LOG_LEVEL", raising=False)


class TestConfigLoad:
    """Test suite for Config.load."""

    def test_load_explicit_path(self, config_file: Path) -> None:
        """Test loading settings, overrides and policies from a file."""
        config = Config.load(config_file)

        assert config.source == config_file
        assert config.log_level == "DEBUG"
        assert config.settings.max_concurrency == 5
        assert config.settings.confirm_timeout == 600
        assert config.settings.max_batch_size == 10

        nat_settings = config.settings_for("nat-gateway")
        assert nat_settings.max_concurrency == 2
        assert nat_settings.confirm_timeout == 600

    def test_loaded_policy_decisions(self, config_file: Path) -> None:
        """Test the loaded policy decides like the configured rules."""
        policy = Config.load(config_file).policy_for("nat-gateway")
        recent = datetime(2024, 1, 1, tzinfo=timezone.utc)

        assert policy.should_include(Candidate(identifier="1", name="dev-a", created_at=recent))
        assert policy.should_include(Candidate(identifier="2", name="tmp-a", created_at=recent))
        assert policy.should_include(Candidate(identifier="3", name="other", tags={"env": "dev"}))
        assert not policy.should_include(Candidate(identifier="4", name="dev-keep"))
        assert not policy.should_include(Candidate(identifier="5", name="dev-old", created_at=datetime(2022, 1, 1)))
        assert not policy.should_include(Candidate(identifier="6", name="prod"))

    def test_unconfigured_type_gets_empty_policy(self, config_file: Path) -> None:
        """Test resource types without configuration include everything."""
        config = Config.load(config_file)

        assert config.policy_for("ekscluster").is_empty
        assert config.settings_for("ekscluster") == config.settings

    def test_env_config_path(self, config_file: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test $CLOUDSWEEP_CONFIG is used when no path is given."""
        monkeypatch.setenv("CLOUDSWEEP_CONFIG", str(config_file))

        assert Config.load().source == config_file

    def test_env_log_level_override(self, config_file: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test $CLOUDSWEEP_LOG_LEVEL overrides the file."""
        monkeypatch.setenv("CLOUDSWEEP_LOG_LEVEL", "warning")

        assert Config.load(config_file).log_level == "WARNING"

    def test_defaults_without_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test defaults are used when no file exists in the working directory."""
        monkeypatch.chdir(tmp_path)

        config = Config.load()

        assert config.source is None
        assert config.settings == OrchestrationSettings()
        assert config.resources == {}

    def test_default_file_in_working_directory(self, config_file: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test ./cloudsweep.yaml is picked up."""
        monkeypatch.chdir(config_file.parent)

        assert Config.load().settings.max_concurrency == 5

    def test_missing_explicit_file(self, tmp_path: Path) -> None:
        """Test an explicit path that does not exist is an error."""
        with pytest.raises(ConfigurationError, match="not found"):
            Config.load(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        """Test malformed YAML is a configuration error."""
        path = tmp_path / "bad.yaml"
        path.write_text("resources: [unclosed")

        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            Config.load(path)


class TestConfigValidation:
    """Test suite for Config.from_dict validation."""

    def test_invalid_regex(self) -> None:
        """Test an invalid regex is rejected at load time."""
        with pytest.raises(ConfigurationError, match=r"nat-gateway\.include"):
            Config.from_dict({"resources": {"nat-gateway": {"include": {"names_regex": ["[bad"]}}}})

    def test_unknown_top_level_key(self) -> None:
        """Test unknown top-level keys are rejected."""
        with pytest.raises(ConfigurationError, match="Unknown top-level"):
            Config.from_dict({"resource": {}})

    def test_unknown_rule_key(self) -> None:
        """Test unknown rule keys are rejected."""
        with pytest.raises(ConfigurationError, match="unknown rule key"):
            Config.from_dict({"resources": {"x": {"exclude": {"name": ["a"]}}}})

    def test_unknown_setting(self) -> None:
        """Test unknown settings are rejected."""
        with pytest.raises(ConfigurationError, match="Unknown setting"):
            Config.from_dict({"settings": {"max_workers": 3}})

    def test_invalid_resource_override(self) -> None:
        """Test bad per-type overrides fail at load time."""
        with pytest.raises(ConfigurationError, match="max_concurrency must be a positive integer"):
            Config.from_dict({"resources": {"x": {"max_concurrency": 0}}})

    def test_non_numeric_setting(self) -> None:
        """Test non-numeric values are rejected."""
        with pytest.raises(ConfigurationError, match="Invalid value for poll_interval"):
            Config.from_dict({"settings": {"poll_interval": "often"}})

    def test_root_must_be_mapping(self) -> None:
        """Test a YAML list root is rejected."""
        with pytest.raises(ConfigurationError, match="mapping"):
            Config.from_dict(["a"])  # type: ignore[arg-type]

    def test_single_names_regex_string(self) -> None:
        """Test a bare names_regex string is one rule, not one rule per character."""
        config = Config.from_dict({"resources": {"nat-gateway": {"include": {"names_regex": "^dev-"}}}})
        policy = config.policy_for("nat-gateway")

        assert len(policy.include_rules) == 1
        assert policy.should_include(Candidate(identifier="nat-1", name="dev-a"))
        assert not policy.should_include(Candidate(identifier="nat-2", name="prod-db"))

    def test_names_regex_wrong_type(self) -> None:
        """Test a names_regex that is neither a list nor a string is rejected."""
        with pytest.raises(ConfigurationError, match=r"nat-gateway\.include\.names_regex"):
            Config.from_dict({"resources": {"nat-gateway": {"include": {"names_regex": 5}}}})

    @pytest.mark.parametrize("pattern", [None, 1, {"regex": None}, ["true"]])
    def test_tag_pattern_must_be_string(self, pattern) -> None:
        """Test empty or non-string tag patterns are rejected instead of stringified."""
        with pytest.raises(ConfigurationError, match=r"nat-gateway\.exclude\.tags\.keep"):
            Config.from_dict({"resources": {"nat-gateway": {"exclude": {"tags": {"keep": pattern}}}}})

    def test_exclusion_tag_honored_by_default(self) -> None:
        """Test configured and unconfigured types both protect cloud-nuke-excluded=true."""
        config = Config.from_dict({"resources": {"nat-gateway": {"include": {"names_regex": ["^dev-"]}}}})
        tagged = Candidate(identifier="nat-1", name="dev-a", tags={"cloud-nuke-excluded": "true"})

        assert not config.policy_for("nat-gateway").should_include(tagged)
        assert not config.policy_for("ekscluster").should_include(tagged)

    def test_exclusion_tag_opt_out(self) -> None:
        """Test honor_exclusion_tag: false is a policy flag, not an orchestration override."""
        config = Config.from_dict({"resources": {"nat-gateway": {"honor_exclusion_tag": False}}})
        tagged = Candidate(identifier="nat-1", tags={"cloud-nuke-excluded": "true"})

        assert config.policy_for("nat-gateway").should_include(tagged)
        assert config.settings_for("nat-gateway") == config.settings

    def test_exclusion_tag_opt_out_must_be_boolean(self) -> None:
        """Test a non-boolean honor_exclusion_tag is rejected."""
        with pytest.raises(ConfigurationError, match="honor_exclusion_tag"):
            Config.from_dict({"resources": {"nat-gateway": {"honor_exclusion_tag": "no"}}})


class TestParseTime:
    """Test suite for parse_time."""

    def test_iso_string_with_z(self) -> None:
        """Test ISO 8601 with Z suffix."""
        assert parse_time("2023-01-01T00:00:00Z") == datetime(2023, 1, 1, tzinfo=timezone.utc)

    def test_yaml_date(self) -> None:
        """Test a YAML date becomes midnight UTC."""
        assert parse_time(date(2023, 1, 1)) == datetime(2023, 1, 1, tzinfo=timezone.utc)

    def test_naive_datetime(self) -> None:
        """Test a naive datetime is treated as UTC."""
        assert parse_time(datetime(2023, 1, 1, 8)).tzinfo == timezone.utc

    def test_invalid(self) -> None:
        """Test garbage values are rejected."""
        with pytest.raises(ConfigurationError, match="invalid time"):
            parse_time("last tuesday")
        with pytest.raises(ConfigurationError):
            parse_time(42)
