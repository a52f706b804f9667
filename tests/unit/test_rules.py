"""
Rules file loading and schema validation tests.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
import yaml

from src.api.deps import build_report_config
from src.rules.loader import load_rules
from src.rules.models import Rules


def write_rules(tmp_path: Path, rules: dict[str, Any]) -> Path:
    path = tmp_path / "rules.yaml"
    path.write_text(yaml.dump(rules))
    return path


MINIMAL = {"project": {"slug": "test", "rules_version": "1.0"}}


class TestRulesLoading:
    def test_load_actual_rules_file(self, rules: Rules) -> None:
        assert rules.project.slug == "interaction-analytics"
        assert rules.analytics.public_host == "kunex.app"
        assert rules.analytics.limits.max == 500
        assert rules.logging.level == "INFO"

    def test_minimal_file_gets_defaults(self, tmp_path: Path) -> None:
        rules = load_rules(write_rules(tmp_path, MINIMAL))

        assert rules.analytics.limits.default == 50
        assert rules.analytics.realtime.default_minutes == 30
        assert rules.analytics.trend_window == 7

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_rules(tmp_path / "nope.yaml")

    def test_invalid_yaml_raises_value_error(self, tmp_path: Path) -> None:
        path = tmp_path / "rules.yaml"
        path.write_text("invalid: yaml: content: [")

        with pytest.raises(ValueError, match="Invalid YAML"):
            load_rules(path)


class TestRulesSchemaValidation:
    def test_missing_project_fails(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="validation failed"):
            load_rules(write_rules(tmp_path, {"logging": {"level": "INFO"}}))

    def test_unknown_top_level_section_fails(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError):
            load_rules(write_rules(tmp_path, {**MINIMAL, "security": {}}))

    def test_limit_above_max_fails(self, tmp_path: Path) -> None:
        rules = {**MINIMAL, "analytics": {"limits": {"max": 20, "default": 50}}}

        with pytest.raises(ValueError, match="limits.default exceeds limits.max"):
            load_rules(write_rules(tmp_path, rules))

    def test_realtime_minutes_bounded(self, tmp_path: Path) -> None:
        rules = {**MINIMAL, "analytics": {"realtime": {"default_minutes": 2000}}}

        with pytest.raises(ValueError):
            load_rules(write_rules(tmp_path, rules))

    def test_log_level_normalised(self, tmp_path: Path) -> None:
        rules = load_rules(write_rules(tmp_path, {**MINIMAL, "logging": {"level": "debug"}}))

        assert rules.logging.level == "DEBUG"

    def test_unknown_log_level_fails(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError):
            load_rules(write_rules(tmp_path, {**MINIMAL, "logging": {"level": "loud"}}))

    def test_public_host_trailing_slash_stripped(self, tmp_path: Path) -> None:
        rules = {**MINIMAL, "analytics": {"public_host": "example.com/"}}

        assert load_rules(write_rules(tmp_path, rules)).analytics.public_host == "example.com"


class TestReportConfig:
    def test_rules_flow_into_report_config(self, tmp_path: Path) -> None:
        rules = load_rules(
            write_rules(
                tmp_path,
                {
                    **MINIMAL,
                    "analytics": {
                        "limits": {"default": 5, "max": 100, "top_links": 3},
                        "realtime": {"default_minutes": 15},
                        "trend_window": 3,
                    },
                },
            )
        )

        config = build_report_config(rules)

        assert config.default_limit == 5
        assert config.max_limit == 100
        assert config.top_links_limit == 3
        assert config.realtime_minutes == 15
        assert config.aggregate.trend_window == 3
