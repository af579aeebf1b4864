"""Tests for the unified config loader (.usageaudit.yml)."""

import pytest

import usageaudit.config as config_mod
from usageaudit.config import load_config
from usageaudit.models import ProbeKind


@pytest.fixture(autouse=True)
def _no_user_config(tmp_path, monkeypatch):
    monkeypatch.setattr(config_mod, "USER_CONFIG_PATH", tmp_path / "no-user" / "config.yml")


class TestDefaultConfig:
    def test_no_config_file_returns_defaults(self, tmp_path):
        cfg = load_config(search_path=str(tmp_path))
        assert cfg.analysis.policy.weight(ProbeKind.CONTENT) == 3
        assert cfg.analysis.policy.max_score == 10
        assert cfg.analysis.excluded_statuses == ["auto-draft", "trash"]
        assert cfg.analysis.workers == 1
        assert cfg.backend.name == "sqlite"
        assert cfg.backend.table_prefix == "wp_"
        assert cfg.report.format == "text"
        assert cfg.report.color is True
        assert cfg.project_config_path is None
        assert cfg.user_config_path is None


class TestLoadConfig:
    def test_loads_full_config(self, tmp_path):
        config = tmp_path / ".usageaudit.yml"
        config.write_text("""\
analysis:
  weights:
    content: 4
    cron: 0
  excluded_statuses: [auto-draft, trash, inherit]
  workers: 8
backend:
  name: snapshot
  snapshot_path: site.yml
  table_prefix: blog_
report:
  format: CSV
  color: false
""")
        cfg = load_config(search_path=str(tmp_path))
        assert cfg.analysis.policy.weight(ProbeKind.CONTENT) == 4
        assert cfg.analysis.policy.weight(ProbeKind.CRON) == 0
        assert cfg.analysis.policy.weight(ProbeKind.OPTIONS) == 2
        assert cfg.analysis.excluded_statuses == ["auto-draft", "trash", "inherit"]
        assert cfg.analysis.workers == 8
        assert cfg.backend.name == "snapshot"
        assert cfg.backend.snapshot_path == "site.yml"
        assert cfg.backend.db_path is None
        assert cfg.backend.table_prefix == "blog_"
        assert cfg.report.format == "csv"
        assert cfg.report.color is False
        assert cfg.project_config_path == str(config)

    def test_empty_excluded_statuses_allowed(self, tmp_path):
        (tmp_path / ".usageaudit.yml").write_text("analysis:\n  excluded_statuses: []\n")
        assert load_config(search_path=str(tmp_path)).analysis.excluded_statuses == []

    def test_invalid_values_fall_back(self, tmp_path):
        (tmp_path / ".usageaudit.yml").write_text("""\
analysis:
  workers: zero
report:
  format: xml
""")
        cfg = load_config(search_path=str(tmp_path))
        assert cfg.analysis.workers == 1
        assert cfg.report.format == "text"

    def test_malformed_yaml_returns_defaults(self, tmp_path):
        (tmp_path / ".usageaudit.yml").write_text(": : invalid yaml [[[")
        cfg = load_config(search_path=str(tmp_path))
        assert cfg.backend.name == "sqlite"

    def test_walks_up_to_find_config(self, tmp_path):
        (tmp_path / ".usageaudit.yml").write_text("backend:\n  name: snapshot\n")
        subdir = tmp_path / "site" / "public"
        subdir.mkdir(parents=True)
        assert load_config(search_path=str(subdir)).backend.name == "snapshot"

    def test_explicit_config_path_skips_search(self, tmp_path):
        (tmp_path / ".usageaudit.yml").write_text("backend:\n  name: snapshot\n")
        explicit = tmp_path / "custom.yml"
        explicit.write_text("report:\n  format: json\n")
        cfg = load_config(search_path=str(tmp_path), config_path=str(explicit))
        assert cfg.report.format == "json"
        assert cfg.backend.name == "sqlite"


class TestLayering:
    def test_project_overrides_user(self, tmp_path, monkeypatch):
        user_cfg = tmp_path / "home" / ".usageaudit" / "config.yml"
        user_cfg.parent.mkdir(parents=True)
        user_cfg.write_text("""\
backend:
  name: snapshot
  table_prefix: user_
report:
  color: false
""")
        monkeypatch.setattr(config_mod, "USER_CONFIG_PATH", user_cfg)

        project = tmp_path / "project"
        project.mkdir()
        (project / ".usageaudit.yml").write_text("backend:\n  name: sqlite\n")

        cfg = load_config(search_path=str(project))
        assert cfg.backend.name == "sqlite"
        # User values survive where the project is silent.
        assert cfg.backend.table_prefix == "user_"
        assert cfg.report.color is False
        assert cfg.user_config_path == str(user_cfg)

    def test_factory_options(self, tmp_path):
        (tmp_path / ".usageaudit.yml").write_text(
            "backend:\n  db_path: site.db\n  plugins_dir: plugins\n"
        )
        opts = load_config(search_path=str(tmp_path)).backend.factory_options()
        assert opts == {
            "db_path": "site.db",
            "snapshot_path": None,
            "plugins_dir": "plugins",
            "table_prefix": "wp_",
        }
