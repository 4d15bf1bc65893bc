"""End-to-end tests for the bonus-engine CLI commands."""

import pytest
import yaml
from typer.testing import CliRunner

from _version import __version__
from bonus_cli.main import app

runner = CliRunner()


@pytest.fixture
def valid_dataset_file(tmp_path, sample_dataset_dict):
    for rule in sample_dataset_dict["rules"]:
        if rule["id"] == "rule-tiers":
            rule["tier_config"][0]["ratio"] = 0.6
            rule["tier_config"][1]["ratio"] = 0.4
    path = tmp_path / "valid.yaml"
    path.write_text(yaml.safe_dump(sample_dataset_dict, sort_keys=False))
    return path


class TestVersion:
    def test_version_flag(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.stdout

    def test_version_includes_git_sha(self, monkeypatch):
        monkeypatch.setattr("_version.__git_sha__", "abcdef1234")
        result = runner.invoke(app, ["--version"])
        assert f"{__version__}+abcdef1" in result.stdout


class TestScoreCommand:
    def test_scores_every_employee(self, dataset_file):
        result = runner.invoke(app, ["score", str(dataset_file)])
        assert result.exit_code == 0, result.stdout
        for employee_id in ("E1", "E2", "E3", "E4", "E5"):
            assert employee_id in result.stdout
        assert "5 scored" in result.stdout

    def test_limit(self, dataset_file):
        result = runner.invoke(app, ["score", str(dataset_file), "--limit", "2"])
        assert result.exit_code == 0, result.stdout
        assert "E4" not in result.stdout

    def test_unknown_weight_config(self, dataset_file):
        result = runner.invoke(app, ["score", str(dataset_file), "-w", "wc-missing"])
        assert result.exit_code == 1

    def test_missing_dataset(self, tmp_path):
        result = runner.invoke(app, ["score", str(tmp_path / "absent.yaml")])
        assert result.exit_code == 1
        assert "not found" in result.stdout


class TestAllocateCommand:
    def test_simulated_allocation(self, dataset_file):
        result = runner.invoke(
            app, ["allocate", str(dataset_file), "--pool", "pool-2024", "--rule", "rule-linear", "--simulate"]
        )
        assert result.exit_code == 0, result.stdout
        assert "Simulation only" in result.stdout

    def test_committed_allocation(self, dataset_file):
        result = runner.invoke(app, ["allocate", str(dataset_file), "--pool", "pool-2024", "--rule", "rule-linear"])
        assert result.exit_code == 0, result.stdout
        assert "allocated" in result.stdout

    def test_unknown_pool(self, dataset_file):
        result = runner.invoke(app, ["allocate", str(dataset_file), "--pool", "pool-missing", "--rule", "rule-linear"])
        assert result.exit_code == 1


class TestValidateCommand:
    def test_reports_unnormalized_tiers(self, dataset_file):
        result = runner.invoke(app, ["validate", str(dataset_file)])
        assert result.exit_code == 1
        assert "rule-tiers" in result.stdout
        assert "1 violation(s) found" in result.stdout

    def test_clean_dataset(self, valid_dataset_file):
        result = runner.invoke(app, ["validate", str(valid_dataset_file)])
        assert result.exit_code == 0, result.stdout
        assert "valid" in result.stdout
