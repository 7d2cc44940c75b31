"""Tests for CI workflow and packaging metadata."""

import re
import tomllib
from pathlib import Path

import pytest
import yaml

ROOT = Path(__file__).resolve().parent.parent


@pytest.fixture(scope="module")
def workflow() -> dict:
    """Parsed GitHub Actions workflow."""
    return yaml.safe_load((ROOT / ".github" / "workflows" / "ci.yml").read_text())


@pytest.fixture(scope="module")
def pyproject() -> dict:
    with open(ROOT / "pyproject.toml", "rb") as f:
        return tomllib.load(f)


def _run_steps(job: dict) -> list[str]:
    return [step["run"] for step in job["steps"] if "run" in step]


class TestCIWorkflow:
    """Validate the CI pipeline: lint, then tests, then image build."""

    def test_runs_on_main(self, workflow: dict) -> None:
        """Test CI runs for pushes and pull requests to main."""
        # YAML 1.1 reads the "on" key as True
        triggers = workflow.get("on") or workflow.get(True)
        assert triggers["push"]["branches"] == ["main"]
        assert triggers["pull_request"]["branches"] == ["main"]

    def test_lint_checks_sources_and_tests(self, workflow: dict) -> None:
        assert "ruff check src tests" in _run_steps(workflow["jobs"]["lint"])

    def test_installs_test_extra(self, workflow: dict) -> None:
        """Test the test job installs the package with its test extra."""
        assert 'pip install -e ".[test]"' in _run_steps(workflow["jobs"]["test"])

    def test_measures_coverage_of_src(self, workflow: dict) -> None:
        steps = _run_steps(workflow["jobs"]["test"])
        assert any(s.startswith("pytest") and "--cov=src" in s for s in steps)

    def test_job_order(self, workflow: dict) -> None:
        """Test tests wait for lint and the image build waits for tests."""
        jobs = workflow["jobs"]
        assert jobs["test"]["needs"] == "lint"
        assert jobs["build-docker"]["needs"] == "test"
        assert "docker build -t kintai-tracker ." in _run_steps(jobs["build-docker"])

    def test_python_matches_project(self, workflow: dict, pyproject: dict) -> None:
        """Test CI uses the minimum Python the project declares."""
        minimum = pyproject["project"]["requires-python"].removeprefix(">=")
        for name in ("lint", "test"):
            setup = next(s for s in workflow["jobs"][name]["steps"] if "with" in s)
            assert setup["with"]["python-version"] == minimum


class TestPyproject:
    """Validate packaging metadata."""

    def test_console_scripts(self, pyproject: dict) -> None:
        """Test the server and maintenance CLI entry points."""
        scripts = pyproject["project"]["scripts"]
        assert scripts["kintai"] == "src.cli:main"
        assert scripts["kintai-server"] == "src.main:main"

    def test_runtime_dependencies(self, pyproject: dict) -> None:
        names = {re.split(r"[\[<>=]", dep)[0] for dep in pyproject["project"]["dependencies"]}
        for name in ("fastapi", "pydantic-settings", "PyYAML", "httpx", "APScheduler"):
            assert name in names, f"Missing dependency: {name}"

    def test_schema_is_packaged(self, pyproject: dict) -> None:
        """Test schema.sql ships with the database package."""
        assert "schema.sql" in pyproject["tool"]["setuptools"]["package-data"]["src.database"]

    def test_coverage_threshold(self, pyproject: dict) -> None:
        assert pyproject["tool"]["coverage"]["report"]["fail_under"] == 80

    def test_tests_import_src(self, pyproject: dict) -> None:
        assert pyproject["tool"]["pytest"]["ini_options"]["pythonpath"] == ["."]
