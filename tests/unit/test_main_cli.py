"""Unit tests for the forges CLI (forges.main).

Network-facing client methods are patched; the commands still build a real
Client from settings so routing and option parsing are exercised.
"""

import json
from unittest.mock import AsyncMock, patch

import pytest
import structlog
from click.testing import CliRunner

from forges.client import Client
from forges.detection import ForgeDetector
from forges.enums import ArchivedFilter, ForgeType, ForkFilter
from forges.exceptions import RepositoryNotFoundError
from forges.main import cli
from forges.models.domain import ListOptions, Repository, Tag

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def no_logging_setup():
    """Keep structlog's global configuration untouched by CLI invocations."""
    with patch("forges.main.configure_logging") as mock_configure, structlog.testing.capture_logs():
        yield mock_configure


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def sample_repo() -> Repository:
    return Repository(owner="octocat", name="hello-world", default_branch="main", topics=("demo",))


# =============================================================================
# parse
# =============================================================================


class TestParseCommand:
    def test_parse_outputs_json(self, cli_runner):
        result = cli_runner.invoke(cli, ["parse", "git@github.com:octocat/hello-world.git"])

        assert result.exit_code == 0
        assert json.loads(result.output) == {
            "domain": "github.com",
            "owner": "octocat",
            "repo": "hello-world",
            "full_name": "octocat/hello-world",
        }

    def test_parse_invalid_url(self, cli_runner):
        result = cli_runner.invoke(cli, ["parse", "https://github.com/just-owner"])

        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_parse_ignores_broken_config(self, cli_runner, tmp_path):
        """parse never loads configuration."""
        result = cli_runner.invoke(cli, ["--config", str(tmp_path / "missing.yaml"), "parse", "github.com/a/b"])

        assert result.exit_code == 0


# =============================================================================
# repo / tags
# =============================================================================


class TestRepoCommand:
    def test_repo_outputs_json(self, cli_runner, sample_repo):
        with patch.object(Client, "fetch_repository", AsyncMock(return_value=sample_repo)) as mock_fetch:
            result = cli_runner.invoke(cli, ["repo", "https://github.com/octocat/hello-world"])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["full_name"] == "octocat/hello-world"
        assert data["topics"] == ["demo"]
        assert data["created_at"] is None
        mock_fetch.assert_awaited_once_with("https://github.com/octocat/hello-world")

    def test_repo_not_found(self, cli_runner):
        error = RepositoryNotFoundError("octocat", "missing")
        with patch.object(Client, "fetch_repository", AsyncMock(side_effect=error)):
            result = cli_runner.invoke(cli, ["repo", "https://github.com/octocat/missing"])

        assert result.exit_code == 1
        assert "Error: repository not found: octocat/missing" in result.output

    def test_repo_unregistered_domain(self, cli_runner):
        result = cli_runner.invoke(cli, ["repo", "https://git.unknown.example/team/service"])

        assert result.exit_code == 1
        assert "no forge registered for domain" in result.output

    def test_repo_detect_registers_domain(self, cli_runner, sample_repo):
        with (
            patch.object(Client, "register_domain", AsyncMock(return_value=ForgeType.GITEA)) as mock_register,
            patch.object(Client, "fetch_repository", AsyncMock(return_value=sample_repo)),
        ):
            result = cli_runner.invoke(cli, ["repo", "--detect", "https://Git.Example.com/team/service"])

        assert result.exit_code == 0
        mock_register.assert_awaited_once_with("git.example.com")

    def test_repo_detect_skips_registered_domain(self, cli_runner, sample_repo):
        with (
            patch.object(Client, "register_domain", AsyncMock()) as mock_register,
            patch.object(Client, "fetch_repository", AsyncMock(return_value=sample_repo)),
        ):
            result = cli_runner.invoke(cli, ["repo", "--detect", "https://github.com/octocat/hello-world"])

        assert result.exit_code == 0
        mock_register.assert_not_awaited()

    def test_token_option_reaches_adapter(self, cli_runner, sample_repo):
        seen_tokens: list[str] = []

        async def fake_fetch(self, url):
            seen_tokens.append(self.forge_for("github.com").token)
            return sample_repo

        with patch.object(Client, "fetch_repository", fake_fetch):
            result = cli_runner.invoke(
                cli, ["--token", "GitHub.com=ghp_cli", "repo", "https://github.com/octocat/hello-world"]
            )

        assert result.exit_code == 0
        assert seen_tokens == ["ghp_cli"]

    def test_malformed_token_option(self, cli_runner):
        result = cli_runner.invoke(cli, ["--token", "no-equals-sign", "repo", "https://github.com/a/b"])

        assert result.exit_code == 2
        assert "DOMAIN=TOKEN" in result.output

    @patch("forges.main.asyncio.run")
    def test_keyboard_interrupt(self, mock_run, cli_runner):
        mock_run.side_effect = KeyboardInterrupt()

        result = cli_runner.invoke(cli, ["repo", "https://github.com/octocat/hello-world"])

        assert result.exit_code == 130


class TestTagsCommand:
    def test_tags_outputs_json(self, cli_runner):
        tags = [Tag(name="v2.0.0", commit="bbb"), Tag(name="v1.0.0", commit="aaa")]
        with patch.object(Client, "fetch_tags", AsyncMock(return_value=tags)):
            result = cli_runner.invoke(cli, ["tags", "https://codeberg.org/forgejo/forgejo"])

        assert result.exit_code == 0
        assert json.loads(result.output) == [
            {"name": "v2.0.0", "commit": "bbb"},
            {"name": "v1.0.0", "commit": "aaa"},
        ]


# =============================================================================
# list
# =============================================================================


class TestListCommand:
    def test_list_passes_options(self, cli_runner, sample_repo):
        with patch.object(Client, "list_repositories", AsyncMock(return_value=[sample_repo])) as mock_list:
            result = cli_runner.invoke(
                cli,
                ["list", "github.com", "octocat", "--archived", "exclude", "--forks", "ONLY", "--per-page", "30"],
            )

        assert result.exit_code == 0
        assert [r["name"] for r in json.loads(result.output)] == ["hello-world"]
        mock_list.assert_awaited_once_with(
            "github.com",
            "octocat",
            ListOptions(archived=ArchivedFilter.EXCLUDE, forks=ForkFilter.ONLY, per_page=30),
        )

    def test_list_rejects_unknown_policy(self, cli_runner):
        result = cli_runner.invoke(cli, ["list", "github.com", "octocat", "--forks", "sometimes"])

        assert result.exit_code == 2


# =============================================================================
# detect
# =============================================================================


class TestDetectCommand:
    def test_detect_outputs_type(self, cli_runner):
        with patch.object(ForgeDetector, "detect", AsyncMock(return_value=ForgeType.FORGEJO)) as mock_detect:
            result = cli_runner.invoke(cli, ["detect", "Codeberg.org"])

        assert result.exit_code == 0
        assert json.loads(result.output) == {"domain": "codeberg.org", "forge_type": "forgejo"}
        mock_detect.assert_awaited_once_with("codeberg.org")


# =============================================================================
# configuration
# =============================================================================


class TestConfiguration:
    def test_missing_config_file(self, cli_runner, tmp_path):
        result = cli_runner.invoke(cli, ["--config", str(tmp_path / "missing.yaml"), "tags", "github.com/a/b"])

        assert result.exit_code == 1
        assert "Configuration file not found" in result.output

    def test_config_instances_registered(self, cli_runner, tmp_path, sample_repo):
        config_file = tmp_path / "forges.yaml"
        config_file.write_text("instances:\n  - domain: git.example.com\n    forge_type: gitlab\n")
        routed: list[str] = []

        async def fake_fetch(self, url):
            routed.append(type(self.forge_for("git.example.com")).__name__)
            return sample_repo

        with patch.object(Client, "fetch_repository", fake_fetch):
            result = cli_runner.invoke(cli, ["--config", str(config_file), "repo", "git.example.com/team/service"])

        assert result.exit_code == 0
        assert routed == ["GitLabRestForge"]

    def test_log_level_forwarded(self, cli_runner, no_logging_setup):
        cli_runner.invoke(cli, ["--log-level", "DEBUG", "parse", "github.com/a/b"])

        no_logging_setup.assert_called_once_with("DEBUG")
