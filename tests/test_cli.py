"""Tests for the syncgroup-schema CLI.

The deployment phases and the client factory are patched, so these tests
cover argument handling, identifier and filter resolution, and exit codes.
"""

import textwrap
from pathlib import Path
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from syncgroup_schema.cli import build_parser, cmd_post, cmd_pre, main
from syncgroup_schema.deploy.post import PostDeploymentResult
from syncgroup_schema.deploy.pre import PreDeploymentResult
from syncgroup_schema.errors import SchemaRefreshTimeoutError, SyncWaitTimeoutError
from syncgroup_schema.schema.models import (
    ReconciliationResult,
    RegisteredSchema,
    SchemaChange,
    SyncState,
)

IDENTIFIERS = [
    "--subscription-id", "sub",
    "--resource-group", "rg",
    "--server", "srv",
    "--database", "hub",
    "--sync-group", "sg",
]


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Run from an empty directory with no profile or token in the environment."""
    monkeypatch.chdir(tmp_path)
    for var in ("SYNC_PROFILE", "AZURE_ACCESS_TOKEN"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def mock_client():
    with patch("syncgroup_schema.cli.get_client") as mock_get_client:
        client = AsyncMock()
        mock_get_client.return_value = client
        yield mock_get_client


def _post_result(dry_run: bool = False) -> PostDeploymentResult:
    return PostDeploymentResult(
        sync_group="srv/hub/sg",
        reconciliation=ReconciliationResult(
            registered=RegisteredSchema(),
            changes=[
                SchemaChange(action="remove_column", table="[dbo].[T1]", column="[c2]", reason="missing_upstream"),
                SchemaChange(action="add_column", table="[dbo].[T1]", column="[c3]", reason="new_upstream"),
            ],
        ),
        output_path="/tmp/syncgroup-schema.json",
        dry_run=dry_run,
        pushed=not dry_run,
        interval=None if dry_run else 600,
    )


# ------------------------------------------------------------------
# Parser
# ------------------------------------------------------------------


class TestParser:
    """Verify argument parsing."""

    def test_subcommand_required(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_pre_dispatches_to_cmd_pre(self) -> None:
        args = build_parser().parse_args(["pre", "--max-wait", "30"])
        assert args.func is cmd_pre
        assert args.max_wait == 30.0

    def test_post_repeatable_filters(self) -> None:
        args = build_parser().parse_args(
            ["post", "--exclude", "a", "--exclude", "b", "--include", "[dbo].[_K]", "--dry-run"]
        )
        assert args.func is cmd_post
        assert args.exclude == ["a", "b"]
        assert args.include == ["[dbo].[_K]"]
        assert args.dry_run is True

    def test_global_options(self) -> None:
        args = build_parser().parse_args(
            ["--profile", "prod", "--env-prefix", "APP_", "--token", "t", "post"]
        )
        assert args.profile == "prod"
        assert args.env_prefix == "APP_"
        assert args.token == "t"


# ------------------------------------------------------------------
# pre
# ------------------------------------------------------------------


class TestPreCommand:
    """Verify the pre command."""

    def test_success(self, mock_client, capsys) -> None:
        with patch(
            "syncgroup_schema.cli.run_pre_deployment",
            new_callable=AsyncMock,
            return_value=PreDeploymentResult(sync_group="srv/hub/sg", final_state=SyncState.GOOD),
        ) as mock_run:
            exit_code = main(["--token", "t", "pre", *IDENTIFIERS])

        assert exit_code == 0
        mock_client.assert_called_once_with("t")
        kwargs = mock_run.await_args.kwargs
        assert kwargs["poll_interval"] == 5.0
        assert kwargs["max_wait"] is None
        assert "Periodic sync disabled" in capsys.readouterr().out

    def test_missing_identifiers(self, mock_client, capsys) -> None:
        exit_code = main(["--token", "t", "pre", "--server", "srv"])

        assert exit_code == 1
        mock_client.assert_not_called()
        assert "--sync-group" in capsys.readouterr().out

    def test_missing_token(self, mock_client, capsys) -> None:
        exit_code = main(["pre", *IDENTIFIERS])

        assert exit_code == 1
        mock_client.assert_not_called()
        assert "AZURE_ACCESS_TOKEN" in capsys.readouterr().out

    def test_wait_timeout(self, mock_client) -> None:
        with patch(
            "syncgroup_schema.cli.run_pre_deployment",
            new_callable=AsyncMock,
            side_effect=SyncWaitTimeoutError(30, SyncState.PROGRESSING),
        ):
            exit_code = main(["--token", "t", "pre", *IDENTIFIERS, "--max-wait", "30"])

        assert exit_code == 1


# ------------------------------------------------------------------
# post
# ------------------------------------------------------------------


class TestPostCommand:
    """Verify the post command."""

    def test_success(self, mock_client, capsys) -> None:
        with patch(
            "syncgroup_schema.cli.run_post_deployment",
            new_callable=AsyncMock,
            return_value=_post_result(),
        ) as mock_run:
            exit_code = main(["--token", "t", "post", *IDENTIFIERS, "--interval", "900"])

        assert exit_code == 0
        kwargs = mock_run.await_args.kwargs
        assert kwargs["interval"] == 900
        assert kwargs["refresh_timeout"] == 3000
        assert kwargs["dry_run"] is False
        out = capsys.readouterr().out
        assert "Schema pushed" in out
        assert "[dbo].[T1]" in out

    def test_dry_run(self, mock_client, capsys) -> None:
        with patch(
            "syncgroup_schema.cli.run_post_deployment",
            new_callable=AsyncMock,
            return_value=_post_result(dry_run=True),
        ) as mock_run:
            exit_code = main(["--token", "t", "post", *IDENTIFIERS, "--dry-run"])

        assert exit_code == 0
        assert mock_run.await_args.kwargs["dry_run"] is True
        assert "No changes pushed" in capsys.readouterr().out

    def test_refresh_timeout(self, mock_client, capsys) -> None:
        with patch(
            "syncgroup_schema.cli.run_post_deployment",
            new_callable=AsyncMock,
            side_effect=SchemaRefreshTimeoutError(60),
        ):
            exit_code = main(["--token", "t", "post", *IDENTIFIERS, "--refresh-timeout", "60"])

        assert exit_code == 1
        assert "No changes were applied" in capsys.readouterr().out

    def test_remote_failure(self, mock_client, capsys) -> None:
        request = httpx.Request("GET", "https://management.azure.com/x")
        error = httpx.HTTPStatusError(
            "403 Forbidden", request=request, response=httpx.Response(403, request=request)
        )
        with patch(
            "syncgroup_schema.cli.run_post_deployment",
            new_callable=AsyncMock,
            side_effect=error,
        ):
            exit_code = main(["--token", "t", "post", *IDENTIFIERS])

        assert exit_code == 1
        assert "Remote call failed" in capsys.readouterr().out

    def test_invalid_exclude_pattern(self, mock_client) -> None:
        exit_code = main(["--token", "t", "post", *IDENTIFIERS, "--exclude", "[unclosed"])

        assert exit_code == 1
        mock_client.assert_not_called()

    def test_config_profile_and_filters(self, mock_client, tmp_path: Path) -> None:
        """Profile identifiers, config filters, and CLI filters combine."""
        (tmp_path / "syncgroup.toml").write_text(textwrap.dedent("""\
            [profiles.prod]
            subscription_id = "sub"
            resource_group = "rg"
            server = "srv"
            database = "hub"
            sync_group = "sg"

            [filters]
            exclude = ['\\[dbo\\]\\.\\[_.*\\]']

            [post]
            interval = 1200
        """))

        with patch(
            "syncgroup_schema.cli.run_post_deployment",
            new_callable=AsyncMock,
            return_value=_post_result(),
        ) as mock_run:
            exit_code = main(
                ["--profile", "prod", "--token", "t", "post", "--include", "[dbo].[_Keep]"]
            )

        assert exit_code == 0
        ref = mock_run.await_args.args[1]
        assert ref.sync_group == "sg"
        kwargs = mock_run.await_args.kwargs
        assert kwargs["interval"] == 1200
        rules = kwargs["rules"]
        assert rules.exclude_patterns == [r"\[dbo\]\.\[_.*\]"]
        assert rules.includes("[dbo].[_Keep]") is True
        assert rules.includes("[dbo].[_Other]") is False

    def test_profile_from_environment(
        self, mock_client, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        (tmp_path / "syncgroup.toml").write_text(
            '[profiles.dev]\nsubscription_id = "s"\nresource_group = "r"\n'
            'server = "d"\ndatabase = "h"\nsync_group = "g"\n'
        )
        monkeypatch.setenv("SYNC_PROFILE", "dev")

        with patch(
            "syncgroup_schema.cli.run_pre_deployment",
            new_callable=AsyncMock,
            return_value=PreDeploymentResult(sync_group="d/h/g", final_state="Good"),
        ) as mock_run:
            exit_code = main(["--token", "t", "pre"])

        assert exit_code == 0
        assert str(mock_run.await_args.args[1]) == "d/h/g"

    def test_missing_explicit_config(self, mock_client, capsys) -> None:
        exit_code = main(["--config", "/nonexistent/syncgroup.toml", "--token", "t", "post"])

        assert exit_code == 1
        assert "Sync group config not found" in capsys.readouterr().out


# ------------------------------------------------------------------
# Numeric option validation
# ------------------------------------------------------------------


class TestNumericOptions:
    """Out-of-range timings are rejected before any remote call."""

    @pytest.mark.parametrize(
        "flag, value",
        [
            ("--interval", "-1"),
            ("--interval", "0"),
            ("--refresh-timeout", "0"),
            ("--poll-interval", "0"),
        ],
    )
    def test_post_rejects_non_positive(self, mock_client, flag: str, value: str) -> None:
        with patch(
            "syncgroup_schema.cli.run_post_deployment", new_callable=AsyncMock
        ) as mock_run:
            exit_code = main(["--token", "t", "post", *IDENTIFIERS, flag, value])

        assert exit_code == 1
        mock_client.assert_not_called()
        mock_run.assert_not_awaited()

    @pytest.mark.parametrize(
        "flag, value",
        [("--max-wait", "0"), ("--max-wait", "-5"), ("--poll-interval", "-1")],
    )
    def test_pre_rejects_non_positive(self, mock_client, flag: str, value: str) -> None:
        with patch(
            "syncgroup_schema.cli.run_pre_deployment", new_callable=AsyncMock
        ) as mock_run:
            exit_code = main(["--token", "t", "pre", *IDENTIFIERS, flag, value])

        assert exit_code == 1
        mock_client.assert_not_called()
        mock_run.assert_not_awaited()

    def test_explicit_value_overrides_config(self, mock_client, tmp_path: Path) -> None:
        """A CLI value replaces the config value rather than falling back."""
        (tmp_path / "syncgroup.toml").write_text(
            "[post]\nrefresh_timeout = 1200\ninterval = 900\n"
        )

        with patch(
            "syncgroup_schema.cli.run_post_deployment",
            new_callable=AsyncMock,
            return_value=_post_result(),
        ) as mock_run:
            exit_code = main(
                ["--token", "t", "post", *IDENTIFIERS, "--refresh-timeout", "45"]
            )

        assert exit_code == 0
        kwargs = mock_run.await_args.kwargs
        assert kwargs["refresh_timeout"] == 45
        assert kwargs["interval"] == 900
