"""End-to-end CLI tests for the tasks and users command groups.

Each test runs against a real ConfigService rooted in a temporary directory
(see the ``tmp_config`` fixture), so commands hit a throwaway SQLite file.
"""

from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

from taskshare.main import app
from taskshare.utils import exit_codes

runner = CliRunner()


def _invoke(*args: str):
    return runner.invoke(app, list(args))


def _json(result) -> object:
    return json.loads(result.stdout)


@pytest.fixture()
def cli(tmp_config):
    """Register olivia (logged in) and bob."""
    assert _invoke("users", "register", "olivia@example.com", "--name", "Olivia", "--login").exit_code == 0
    assert _invoke("users", "register", "bob@example.com", "--name", "Bob").exit_code == 0
    return tmp_config


def _add(title: str, *extra: str) -> dict:
    result = _invoke("tasks", "add", title, "-o", "json", *extra)
    assert result.exit_code == 0, result.stdout
    return json.loads(result.stdout[result.stdout.index("{"):])


# ---------------------------------------------------------------------------
# add / list / show
# ---------------------------------------------------------------------------


def test_add_and_list(cli):
    task = _add("Write spec", "--priority", "high", "--tag", "docs")

    result = _invoke("tasks", "list", "-o", "json")

    assert result.exit_code == 0
    [listed] = _json(result)
    assert listed["id"] == task["id"]
    assert listed["priority"] == "high"
    assert listed["completed"] is False
    assert listed["tags"] == ["docs"]


def test_add_invalid_title_exits_with_invalid_args(cli):
    result = _invoke("tasks", "add", "ab")
    assert result.exit_code == exit_codes.ERROR_INVALID_ARGS


def test_add_invalid_due_date(cli):
    result = _invoke("tasks", "add", "Valid title", "--due", "tomorrow-ish")
    assert result.exit_code == exit_codes.ERROR_INVALID_ARGS


def test_show_by_prefix_includes_permission(cli):
    task = _add("Write spec")

    result = _invoke("tasks", "show", task["id"][:8], "-o", "json")

    assert result.exit_code == 0
    assert _json(result)["permission"] == "edit"


def test_list_rejects_unknown_sort(cli):
    result = _invoke("tasks", "list", "--sort", "owner:asc")
    assert result.exit_code == exit_codes.ERROR_INVALID_ARGS


def test_commands_require_acting_user(tmp_config):
    result = _invoke("tasks", "list")
    assert result.exit_code == exit_codes.ERROR_AUTH_FAILURE


# ---------------------------------------------------------------------------
# share / act as collaborator
# ---------------------------------------------------------------------------


def test_share_then_collaborator_updates_status(cli):
    task = _add("Write spec")

    shared = _invoke("tasks", "share", task["id"], "bob@example.com", "--permission", "edit")
    assert shared.exit_code == 0

    bob_list = _invoke("tasks", "list", "--as", "bob@example.com", "-o", "json")
    assert [t["id"] for t in _json(bob_list)] == [task["id"]]

    updated = _invoke(
        "tasks", "update", task["id"], "--status", "in_progress", "--as", "bob@example.com"
    )
    assert updated.exit_code == 0

    renamed = _invoke("tasks", "update", task["id"], "--title", "Mine now", "--as", "bob@example.com")
    assert renamed.exit_code == exit_codes.ERROR_PERMISSION_DENIED

    deleted = _invoke("tasks", "delete", task["id"], "--yes", "--as", "bob@example.com")
    assert deleted.exit_code == exit_codes.ERROR_PERMISSION_DENIED


def test_share_with_unknown_user_exits_not_found(cli):
    task = _add("Write spec")
    result = _invoke("tasks", "share", task["id"], "ghost@example.com")
    assert result.exit_code == exit_codes.ERROR_NOT_FOUND


def test_collaborators_and_unshare(cli):
    task = _add("Write spec")
    _invoke("tasks", "share", task["id"], "bob@example.com")

    listed = _invoke("tasks", "collaborators", task["id"], "-o", "json")
    assert [c["email"] for c in _json(listed)] == ["bob@example.com"]

    assert _invoke("tasks", "unshare", task["id"], "bob@example.com").exit_code == 0
    assert _json(_invoke("tasks", "collaborators", task["id"], "-o", "json")) == []


# ---------------------------------------------------------------------------
# update / complete / delete / stats
# ---------------------------------------------------------------------------


def test_update_with_stale_version_conflicts(cli):
    task = _add("Write spec")
    assert _invoke("tasks", "update", task["id"], "--priority", "low").exit_code == 0

    result = _invoke(
        "tasks", "update", task["id"], "--priority", "high", "--expect-version", "1"
    )

    assert result.exit_code == exit_codes.ERROR_CONFLICT


def test_update_without_fields(cli):
    task = _add("Write spec")
    assert _invoke("tasks", "update", task["id"]).exit_code == exit_codes.ERROR_INVALID_ARGS


def test_complete_and_stats(cli):
    task = _add("Write spec")
    _add("Second task")

    assert _invoke("tasks", "complete", task["id"]).exit_code == 0

    stats = _json(_invoke("tasks", "stats", "-o", "json"))
    assert stats["total"] == 2
    assert stats["completed"] == 1
    assert stats["pending"] == 1


def test_delete_removes_task_for_everyone(cli):
    task = _add("Write spec")
    _invoke("tasks", "share", task["id"], "bob@example.com")

    assert _invoke("tasks", "delete", task["id"], "--yes").exit_code == 0

    assert _json(_invoke("tasks", "list", "-o", "json")) == []
    assert _json(_invoke("tasks", "list", "--as", "bob@example.com", "-o", "json")) == []


def test_delete_unknown_task(cli):
    result = _invoke("tasks", "delete", "deadbeef", "--yes")
    assert result.exit_code == exit_codes.ERROR_NOT_FOUND


# ---------------------------------------------------------------------------
# users
# ---------------------------------------------------------------------------


def test_whoami_and_logout(cli):
    result = _invoke("users", "whoami", "-o", "json")
    assert _json(result)["email"] == "olivia@example.com"

    assert _invoke("users", "logout").exit_code == 0
    assert _invoke("users", "whoami").exit_code == exit_codes.ERROR_AUTH_FAILURE


def test_deactivated_user_cannot_act(cli):
    assert _invoke("users", "deactivate", "bob@example.com").exit_code == 0
    result = _invoke("tasks", "list", "--as", "bob@example.com")
    assert result.exit_code == exit_codes.ERROR_AUTH_FAILURE


def test_users_list(cli):
    result = _invoke("users", "list", "-o", "json")
    assert [u["email"] for u in _json(result)] == ["bob@example.com", "olivia@example.com"]


def test_users_search_excludes_acting_user(cli):
    result = _invoke("users", "search", "EXAMPLE", "-o", "json")

    assert result.exit_code == 0
    assert [u["email"] for u in _json(result)] == ["bob@example.com"]


def test_users_search_query_too_short(cli):
    result = _invoke("users", "search", "b")
    assert result.exit_code == exit_codes.ERROR_INVALID_ARGS


def test_users_search_skips_deactivated(cli):
    assert _invoke("users", "deactivate", "bob@example.com").exit_code == 0
    result = _invoke("users", "search", "bob", "-o", "json")
    assert _json(result) == []


def test_list_shows_page_footer(cli):
    for title in ("One", "Two", "Three"):
        _add(title)

    result = _invoke("tasks", "list", "--limit", "2", "-o", "table")

    assert result.exit_code == 0
    assert "Showing 1-2 of 3 tasks" in result.output


def test_typo_in_subcommand_suggests_close_match(cli):
    result = _invoke("tasks", "shar")

    assert result.exit_code == exit_codes.ERROR_INVALID_ARGS
    assert "share" in result.output
