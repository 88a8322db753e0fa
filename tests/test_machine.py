"""Tests for state derivation and (command, state) dispatch.

Includes the end-to-end protection scenarios: lock/check/unlock round trips,
enable/disable round trips and push enforcement while disabled.
"""

import os
from unittest import mock

import pytest

from conftest import write_files

from donttouch import config, hooks
from donttouch.errors import ConfigInvalid, SubprocessUnavailable
from donttouch.machine import TRANSITIONS, execute, missing_transitions, run
from donttouch.paths import CONFIG_NAME
from donttouch.permissions import is_readonly
from donttouch.state import resolve
from donttouch.types import Command, Invocation, ResultKind, StateKind


def invoke(command, root, **kwargs):
    return run(Invocation(command=command, **kwargs), cwd=root)


def invoke_outside(command, root, **kwargs):
    """Run a guarded command from the directory above root."""
    return run(Invocation(command=command, target=str(root), **kwargs), cwd=root.parent)


# ═══════════════════════════════════════════════════════════════════════════════
# Dispatch table
# ═══════════════════════════════════════════════════════════════════════════════


class TestTransitionTable:
    def test_every_pair_is_handled(self):
        assert missing_transitions(TRANSITIONS) == []

    def test_missing_pair_is_reported(self):
        table = dict(TRANSITIONS)
        del table[(Command.LOCK, StateKind.DISABLED)]
        assert missing_transitions(table) == [(Command.LOCK, StateKind.DISABLED)]

    @pytest.mark.parametrize("command", [c for c in Command if c is not Command.INIT])
    def test_uninitialized_requires_init(self, project, command):
        state = resolve(project)
        assert state.kind is StateKind.UNINITIALIZED

        result = execute(state, Invocation(command=command))
        assert result.kind is ResultKind.INVALID_FOR_STATE
        assert "donttouch init" in result.message
        assert result.exit_code == 1

    @pytest.mark.parametrize("enabled", [True, False])
    def test_init_when_already_initialized(self, project, enabled):
        (project / CONFIG_NAME).write_text(config.render([], enabled=enabled))
        result = invoke(Command.INIT, project)
        assert result.kind is ResultKind.INVALID_FOR_STATE
        assert "already exists" in result.message


# ═══════════════════════════════════════════════════════════════════════════════
# State derivation
# ═══════════════════════════════════════════════════════════════════════════════


class TestResolve:
    def test_enabled_state(self, scenario):
        state = resolve(scenario)
        assert state.kind is StateKind.ENABLED
        assert [f.name for f in state.files] == [".env", "secrets/a.txt"]
        assert not state.context.is_git

    def test_disabled_state(self, scenario):
        config.set_enabled(scenario, False)
        assert resolve(scenario).kind is StateKind.DISABLED

    def test_malformed_config_is_fatal(self, project):
        (project / CONFIG_NAME).write_text("[protect\n")
        with pytest.raises(ConfigInvalid):
            resolve(project)

    def test_malformed_config_becomes_failure(self, project):
        (project / CONFIG_NAME).write_text("[protect\n")
        result = invoke(Command.STATUS, project)
        assert result.kind is ResultKind.FAILURE
        assert "Invalid" in result.message

    def test_non_utf8_config_becomes_failure(self, project):
        (project / CONFIG_NAME).write_bytes(b'[protect]\npatterns = ["\xff"]\n')
        result = invoke(Command.STATUS, project)
        assert result.kind is ResultKind.FAILURE
        assert "not UTF-8" in result.message
        assert result.exit_code == 1

    def test_invalid_pattern_is_dropped(self, project):
        (project / CONFIG_NAME).write_text(config.render(["[bad", ".env"]))
        write_files(project, ".env")
        state = resolve(project)
        assert [p.source for p in state.patterns] == [".env"]
        assert [f.name for f in state.files] == [".env"]


# ═══════════════════════════════════════════════════════════════════════════════
# Lock / check / unlock
# ═══════════════════════════════════════════════════════════════════════════════


class TestProtectionScenario:
    def test_status_lists_writable_files(self, scenario):
        result = invoke(Command.STATUS, scenario)
        assert result.kind is ResultKind.SUCCESS
        assert "🔒 Protection: enabled" in result.message
        assert result.message.count("🔓 writable") == 2
        assert "readme.md" not in result.message

    def test_lock_then_check(self, scenario):
        result = invoke(Command.LOCK, scenario)
        assert result.kind is ResultKind.SUCCESS
        assert "Locked 2 file(s)." in result.message
        assert is_readonly(scenario / ".env")
        assert is_readonly(scenario / "secrets" / "a.txt")
        assert is_readonly(scenario / CONFIG_NAME)
        assert not is_readonly(scenario / "readme.md")

        assert invoke(Command.CHECK, scenario).exit_code == 0

    def test_new_file_needs_another_lock(self, scenario):
        invoke(Command.LOCK, scenario)
        write_files(scenario, "secrets/b.txt")

        result = invoke(Command.CHECK, scenario)
        assert result.kind is ResultKind.FAILURE
        assert "secrets/b.txt" in result.message

        invoke(Command.LOCK, scenario)
        assert invoke(Command.CHECK, scenario).exit_code == 0

    def test_lock_is_idempotent(self, scenario):
        invoke(Command.LOCK, scenario)
        result = invoke(Command.LOCK, scenario)
        assert result.kind is ResultKind.SUCCESS
        assert "Locked" not in result.message
        assert "(2 already read-only)" in result.message
        assert "All protected files are already read-only." in result.message

    def test_unlock_round_trip(self, scenario):
        invoke(Command.LOCK, scenario)
        result = invoke_outside(Command.UNLOCK, scenario)

        assert result.kind is ResultKind.SUCCESS
        assert "Unlocked 2 file(s)." in result.message
        assert not is_readonly(scenario / ".env")
        assert not is_readonly(scenario / "secrets" / "a.txt")
        assert not is_readonly(scenario / CONFIG_NAME)
        assert not is_readonly(scenario / "readme.md")

    def test_unlock_from_inside_is_refused(self, scenario):
        invoke(Command.LOCK, scenario)
        result = run(
            Invocation(command=Command.UNLOCK, target=str(scenario)), cwd=scenario / "secrets"
        )

        assert result.kind is ResultKind.FAILURE
        assert "OUTSIDE" in result.message
        assert is_readonly(scenario / ".env")

    def test_unlock_when_nothing_locked(self, scenario):
        result = invoke_outside(Command.UNLOCK, scenario)
        assert "All files were already writable." in result.message

    def test_lock_without_matches(self, project):
        (project / CONFIG_NAME).write_text(config.render([".env"]))
        result = invoke(Command.LOCK, project)
        assert result.kind is ResultKind.SUCCESS
        assert "No files currently match" in result.message


# ═══════════════════════════════════════════════════════════════════════════════
# Enable / disable
# ═══════════════════════════════════════════════════════════════════════════════


class TestEnableDisable:
    def test_round_trip_restores_document_and_locks(self, scenario):
        original = (scenario / CONFIG_NAME).read_text()
        invoke(Command.LOCK, scenario)

        result = invoke_outside(Command.DISABLE, scenario)
        assert result.kind is ResultKind.SUCCESS
        assert "donttouch enable" in result.message
        assert config.load(scenario).enabled is False
        assert not is_readonly(scenario / ".env")
        assert not is_readonly(scenario / CONFIG_NAME)

        result = invoke(Command.ENABLE, scenario)
        assert result.kind is ResultKind.SUCCESS
        assert "Locked 2 file(s)." in result.message
        assert is_readonly(scenario / ".env")
        assert is_readonly(scenario / "secrets" / "a.txt")
        assert is_readonly(scenario / CONFIG_NAME)
        assert (scenario / CONFIG_NAME).read_text() == original

    def test_disable_from_inside_is_refused(self, scenario):
        result = run(Invocation(command=Command.DISABLE), cwd=scenario)
        assert result.kind is ResultKind.FAILURE
        assert "donttouch disable" in result.message
        assert config.load(scenario).enabled is True

    def test_enable_when_enabled(self, scenario):
        result = invoke(Command.ENABLE, scenario)
        assert result.kind is ResultKind.SUCCESS
        assert "already enabled" in result.message

    def test_disable_when_disabled(self, scenario):
        config.set_enabled(scenario, False)
        result = invoke_outside(Command.DISABLE, scenario)
        assert result.kind is ResultKind.SUCCESS
        assert "already disabled" in result.message

    def test_lock_when_disabled(self, scenario):
        config.set_enabled(scenario, False)
        result = invoke(Command.LOCK, scenario)
        assert result.kind is ResultKind.INVALID_FOR_STATE
        assert "donttouch enable" in result.message
        assert not is_readonly(scenario / ".env")

    def test_check_when_disabled_is_skipped(self, scenario):
        config.set_enabled(scenario, False)
        result = invoke(Command.CHECK, scenario)
        assert result.kind is ResultKind.SUCCESS
        assert "Skipping check" in result.message

    def test_inject_when_disabled(self, scenario):
        config.set_enabled(scenario, False)
        assert invoke(Command.INJECT, scenario).kind is ResultKind.INVALID_FOR_STATE
        assert not (scenario / "CLAUDE.md").exists()


# ═══════════════════════════════════════════════════════════════════════════════
# Git context: staged files and push enforcement
# ═══════════════════════════════════════════════════════════════════════════════


@pytest.fixture
def git_scenario(scenario):
    (scenario / ".git").mkdir()
    return scenario


class TestGitEnforcement:
    def test_check_fails_on_staged_protected_file(self, git_scenario):
        invoke(Command.LOCK, git_scenario)
        with mock.patch("donttouch.git.staged_files", return_value=[".env", "readme.md"]):
            result = invoke(Command.CHECK, git_scenario)

        assert result.kind is ResultKind.FAILURE
        assert "staged for commit" in result.message
        assert "• .env" in result.message
        assert "readme.md" not in result.message

    def test_check_with_non_utf8_foreign_hook(self, git_scenario):
        hook = git_scenario / ".git" / "hooks" / "pre-commit"
        hook.parent.mkdir()
        hook.write_bytes(b"#!/bin/sh\necho \xff\n")
        invoke(Command.LOCK, git_scenario)

        with mock.patch("donttouch.git.staged_files", return_value=[]):
            result = invoke(Command.CHECK, git_scenario)
        assert result.kind is ResultKind.SUCCESS
        assert hook.read_bytes() == b"#!/bin/sh\necho \xff\n"

    def test_check_passes_with_unprotected_staged_file(self, git_scenario):
        invoke(Command.LOCK, git_scenario)
        with mock.patch("donttouch.git.staged_files", return_value=["readme.md"]):
            assert invoke(Command.CHECK, git_scenario).exit_code == 0

    def test_check_fails_when_git_fails(self, git_scenario):
        invoke(Command.LOCK, git_scenario)
        with mock.patch("donttouch.git.staged_files", side_effect=SubprocessUnavailable("boom")):
            result = invoke(Command.CHECK, git_scenario)
        assert result.kind is ResultKind.FAILURE
        assert "boom" in result.message

    def test_status_tolerates_git_failure(self, git_scenario):
        with mock.patch("donttouch.git.staged_files", side_effect=SubprocessUnavailable("boom")):
            result = invoke(Command.STATUS, git_scenario)
        assert result.kind is ResultKind.SUCCESS
        assert "git repository" in result.message

    def test_status_lists_staged_protected_files(self, git_scenario):
        with mock.patch("donttouch.git.staged_files", return_value=["secrets/a.txt"]):
            result = invoke(Command.STATUS, git_scenario)
        assert "Staged protected files:" in result.message

    def test_push_check_fails_while_disabled(self, git_scenario):
        config.set_enabled(git_scenario, False)
        with mock.patch("donttouch.git.pending_push_files", return_value=[]):
            result = invoke(Command.CHECK_BEFORE_PUSH, git_scenario)
        assert result.kind is ResultKind.FAILURE
        assert "disabled" in result.message

        invoke(Command.ENABLE, git_scenario)
        with mock.patch("donttouch.git.pending_push_files", return_value=["readme.md"]):
            assert invoke(Command.CHECK_BEFORE_PUSH, git_scenario).exit_code == 0

    def test_push_check_fails_on_protected_change(self, git_scenario):
        with mock.patch("donttouch.git.pending_push_files", return_value=["secrets/a.txt"]) as pending:
            result = invoke(
                Command.CHECK_BEFORE_PUSH,
                git_scenario,
                remote="upstream",
                url="git@example.com:x.git",
            )
        pending.assert_called_once_with(git_scenario, "upstream")
        assert result.kind is ResultKind.FAILURE
        assert "git@example.com:x.git" in result.message
        assert "secrets/a.txt" in result.message

    def test_push_check_requires_git(self, scenario):
        result = invoke(Command.CHECK_BEFORE_PUSH, scenario)
        assert result.kind is ResultKind.FAILURE
        assert "git repository" in result.message

    def test_ignoregit_forces_plain_context(self, git_scenario):
        state = resolve(git_scenario, ignore_vcs=True)
        assert not state.context.is_git
        invoke(Command.LOCK, git_scenario)
        with mock.patch("donttouch.git.staged_files") as staged:
            assert invoke(Command.CHECK, git_scenario, ignore_git=True).exit_code == 0
        staged.assert_not_called()


# ═══════════════════════════════════════════════════════════════════════════════
# explain / inject / remove
# ═══════════════════════════════════════════════════════════════════════════════


class TestExplain:
    def test_protected_file(self, scenario, monkeypatch):
        monkeypatch.chdir(scenario)
        result = run(Invocation(command=Command.EXPLAIN, file="secrets/a.txt"))
        assert result.kind is ResultKind.SUCCESS
        assert "secrets/**" in result.message
        assert "writable" in result.message

    def test_unprotected_file(self, scenario, monkeypatch):
        monkeypatch.chdir(scenario)
        result = run(Invocation(command=Command.EXPLAIN, file="readme.md"))
        assert "no pattern matches" in result.message

    def test_relative_to_subdirectory_cwd(self, scenario, monkeypatch):
        monkeypatch.chdir(scenario / "secrets")
        result = run(Invocation(command=Command.EXPLAIN, file="../.env"), cwd=scenario)
        assert result.message.startswith(".env:")
        assert "Protected by:" in result.message

    def test_skipped_directory(self, scenario, monkeypatch):
        monkeypatch.chdir(scenario)
        result = run(Invocation(command=Command.EXPLAIN, file="node_modules/x.env"))
        assert "never scanned" in result.message

    def test_outside_tree(self, scenario, monkeypatch, tmp_path):
        monkeypatch.chdir(scenario)
        result = run(Invocation(command=Command.EXPLAIN, file=str(tmp_path / "elsewhere")))
        assert result.kind is ResultKind.FAILURE


class TestInjectAndRemove:
    def test_inject_dry_run(self, scenario):
        result = invoke(Command.INJECT, scenario, dry_run=True)
        assert "Would create CLAUDE.md" in result.message
        assert not (scenario / "CLAUDE.md").exists()

    def test_remove_undoes_everything(self, git_scenario):
        invoke(Command.LOCK, git_scenario)
        invoke(Command.INJECT, git_scenario)
        hooks.install_all(git_scenario)

        result = invoke_outside(Command.REMOVE, git_scenario)
        assert result.kind is ResultKind.SUCCESS
        assert not (git_scenario / CONFIG_NAME).exists()
        assert not (git_scenario / "CLAUDE.md").exists()
        assert not (git_scenario / ".git" / "hooks" / "pre-commit").exists()
        assert not is_readonly(git_scenario / ".env")
        assert resolve(git_scenario).kind is StateKind.UNINITIALIZED

    def test_remove_from_inside_is_refused(self, scenario):
        result = run(Invocation(command=Command.REMOVE, target=str(scenario)), cwd=scenario)
        assert result.kind is ResultKind.FAILURE
        assert (scenario / CONFIG_NAME).exists()


@pytest.mark.skipif(os.name == "nt", reason="POSIX permission bits")
class TestPartialFailure:
    def test_lock_reports_failure_and_continues(self, scenario):
        real_chmod = os.chmod

        def flaky_chmod(path, mode):
            if str(path).endswith(".env"):
                raise PermissionError(1, "Operation not permitted")
            real_chmod(path, mode)

        with mock.patch("donttouch.permissions.os.chmod", side_effect=flaky_chmod):
            result = invoke(Command.LOCK, scenario)

        assert result.kind is ResultKind.FAILURE
        assert "Operation not permitted" in result.message
        assert is_readonly(scenario / "secrets" / "a.txt")
