"""Tests for the CLI entry point."""

import stat

import pytest
from click.testing import CliRunner

from huskygpt_cli.cli import main
from huskygpt_cli.commands.init import HOOK_MARKER
from huskygpt_cli.commands.review import generated_test_path
from huskygpt_core.models import HuskyGPTMode, ReadFileResult
from huskygpt_core.reviewer import RUN_FAILED_MESSAGE


@pytest.fixture(autouse=True)
def _env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.delenv("DEBUG", raising=False)
    monkeypatch.delenv("HUSKYGPT_CONFIG", raising=False)


def _patch_runner(mocker, outputs):
    """Replace ReviewRunner with a stub that returns ``outputs`` in order."""
    runner_cls = mocker.patch("huskygpt_cli.commands.review.ReviewRunner")
    instance = runner_cls.return_value
    instance.run = mocker.AsyncMock(side_effect=list(outputs))
    instance.aclose = mocker.AsyncMock()
    return runner_cls


class TestCLIValidation:
    def test_missing_openai_key(self, monkeypatch, mocker):
        monkeypatch.delenv("OPENAI_API_KEY")
        mocker.patch("huskygpt_cli.commands.review.read_staged_files", return_value=[])

        result = CliRunner().invoke(main, ["review"])
        assert result.exit_code != 0
        assert "OPENAI_API_KEY" in result.output

    def test_invalid_config_file(self, tmp_path):
        (tmp_path / ".huskygpt.yml").write_text("mode: [unclosed\n")
        result = CliRunner().invoke(main, ["review"])
        assert result.exit_code != 0
        assert "Invalid YAML" in result.output

    def test_git_error_reported(self, mocker):
        from huskygpt_core.exceptions import ReadError

        mocker.patch("huskygpt_cli.commands.review.read_staged_files", side_effect=ReadError("not a git repository"))
        result = CliRunner().invoke(main, ["review"])
        assert result.exit_code != 0
        assert "not a git repository" in result.output


class TestReviewCommand:
    def test_no_staged_files(self, mocker):
        mocker.patch("huskygpt_cli.commands.review.read_staged_files", return_value=[])
        runner_cls = _patch_runner(mocker, [])

        result = CliRunner().invoke(main, ["review"])

        assert result.exit_code == 0
        assert "No staged code files" in result.output
        runner_cls.assert_not_called()

    def test_runs_each_staged_file_in_review_mode(self, mocker):
        files = [ReadFileResult("a.py", "x = 1"), ReadFileResult("b.py", "y = 2")]
        mocker.patch("huskygpt_cli.commands.review.read_staged_files", return_value=files)
        runner_cls = _patch_runner(mocker, ["Looks PERFECT", "Needs work"])

        result = CliRunner().invoke(main, ["review"])

        assert result.exit_code == 0
        options = runner_cls.call_args.args[0]
        assert options.mode is HuskyGPTMode.REVIEW
        assert options.api_key == "sk-test"
        calls = runner_cls.return_value.run.call_args_list
        assert [c.args[0] for c in calls] == files

    def test_no_typing_prints_joined_output(self, mocker):
        mocker.patch("huskygpt_cli.commands.review.read_staged_files", return_value=[ReadFileResult("a.py", "x")])
        runner_cls = _patch_runner(mocker, ["Looks PERFECT\n\n---\n\nNeeds work"])

        result = CliRunner().invoke(main, ["review", "--no-typing"])

        assert result.exit_code == 0
        assert runner_cls.call_args.args[0].typing_enabled is False
        assert "Needs work" in result.output

    def test_typing_setting_read_from_config(self, tmp_path, mocker):
        (tmp_path / ".huskygpt.yml").write_text("review_typing: 'false'\n")
        mocker.patch("huskygpt_cli.commands.review.read_staged_files", return_value=[ReadFileResult("a.py", "x")])
        runner_cls = _patch_runner(mocker, ["ok"])

        CliRunner().invoke(main, ["review"])

        assert runner_cls.call_args.args[0].review_typing == "false"

    def test_explicit_files_read_from_disk(self, tmp_path, mocker):
        (tmp_path / "a.py").write_text("x = 1\n")
        staged = mocker.patch("huskygpt_cli.commands.review.read_staged_files")
        runner_cls = _patch_runner(mocker, ["ok"])

        result = CliRunner().invoke(main, ["review", "--file", "a.py", "--no-typing"])

        assert result.exit_code == 0
        staged.assert_not_called()
        file_result = runner_cls.return_value.run.call_args.args[0]
        assert file_result.file_content == "x = 1\n"

    def test_failure_shown_when_typing_enabled(self, mocker):
        mocker.patch("huskygpt_cli.commands.review.read_staged_files", return_value=[ReadFileResult("a.py", "x")])
        _patch_runner(mocker, [RUN_FAILED_MESSAGE])

        result = CliRunner().invoke(main, ["review"])

        assert result.exit_code == 0
        assert RUN_FAILED_MESSAGE in result.output

    def test_typed_answers_not_printed_twice(self, mocker):
        mocker.patch("huskygpt_cli.commands.review.read_staged_files", return_value=[ReadFileResult("a.py", "x")])
        _patch_runner(mocker, ["Needs work"])

        result = CliRunner().invoke(main, ["review"])

        assert "Needs work" not in result.output

    def test_client_closed_after_run(self, mocker):
        mocker.patch("huskygpt_cli.commands.review.read_staged_files", return_value=[ReadFileResult("a.py", "x")])
        runner_cls = _patch_runner(mocker, ["ok"])

        CliRunner().invoke(main, ["review", "--no-typing"])

        runner_cls.return_value.aclose.assert_awaited_once()

    def test_client_closed_when_run_raises(self, mocker):
        mocker.patch("huskygpt_cli.commands.review.read_staged_files", return_value=[ReadFileResult("a.py", "x")])
        runner_cls = _patch_runner(mocker, [RuntimeError("boom")])

        result = CliRunner().invoke(main, ["review"])

        assert result.exit_code != 0
        runner_cls.return_value.aclose.assert_awaited_once()

    def test_debug_flag_sets_option(self, mocker):
        mocker.patch("huskygpt_cli.commands.review.read_staged_files", return_value=[ReadFileResult("a.py", "x")])
        runner_cls = _patch_runner(mocker, ["ok"])

        CliRunner().invoke(main, ["--debug", "review"])

        assert runner_cls.call_args.args[0].debug is True


class TestTestCommand:
    def test_writes_generated_tests(self, tmp_path, mocker):
        files = [ReadFileResult("src/math.ts", "export const add = 1")]
        mocker.patch("huskygpt_cli.commands.review.read_staged_files", return_value=files)
        runner_cls = _patch_runner(mocker, ["```ts\ntest('add', () => {});\n```"])

        result = CliRunner().invoke(main, ["test"])

        assert result.exit_code == 0
        assert runner_cls.call_args.args[0].mode is HuskyGPTMode.TEST
        written = tmp_path / "src" / "__tests__" / "math.test.ts"
        assert written.read_text() == "test('add', () => {});\n"

    def test_failed_run_not_written(self, tmp_path, mocker):
        mocker.patch(
            "huskygpt_cli.commands.review.read_staged_files",
            return_value=[ReadFileResult("src/math.ts", "x")],
        )
        _patch_runner(mocker, [RUN_FAILED_MESSAGE])

        result = CliRunner().invoke(main, ["test"])

        assert result.exit_code == 0
        assert not (tmp_path / "src" / "__tests__").exists()

    def test_no_write(self, tmp_path, mocker):
        mocker.patch(
            "huskygpt_cli.commands.review.read_staged_files",
            return_value=[ReadFileResult("src/math.ts", "x")],
        )
        _patch_runner(mocker, ["test code"])

        CliRunner().invoke(main, ["test", "--no-write"])

        assert not (tmp_path / "src" / "__tests__").exists()

    def test_no_write_prints_when_typing_disabled(self, tmp_path, mocker):
        (tmp_path / ".huskygpt.yml").write_text("review_typing: 'false'\n")
        mocker.patch(
            "huskygpt_cli.commands.review.read_staged_files",
            return_value=[ReadFileResult("src/math.ts", "x")],
        )
        _patch_runner(mocker, ["```ts\nGENERATED_TEST_BODY\n```"])

        result = CliRunner().invoke(main, ["test", "--no-write"])

        assert result.exit_code == 0
        assert "GENERATED_TEST_BODY" in result.output
        assert "```" not in result.output
        assert not (tmp_path / "src" / "__tests__").exists()

    def test_failed_run_reported(self, mocker):
        mocker.patch(
            "huskygpt_cli.commands.review.read_staged_files",
            return_value=[ReadFileResult("src/math.ts", "x")],
        )
        _patch_runner(mocker, [RUN_FAILED_MESSAGE])

        result = CliRunner().invoke(main, ["test"])

        assert RUN_FAILED_MESSAGE in result.output

    def test_generated_test_path_uses_config(self):
        config = {"test_file_dir": "tests", "test_file_extension": "_spec"}
        assert str(generated_test_path("lib/util.js", config)) == "lib/tests/util_spec.js"


class TestInitCommand:
    def test_writes_config_and_hook(self, tmp_path, mocker):
        hooks = tmp_path / ".git" / "hooks"
        mocker.patch("huskygpt_cli.commands.init._git_hooks_dir", return_value=hooks)

        result = CliRunner().invoke(main, ["init", "--mode", "review"])

        assert result.exit_code == 0
        assert "mode: review" in (tmp_path / ".huskygpt.yml").read_text()
        hook = hooks / "pre-commit"
        assert "huskygpt review" in hook.read_text()
        assert hook.stat().st_mode & stat.S_IXUSR

    def test_prompts_for_mode(self, tmp_path, mocker):
        mocker.patch("huskygpt_cli.commands.init._git_hooks_dir", return_value=tmp_path / "hooks")

        result = CliRunner().invoke(main, ["init"], input="test\n")

        assert result.exit_code == 0
        assert "huskygpt test" in (tmp_path / "hooks" / "pre-commit").read_text()

    def test_preserves_existing_config_keys(self, tmp_path):
        (tmp_path / ".huskygpt.yml").write_text("review_typing: 'false'\n")

        CliRunner().invoke(main, ["init", "--mode", "test", "--no-hook"])

        text = (tmp_path / ".huskygpt.yml").read_text()
        assert "review_typing: 'false'" in text
        assert "mode: test" in text

    def test_refuses_to_replace_foreign_hook(self, tmp_path, mocker):
        hooks = tmp_path / "hooks"
        hooks.mkdir()
        (hooks / "pre-commit").write_text("#!/bin/sh\nnpm test\n")
        mocker.patch("huskygpt_cli.commands.init._git_hooks_dir", return_value=hooks)

        result = CliRunner().invoke(main, ["init", "--mode", "review"])

        assert result.exit_code != 0
        assert "--force" in result.output
        assert "npm test" in (hooks / "pre-commit").read_text()

    def test_force_replaces_foreign_hook(self, tmp_path, mocker):
        hooks = tmp_path / "hooks"
        hooks.mkdir()
        (hooks / "pre-commit").write_text("#!/bin/sh\nnpm test\n")
        mocker.patch("huskygpt_cli.commands.init._git_hooks_dir", return_value=hooks)

        result = CliRunner().invoke(main, ["init", "--mode", "review", "--force"])

        assert result.exit_code == 0
        assert HOOK_MARKER in (hooks / "pre-commit").read_text()

    def test_reinstall_over_own_hook(self, tmp_path, mocker):
        hooks = tmp_path / "hooks"
        mocker.patch("huskygpt_cli.commands.init._git_hooks_dir", return_value=hooks)
        CliRunner().invoke(main, ["init", "--mode", "review"])

        result = CliRunner().invoke(main, ["init", "--mode", "test"])

        assert result.exit_code == 0
        assert "huskygpt test" in (hooks / "pre-commit").read_text()

    def test_outside_git_repo(self, mocker):
        mocker.patch("huskygpt_cli.commands.init._git_hooks_dir", return_value=None)
        result = CliRunner().invoke(main, ["init", "--mode", "review"])
        assert result.exit_code != 0
        assert "git" in result.output.lower()

    def test_malformed_existing_config_reported(self, tmp_path):
        (tmp_path / ".huskygpt.yml").write_text("mode: [unclosed\n")

        result = CliRunner().invoke(main, ["init", "--mode", "review", "--no-hook"])

        assert result.exit_code != 0
        assert "Invalid YAML" in result.output
        assert (tmp_path / ".huskygpt.yml").read_text() == "mode: [unclosed\n"

    def test_non_mapping_existing_config_reported(self, tmp_path):
        (tmp_path / ".huskygpt.yml").write_text("- review\n- test\n")

        result = CliRunner().invoke(main, ["init", "--mode", "review", "--no-hook"])

        assert result.exit_code != 0
        assert "Expected a mapping" in result.output
