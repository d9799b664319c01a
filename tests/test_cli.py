# tests/test_cli.py
"""Tests for the command-line interface."""
import pytest
from typer.testing import CliRunner

from commandgpt import __version__
from commandgpt.cli import main as cli_main
from commandgpt.cli.main import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_config(temp_config_manager, monkeypatch):
    """Point the CLI at a temporary configuration directory."""
    monkeypatch.setattr(cli_main, "config_manager", temp_config_manager)
    return temp_config_manager


def test_version():
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_check_safe():
    result = runner.invoke(app, ["check", "ls -la"])
    assert result.exit_code == 0
    assert "Safe" in result.output


def test_check_needs_confirmation():
    result = runner.invoke(app, ["check", "rm notes.txt"])
    assert result.exit_code == 1
    assert "Warning" in result.output


def test_check_blocked():
    result = runner.invoke(app, ["check", "rm -rf /"])
    assert result.exit_code == 2
    assert "blocked" in result.output


def test_check_blocked_with_force():
    result = runner.invoke(app, ["check", "--force", "rm -rf /"])
    assert result.exit_code == 1


def test_run_records_history(isolated_config):
    result = runner.invoke(app, ["run", "echo hello"], input="y\n")
    assert result.exit_code == 0
    assert "hello" in result.output

    history = runner.invoke(app, ["history"])
    assert "echo hello" in history.output


def test_run_blocked_command():
    result = runner.invoke(app, ["run", "rm -rf /"])
    assert result.exit_code == 5
    assert "blocked" in result.output


def test_empty_history_and_clear():
    result = runner.invoke(app, ["history"])
    assert "No commands found." in result.output

    result = runner.invoke(app, ["clear"])
    assert result.exit_code == 0
    assert "Command history cleared." in result.output


def test_ask_without_api_key():
    result = runner.invoke(app, ["ask", "list", "files"])
    assert result.exit_code == 1
    assert "Configuration error" in result.output


def test_config_show():
    result = runner.invoke(app, ["config", "show"])
    assert result.exit_code == 0
    assert "Model" in result.output


def test_config_show_lists_context_and_hook():
    result = runner.invoke(app, ["config", "show"])
    assert "Context files" in result.output
    assert "Shell hook" in result.output


def test_init_creates_sample_context(isolated_config):
    result = runner.invoke(app, ["init"], input="n\n30\n")

    assert result.exit_code == 0
    assert (isolated_config.CONTEXT_DIR / "sample.md").exists()


# --- Shell hook ---

class FakeGemini:
    """Stands in for GeminiClient; replies with a fixed suggestion."""
    reply = '{"command": "echo from-hook", "explanation": "Echo something.", "auto_execute": true}'
    prompts = []

    def __init__(self, config, shell=None, user_context=None):
        pass

    async def generate_text(self, prompt):
        self.prompts.append(prompt)
        return self.reply


@pytest.fixture
def fake_gemini(monkeypatch):
    FakeGemini.prompts = []
    monkeypatch.setattr(cli_main, "GeminiClient", FakeGemini)
    return FakeGemini


def test_hook_script():
    result = runner.invoke(app, ["hook", "script", "--enable"])

    assert result.exit_code == 0
    assert "export COMMANDGPT_HOOK_ENABLED=true" in result.output
    assert "command_not_found_handler()" in result.output


def test_hook_script_follows_config():
    result = runner.invoke(app, ["hook", "script"])
    assert "export COMMANDGPT_HOOK_ENABLED=false" in result.output


def test_hook_without_api_key_reports_not_found():
    result = runner.invoke(app, ["hook", "handle", "--", "lss", "-la"])

    assert result.exit_code == 127
    assert "command not found: lss" in result.output


def test_hook_excluded_command_is_not_sent(fake_gemini):
    result = runner.invoke(app, ["hook", "handle", "--", "sudoo", "reboot"])

    assert result.exit_code == 127
    assert fake_gemini.prompts == []


def test_hook_runs_confirmed_suggestion(fake_gemini):
    result = runner.invoke(
        app,
        ["hook", "handle", "--error-context", "zsh: command not found: lss", "--pwd", "/srv", "--", "lss", "-la"],
        input="y\n",
    )

    assert result.exit_code == 0
    assert "from-hook" in result.output
    prompt = fake_gemini.prompts[0]
    assert "User attempted to run command: lss" in prompt
    assert "With arguments: -la" in prompt
    assert "Error analysis: LikelyTypo" in prompt


def test_hook_declined_suggestion_keeps_failure(fake_gemini):
    result = runner.invoke(app, ["hook", "handle", "--", "lss"], input="n\n")
    assert result.exit_code == 127


def test_hook_blocked_suggestion(fake_gemini, monkeypatch):
    monkeypatch.setattr(
        FakeGemini, "reply", '{"command": "rm -rf /", "explanation": "Wipe.", "auto_execute": false}'
    )
    result = runner.invoke(app, ["hook", "handle", "--", "cleanup"])
    assert result.exit_code == 5
