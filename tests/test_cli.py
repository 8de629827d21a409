"""Tests for the CorePatch command-line interface."""

import tempfile
from datetime import date, timedelta
from pathlib import Path
from typing import Optional
from unittest.mock import patch

import httpx
import pytest
from click.testing import CliRunner

from corepatch.cli import cli
from corepatch.db.store import DataStore
from corepatch.feedback import FeedbackClient
from corepatch.models import Category, CoreWoundID


class CliEnv:
    """Runs commands against a throwaway database and config path."""

    def __init__(self, tmpdir: str):
        self.db_path = Path(tmpdir) / "corepatch.db"
        self.config_path = Path(tmpdir) / "config.toml"
        self.runner = CliRunner()

    def invoke(self, *args: str, input: Optional[str] = None):
        return self.runner.invoke(
            cli,
            ["--config", str(self.config_path), *args],
            env={"COREPATCH_DB_PATH": str(self.db_path)},
            input=input,
        )

    @property
    def store(self) -> DataStore:
        return DataStore(self.db_path)


@pytest.fixture
def env():
    with tempfile.TemporaryDirectory() as tmpdir:
        yield CliEnv(tmpdir)


@pytest.fixture
def selected(env: CliEnv) -> CliEnv:
    result = env.invoke("wound", "select", "IM_NOT_GOOD_ENOUGH")
    assert result.exit_code == 0, result.output
    return env


def fake_client(status_code: int = 200, reply: str = "Well done today") -> FeedbackClient:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, json={"message": {"role": "assistant", "content": reply}})

    return FeedbackClient(http_client=httpx.Client(transport=httpx.MockTransport(handler)))


def write_categories(env: CliEnv, categories) -> None:
    for category in categories:
        result = env.invoke("write", category.value, f"Evidence for {category.value}")
        assert result.exit_code == 0, result.output


class TestWoundCommands:
    """Selecting and inspecting the active wound."""

    def test_list(self, env: CliEnv):
        result = env.invoke("wound", "list")

        assert result.exit_code == 0
        assert "Core Wounds" in result.output

    def test_select_case_insensitive(self, env: CliEnv):
        result = env.invoke("wound", "select", "i_have_no_control")

        assert result.exit_code == 0
        assert "Wound Selected" in result.output
        assert env.store.get_active_wound().wound_id == CoreWoundID.I_HAVE_NO_CONTROL

    def test_select_unknown(self, env: CliEnv):
        assert env.invoke("wound", "select", "NOT_A_WOUND").exit_code != 0

    def test_show(self, selected: CliEnv):
        result = selected.invoke("wound", "show")

        assert result.exit_code == 0
        assert "Day 1/21" in result.output

    def test_commands_need_wound(self, env: CliEnv):
        result = env.invoke("status")

        assert result.exit_code == 1
        assert "No core wound selected" in result.output


class TestWriteCommands:
    """Writing and clearing reflections for a day."""

    def test_write_saves_text(self, selected: CliEnv):
        result = selected.invoke("write", "career", "Led the planning meeting")

        assert result.exit_code == 0, result.output
        entry = selected.store.get_entry_for_day(CoreWoundID.IM_NOT_GOOD_ENOUGH, date.today())
        assert entry.get_text(Category.CAREER) == "Led the planning meeting"

    def test_blank_text_rejected(self, selected: CliEnv):
        result = selected.invoke("write", "career", "   ")

        assert result.exit_code == 1
        assert selected.store.get_entries(CoreWoundID.IM_NOT_GOOD_ENOUGH) == []

    def test_future_date_rejected(self, selected: CliEnv):
        result = selected.invoke("write", "career", "Tomorrow", "--date", "2099-01-01")

        assert result.exit_code == 1

    def test_date_before_program_start_rejected(self, selected: CliEnv):
        yesterday = (date.today() - timedelta(days=1)).isoformat()

        result = selected.invoke("write", "career", "Back then", "--date", yesterday)

        assert result.exit_code == 1
        assert selected.store.get_entries(CoreWoundID.IM_NOT_GOOD_ENOUGH) == []

    def test_rejected_write_closes_client(self, selected: CliEnv):
        client = fake_client()

        with patch("corepatch.cli.common.build_feedback_client", return_value=client), \
                patch.object(client, "close", wraps=client.close) as close:
            result = selected.invoke("write", "career", "Tomorrow", "--date", "2099-01-01")

        assert result.exit_code == 1
        close.assert_called_once()

    def test_clear_last_category_deletes_entry(self, selected: CliEnv):
        write_categories(selected, [Category.SOCIAL])

        result = selected.invoke("clear", "social")

        assert result.exit_code == 0, result.output
        assert selected.store.get_entry_for_day(CoreWoundID.IM_NOT_GOOD_ENOUGH, date.today()) is None

    def test_seventh_category_gets_feedback(self, selected: CliEnv):
        write_categories(selected, list(Category)[:6])

        with patch("corepatch.cli.common.build_feedback_client", return_value=fake_client()):
            result = selected.invoke("write", "finances", "Paid the rent early")

        assert result.exit_code == 0, result.output
        assert "AI Feedback" in result.output
        entry = selected.store.get_entry_for_day(CoreWoundID.IM_NOT_GOOD_ENOUGH, date.today())
        assert entry.feedback == "Well done today"

        locked = selected.invoke("write", "career", "One more thing")
        assert locked.exit_code == 1
        assert "Locked" in locked.output

    def test_failed_feedback_can_be_retried(self, selected: CliEnv):
        write_categories(selected, list(Category)[:6])

        with patch("corepatch.cli.common.build_feedback_client", return_value=fake_client(500)):
            result = selected.invoke("write", "finances", "Paid the rent early")
        assert result.exit_code == 0, result.output
        assert "could not be generated" in result.output
        entry = selected.store.get_entry_for_day(CoreWoundID.IM_NOT_GOOD_ENOUGH, date.today())
        assert not entry.is_locked

        with patch("corepatch.cli.common.build_feedback_client", return_value=fake_client()):
            retry = selected.invoke("feedback")
        assert retry.exit_code == 0, retry.output
        assert "AI Feedback" in retry.output

    def test_feedback_without_entry(self, selected: CliEnv):
        result = selected.invoke("feedback")

        assert result.exit_code == 1
        assert "Nothing written" in result.output

    def test_show_empty_day(self, selected: CliEnv):
        result = selected.invoke("show")

        assert result.exit_code == 0
        assert "Nothing written" in result.output

    def test_show_written_day(self, selected: CliEnv):
        write_categories(selected, [Category.MENTAL])
        result = selected.invoke("show")

        assert result.exit_code == 0
        assert "Mental" in result.output


class TestProgressCommands:
    """Day status, activity history and skipping ahead."""

    def test_status_counts_remaining(self, selected: CliEnv):
        write_categories(selected, [Category.CAREER])
        result = selected.invoke("status")

        assert result.exit_code == 0, result.output
        assert "Day 1/21" in result.output
        assert "6 areas left today" in result.output
        assert "Yesterday Recap" in result.output

    def test_status_does_not_create_entry(self, selected: CliEnv):
        selected.invoke("status")
        assert selected.store.get_entries(CoreWoundID.IM_NOT_GOOD_ENOUGH) == []

    def test_history_empty(self, selected: CliEnv):
        result = selected.invoke("history")

        assert result.exit_code == 0, result.output
        assert "Your Activity" in result.output
        assert "No entries in this period" in result.output

    def test_history_with_entries(self, selected: CliEnv):
        write_categories(selected, [Category.CAREER, Category.SOCIAL])
        result = selected.invoke("history", "--weeks", "1")

        assert result.exit_code == 0, result.output
        assert "Timeline" in result.output

    def test_skip_ahead(self, selected: CliEnv):
        result = selected.invoke("skip", "3", "--confirm")

        assert result.exit_code == 0, result.output
        assert "Skipped Ahead" in result.output
        assert "Day 3/21" in selected.invoke("status").output

    def test_skip_backwards_rejected(self, selected: CliEnv):
        selected.invoke("skip", "4", "--confirm")
        result = selected.invoke("skip", "2", "--confirm")

        assert result.exit_code == 1

    def test_skip_prompt_declined(self, selected: CliEnv):
        result = selected.invoke("skip", "3", input="n\n")

        assert result.exit_code == 0
        assert selected.store.get_entries(CoreWoundID.IM_NOT_GOOD_ENOUGH) == []


class TestChatCommand:
    """Sending general chat turns and reading the transcript."""

    def test_empty_history(self, env: CliEnv):
        result = env.invoke("chat", "--history")

        assert result.exit_code == 0
        assert "No conversation yet" in result.output

    def test_send_and_read_back(self, env: CliEnv):
        with patch("corepatch.cli.chat.build_feedback_client", return_value=fake_client(reply="Tell me more")):
            result = env.invoke("chat", "Why does this feel so true?")

        assert result.exit_code == 0, result.output
        assert "Tell me more" in result.output

        history = env.invoke("chat", "--history")
        assert "Why does this feel so true?" in history.output

    def test_send_failure(self, env: CliEnv):
        with patch("corepatch.cli.chat.build_feedback_client", return_value=fake_client(503)):
            result = env.invoke("chat", "Hello")

        assert result.exit_code == 1
        assert "Could not reach the assistant" in result.output
