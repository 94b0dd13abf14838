"""Tests for the pinspect command line."""

import json

import pytest

from pinspect import cli
from pinspect.app import InspectOutcome, InspectStatus


@pytest.fixture
def prefs(tmp_path):
    return str(tmp_path / "prefs.json")


def fake_prompt(status, edit=None):
    def runner(prompt, config, store=None):
        assert config.enabled
        return InspectOutcome(status=status, text=edit(prompt) if edit else prompt)

    return runner


class TestToggle:
    def test_toggle_prints_state(self, prefs, capsys):
        assert cli.main(["--toggle", "--config", prefs]) == cli.EXIT_OK
        assert "enabled" in capsys.readouterr().out
        assert cli.main(["--toggle", "--config", prefs]) == cli.EXIT_OK
        assert "disabled" in capsys.readouterr().out


class TestPromptFile:
    def test_saved_writes_back(self, tmp_path, prefs, monkeypatch):
        src = tmp_path / "prompt.txt"
        src.write_text("hello")
        monkeypatch.setattr(
            cli, "inspect_prompt", fake_prompt(InspectStatus.SAVED, str.upper)
        )
        assert cli.main([str(src), "--config", prefs]) == cli.EXIT_OK
        assert src.read_text() == "HELLO"

    def test_output_file(self, tmp_path, prefs, monkeypatch):
        src = tmp_path / "prompt.txt"
        out = tmp_path / "out.txt"
        src.write_text("hello")
        monkeypatch.setattr(cli, "inspect_prompt", fake_prompt(InspectStatus.DISCARDED))
        assert cli.main([str(src), "-o", str(out), "--config", prefs]) == cli.EXIT_OK
        assert out.read_text() == "hello"

    def test_cancel_exit_code(self, tmp_path, prefs, monkeypatch):
        src = tmp_path / "prompt.txt"
        src.write_text("hello")
        monkeypatch.setattr(cli, "inspect_prompt", fake_prompt(InspectStatus.CANCELLED))
        assert cli.main([str(src), "--config", prefs]) == cli.EXIT_CANCELLED
        assert src.read_text() == "hello"

    def test_hook_disabled_keeps_crlf(self, tmp_path, prefs):
        src = tmp_path / "prompt.txt"
        out = tmp_path / "out.txt"
        src.write_bytes(b"line1\r\nline2\r\n")
        assert cli.main([str(src), "--hook", "-o", str(out), "--config", prefs]) == cli.EXIT_OK
        assert out.read_bytes() == b"line1\r\nline2\r\n"

    def test_saved_edit_keeps_crlf(self, tmp_path, prefs, monkeypatch):
        src = tmp_path / "prompt.txt"
        src.write_bytes(b"hello\r\nworld\r\n")

        def runner(prompt, config, store=None):
            assert prompt == "hello\r\nworld\r\n"
            return InspectOutcome(status=InspectStatus.SAVED, text=prompt.upper())

        monkeypatch.setattr(cli, "inspect_prompt", runner)
        assert cli.main([str(src), "--config", prefs]) == cli.EXIT_OK
        assert src.read_bytes() == b"HELLO\r\nWORLD\r\n"

    def test_missing_file(self, tmp_path, prefs, capsys):
        assert cli.main([str(tmp_path / "nope.txt"), "--config", prefs]) == cli.EXIT_ERROR
        assert "pinspect:" in capsys.readouterr().err


class TestChat:
    def test_invalid_chat_json(self, tmp_path, prefs, capsys):
        src = tmp_path / "chat.json"
        src.write_text("[{")
        assert cli.main([str(src), "--chat", "--config", prefs]) == cli.EXIT_ERROR
        assert "invalid chat JSON" in capsys.readouterr().err

    def test_chat_not_array(self, tmp_path, prefs):
        src = tmp_path / "chat.json"
        src.write_text('{"role": "user"}')
        assert cli.main([str(src), "--chat", "--config", prefs]) == cli.EXIT_ERROR

    def test_chat_edit(self, tmp_path, prefs, monkeypatch):
        src = tmp_path / "chat.json"
        src.write_text(json.dumps([{"role": "user", "content": "hi"}]))

        def fake_chat(messages, config, store=None):
            messages[0]["content"] = "hello"
            return InspectStatus.SAVED

        monkeypatch.setattr(cli, "inspect_chat", fake_chat)
        assert cli.main([str(src), "--chat", "--config", prefs]) == cli.EXIT_OK
        assert json.loads(src.read_text()) == [{"role": "user", "content": "hello"}]
