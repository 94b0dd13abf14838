"""Tests for InspectorApp setup and run_inspector."""

import json
from types import SimpleNamespace

from pinspect.app import (
    InspectOutcome,
    InspectorApp,
    InspectStatus,
    _parses,
    run_inspector,
)
from pinspect.config import InspectorConfig
from pinspect.transcode import to_friendly

RAW = json.dumps({"prompt": "one\ntwo"}, indent=4)


class TestInitialText:
    def test_friendly_when_enabled(self):
        app = InspectorApp(RAW, InspectorConfig(show_newlines=True))
        assert app.is_json
        assert app.initial_text() == to_friendly(RAW)

    def test_raw_when_disabled(self):
        app = InspectorApp(RAW, InspectorConfig(show_newlines=False))
        assert app.initial_text() == RAW

    def test_plain_text_untouched(self):
        app = InspectorApp("one\\ntwo", InspectorConfig(show_newlines=True))
        assert not app.is_json
        assert app.initial_text() == "one\\ntwo"


class TestParses:
    def test_valid(self):
        assert _parses(RAW)

    def test_friendly_view_does_not_parse(self):
        assert not _parses(to_friendly(RAW))


class TestRunInspector:
    def test_quit_without_choice_is_discard(self, monkeypatch):
        monkeypatch.setattr(InspectorApp, "run", lambda self: None)
        outcome = run_inspector(RAW, InspectorConfig())
        assert outcome == InspectOutcome(status=InspectStatus.DISCARDED, text=RAW)

    def test_outcome_passed_through(self, monkeypatch):
        saved = InspectOutcome(status=InspectStatus.SAVED, text="[]")
        monkeypatch.setattr(InspectorApp, "run", lambda self: saved)
        assert run_inspector(RAW, InspectorConfig()) is saved


class FakeEditor:
    def __init__(self, content):
        self.content = content
        self.toggled = 0

    def final_content(self):
        return self.content

    def toggle_newlines(self):
        self.toggled += 1

    def focus(self):
        pass


def _make_app(prompt, config=None, editor_text=None):
    """mount 없이 query_one / notify / exit 를 stub 한 app."""
    app = InspectorApp(prompt, config or InspectorConfig())
    app.stub_widgets = {
        "#editor": FakeEditor(prompt if editor_text is None else editor_text),
        "#toggle-wrap": SimpleNamespace(display=True),
        "#toggle-btn": SimpleNamespace(label="", tooltip=None, variant="default"),
    }
    app.query_one = lambda selector, *args: app.stub_widgets[selector]
    app.stub_notices = []
    app.notify = lambda message, **kwargs: app.stub_notices.append((message, kwargs))
    app.stub_results = []
    app.exit = app.stub_results.append
    return app


def _press(app, button_id):
    app.on_button_pressed(SimpleNamespace(button=SimpleNamespace(id=button_id)))


class TestSave:
    def test_invalid_json_refused(self):
        app = _make_app(RAW)
        app._save('{"prompt": ')
        assert app.stub_results == []
        message, kwargs = app.stub_notices[0]
        assert message.startswith("Invalid JSON")
        assert kwargs["severity"] == "error"

    def test_valid_edit_saved(self):
        app = _make_app(RAW)
        app._save('{"prompt": "edited"}')
        assert app.stub_notices == []
        assert app.stub_results == [
            InspectOutcome(status=InspectStatus.SAVED, text='{"prompt": "edited"}')
        ]

    def test_plain_text_not_validated(self):
        app = _make_app("hello")
        app._save("hello {")
        assert app.stub_results[0].status is InspectStatus.SAVED

    def test_prompt_that_never_parsed(self):
        app = _make_app("{ not json")
        app._save("{ still not json")
        assert app.stub_notices == []
        assert app.stub_results[0].text == "{ still not json"

    def test_save_requested_message(self):
        app = _make_app(RAW)
        app.on_inspector_editor_save_requested(SimpleNamespace(content="[1]"))
        assert app.stub_results[0].text == "[1]"


class TestButtons:
    def test_save_returns_editor_content(self):
        app = _make_app(RAW, editor_text='{"prompt": "x"}')
        _press(app, "save")
        assert app.stub_results == [
            InspectOutcome(status=InspectStatus.SAVED, text='{"prompt": "x"}')
        ]

    def test_discard_returns_input(self):
        app = _make_app(RAW, editor_text="[]")
        _press(app, "discard")
        assert app.stub_results == [InspectOutcome(status=InspectStatus.DISCARDED, text=RAW)]

    def test_cancel_returns_input(self):
        app = _make_app(RAW, editor_text="[]")
        _press(app, "cancel")
        assert app.stub_results == [InspectOutcome(status=InspectStatus.CANCELLED, text=RAW)]

    def test_toggle_button(self):
        app = _make_app(RAW)
        _press(app, "toggle-btn")
        assert app.stub_widgets["#editor"].toggled == 1
        assert app.stub_results == []


class TestToggleButton:
    def test_hidden_for_plain_text(self):
        app = _make_app("hello")
        app.on_mount()
        assert app.stub_widgets["#toggle-wrap"].display is False

    def test_shown_for_json(self):
        app = _make_app(RAW)
        app.on_mount()
        assert app.stub_widgets["#toggle-wrap"].display is True

    def test_friendly_view_look(self):
        app = _make_app(RAW, InspectorConfig(show_newlines=True))
        app._update_toggle_button()
        button = app.stub_widgets["#toggle-btn"]
        assert button.label == "Show raw \\n"
        assert button.tooltip == "Show raw with \\n"
        assert button.variant == "primary"

    def test_raw_view_look(self):
        app = _make_app(RAW, InspectorConfig(show_newlines=False))
        app._update_toggle_button()
        button = app.stub_widgets["#toggle-btn"]
        assert button.label == "Show line breaks"
        assert button.variant == "default"

    def test_follows_toggle_message(self):
        app = _make_app(RAW, InspectorConfig(show_newlines=False))
        result = SimpleNamespace(config=InspectorConfig(show_newlines=True), anchored=True)
        app.on_inspector_editor_newlines_toggled(SimpleNamespace(result=result))
        assert app.config.show_newlines is True
        assert app.stub_widgets["#toggle-btn"].variant == "primary"
