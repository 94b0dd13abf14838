"""Tests for PositionSession toggling."""

import json

import pytest

from pinspect.config import InspectorConfig, PreferenceStore
from pinspect.session import PositionSession
from pinspect.transcode import Representation, to_friendly

RAW = json.dumps(
    [
        {"role": "system", "content": "You are a helpful assistant.\nStay on topic."},
        {"role": "user", "content": "Summarise this:\n\nRules:\n- short\n- plain"},
    ],
    indent=4,
)


class FakeView:
    """EditableSurface + LineLocator over a plain string."""

    def __init__(self, text, top=0, selection=(0, 0)):
        self.text = text
        self.top = top
        self.selection = selection
        self.scrolled_to = None

    def get_text(self):
        return self.text

    def set_text(self, text):
        self.text = text

    def get_selection(self):
        return self.selection

    def set_selection(self, start, end):
        n = len(self.text)
        self.selection = (max(0, min(start, n)), max(0, min(end, n)))

    def first_fully_visible_offset(self):
        return self.top

    def scroll_to_offset_fully_visible(self, offset):
        self.scrolled_to = offset
        self.top = offset


def make_session(text, config=None, store=None, **kwargs):
    view = FakeView(text, **kwargs)
    config = config or InspectorConfig(show_newlines=False)
    return view, PositionSession(view, view, config, store)


class TestToggle:
    def test_raw_to_friendly_text(self):
        view, session = make_session(RAW)
        result = session.toggle()
        assert view.text == to_friendly(RAW)
        assert result.text == view.text
        assert result.representation is Representation.FRIENDLY

    def test_keeps_reading_position(self):
        view, session = make_session(RAW, top=RAW.index("Rules"))
        result = session.toggle()
        assert result.anchored
        assert view.scrolled_to == result.target_offset
        assert view.text.startswith("Rules", result.target_offset)

    def test_round_trip(self):
        view, session = make_session(RAW, top=RAW.index("Stay on"))
        session.toggle()
        assert view.text.startswith("Stay on", view.top)
        session.toggle()
        assert view.text == RAW
        assert view.top == RAW.index("Stay on")

    def test_config_flips(self):
        config = InspectorConfig(show_newlines=False)
        _, session = make_session(RAW, config=config)
        result = session.toggle()
        assert result.config.show_newlines is True
        assert session.config is result.config
        assert session.representation is Representation.FRIENDLY
        # 원래 config는 변경되지 않는다
        assert config.show_newlines is False
        session.toggle()
        assert session.representation is Representation.RAW

    def test_preference_saved(self, tmp_path):
        store = PreferenceStore(tmp_path / "prefs.json")
        _, session = make_session(RAW, store=store)
        session.toggle()
        assert store.load().show_newlines is True
        session.toggle()
        assert store.load().show_newlines is False

    def test_selection_remapped(self):
        start = RAW.index("Rules")
        end = start + len("Rules:\\n- short")
        view, session = make_session(RAW, selection=(start, end))
        result = session.toggle()
        s, e = view.selection
        assert view.text[s:e] == "Rules:\n- short"
        assert result.selection == (s, e)

    def test_empty_anchor_falls_back_to_mapped(self):
        view, session = make_session(RAW, top=len(RAW))
        result = session.toggle()
        assert result.anchor == ""
        assert not result.anchored
        assert result.target_offset == result.mapped_offset == len(view.text)


class TestNonJson:
    @pytest.mark.parametrize("text", ["plain\\ntext", "Hello\nworld", ""])
    def test_text_untouched(self, text):
        view, session = make_session(text, top=min(3, len(text)))
        result = session.toggle()
        assert view.text == text
        assert result.mapped_offset == min(3, len(text))

    def test_config_still_flips(self):
        _, session = make_session("not json")
        session.toggle()
        assert session.config.show_newlines is True


class TestFinalText:
    def test_friendly_view_saved_raw(self):
        _, session = make_session(RAW)
        session.toggle()
        assert session.final_text() == RAW

    def test_raw_view_unchanged(self):
        _, session = make_session(RAW)
        assert session.final_text() == RAW

    def test_edit_in_friendly_view(self):
        view, session = make_session(RAW)
        session.toggle()
        view.text = view.text.replace("- plain", "- plain\n- kind")
        saved = json.loads(session.final_text())
        assert saved[1]["content"].endswith("- plain\n- kind")
