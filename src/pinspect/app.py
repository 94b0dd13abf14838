"""Prompt inspector popup: edit a prompt with switchable line-break views."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import Enum, auto

from textual.app import App, ComposeResult
from textual.containers import Horizontal
from textual.widgets import Button, Header

from .config import InspectorConfig, PreferenceStore
from .transcode import Representation, is_likely_json, to_friendly
from .widget import InspectorEditor

logger = logging.getLogger(__name__)


def _parses(text: str) -> bool:
    try:
        json.loads(text)
    except json.JSONDecodeError:
        return False
    return True


class InspectStatus(Enum):
    SAVED = auto()
    DISCARDED = auto()
    CANCELLED = auto()  # user asked to stop generation


@dataclass
class InspectOutcome:
    status: InspectStatus
    text: str  # raw view; the untouched prompt unless SAVED


class InspectorApp(App[InspectOutcome]):
    """TUI app that wraps the InspectorEditor widget."""

    CSS = """
    Screen {
        layout: vertical;
    }
    #editor {
        height: 1fr;
        border: solid $accent;
    }
    #toggle-wrap {
        height: auto;
        align-horizontal: center;
        margin: 1 0;
    }
    #actions {
        height: auto;
        align-horizontal: right;
        padding: 0 1;
    }
    #actions Button {
        margin-left: 1;
    }
    """

    TITLE = "Prompt Inspector"
    BINDINGS = []
    ENABLE_COMMAND_PALETTE = False

    def __init__(
        self,
        prompt: str,
        config: InspectorConfig | None = None,
        store: PreferenceStore | None = None,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self.prompt = prompt
        self.config = config or InspectorConfig()
        self.store = store
        self.is_json = is_likely_json(prompt)

    def initial_text(self) -> str:
        if self.is_json and self.config.show_newlines:
            return to_friendly(self.prompt)
        return self.prompt

    def compose(self) -> ComposeResult:
        yield Header()
        yield InspectorEditor(
            self.initial_text(), config=self.config, store=self.store, id="editor"
        )
        with Horizontal(id="toggle-wrap"):
            yield Button("Toggle line breaks", id="toggle-btn")
        with Horizontal(id="actions"):
            yield Button("Save changes", id="save", variant="success")
            yield Button("Discard changes", id="discard")
            yield Button("Cancel generation", id="cancel", variant="error")

    def on_mount(self) -> None:
        self.query_one("#toggle-wrap").display = self.is_json
        self._update_toggle_button()
        self.query_one("#editor").focus()

    def _update_toggle_button(self) -> None:
        button = self.query_one("#toggle-btn", Button)
        if self.config.representation is Representation.FRIENDLY:
            button.label = "Show raw \\n"
            button.tooltip = "Show raw with \\n"
            button.variant = "primary"
        else:
            button.label = "Show line breaks"
            button.tooltip = "Show real line breaks"
            button.variant = "default"

    def _finish(self, status: InspectStatus, text: str | None = None) -> None:
        self.exit(InspectOutcome(status=status, text=self.prompt if text is None else text))

    def _save(self, text: str) -> None:
        """Finish with *text* unless a JSON prompt no longer parses."""
        if self.is_json and text != self.prompt and _parses(self.prompt):
            try:
                json.loads(text)
            except json.JSONDecodeError as e:
                self.notify(
                    f"Invalid JSON: {e.msg} (line {e.lineno})",
                    severity="error",
                    timeout=6,
                )
                return
        self._finish(InspectStatus.SAVED, text)

    # -- Event handlers ----------------------------------------------------

    def on_button_pressed(self, event: Button.Pressed) -> None:
        editor = self.query_one("#editor", InspectorEditor)
        if event.button.id == "toggle-btn":
            editor.toggle_newlines()
            editor.focus()
        elif event.button.id == "save":
            self._save(editor.final_content())
        elif event.button.id == "discard":
            self._finish(InspectStatus.DISCARDED)
        elif event.button.id == "cancel":
            self._finish(InspectStatus.CANCELLED)

    def on_inspector_editor_save_requested(
        self, event: InspectorEditor.SaveRequested
    ) -> None:
        self._save(event.content)

    def on_inspector_editor_discard_requested(self) -> None:
        self._finish(InspectStatus.DISCARDED)

    def on_inspector_editor_cancel_requested(self) -> None:
        self._finish(InspectStatus.CANCELLED)

    def on_inspector_editor_newlines_toggled(
        self, event: InspectorEditor.NewlinesToggled
    ) -> None:
        self.config = event.result.config
        self._update_toggle_button()
        if not event.result.anchored:
            logger.debug("viewport restored from mapped offset only")


def run_inspector(
    prompt: str,
    config: InspectorConfig,
    store: PreferenceStore | None = None,
) -> InspectOutcome:
    """Show *prompt* in the inspector and block until the user decides."""
    app = InspectorApp(prompt, config=config, store=store)
    outcome = app.run()
    if outcome is None:
        # quit without choosing (ctrl+q)
        return InspectOutcome(status=InspectStatus.DISCARDED, text=prompt)
    return outcome
