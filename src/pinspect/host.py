"""Hooks a host calls with a freshly generated prompt."""

from __future__ import annotations

import json
import logging
from typing import Callable

from .app import InspectOutcome, InspectStatus, run_inspector
from .config import InspectorConfig, PreferenceStore

logger = logging.getLogger(__name__)

Runner = Callable[[str, InspectorConfig, PreferenceStore | None], InspectOutcome]


class PromptRejected(ValueError):
    """Edited chat prompt is not a JSON array of messages."""


def toggle_inspection(
    config: InspectorConfig, store: PreferenceStore | None = None
) -> InspectorConfig:
    """Flip ``enabled`` and persist it."""
    config = config.toggled_enabled()
    if store is not None:
        store.save(config)
    logger.info(
        "Prompt inspection is now %s", "enabled" if config.enabled else "disabled"
    )
    return config


def inspect_prompt(
    prompt: str,
    config: InspectorConfig,
    store: PreferenceStore | None = None,
    runner: Runner = run_inspector,
) -> InspectOutcome:
    """Let the user review a text-completion prompt before it is sent."""
    if not config.enabled:
        return InspectOutcome(status=InspectStatus.DISCARDED, text=prompt)
    return runner(prompt, config, store)


def inspect_chat(
    messages: list,
    config: InspectorConfig,
    store: PreferenceStore | None = None,
    runner: Runner = run_inspector,
) -> InspectStatus:
    """Let the user review a chat-completion message list in place.

    *messages* is replaced element-wise when the user saved a valid JSON
    array.  Raises :class:`PromptRejected` for anything else; *messages* is
    left untouched in that case.
    """
    if not config.enabled:
        return InspectStatus.DISCARDED
    prompt = json.dumps(messages, indent=4, ensure_ascii=False)
    outcome = runner(prompt, config, store)
    if outcome.status is not InspectStatus.SAVED or outcome.text == prompt:
        return outcome.status

    try:
        chat = json.loads(outcome.text)
    except json.JSONDecodeError as exc:
        logger.error("Prompt Inspector: Invalid JSON: %s (line %d)", exc.msg, exc.lineno)
        raise PromptRejected(f"Invalid JSON: {exc.msg} (line {exc.lineno})") from exc
    if not isinstance(chat, list):
        raise PromptRejected("Invalid JSON: expected an array of messages")

    messages[:] = chat
    return outcome.status
