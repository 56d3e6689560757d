"""Terminal prompts (prompt_toolkit-based) for the interactive review loop.

Kept apart from the review orchestration in :mod:`statement_ledger.cli` so
the prompts can be driven from a pipe input in tests.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from prompt_toolkit import PromptSession
from prompt_toolkit.auto_suggest import AutoSuggest, Suggestion
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.styles import Style
from prompt_toolkit.validation import ValidationError, Validator

MAX_NAME_LENGTH = 120


class _KnownNameSuggest(AutoSuggest):
    """Inline completion of the first known name starting with the typed text."""

    def __init__(self, vocab: Sequence[str]) -> None:
        self._vocab = list(vocab)

    def get_suggestion(self, buffer, document):
        text = document.text
        if not text:
            return None
        lower = text.lower()
        for w in self._vocab:
            wl = w.lower()
            if wl == lower:
                return None
            if wl.startswith(lower):
                return Suggestion(w[len(text) :])
        return None


class _NameValidator(Validator):
    def validate(self, document) -> None:
        text = document.text.strip()
        if not text:
            return  # empty skips the row
        if len(text) > MAX_NAME_LENGTH:
            raise ValidationError(message=f"Name is longer than {MAX_NAME_LENGTH} characters.")
        if not any(ch.isalpha() for ch in text):
            raise ValidationError(message="Name must contain at least one letter.")


def _session_for(session: PromptSession | None, kb: KeyBindings) -> PromptSession:
    if session is None:
        return PromptSession(key_bindings=kb)
    return PromptSession(
        input=getattr(session, "input", None),
        output=getattr(session, "output", None),
        key_bindings=kb,
    )


def prompt_party_name(
    known_names: Iterable[str],
    *,
    default: str | None = None,
    session: PromptSession | None = None,
    message: str = "Party name (Enter to accept • clear to skip • Esc to stop): ",
) -> str | None:
    """Ask for the party name of one transaction.

    The suggested name is pre-filled; known names complete by prefix (Tab or
    arrow keys) and by substring through the completion menu. Returns the
    stripped name, ``""`` when the user cleared the input to skip the row,
    or ``None`` when the review was cancelled with Esc.
    """

    names = sorted({n.strip() for n in known_names if n and n.strip()}, key=str.lower)
    completer = WordCompleter(names, ignore_case=True, match_middle=True, sentence=True)

    auto_suggest = _KnownNameSuggest(names)
    kb = KeyBindings()

    @kb.add("escape", eager=True)
    def _(event) -> None:  # pragma: no cover - exercised indirectly
        event.app.exit(result=None)

    @kb.add("tab", eager=True)
    def _(event) -> None:  # pragma: no cover
        b = event.app.current_buffer
        s = b.suggestion or auto_suggest.get_suggestion(b, b.document)
        if s is not None and s.text:
            b.insert_text(s.text)
        elif b.complete_state is None:
            b.start_completion(select_first=True)
        else:
            b.complete_next()

    sess = _session_for(session, kb)
    result = sess.prompt(
        message,
        default=default or "",
        completer=completer,
        auto_suggest=auto_suggest,
        validator=_NameValidator(),
        validate_while_typing=False,
        style=Style.from_dict({"auto-suggestion": "fg:#888888"}),
    )
    if result is None:
        return None
    return result.strip()


__all__ = ["MAX_NAME_LENGTH", "prompt_party_name"]
