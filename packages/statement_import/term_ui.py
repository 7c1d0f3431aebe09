"""Terminal prompts for the interactive review (prompt_toolkit-based).

Kept apart from the review logic so the prompts can be tested with pipe input.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from prompt_toolkit import PromptSession
from prompt_toolkit.auto_suggest import AutoSuggest, Suggestion
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.validation import ValidationError, Validator

from .categories import normalize_name, validate_name
from .models import TransactionType


class CreateCategoryRequest:
    """Returned when the reviewer typed a category that does not exist yet."""

    __slots__ = ("name",)

    def __init__(self, name: str) -> None:
        self.name = name

    def __eq__(self, other: object) -> bool:
        return isinstance(other, CreateCategoryRequest) and other.name == self.name

    def __repr__(self) -> str:  # pragma: no cover - trivial repr
        return f"CreateCategoryRequest(name={self.name!r})"


def _best_prefix_match(words: Sequence[str], text: str) -> str | None:
    """First word extending ``text`` (case-insensitive); None once ``text`` is complete."""

    if not text:
        return None
    lower = text.lower()
    if any(w.lower() == lower for w in words):
        return None
    for w in words:
        if w.lower().startswith(lower):
            return w
    return None


class _PrefixSuggest(AutoSuggest):
    def __init__(self, vocab: Sequence[str]) -> None:
        self._vocab = list(vocab)

    def get_suggestion(self, buffer, document):
        match = _best_prefix_match(self._vocab, document.text)
        if match is None:
            return None
        return Suggestion(match[len(document.text) :])


def _key_bindings(words: Sequence[str]) -> KeyBindings:
    kb = KeyBindings()

    @kb.add("tab", eager=True)
    def _(event) -> None:  # pragma: no cover - integration path
        b = event.app.current_buffer
        cand = _best_prefix_match(words, b.document.text)
        if cand:
            # Completes synchronously so piped keystrokes see the result.
            b.insert_text(cand[len(b.document.text) :])
        elif b.complete_state is None:
            b.start_completion(select_first=True)
        else:
            b.complete_next()

    @kb.add("enter", eager=True)
    def _(event) -> None:  # pragma: no cover
        b = event.app.current_buffer
        cs = b.complete_state
        if cs is not None and cs.current_completion is not None:
            b.apply_completion(cs.current_completion)
        b.validate_and_handle()

    return kb


class _CategoryValidator(Validator):
    def __init__(self, known: dict[str, str], allow_create: bool) -> None:
        self._known = known
        self._allow_create = allow_create

    def validate(self, document) -> None:
        text = normalize_name(document.text)
        if not text or text.lower() in self._known:
            return
        if not self._allow_create:
            raise ValidationError(message="Pick one of the listed categories")
        check = validate_name(text)
        if not check.ok:
            raise ValidationError(message=check.reason or "Invalid name")


def select_category(
    categories: Iterable[str],
    *,
    default: str = "",
    message: str = "Category (Enter to accept): ",
    session: PromptSession | None = None,
    allow_create: bool = True,
) -> str | CreateCategoryRequest:
    """Prompt for a category with completion over ``categories``.

    Empty input accepts ``default``. A known name is returned in its stored
    spelling (matching is case-insensitive); an unknown but valid name comes
    back as :class:`CreateCategoryRequest` when ``allow_create`` is true.
    """

    words = list(categories)
    known = {w.lower(): w for w in words}

    sess = session or PromptSession()
    raw = sess.prompt(
        message,
        default=default,
        completer=WordCompleter(words, ignore_case=True, match_middle=True),
        auto_suggest=_PrefixSuggest(words),
        validator=_CategoryValidator(known, allow_create),
        validate_while_typing=False,
        key_bindings=_key_bindings(words),
    )
    text = normalize_name(raw)
    if not text:
        return default
    if text.lower() in known:
        return known[text.lower()]
    return CreateCategoryRequest(text)


_TYPES: tuple[str, ...] = ("expense", "income")


class _TypeValidator(Validator):
    def validate(self, document) -> None:
        text = document.text.strip().lower()
        if text and text not in _TYPES:
            raise ValidationError(message="Type must be income or expense")


def select_type(
    *,
    default: TransactionType = "expense",
    message: str = "Type (income/expense): ",
    session: PromptSession | None = None,
) -> TransactionType:
    """Prompt for ``income`` or ``expense``; empty input accepts ``default``."""

    sess = session or PromptSession()
    raw = sess.prompt(
        message,
        default=default,
        completer=WordCompleter(list(_TYPES), ignore_case=True),
        auto_suggest=_PrefixSuggest(_TYPES),
        validator=_TypeValidator(),
        validate_while_typing=False,
        key_bindings=_key_bindings(_TYPES),
    )
    text = raw.strip().lower()
    if not text:
        return default
    return "income" if text == "income" else "expense"


__all__ = ["CreateCategoryRequest", "select_category", "select_type"]
