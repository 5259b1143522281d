"""Reconcile rendered markdown with the original text.

The renderer normalizes things Obsidian leaves alone (escaped pipes, the
frontmatter block, bullet spacing). Two diff passes, first over words and
then over characters, walk the changes between the original and the
candidate text and decide per changed token, from a fixed rule table,
whether to keep the original's spelling or the candidate's.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterator, Sequence

from diff_match_patch import diff_match_patch

logger = logging.getLogger(__name__)


class ChangeKind(str, Enum):
    EQUAL = "equal"
    DELETE = "delete"
    INSERT = "insert"


@dataclass(frozen=True)
class Change:
    kind: ChangeKind
    value: str


# ---------------------------------------------------------------------------
# Rule table
# ---------------------------------------------------------------------------

Action = Callable[[str], str]


def keep(value: str) -> str:
    return value


def drop(value: str) -> str:
    return ""


def strip_backslashes(value: str) -> str:
    return value.replace("\\", "")


def single_newline(value: str) -> str:
    return "\n"


def newline_before(value: str) -> str:
    return "\n" + value.strip()


def trailing_space(value: str) -> str:
    return value.strip() + " "


@dataclass(frozen=True)
class PatchRule:
    """Applies *action* to a changed token of *kind* when *matches* its trimmed text.

    *matches* receives the trimmed and the raw token.
    """

    kind: ChangeKind
    matches: Callable[[str, str], bool]
    action: Action
    name: str = ""


def _one_of(*choices: str) -> Callable[[str, str], bool]:
    return lambda trimmed, raw: trimmed in choices


def _anything(trimmed: str, raw: str) -> bool:
    return True


def _blank_with_newline(trimmed: str, raw: str) -> bool:
    return trimmed == "" and "\n" in raw


WORD_PASS_RULES: tuple[PatchRule, ...] = (
    PatchRule(ChangeKind.DELETE, _one_of("\\", "_"), keep, "restore escape"),
    PatchRule(ChangeKind.DELETE, _one_of("---"), newline_before, "restore frontmatter close"),
    PatchRule(ChangeKind.DELETE, _anything, drop),
    PatchRule(ChangeKind.INSERT, _one_of("- \\", "\\|"), strip_backslashes, "unescape"),
    PatchRule(ChangeKind.INSERT, _blank_with_newline, single_newline, "collapse blank lines"),
    PatchRule(ChangeKind.INSERT, _one_of("\\", "", "##"), drop, "frontmatter heading"),
    PatchRule(ChangeKind.INSERT, _anything, keep),
)

CHAR_PASS_RULES: tuple[PatchRule, ...] = (
    PatchRule(ChangeKind.DELETE, _one_of("\\", "_"), keep, "restore escape"),
    PatchRule(ChangeKind.DELETE, _anything, drop),
    PatchRule(ChangeKind.INSERT, _one_of("-"), trailing_space, "bullet spacing"),
    PatchRule(ChangeKind.INSERT, _one_of("\\", "", "*", ">"), drop),
    PatchRule(ChangeKind.INSERT, _anything, keep),
)


def apply_rules(rules: Sequence[PatchRule], change: Change) -> str:
    """Text that *change* contributes to the patched output."""
    if change.kind is ChangeKind.EQUAL:
        return change.value
    trimmed = change.value.strip()
    for rule in rules:
        if rule.kind is change.kind and rule.matches(trimmed, change.value):
            return rule.action(change.value)
    return change.value


# ---------------------------------------------------------------------------
# Diffing
# ---------------------------------------------------------------------------

_WORD_RE = re.compile(r"\s+|\S+")


def split_words(text: str) -> list[str]:
    """Runs of whitespace and runs of non-whitespace, in order."""
    return _WORD_RE.findall(text)


def _differ() -> diff_match_patch:
    differ = diff_match_patch()
    # no deadline, so the diff is always a minimal one
    differ.Diff_Timeout = 0
    return differ


_DIFFER = _differ()

_OPS = {
    diff_match_patch.DIFF_EQUAL: ChangeKind.EQUAL,
    diff_match_patch.DIFF_DELETE: ChangeKind.DELETE,
    diff_match_patch.DIFF_INSERT: ChangeKind.INSERT,
}


def iter_changes(old: Sequence[str], new: Sequence[str]) -> Iterator[Change]:
    """Token-level changes turning *old* into *new*.

    Every distinct token is mapped to one character and the two strings are
    diffed with Myers' O(ND) algorithm. A replaced range is reported as its
    deletions followed by its insertions.
    """
    codes: dict[str, str] = {}
    tokens: list[str] = []

    def encode(sequence: Sequence[str]) -> str:
        encoded = []
        for token in sequence:
            code = codes.get(token)
            if code is None:
                code = codes[token] = chr(len(tokens))
                tokens.append(token)
            encoded.append(code)
        return "".join(encoded)

    old_text, new_text = encode(old), encode(new)
    for op, chunk in _DIFFER.diff_main(old_text, new_text, False):
        kind = _OPS[op]
        for code in chunk:
            yield Change(kind, tokens[ord(code)])


def patch_pass(original: str, candidate: str, tokenize: Callable[[str], Sequence[str]], rules: Sequence[PatchRule]) -> str:
    return "".join(
        apply_rules(rules, change) for change in iter_changes(tokenize(original), tokenize(candidate))
    )


def patch_for_obsidian(original: str, rendered: str) -> str:
    """Bring *rendered* back in line with the way Obsidian wrote *original*."""
    words = patch_pass(original, rendered, split_words, WORD_PASS_RULES)
    patched = patch_pass(original, words, list, CHAR_PASS_RULES)
    logger.debug("Patched %d rendered characters into %d", len(rendered), len(patched))
    return patched
