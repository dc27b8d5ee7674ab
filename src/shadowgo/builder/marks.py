"""Import marks.

A mark is a sigil that replaces the first character of an import path in
generated output, selecting which variant of the package gets imported:

  _ : mock
  + : normal (no mark actually applied)
  @ : test
  = : replace
"""

from __future__ import annotations

from enum import Enum

MOCK_PREFIX = "_mock_/"


class Mark(str, Enum):
    NONE = ""
    NORMAL = "+"
    MOCK = "_"
    TEST = "@"
    REPLACE = "="


_SIGILS = {Mark.MOCK.value: Mark.MOCK, Mark.TEST.value: Mark.TEST, Mark.REPLACE.value: Mark.REPLACE}

_COMMENT_MARKS = {"mock": Mark.MOCK, "test": Mark.TEST, "replace": Mark.REPLACE}


def mark_import(name: str, m: Mark) -> str:
    if m in (Mark.NONE, Mark.NORMAL):
        return name
    return m.value + name[1:]


def get_mark(label: str) -> Mark:
    if not label:
        return Mark.NORMAL
    return _SIGILS.get(label[0], Mark.NORMAL)


def mark_for(path: str, comment: str | None = None) -> tuple[Mark, str]:
    """Work out the mark of an import and the path with any reserved prefix removed."""
    if path == "C":
        return Mark.NONE, path
    if comment:
        m = _COMMENT_MARKS.get(comment.strip().lower())
        if m is not None:
            return m, path
    if path.startswith(MOCK_PREFIX):
        return Mark.MOCK, path[len(MOCK_PREFIX) :]
    if path.startswith("_/"):
        # Directory outside of GOPATH, not a mark.
        return Mark.NORMAL, path
    return get_mark(path), path


def is_marked(path: str) -> bool:
    return bool(path) and path[0] in _SIGILS
