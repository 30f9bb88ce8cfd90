"""Pure predicates used by editor hosts around the index."""

from __future__ import annotations

import re

_DIVERT_ARROW_RE = re.compile(r"(->|<-) ?$")
_TUNNEL_RETURN_RE = re.compile(r"-> ?-> ?$")
_NAME_BEFORE_CURSOR_RE = re.compile(r"->\s*([A-Za-z0-9_.]*)$")
_NAME_AFTER_CURSOR_RE = re.compile(r"^([A-Za-z0-9_.]*)")
_REPARSE_TRIGGER_RE = re.compile(r"[\n*+()\-=]")


def is_divert_trigger(text_before_cursor: str) -> bool:
    """Return True when the cursor sits right after a divert or thread arrow.

    Only the arrow nearest the cursor counts, so ``<-->`` and ``-><-`` trigger.
    A tunnel return (``->->``) is not a fresh divert and never triggers.
    """
    if _DIVERT_ARROW_RE.search(text_before_cursor) is None:
        return False
    return _TUNNEL_RETURN_RE.search(text_before_cursor) is None


def divert_name_at(line_text: str, column: int) -> str | None:
    """Return the divert target name under the cursor, or None when not on a divert.

    For dotted targets such as ``-> knot.stitch`` the first segment is returned.
    """
    if column < 0 or column > len(line_text):
        return None
    before = _NAME_BEFORE_CURSOR_RE.search(line_text[:column])
    if before is None:
        return None
    after = _NAME_AFTER_CURSOR_RE.match(line_text[column:])
    dotted = before.group(1) + (after.group(1) if after is not None else "")
    head = dotted.split(".", 1)[0]
    return head or None


def edit_warrants_reparse(*inserted_texts: str) -> bool:
    """Return True when any inserted text could change file structure.

    Only inserted text is inspected: deleting a header character (for
    example the ``=`` of a stitch header) is not detected, so a host relying
    on this filter alone can keep a stale structure until the next
    qualifying edit.
    """
    return any(_REPARSE_TRIGGER_RE.search(text) is not None for text in inserted_texts)
