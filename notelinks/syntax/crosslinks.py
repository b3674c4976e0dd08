"""Cross-note backlink discovery and cross-link target synchronisation."""
from __future__ import annotations

import json
from typing import Dict, Iterable, List

from ..data.models import CrossLink, DocumentNode, Mark, Note
from ..utils.logging import get_logger

LOGGER = get_logger(__name__)


def crosslink_marker(title: str) -> str:
    return f"<<{title}>>"


def resolve_crosslinks_for_note(note_id: str, notes: Iterable[Note]) -> List[CrossLink]:
    """Return the other notes whose raw content contains ``<<Title>>`` for *note_id*.

    Matching is a literal substring search on the target's current title, so
    renaming the target detaches every reference written with the old title
    until the referencing notes are edited again. Content is serialised JSON,
    so the marker is also looked for in its JSON-escaped form (titles holding
    ``"`` or ``\\``).
    """
    notes_list = list(notes)
    target = next((note for note in notes_list if note.id == note_id), None)
    if target is None:
        LOGGER.debug("Cannot resolve cross-links for unknown note %s", note_id)
        return []
    marker = crosslink_marker(target.title)
    escaped = json.dumps(marker, ensure_ascii=False)[1:-1]
    return [
        CrossLink(note_id=note.id, label=note.title)
        for note in notes_list
        if note.id != target.id and (marker in note.content or escaped in note.content)
    ]


def resolve_crosslink_targets(document: DocumentNode, notes: Iterable[Note]) -> DocumentNode:
    """Return a copy of *document* whose cross-links point at real note ids.

    Cross-link nodes are created with the typed title as their provisional
    ``noteId``; any such id that matches the title of a known note is
    replaced by that note's id. The label is kept.
    """
    notes_list = list(notes)
    known_ids = {note.id for note in notes_list}
    ids_by_title: Dict[str, str] = {}
    for note in notes_list:
        ids_by_title.setdefault(note.title, note.id)
    return _relink(document, known_ids, ids_by_title)


def _relink(node: DocumentNode, known_ids: set[str], ids_by_title: Dict[str, str]) -> DocumentNode:
    attrs = dict(node.attrs)
    if node.type == "crosslink":
        current = attrs.get("noteId")
        if isinstance(current, str) and current not in known_ids and current in ids_by_title:
            attrs["noteId"] = ids_by_title[current]
            attrs.setdefault("label", current)
    return DocumentNode(
        type=node.type,
        attrs=attrs,
        marks=[Mark(mark.type, dict(mark.attrs)) for mark in node.marks],
        content=[_relink(child, known_ids, ids_by_title) for child in node.content],
        text=node.text,
    )
