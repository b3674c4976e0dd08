"""Extract tags, mentions, links, entities, triples and cross-links from a document."""
from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from ..data.document import DocumentFormatError, parse_document
from ..data.models import Connections, CrossLink, DocumentNode, Entity, EntityRef, Triple
from ..utils.logging import get_logger

LOGGER = get_logger(__name__)


def extract_connections(document: str | bytes | Mapping[str, Any] | DocumentNode) -> Connections:
    """Walk *document* depth-first, pre-order, and collect every marker it holds.

    The input is never modified. Content that cannot be parsed yields an
    empty :class:`Connections`; markers with missing attributes are skipped.
    """
    try:
        root = parse_document(document)
    except DocumentFormatError as exc:
        LOGGER.warning("Failed to parse note content for connections: %s", exc)
        return Connections()

    connections = Connections()
    # Iterative pre-order walk; children are pushed reversed to keep document order.
    stack = list(reversed(root.content))
    while stack:
        node = stack.pop()
        _collect(node, connections)
        stack.extend(reversed(node.content))
    return connections


def _collect(node: DocumentNode, connections: Connections) -> None:
    attrs = node.attrs
    if node.type == "tag":
        tag = _text_attr(attrs, "tag")
        if tag:
            connections.tags.append(tag)
    elif node.type == "wikilink":
        target = _text_attr(attrs, "target")
        if target:
            connections.links.append(target)
    elif node.type == "entity":
        kind = _text_attr(attrs, "kind")
        label = _text_attr(attrs, "label")
        if kind and label:
            connections.entities.append(
                Entity(kind=kind, label=label, attributes=_mapping_attr(attrs, "attributes"))
            )
    elif node.type == "triple":
        subject = _entity_ref(attrs.get("subject"))
        predicate = _text_attr(attrs, "predicate")
        obj = _entity_ref(attrs.get("object"))
        if subject and predicate and obj:
            connections.triples.append(Triple(subject=subject, predicate=predicate, object=obj))
    elif node.type == "crosslink":
        note_id = _text_attr(attrs, "noteId")
        if note_id:
            connections.backlinks.append(note_id)
            connections.crosslinks.append(
                CrossLink(note_id=note_id, label=_text_attr(attrs, "label") or note_id)
            )

    for mark in node.marks:
        if mark.type == "mention":
            mention = _text_attr(mark.attrs, "id")
            if mention:
                connections.mentions.append(mention)


def _text_attr(attrs: Mapping[str, Any], name: str) -> Optional[str]:
    value = attrs.get(name)
    if isinstance(value, str) and value:
        return value
    return None


def _mapping_attr(attrs: Mapping[str, Any], name: str) -> Optional[Dict[str, Any]]:
    value = attrs.get(name)
    if isinstance(value, Mapping):
        return dict(value)
    return None


def _entity_ref(value: Any) -> Optional[EntityRef]:
    if not isinstance(value, Mapping):
        return None
    kind = _text_attr(value, "kind")
    label = _text_attr(value, "label")
    if not kind or not label:
        return None
    return EntityRef(kind=kind, label=label, attrs=_mapping_attr(value, "attrs"))
