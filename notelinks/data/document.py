"""Conversion between serialised document JSON and :class:`DocumentNode` trees."""
from __future__ import annotations

import json
from typing import Any, Dict, List, Mapping

from ..utils.logging import get_logger
from .models import DocumentNode, Mark

LOGGER = get_logger(__name__)

EMPTY_DOCUMENT = '{"type":"doc","content":[{"type":"paragraph"}]}'


class DocumentFormatError(ValueError):
    """Raised when note content cannot be read as a document tree."""


def parse_document(content: str | bytes | Mapping[str, Any] | DocumentNode) -> DocumentNode:
    """Return the document tree held by *content*.

    Accepts a JSON string, an already decoded mapping or a ready tree.
    """
    if isinstance(content, DocumentNode):
        return content
    if isinstance(content, (str, bytes)):
        try:
            content = json.loads(content)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise DocumentFormatError(f"Document content is not valid JSON: {exc}") from exc
    if not isinstance(content, Mapping):
        raise DocumentFormatError(
            f"Document root must be a JSON object, got {type(content).__name__}"
        )
    return document_from_dict(content)


def document_from_dict(payload: Mapping[str, Any]) -> DocumentNode:
    node_type = payload.get("type")
    if not isinstance(node_type, str):
        node_type = ""
    attrs = payload.get("attrs")
    text = payload.get("text")
    return DocumentNode(
        type=node_type,
        attrs=dict(attrs) if isinstance(attrs, Mapping) else {},
        marks=_marks_from_list(payload.get("marks")),
        content=_children_from_list(payload.get("content")),
        text=text if isinstance(text, str) else None,
    )


def document_to_dict(node: DocumentNode) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"type": node.type}
    if node.attrs:
        payload["attrs"] = dict(node.attrs)
    if node.text is not None:
        payload["text"] = node.text
    if node.marks:
        payload["marks"] = [
            {"type": mark.type, "attrs": dict(mark.attrs)} if mark.attrs else {"type": mark.type}
            for mark in node.marks
        ]
    if node.content:
        payload["content"] = [document_to_dict(child) for child in node.content]
    return payload


def document_to_json(node: DocumentNode) -> str:
    return json.dumps(document_to_dict(node), ensure_ascii=False, separators=(",", ":"))


def _marks_from_list(raw: Any) -> List[Mark]:
    if not isinstance(raw, list):
        return []
    marks: List[Mark] = []
    for item in raw:
        if not isinstance(item, Mapping) or not isinstance(item.get("type"), str):
            LOGGER.debug("Skipping malformed mark %r", item)
            continue
        attrs = item.get("attrs")
        marks.append(Mark(type=item["type"], attrs=dict(attrs) if isinstance(attrs, Mapping) else {}))
    return marks


def _children_from_list(raw: Any) -> List[DocumentNode]:
    if not isinstance(raw, list):
        return []
    children: List[DocumentNode] = []
    for item in raw:
        if not isinstance(item, Mapping):
            LOGGER.debug("Skipping malformed child node %r", item)
            continue
        children.append(document_from_dict(item))
    return children
