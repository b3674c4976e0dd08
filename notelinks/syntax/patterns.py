"""Grammar of the inline marker syntax.

Six markers are recognised, most specific first::

    [Kind|Label](predicate)[Kind2|Label2]   triple
    [Kind|Label]                            entity
    #word                                   tag
    @word                                   mention
    [[Target]] / [[Target|display]]         wiki-link
    <<Target>> / <<Target|display>>         cross-link

Entity segments may carry a trailing ``|{json}`` attribute object. Each
marker has a *typed* form, which only matches when the marker is completed
by a whitespace character at the very end of the text, and a *paste* form
which matches anywhere.
"""
from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from ..utils.logging import get_logger

LOGGER = get_logger(__name__)

_NAME = r"([A-Za-z0-9_]+)"
_ENTITY = _NAME + r"\|([^\]]+?)(?:\|(\{.*?\}))?"
_ENTITY_SEGMENT = r"\[" + _ENTITY + r"\]"

TRIPLE_PATTERN = _ENTITY_SEGMENT + r"\s*\(" + _NAME + r"\)\s*" + _ENTITY_SEGMENT
ENTITY_PATTERN = _ENTITY_SEGMENT
TAG_PATTERN = r"#([a-zA-Z0-9_]+)"
MENTION_PATTERN = r"@([a-zA-Z0-9_]+)"
WIKILINK_PATTERN = r"\[\[\s*([^\]\s|][^\]|]*?)\s*(?:\|[^\]]*)?\]\]"
# The typed form stops the display segment at the first ">"; pasted text is greedy.
CROSSLINK_TYPED_PATTERN = r"<<\s*([^>\s|][^>|]*?)\s*(?:\|[^>]*?)?>>"
CROSSLINK_PASTE_PATTERN = r"<<\s*([^>\s|][^>|]*?)\s*(?:\|[^>]*)?>>"

NODE = "node"
MARK = "mark"


def parse_inline_attributes(raw: Optional[str]) -> Optional[Dict[str, Any]]:
    """Decode a ``{...}`` attribute suffix, returning ``None`` when absent or malformed."""
    if not raw:
        return None
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        LOGGER.debug("Ignoring malformed inline attributes %r", raw)
        return None
    if not isinstance(value, dict):
        LOGGER.debug("Ignoring non-object inline attributes %r", raw)
        return None
    return value


def _entity_ref(kind: str, label: str, raw_attrs: Optional[str]) -> Dict[str, Any]:
    ref: Dict[str, Any] = {"kind": kind, "label": label}
    attrs = parse_inline_attributes(raw_attrs)
    if attrs is not None:
        ref["attrs"] = attrs
    return ref


def _triple_attrs(match: re.Match) -> Dict[str, Any]:
    return {
        "subject": _entity_ref(match.group(1), match.group(2), match.group(3)),
        "predicate": match.group(4),
        "object": _entity_ref(match.group(5), match.group(6), match.group(7)),
    }


def _entity_attrs(match: re.Match) -> Dict[str, Any]:
    attrs: Dict[str, Any] = {"kind": match.group(1), "label": match.group(2)}
    attributes = parse_inline_attributes(match.group(3))
    if attributes is not None:
        attrs["attributes"] = attributes
    return attrs


def _crosslink_attrs(match: re.Match) -> Dict[str, Any]:
    # The note id is provisionally the title until the target note is resolved.
    title = match.group(1).strip()
    return {"noteId": title, "label": title}


@dataclass(frozen=True, slots=True)
class MarkerRule:
    """One marker grammar and the node or mark it produces."""

    name: str
    kind: str
    type_name: str
    typed: re.Pattern
    paste: re.Pattern
    build_attrs: Callable[[re.Match], Dict[str, Any]]


def _rule(
    name: str,
    kind: str,
    pattern: str,
    build_attrs: Callable[[re.Match], Dict[str, Any]],
    paste_pattern: Optional[str] = None,
) -> MarkerRule:
    return MarkerRule(
        name=name,
        kind=kind,
        type_name=name,
        typed=re.compile(pattern + r"\s\Z"),
        paste=re.compile(paste_pattern or pattern),
        build_attrs=build_attrs,
    )


MARKER_RULES: tuple[MarkerRule, ...] = (
    _rule("triple", NODE, TRIPLE_PATTERN, _triple_attrs),
    _rule("entity", NODE, ENTITY_PATTERN, _entity_attrs),
    _rule("tag", NODE, TAG_PATTERN, lambda match: {"tag": match.group(1)}),
    _rule("mention", MARK, MENTION_PATTERN, lambda match: {"id": match.group(1)}),
    _rule("wikilink", NODE, WIKILINK_PATTERN, lambda match: {"target": match.group(1)}),
    _rule(
        "crosslink",
        NODE,
        CROSSLINK_TYPED_PATTERN,
        _crosslink_attrs,
        paste_pattern=CROSSLINK_PASTE_PATTERN,
    ),
)
