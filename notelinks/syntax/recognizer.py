"""Turn typed or pasted marker syntax into structured document nodes and marks."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List, Optional

from ..data.models import DocumentNode, Mark
from ..utils.logging import get_logger
from .patterns import MARK, MARKER_RULES, NODE, MarkerRule

LOGGER = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class MarkerSchema:
    """The node and mark types a host document supports."""

    nodes: frozenset[str] = field(
        default_factory=lambda: frozenset({"triple", "entity", "tag", "wikilink", "crosslink"})
    )
    marks: frozenset[str] = field(default_factory=lambda: frozenset({"mention"}))

    def supports(self, rule: MarkerRule) -> bool:
        if rule.kind == NODE:
            return rule.type_name in self.nodes
        if rule.kind == MARK:
            return rule.type_name in self.marks
        return False


DEFAULT_SCHEMA = MarkerSchema()


@dataclass(slots=True)
class InputRuleResult:
    """Outcome of a live-typing match: ``text[start:end]`` is replaced by ``replacement``."""

    rule: str
    start: int
    end: int
    replacement: List[DocumentNode]

    def inline_content(self, text: str) -> List[DocumentNode]:
        """Return the inline content of *text* after the replacement is applied."""
        content: List[DocumentNode] = []
        if self.start > 0:
            content.append(text_node(text[: self.start]))
        content.extend(self.replacement)
        if self.end < len(text):
            content.append(text_node(text[self.end :]))
        return content


def text_node(text: str, marks: Optional[List[Mark]] = None) -> DocumentNode:
    return DocumentNode(type="text", text=text, marks=list(marks or []))


def apply_input_rules(text: str, schema: MarkerSchema = DEFAULT_SCHEMA) -> Optional[InputRuleResult]:
    """Match the marker completed at the end of *text* by a whitespace character.

    Rules are tried most specific first. A rule whose node or mark type is
    missing from *schema* is skipped, so *text* is left untouched when no
    supported rule applies. The trailing whitespace is consumed.
    """
    for rule in MARKER_RULES:
        if not schema.supports(rule):
            continue
        match = rule.typed.search(text)
        if match is None:
            continue
        attrs = rule.build_attrs(match)
        if rule.kind == MARK:
            # The marked text stays in place; only the delimiter is dropped.
            replacement = [text_node(match.group(0)[:-1], [Mark(rule.type_name, attrs)])]
        else:
            replacement = [DocumentNode(type=rule.type_name, attrs=attrs)]
        LOGGER.debug("Input rule %s matched %r", rule.name, match.group(0))
        return InputRuleResult(
            rule=rule.name,
            start=match.start(),
            end=match.end(),
            replacement=replacement,
        )
    return None


def apply_paste_rules(text: str, schema: MarkerSchema = DEFAULT_SCHEMA) -> List[DocumentNode]:
    """Convert every marker occurrence in pasted *text* into inline content.

    Each rule runs over the whole inline content before the next one. Node
    rules replace the matched text, so earlier node rules claim their spans
    first. Mark rules only annotate text; later rules still match across it.
    """
    if not text:
        return []
    return _apply_paste_rules_inline([text_node(text)], schema)


def recognize_document(document: DocumentNode, schema: MarkerSchema = DEFAULT_SCHEMA) -> DocumentNode:
    """Return a copy of *document* with paste rules applied to its text."""
    content = [
        text_node(child.text or "", [Mark(mark.type, dict(mark.attrs)) for mark in child.marks])
        if child.type == "text"
        else recognize_document(child, schema)
        for child in document.content
    ]
    if any(child.type == "text" for child in content):
        content = _apply_paste_rules_inline(content, schema)
    return DocumentNode(
        type=document.type,
        attrs=dict(document.attrs),
        marks=[Mark(mark.type, dict(mark.attrs)) for mark in document.marks],
        content=content,
        text=document.text,
    )


def text_to_document(text: str, schema: MarkerSchema = DEFAULT_SCHEMA) -> DocumentNode:
    """Build a ``doc`` with one paragraph per line of *text*, markers recognised."""
    paragraphs = [
        DocumentNode(type="paragraph", content=apply_paste_rules(line, schema))
        for line in text.splitlines()
    ]
    return DocumentNode(type="doc", content=paragraphs or [DocumentNode(type="paragraph")])


def _apply_paste_rules_inline(inline: List[DocumentNode], schema: MarkerSchema) -> List[DocumentNode]:
    for rule in MARKER_RULES:
        if not schema.supports(rule):
            continue
        inline = _apply_rule(rule, inline)
    return inline


def _apply_rule(rule: MarkerRule, inline: List[DocumentNode]) -> List[DocumentNode]:
    # Consecutive text nodes form one run, whatever their marks; other nodes split runs.
    result: List[DocumentNode] = []
    run: List[DocumentNode] = []
    for node in inline:
        if node.type == "text":
            run.append(node)
            continue
        result.extend(_apply_rule_to_run(rule, run))
        run = []
        result.append(node)
    result.extend(_apply_rule_to_run(rule, run))
    return result


def _apply_rule_to_run(rule: MarkerRule, run: List[DocumentNode]) -> List[DocumentNode]:
    text = "".join(node.text or "" for node in run)
    matches = [match for match in rule.paste.finditer(text) if match.end() > match.start()]
    if not matches:
        return run
    pieces: List[DocumentNode] = []
    cursor = 0
    for match in matches:
        pieces.extend(_slice_run(run, cursor, match.start()))
        attrs = rule.build_attrs(match)
        if rule.kind == MARK:
            mark = Mark(rule.type_name, attrs)
            pieces.extend(
                text_node(piece.text or "", [*(m for m in piece.marks if m.type != mark.type), mark])
                for piece in _slice_run(run, match.start(), match.end())
            )
        else:
            pieces.append(DocumentNode(type=rule.type_name, attrs=attrs))
        cursor = match.end()
    pieces.extend(_slice_run(run, cursor, len(text)))
    return _merge_text(pieces)


def _slice_run(run: List[DocumentNode], start: int, end: int) -> Iterator[DocumentNode]:
    """Yield text nodes covering characters ``[start, end)`` of *run*, marks kept."""
    offset = 0
    for node in run:
        text = node.text or ""
        low = max(start, offset)
        high = min(end, offset + len(text))
        if low < high:
            yield text_node(text[low - offset : high - offset], node.marks)
        offset += len(text)


def _merge_text(pieces: List[DocumentNode]) -> List[DocumentNode]:
    merged: List[DocumentNode] = []
    for node in pieces:
        previous = merged[-1] if merged else None
        if previous is not None and previous.type == "text" and node.type == "text" and previous.marks == node.marks:
            merged[-1] = text_node((previous.text or "") + (node.text or ""), previous.marks)
        else:
            merged.append(node)
    return merged
