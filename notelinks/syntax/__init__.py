"""Marker syntax recognition and connection extraction."""

from .connections import extract_connections
from .crosslinks import resolve_crosslink_targets, resolve_crosslinks_for_note
from .recognizer import (
	DEFAULT_SCHEMA,
	InputRuleResult,
	MarkerSchema,
	apply_input_rules,
	apply_paste_rules,
	recognize_document,
	text_to_document,
)

__all__ = [
	"DEFAULT_SCHEMA",
	"InputRuleResult",
	"MarkerSchema",
	"apply_input_rules",
	"apply_paste_rules",
	"extract_connections",
	"recognize_document",
	"resolve_crosslink_targets",
	"resolve_crosslinks_for_note",
	"text_to_document",
]
