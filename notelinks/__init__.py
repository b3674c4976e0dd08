"""Connection extraction for notes written with inline marker syntax."""

from .data.models import Connections, CrossLink, DocumentNode, Entity, EntityRef, Mark, Triple
from .store.attributes import EntityAttributeStore, entity_key
from .syntax import extract_connections, resolve_crosslinks_for_note

__version__ = "0.1.0"

__all__ = [
	"Connections",
	"CrossLink",
	"DocumentNode",
	"Entity",
	"EntityAttributeStore",
	"EntityRef",
	"Mark",
	"Triple",
	"entity_key",
	"extract_connections",
	"resolve_crosslinks_for_note",
]
