"""Per-editor connection cache fed by content-change notifications."""
from __future__ import annotations

from typing import Any, Mapping, Optional

from .data.models import Connections, DocumentNode
from .events import EventDispatcher
from .syntax.connections import extract_connections
from .utils.logging import get_logger

LOGGER = get_logger(__name__)


class ConnectionsSession:
    """Keeps the latest :class:`Connections` of the document open in one editor.

    Extraction runs synchronously inside :meth:`content_changed`; observers
    are told about the new result through a deferred, coalescing event so
    they are never called while the editor is still applying its change.
    """

    def __init__(self, dispatcher: EventDispatcher, note_id: Optional[str] = None):
        self.dispatcher = dispatcher
        self.note_id = note_id
        self._connections = Connections()

    @property
    def connections(self) -> Connections:
        return self._connections

    def open(self, note_id: Optional[str], document: str | Mapping[str, Any] | DocumentNode) -> Connections:
        """Switch to *note_id* and extract its current content."""
        self.note_id = note_id
        return self.content_changed(document)

    def content_changed(
        self,
        document: str | Mapping[str, Any] | DocumentNode,
        doc_changed: bool = True,
    ) -> Connections:
        """Recompute connections for *document* if its content changed.

        Selection-only updates (``doc_changed=False``) return the cached result.
        """
        if not doc_changed:
            return self._connections
        self._connections = extract_connections(document)
        LOGGER.debug(
            "Extracted %s tags, %s entities, %s triples for note %s",
            len(self._connections.tags),
            len(self._connections.entities),
            len(self._connections.triples),
            self.note_id,
        )
        self.dispatcher.dispatch_connections_updated(self.note_id, self._connections)
        return self._connections

    def open_crosslink(self, note_id: str) -> None:
        """Ask observers to navigate to the note a cross-link points at."""
        self.dispatcher.dispatch_navigate_to_note(note_id)
