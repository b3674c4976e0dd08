import json
from datetime import datetime, timezone

from notelinks.data.models import CrossLink, DocumentNode, Note
from notelinks.syntax.crosslinks import resolve_crosslink_targets, resolve_crosslinks_for_note


def build_note(note_id: str, title: str, text: str = "") -> Note:
    now = datetime(2024, 1, 1, tzinfo=timezone.utc)
    content = (
        '{"type":"doc","content":[{"type":"paragraph","content":'
        f'[{{"type":"text","text":"{text}"}}]}}]}}'
    )
    return Note(id=note_id, title=title, content=content, created_at=now, updated_at=now)


def test_backlinks_are_found_by_title():
    note_a = build_note("a", "Project X")
    note_b = build_note("b", "Meeting", "Discussed <<Project X>> today")

    assert resolve_crosslinks_for_note("a", [note_a, note_b]) == [CrossLink(note_id="b", label="Meeting")]
    assert resolve_crosslinks_for_note("b", [note_a, note_b]) == []


def test_note_does_not_backlink_itself():
    note_a = build_note("a", "Project X", "see <<Project X>>")
    assert resolve_crosslinks_for_note("a", [note_a]) == []


def test_renaming_the_target_breaks_the_backlink():
    note_a = build_note("a", "Project X")
    note_b = build_note("b", "Meeting", "Discussed <<Project X>> today")

    note_a.title = "Project Y"

    assert resolve_crosslinks_for_note("a", [note_a, note_b]) == []


def test_unknown_note_has_no_backlinks():
    assert resolve_crosslinks_for_note("missing", [build_note("a", "A")]) == []


def test_crosslink_targets_are_repointed_to_note_ids():
    notes = [build_note("id-1", "Project X"), build_note("id-2", "Other")]
    document = DocumentNode(
        type="doc",
        content=[
            DocumentNode(
                type="paragraph",
                content=[
                    DocumentNode(type="crosslink", attrs={"noteId": "Project X", "label": "Project X"}),
                    DocumentNode(type="crosslink", attrs={"noteId": "id-2", "label": "Other"}),
                    DocumentNode(type="crosslink", attrs={"noteId": "Nowhere", "label": "Nowhere"}),
                ],
            )
        ],
    )

    resolved = resolve_crosslink_targets(document, notes)

    links = resolved.content[0].content
    assert links[0].attrs == {"noteId": "id-1", "label": "Project X"}
    assert links[1].attrs == {"noteId": "id-2", "label": "Other"}
    assert links[2].attrs == {"noteId": "Nowhere", "label": "Nowhere"}
    assert document.content[0].content[0].attrs["noteId"] == "Project X"


def test_titles_with_json_escaped_characters_still_match():
    target = build_note("a", 'Say "hi" \\ bye')
    source = build_note("b", "Quotes")
    source.content = json.dumps(
        {
            "type": "doc",
            "content": [{"type": "paragraph", "content": [{"type": "text", "text": 'see <<Say "hi" \\ bye>>'}]}],
        }
    )

    assert resolve_crosslinks_for_note("a", [target, source]) == [CrossLink(note_id="b", label="Quotes")]
