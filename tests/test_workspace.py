import json

from notelinks.store.notes import NoteTree
from notelinks.store.persistence import JsonFileStorage
from notelinks.store.workspace import (
    ENTITY_ATTRIBUTES_STORAGE_KEY,
    NOTES_STORAGE_KEY,
    NotesWorkspace,
)


def entity_document(kind: str, label: str) -> str:
    return json.dumps(
        {
            "type": "doc",
            "content": [
                {"type": "paragraph", "content": [{"type": "entity", "attrs": {"kind": kind, "label": label}}]}
            ],
        }
    )


def test_fresh_workspace_starts_with_welcome_note():
    workspace = NotesWorkspace()
    children = workspace.get_child_items()
    assert [item.title for item in children] == ["Welcome"]
    assert workspace.tree.selected_note_id == children[0].id


def test_workspace_round_trips_through_storage(tmp_path):
    storage = JsonFileStorage(tmp_path)
    workspace = NotesWorkspace(tree=NoteTree(), storage=storage, debounce_seconds=60)
    folder_id = workspace.create_folder("People")
    note_id = workspace.create_note("Ada", parent_id=folder_id, content=entity_document("Person", "Ada"))
    workspace.set_entity_attributes("Person:Ada", {"born": 1815})
    workspace.close()

    assert storage.path_for(NOTES_STORAGE_KEY).exists()
    assert storage.path_for(ENTITY_ATTRIBUTES_STORAGE_KEY).exists()

    restored = NotesWorkspace.load(storage)
    assert [item.id for item in restored.get_child_items(folder_id)] == [note_id]
    assert restored.tree.selected_note_id == note_id
    assert restored.get_entity_attributes("Person:Ada") == {"born": 1815}
    assert restored.get_connections_for_note(note_id).entities[0].label == "Ada"


def test_attribute_override_outlives_entity_mentions(tmp_path):
    storage = JsonFileStorage(tmp_path)
    workspace = NotesWorkspace(tree=NoteTree(), storage=storage, debounce_seconds=60)
    note_id = workspace.create_note("Team", content=entity_document("Person", "Alice"))
    workspace.set_entity_attributes("Person:Alice", {"age": 30})

    workspace.update_note_content(note_id, '{"type":"doc","content":[{"type":"paragraph"}]}')

    assert workspace.get_connections_for_note(note_id).entities == []
    assert workspace.get_entity_attributes("Person:Alice") == {"age": 30}
    workspace.close()
    assert NotesWorkspace.load(storage).get_entity_attributes("Person:Alice") == {"age": 30}


def test_entities_for_note_merge_stored_overrides():
    workspace = NotesWorkspace(tree=NoteTree())
    note_id = workspace.create_note(
        "Ada",
        content=json.dumps(
            {
                "type": "doc",
                "content": [
                    {
                        "type": "entity",
                        "attrs": {"kind": "Person", "label": "Ada", "attributes": {"role": "author", "age": 1}},
                    }
                ],
            }
        ),
    )
    workspace.set_entity_attributes("Person:Ada", {"age": 36})

    assert workspace.entities_for_note(note_id) == [
        {"kind": "Person", "label": "Ada", "key": "Person:Ada", "attributes": {"role": "author", "age": 36}}
    ]


def test_backlinks_follow_current_titles():
    workspace = NotesWorkspace(tree=NoteTree())
    target_id = workspace.create_note("Project X")
    source_id = workspace.create_note(
        "Meeting",
        content='{"type":"doc","content":[{"type":"paragraph","content":[{"type":"text","text":"<<Project X>>"}]}]}',
    )

    assert [link.note_id for link in workspace.get_backlinks_for_note(target_id)] == [source_id]
    workspace.rename_item(target_id, "Project Y")
    assert workspace.get_backlinks_for_note(target_id) == []


def test_connections_for_unknown_or_folder_items_are_empty():
    workspace = NotesWorkspace(tree=NoteTree())
    folder_id = workspace.create_folder("Folder")
    assert workspace.get_connections_for_note(folder_id).is_empty()
    assert workspace.get_connections_for_note("missing").is_empty()


def test_corrupt_persisted_notes_start_fresh(tmp_path, caplog):
    storage = JsonFileStorage(tmp_path)
    storage.write(NOTES_STORAGE_KEY, {"items": 3})
    storage.write(ENTITY_ATTRIBUTES_STORAGE_KEY, ["bad"])

    with caplog.at_level("WARNING"):
        workspace = NotesWorkspace.load(storage)

    assert [note.title for note in workspace.tree.notes()] == ["Welcome"]
    assert len(workspace.attributes) == 0
    assert "Failed to load persisted notes" in caplog.text


def test_workspace_from_config_uses_storage_directory(tmp_path):
    workspace = NotesWorkspace.from_config({"storage": {"directory": str(tmp_path / "data"), "debounce_seconds": 60}})
    workspace.create_note("Saved")
    workspace.flush()
    assert (tmp_path / "data" / f"{NOTES_STORAGE_KEY}.json").exists()
