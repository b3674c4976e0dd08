import pytest

from notelinks.data.models import Entity
from notelinks.store.attribute_types import (
    AttributeType,
    coerce_attribute_value,
    default_value,
    format_attribute_value,
    infer_attribute_type,
)
from notelinks.store.attributes import (
    EntityAttributeStore,
    entity_key,
    group_entities_by_kind,
    merge_entity_attributes,
)


def test_entity_key_joins_kind_and_label():
    assert entity_key("Person", "Alice") == "Person:Alice"
    assert Entity(kind="Person", label="Alice").key == "Person:Alice"


def test_store_returns_copies_and_replaces_on_set():
    store = EntityAttributeStore()
    store.set("Person:Alice", {"age": 30, "tags": ["a"]})

    fetched = store.get("Person:Alice")
    fetched["tags"].append("b")
    assert store.get("Person:Alice") == {"age": 30, "tags": ["a"]}

    store.set("Person:Alice", {"city": "Paris"})
    assert store.get("Person:Alice") == {"city": "Paris"}
    assert store.get("Person:Bob") == {}
    assert "Person:Alice" in store
    assert len(store) == 1


def test_store_rejects_non_mapping_attributes():
    with pytest.raises(ValueError):
        EntityAttributeStore().set("Person:Alice", ["age", 30])


def test_store_from_dict_skips_malformed_entries(caplog):
    with caplog.at_level("WARNING"):
        store = EntityAttributeStore.from_dict({"Person:Alice": {"age": 30}, "Person:Bob": "oops"})
    assert store.keys() == ["Person:Alice"]
    assert "Skipped 1 malformed" in caplog.text
    assert len(EntityAttributeStore.from_dict(["not", "a", "mapping"])) == 0


def test_stored_overrides_win_over_declared_attributes():
    store = EntityAttributeStore({"Person:Ada": {"age": 36}})
    entity = Entity(kind="Person", label="Ada", attributes={"role": "author", "age": 1})
    assert merge_entity_attributes(entity, store) == {"role": "author", "age": 36}
    assert merge_entity_attributes(Entity(kind="Person", label="Bob"), store) == {}


def test_group_entities_by_kind_filters_on_kind_or_label():
    entities = [
        Entity(kind="Person", label="Ada"),
        Entity(kind="Place", label="London"),
        Entity(kind="Person", label="Charles"),
    ]

    groups = group_entities_by_kind(entities)
    assert list(groups) == ["Person", "Place"]
    assert [entity.label for entity in groups["Person"]] == ["Ada", "Charles"]

    assert group_entities_by_kind(entities, "ADA") == {"Person": [entities[0]]}
    assert group_entities_by_kind(entities, "place") == {"Place": [entities[1]]}


@pytest.mark.parametrize(
    "value, expected",
    [
        (True, AttributeType.BOOLEAN),
        (3, AttributeType.NUMBER),
        (2.5, AttributeType.NUMBER),
        (["a"], AttributeType.LIST),
        ("text", AttributeType.TEXT),
    ],
)
def test_infer_attribute_type(value, expected):
    assert infer_attribute_type(value) is expected


@pytest.mark.parametrize(
    "attribute_type, raw, expected",
    [
        ("Number", "4.0", 4),
        ("Number", "2.5", 2.5),
        ("Number", "abc", 0),
        ("Boolean", "yes", True),
        ("Boolean", "no", False),
        ("List", "a, b,,c", ["a", "b", "c"]),
        ("Date", "2024-01-02", "2024-01-02T00:00:00+00:00"),
        ("Date", "not a date", ""),
        ("URL", "https://example.org", "https://example.org"),
        ("Text", None, ""),
    ],
)
def test_coerce_attribute_value(attribute_type, raw, expected):
    assert coerce_attribute_value(attribute_type, raw) == expected


def test_default_and_formatted_values():
    assert default_value("Number") == 0
    assert default_value(AttributeType.LIST) == []
    assert default_value("URL") == ""
    assert format_attribute_value(True) == "true"
    assert format_attribute_value(["a", "b"]) == "a, b"
    assert format_attribute_value("2024-01-02T10:00:00+00:00", "Date") == "2024-01-02"


def test_unknown_attribute_type_is_rejected():
    with pytest.raises(ValueError):
        coerce_attribute_value("Colour", "red")
