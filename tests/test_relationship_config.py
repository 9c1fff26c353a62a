from __future__ import annotations

import dataclasses

import pytest

from storage.relationship_config import (
    SERVICE_CATEGORY_CONFIG,
    TAG_CONFIG,
    AtomicProcedure,
    RelationshipConfig,
    clean_item_name,
    is_valid_item_name,
)


def _config(**overrides) -> RelationshipConfig:
    values = dict(
        items_table="post_tags",
        relations_table="posts_tags_rel",
        item_id_column="tag_id",
        item_name_column="tag_name",
        entity_id_column="post_id",
        foreign_table_alias="post_tags",
        cache_key="all_tags",
        most_used_cache_key="mostUsedTags",
    )
    values.update(overrides)
    return RelationshipConfig(**values)


def test_configured_relationships_match_schema() -> None:
    assert TAG_CONFIG.items_table == "post_tags"
    assert TAG_CONFIG.relations_table == "posts_tags_rel"
    assert TAG_CONFIG.cache_key == "all_tags"
    assert SERVICE_CATEGORY_CONFIG.item_name_column == "category_name"
    assert SERVICE_CATEGORY_CONFIG.entity_id_column == "service_id"
    assert TAG_CONFIG.cache_key != SERVICE_CATEGORY_CONFIG.cache_key


@pytest.mark.parametrize(
    "field, value",
    [
        ("items_table", "post_tags; DROP TABLE users"),
        ("relations_table", "posts tags"),
        ("item_id_column", "1tag_id"),
        ("item_name_column", ""),
        ("foreign_table_alias", "post_tags--"),
    ],
)
def test_rejects_non_identifier_names(field: str, value: str) -> None:
    with pytest.raises(ValueError):
        _config(**{field: value})


def test_cache_keys_must_be_distinct_and_present() -> None:
    with pytest.raises(ValueError):
        _config(most_used_cache_key="all_tags")
    with pytest.raises(ValueError):
        _config(cache_key="")


def test_config_is_immutable() -> None:
    with pytest.raises(dataclasses.FrozenInstanceError):
        TAG_CONFIG.items_table = "other"  # type: ignore[misc]


def test_normalize_follows_case_knob() -> None:
    assert TAG_CONFIG.normalize("Go") == "Go"
    assert dataclasses.replace(TAG_CONFIG, case_sensitive=False).normalize("Go") == "go"


def test_atomic_procedure_validates_identifiers() -> None:
    AtomicProcedure(name="update_post_tags", entity_id_param="post_id_param", item_names_param="tag_names")
    with pytest.raises(ValueError):
        AtomicProcedure(name="update_post_tags()", entity_id_param="p", item_names_param="n")


@pytest.mark.parametrize(
    "raw, cleaned",
    [
        ("Web", "web"),
        ("  Web   Design ", "web-design"),
        ("cli\ttools", "cli-tools"),
        ("already-clean", "already-clean"),
    ],
)
def test_clean_item_name(raw: str, cleaned: str) -> None:
    assert clean_item_name(raw) == cleaned


@pytest.mark.parametrize(
    "name, valid",
    [
        ("go", True),
        ("a" * 50, True),
        ("a" * 51, False),
        ("", False),
        ("   ", False),
        (None, False),
    ],
)
def test_is_valid_item_name(name, valid: bool) -> None:
    assert is_valid_item_name(name) is valid
