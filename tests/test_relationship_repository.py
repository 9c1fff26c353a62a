from __future__ import annotations

import dataclasses
import json
from typing import Dict
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from storage.models import Post, PostTag, PostTagRel
from storage.relationship_config import TAG_CONFIG, TAG_SYNC_PROCEDURE
from storage.repositories.relationship_repository import (
    RelationshipRepository,
    compute_sync_plan,
)
from tests.helpers import make_post, writes_to


async def _linked(session: AsyncSession, post_id: int) -> Dict[str, int]:
    """Map each tag linked to ``post_id`` to the id of its association row."""

    rows = await session.execute(
        select(PostTag.tag_name, PostTagRel.id)
        .join(PostTagRel, PostTagRel.tag_id == PostTag.id)
        .where(PostTagRel.post_id == post_id)
    )
    return {name: rel_id for name, rel_id in rows.all()}


async def _tag_names(session: AsyncSession) -> list:
    result = await session.execute(select(PostTag.tag_name).order_by(PostTag.tag_name))
    return list(result.scalars().all())


async def _create_trigger(engine: AsyncEngine, ddl: str) -> None:
    """Install a trigger that makes the database itself reject a write."""

    async with engine.begin() as conn:
        await conn.exec_driver_sql(ddl)


def _mock_session(dialect: str) -> MagicMock:
    session = MagicMock()
    session.get_bind.return_value.dialect.name = dialect
    session.execute = AsyncMock()
    return session


# ========== reads ==========


@pytest.mark.asyncio
async def test_list_items_for_entity_returns_joined_names(session) -> None:
    post = await make_post(session)
    repo = RelationshipRepository(session, TAG_CONFIG)
    await repo.ensure_items_exist(["go", "rust"])
    await repo.link_items_to_entity(post.id, ["go", "rust"])

    rows = await repo.list_items_for_entity(post.id)

    assert sorted(row["item_name"] for row in rows) == ["go", "rust"]
    assert all(isinstance(row["item_id"], int) for row in rows)
    assert await repo.list_items_for_entity(post.id + 1) == []


@pytest.mark.asyncio
async def test_list_all_item_names_is_sorted_and_cached(session, cache) -> None:
    repo = RelationshipRepository(session, TAG_CONFIG, cache=cache)
    await repo.ensure_items_exist(["rust", "go"])

    assert await repo.list_all_item_names() == ["go", "rust"]

    await repo.ensure_items_exist(["zig"])
    assert await repo.list_all_item_names() == ["go", "rust"]

    cache.invalidate(TAG_CONFIG.cache_key)
    assert await repo.list_all_item_names() == ["go", "rust", "zig"]


@pytest.mark.asyncio
async def test_list_all_item_names_refreshes_after_ttl(session, cache, clock) -> None:
    repo = RelationshipRepository(session, TAG_CONFIG, cache=cache, cache_ttl=60)
    await repo.ensure_items_exist(["go"])
    assert await repo.list_all_item_names() == ["go"]

    await repo.ensure_items_exist(["rust"])
    clock.advance(61)

    assert await repo.list_all_item_names() == ["go", "rust"]


@pytest.mark.asyncio
async def test_store_errors_become_empty_lists_and_are_not_cached(cache) -> None:
    session = MagicMock()
    session.execute = AsyncMock(side_effect=SQLAlchemyError("store down"))
    repo = RelationshipRepository(session, TAG_CONFIG, cache=cache)

    assert await repo.list_all_item_names() == []
    assert await repo.get_most_used_items() == []
    assert TAG_CONFIG.cache_key not in cache
    assert TAG_CONFIG.most_used_cache_key not in cache


@pytest.mark.asyncio
async def test_most_used_items_ranks_by_usage(session, cache) -> None:
    first = await make_post(session, title="one")
    second = await make_post(session, title="two")
    repo = RelationshipRepository(session, TAG_CONFIG, cache=cache)
    await repo.sync_entity_items(first.id, ["go", "rust"])
    await repo.sync_entity_items(second.id, ["go"])

    assert await repo.get_most_used_items(limit=2) == ["go", "rust"]
    assert await repo.get_most_used_items(limit=1) == ["go"]
    assert cache.get_entry(TAG_CONFIG.most_used_cache_key).value == ["go", "rust"]


# ========== ensure / link / unlink ==========


@pytest.mark.asyncio
async def test_ensure_items_exist_reports_per_item_outcomes(session) -> None:
    repo = RelationshipRepository(session, TAG_CONFIG)

    outcomes = await repo.ensure_items_exist(["go", "rust"])
    assert [(o.name, o.created, o.error) for o in outcomes] == [("go", True, None), ("rust", True, None)]

    again = await repo.ensure_items_exist(["go", "zig"])
    assert [(o.name, o.created) for o in again] == [("go", False), ("zig", True)]
    assert await _tag_names(session) == ["go", "rust", "zig"]


@pytest.mark.asyncio
async def test_ensure_items_exist_continues_after_single_failure(engine, session, statements) -> None:
    await _create_trigger(
        engine,
        "CREATE TRIGGER reject_bad_tag BEFORE INSERT ON post_tags "
        "WHEN NEW.tag_name = 'bad' BEGIN SELECT RAISE(ABORT, 'tag rejected'); END",
    )
    repo = RelationshipRepository(session, TAG_CONFIG)

    outcomes = await repo.ensure_items_exist(["go", "bad", "rust"])

    assert [o.name for o in outcomes] == ["go", "bad", "rust"]
    assert isinstance(outcomes[1].error, SQLAlchemyError)
    assert outcomes[0].created and outcomes[2].created
    assert outcomes[0].error is None and outcomes[2].error is None
    assert await _tag_names(session) == ["go", "rust"]
    # only the failed insert was rolled back
    assert sum(s.startswith("ROLLBACK TO SAVEPOINT") for s in statements) == 1


@pytest.mark.asyncio
async def test_exact_match_uniqueness_keeps_case_variants(session) -> None:
    repo = RelationshipRepository(session, TAG_CONFIG)

    outcomes = await repo.ensure_items_exist(["Go", "go"])

    assert [o.created for o in outcomes] == [True, True]
    assert await _tag_names(session) == ["Go", "go"]


@pytest.mark.asyncio
async def test_case_insensitive_config_folds_names(session) -> None:
    repo = RelationshipRepository(session, dataclasses.replace(TAG_CONFIG, case_sensitive=False))
    post = await make_post(session)

    outcomes = await repo.ensure_items_exist(["Go", "go", "GO"])
    await repo.sync_entity_items(post.id, ["Rust", "rust"])

    assert [(o.name, o.created) for o in outcomes] == [("go", True)]
    assert await _tag_names(session) == ["go", "rust"]
    assert set(await _linked(session, post.id)) == {"rust"}


@pytest.mark.asyncio
async def test_case_insensitive_config_reuses_mixed_case_stored_item(session) -> None:
    session.add(PostTag(tag_name="Go"))
    await session.flush()
    post = await make_post(session)
    repo = RelationshipRepository(session, dataclasses.replace(TAG_CONFIG, case_sensitive=False))

    outcomes = await repo.ensure_items_exist(["GO"])
    assert (await repo.link_items_to_entity(post.id, ["Go"])).ok

    assert [(o.name, o.created, o.error) for o in outcomes] == [("go", False, None)]
    assert await _tag_names(session) == ["Go"]
    assert set(await _linked(session, post.id)) == {"Go"}

    assert (await repo.sync_entity_items(post.id, ["gO", "Rust"])).ok
    assert await _tag_names(session) == ["Go", "rust"]
    assert set(await _linked(session, post.id)) == {"Go", "rust"}


@pytest.mark.asyncio
async def test_link_items_is_idempotent_and_ignores_unknown_names(session) -> None:
    post = await make_post(session)
    repo = RelationshipRepository(session, TAG_CONFIG)
    await repo.ensure_items_exist(["go"])

    assert (await repo.link_items_to_entity(post.id, ["go", "unknown"])).ok
    assert (await repo.link_items_to_entity(post.id, ["go"])).ok

    rows = await session.execute(select(PostTagRel).where(PostTagRel.post_id == post.id))
    assert len(rows.scalars().all()) == 1


@pytest.mark.asyncio
async def test_unlink_all_from_entity(session) -> None:
    post = await make_post(session)
    other = await make_post(session, title="other")
    repo = RelationshipRepository(session, TAG_CONFIG)
    await repo.sync_entity_items(post.id, ["go", "rust"])
    await repo.sync_entity_items(other.id, ["go"])

    assert (await repo.unlink_all_from_entity(post.id)).ok
    assert (await repo.unlink_all_from_entity(post.id)).ok

    assert await _linked(session, post.id) == {}
    assert set(await _linked(session, other.id)) == {"go"}
    assert await _tag_names(session) == ["go", "rust"]


# ========== sync ==========


@pytest.mark.asyncio
async def test_sync_is_idempotent(session, statements) -> None:
    post = await make_post(session)
    repo = RelationshipRepository(session, TAG_CONFIG)

    assert (await repo.sync_entity_items(post.id, ["go", "rust"])).ok
    first = await _linked(session, post.id)
    statements.clear()

    assert (await repo.sync_entity_items(post.id, ["rust", "go"])).ok

    assert await _linked(session, post.id) == first
    assert writes_to(statements, "posts_tags_rel") == []
    assert writes_to(statements, "post_tags") == []


@pytest.mark.asyncio
async def test_sync_applies_minimal_diff(session, statements) -> None:
    post = await make_post(session)
    repo = RelationshipRepository(session, TAG_CONFIG)
    await repo.sync_entity_items(post.id, ["a", "b", "c"])
    before = await _linked(session, post.id)
    statements.clear()

    assert (await repo.sync_entity_items(post.id, ["b", "c", "d"])).ok

    after = await _linked(session, post.id)
    assert set(after) == {"b", "c", "d"}
    assert after["b"] == before["b"]
    assert after["c"] == before["c"]

    relation_writes = writes_to(statements, "posts_tags_rel")
    assert len(relation_writes) == 2
    delete_statement, insert_statement = relation_writes
    assert delete_statement.startswith("DELETE") and "IN (?)" in delete_statement
    assert insert_statement.startswith("INSERT") and insert_statement.endswith("VALUES (?, ?)")
    assert len(writes_to(statements, "post_tags")) == 1


@pytest.mark.asyncio
async def test_sync_with_empty_target_clears_all(session, statements) -> None:
    post = await make_post(session)
    repo = RelationshipRepository(session, TAG_CONFIG)
    await repo.sync_entity_items(post.id, ["go", "rust"])
    statements.clear()

    assert (await repo.sync_entity_items(post.id, [])).ok

    assert await _linked(session, post.id) == {}
    assert all(s.startswith("DELETE") for s in writes_to(statements, "posts_tags_rel"))
    assert writes_to(statements, "post_tags") == []


@pytest.mark.asyncio
async def test_sync_end_to_end_scenario(session, statements) -> None:
    session.add(Post(id=42, user_id="user-1", title="scenario"))
    await session.flush()
    repo = RelationshipRepository(session, TAG_CONFIG)
    await repo.sync_entity_items(42, ["backend", "web"])
    statements.clear()

    assert (await repo.sync_entity_items(42, ["web", "cli"])).ok

    assert set(await _linked(session, 42)) == {"web", "cli"}
    writes = [s for s in statements if s.startswith(("INSERT", "DELETE"))]
    assert [s.split(" (")[0].split(" WHERE")[0] for s in writes] == [
        "DELETE FROM posts_tags_rel",
        "INSERT INTO post_tags",
        "INSERT INTO posts_tags_rel",
    ]


@pytest.mark.asyncio
async def test_sync_removes_before_adding_and_keeps_partial_result(engine, session) -> None:
    await _create_trigger(
        engine,
        "CREATE TRIGGER reject_cli_tag BEFORE INSERT ON post_tags "
        "WHEN NEW.tag_name = 'cli' BEGIN SELECT RAISE(ABORT, 'tag rejected'); END",
    )
    post = await make_post(session)
    repo = RelationshipRepository(session, TAG_CONFIG)
    await repo.sync_entity_items(post.id, ["backend", "web"])

    result = await repo.sync_entity_items(post.id, ["web", "cli"])

    assert isinstance(result.error, SQLAlchemyError)
    # "backend" was already removed when adding "cli" failed.
    assert set(await _linked(session, post.id)) == {"web"}


@pytest.mark.asyncio
async def test_sync_still_adds_when_removal_fails(engine, session) -> None:
    await _create_trigger(
        engine,
        "CREATE TRIGGER keep_backend_link BEFORE DELETE ON posts_tags_rel "
        "WHEN (SELECT tag_name FROM post_tags WHERE id = OLD.tag_id) = 'backend' "
        "BEGIN SELECT RAISE(ABORT, 'link locked'); END",
    )
    post = await make_post(session)
    repo = RelationshipRepository(session, TAG_CONFIG)
    await repo.sync_entity_items(post.id, ["backend", "web"])

    result = await repo.sync_entity_items(post.id, ["web", "cli"])

    assert isinstance(result.error, SQLAlchemyError)
    assert set(await _linked(session, post.id)) == {"backend", "web", "cli"}
    assert await _tag_names(session) == ["backend", "cli", "web"]


@pytest.mark.asyncio
async def test_concurrent_syncs_lose_updates(session) -> None:
    post = await make_post(session)
    repo = RelationshipRepository(session, TAG_CONFIG)
    await repo.sync_entity_items(post.id, ["a"])

    # Request A reads the current set and plans its change.
    current = [row["item_name"] for row in await repo.list_items_for_entity(post.id)]
    plan_a = compute_sync_plan(current, ["a", "x"])

    # Request B runs to completion in between.
    await repo.sync_entity_items(post.id, ["y"])

    # Request A applies the plan computed from its stale read.
    await repo.ensure_items_exist(plan_a.to_add)
    await repo.link_items_to_entity(post.id, plan_a.to_add)

    final = set(await _linked(session, post.id))
    assert final == {"x", "y"}
    assert final not in ({"a", "x"}, {"y"})


# ========== atomic ==========


@pytest.mark.asyncio
async def test_atomic_sync_on_postgres_is_a_single_call() -> None:
    session = _mock_session("postgresql")
    repo = RelationshipRepository(session, TAG_CONFIG)

    result = await repo.sync_entity_items_atomic(42, ["web", "cli", "web"], TAG_SYNC_PROCEDURE)

    assert result.ok
    session.execute.assert_awaited_once()
    statement, params = session.execute.await_args.args
    assert str(statement) == "SELECT update_post_tags(post_id_param => :entity_id, tag_names => :item_names)"
    assert params == {"entity_id": 42, "item_names": ["web", "cli"]}


@pytest.mark.asyncio
async def test_atomic_sync_on_mysql_sends_json_list() -> None:
    session = _mock_session("mysql")
    repo = RelationshipRepository(session, TAG_CONFIG)

    result = await repo.sync_entity_items_atomic(42, ["web", "cli"], TAG_SYNC_PROCEDURE)

    assert result.ok
    statement, params = session.execute.await_args.args
    assert str(statement) == "CALL update_post_tags(:entity_id, :item_names)"
    assert json.loads(params["item_names"]) == ["web", "cli"]


@pytest.mark.asyncio
async def test_atomic_sync_reports_store_errors() -> None:
    session = _mock_session("postgresql")
    session.execute.side_effect = SQLAlchemyError("function does not exist")
    repo = RelationshipRepository(session, TAG_CONFIG)

    result = await repo.sync_entity_items_atomic(1, ["web"], TAG_SYNC_PROCEDURE)

    assert not result.ok
    assert isinstance(result.error, SQLAlchemyError)


@pytest.mark.asyncio
async def test_atomic_sync_unsupported_dialect(session) -> None:
    repo = RelationshipRepository(session, TAG_CONFIG)

    result = await repo.sync_entity_items_atomic(1, ["web"], TAG_SYNC_PROCEDURE)

    assert isinstance(result.error, NotImplementedError)
