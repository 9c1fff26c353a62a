from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from routers.services.taxonomy_service import TaxonomyService
from storage.relationship_config import SERVICE_CATEGORY_CONFIG, TAG_CONFIG
from storage.repositories.relationship_repository import RelationshipResult
from tests.helpers import make_post


def test_prepare_names_cleans_validates_and_dedupes() -> None:
    service = TaxonomyService.for_tags(session=None)

    names = service.prepare_names(["  Web Design", "web design", "", "   ", "x" * 51, "CLI"])

    assert names == ["web-design", "cli"]


@pytest.mark.asyncio
async def test_replace_entity_items_syncs_cleaned_names(session) -> None:
    post = await make_post(session)
    service = TaxonomyService.for_tags(session)

    assert (await service.replace_entity_items(post.id, ["Go", "Web  Dev"])).ok
    assert await service.names_for_entity(post.id) == ["go", "web-dev"]

    assert (await service.replace_entity_items(post.id, ["go"])).ok
    assert await service.names_for_entity(post.id) == ["go"]


@pytest.mark.asyncio
async def test_successful_write_invalidates_cached_lists(session, cache) -> None:
    post = await make_post(session)
    service = TaxonomyService.for_tags(session, cache)
    await service.ensure_items(["go"])
    assert await service.list_names() == ["go"]
    assert await service.most_used() == []
    assert TAG_CONFIG.cache_key in cache

    await service.replace_entity_items(post.id, ["go", "rust"])

    assert TAG_CONFIG.cache_key not in cache
    assert TAG_CONFIG.most_used_cache_key not in cache
    assert await service.list_names() == ["go", "rust"]
    assert sorted(await service.most_used()) == ["go", "rust"]


@pytest.mark.asyncio
async def test_lists_recached_before_commit_are_dropped_on_commit(session, cache) -> None:
    post = await make_post(session)
    service = TaxonomyService.for_tags(session, cache)
    assert (await service.replace_entity_items(post.id, ["go"])).ok

    # a concurrent reader caches the list it saw before this transaction commits
    await cache.get_or_fetch(TAG_CONFIG.cache_key, None, AsyncMock(return_value=[]))
    await cache.get_or_fetch(TAG_CONFIG.most_used_cache_key, None, AsyncMock(return_value=[]))
    assert TAG_CONFIG.cache_key in cache

    await session.commit()

    assert TAG_CONFIG.cache_key not in cache
    assert TAG_CONFIG.most_used_cache_key not in cache
    assert await service.list_names() == ["go"]


@pytest.mark.asyncio
async def test_commit_without_writes_keeps_cache(session, cache) -> None:
    service = TaxonomyService.for_tags(session, cache)
    await service.ensure_items(["go"])
    await session.commit()
    assert await service.list_names() == ["go"]

    await session.commit()

    assert TAG_CONFIG.cache_key in cache


@pytest.mark.asyncio
async def test_failed_write_keeps_cache(session, cache, monkeypatch) -> None:
    service = TaxonomyService.for_tags(session, cache)
    await service.list_names()
    monkeypatch.setattr(
        service.repo,
        "sync_entity_items",
        AsyncMock(return_value=RelationshipResult(error=RuntimeError("boom"))),
    )

    result = await service.replace_entity_items(1, ["go"])

    assert not result.ok
    assert TAG_CONFIG.cache_key in cache


@pytest.mark.asyncio
async def test_atomic_flag_uses_procedure(session, monkeypatch) -> None:
    service = TaxonomyService.for_tags(session)
    atomic = AsyncMock(return_value=RelationshipResult())
    monkeypatch.setattr(service.repo, "sync_entity_items_atomic", atomic)

    assert (await service.replace_entity_items(7, ["Go", "bad name " * 10], atomic=True)).ok

    atomic.assert_awaited_once_with(7, ["go"], service.procedure)


@pytest.mark.asyncio
async def test_atomic_without_procedure_is_rejected(session) -> None:
    service = TaxonomyService.for_service_categories(session)

    result = await service.replace_entity_items(1, ["branding"], atomic=True)

    assert isinstance(result.error, NotImplementedError)
    assert service.config is SERVICE_CATEGORY_CONFIG


@pytest.mark.asyncio
async def test_ensure_items_seeds_names_once(session) -> None:
    service = TaxonomyService.for_service_categories(session)

    first = await service.ensure_items(["Web Design", "Branding"])
    second = await service.ensure_items(["web design"])

    assert [o.created for o in first] == [True, True]
    assert [o.created for o in second] == [False]
    assert [item.name for item in await service.list_items()] == ["branding", "web-design"]
