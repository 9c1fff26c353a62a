from __future__ import annotations

import pytest

from routers.services.post_service import PostService, filter_posts, get_post_tags, is_post_owner
from storage.relationship_config import TAG_CONFIG


@pytest.mark.asyncio
async def test_create_post_with_tags(session, users, cache) -> None:
    service = PostService(session, cache)

    post = await service.create_post("user-1", "  First post ", content="hi", tags=["Go", "Web Dev", ""])

    assert post.title == "First post"
    assert post.author.username == "alice"
    assert sorted(get_post_tags(post)) == ["go", "web-dev"]
    assert post.post_views == 0


@pytest.mark.asyncio
async def test_update_post_syncs_tags_and_keeps_missing_fields(session, users, cache) -> None:
    service = PostService(session, cache)
    post = await service.create_post("user-1", "Title", content="body", tags=["backend", "web"])

    updated = await service.update_post(post.id, title="New title", tags=["web", "cli"])

    assert updated.title == "New title"
    assert updated.content == "body"
    assert sorted(get_post_tags(updated)) == ["cli", "web"]

    untouched = await service.update_post(post.id, content="new body")
    assert sorted(get_post_tags(untouched)) == ["cli", "web"]

    cleared = await service.update_post(post.id, tags=[])
    assert get_post_tags(cleared) == []

    assert await service.update_post(9999, title="nope") is None
    assert await service.update_post(9999, tags=["go"]) is None


@pytest.mark.asyncio
async def test_tag_writes_invalidate_cached_tag_lists(session, users, cache) -> None:
    service = PostService(session, cache)
    assert await service.tag_service.list_names() == []

    await service.create_post("user-1", "Title", tags=["go"])

    assert TAG_CONFIG.cache_key not in cache
    assert await service.tag_service.list_names() == ["go"]


@pytest.mark.asyncio
async def test_delete_post_removes_tag_links(session, users, cache) -> None:
    service = PostService(session, cache)
    post = await service.create_post("user-1", "Title", tags=["go"])

    assert await service.delete_post(post.id) is True

    assert await service.get_post(post.id) is None
    assert await service.tag_service.names_for_entity(post.id) == []
    assert await service.tag_service.list_names() == ["go"]
    assert await service.delete_post(post.id) is False


@pytest.mark.asyncio
async def test_record_view_increments_counter(session, users) -> None:
    service = PostService(session)
    post = await service.create_post("user-1", "Title")

    await service.record_view(post.id)
    await service.record_view(post.id)

    assert (await service.get_post(post.id)).post_views == 2


@pytest.mark.asyncio
async def test_list_posts_filters_then_paginates(session, users, cache) -> None:
    service = PostService(session, cache)
    go_post = await service.create_post("user-1", "Learning Go", tags=["go"])
    await service.create_post("user-2", "Rust tips", tags=["rust"])
    bob_go = await service.create_post("user-2", "Concurrency", tags=["go", "cli"])

    by_tag = await service.list_posts(selected_tags=["go"])
    assert [post.id for post in by_tag] == [bob_go.id, go_post.id]

    by_author = await service.list_posts(search_query="BOB")
    assert {post.title for post in by_author} == {"Rust tips", "Concurrency"}

    paged = await service.list_posts(selected_tags=["go"], limit=1, offset=1)
    assert [post.id for post in paged] == [go_post.id]

    mine = await service.list_posts(user_id="user-1")
    assert [post.id for post in mine] == [go_post.id]


@pytest.mark.asyncio
async def test_filter_posts_combines_tags_and_query(session, users) -> None:
    service = PostService(session)
    await service.create_post("user-1", "Go generics", tags=["go"])
    await service.create_post("user-1", "Go modules", tags=["tooling"])
    posts = await service.list_posts()

    result = filter_posts(posts, selected_tags=["go", "rust"], search_query="go")

    assert [post.title for post in result] == ["Go generics"]
    assert filter_posts(posts) == posts


@pytest.mark.asyncio
async def test_is_post_owner(session, users) -> None:
    post = await PostService(session).create_post("user-1", "Mine")

    assert is_post_owner(post, "user-1")
    assert not is_post_owner(post, "user-2")
    assert not is_post_owner(post, None)
