from __future__ import annotations

from storage.repositories.relationship_repository import compute_sync_plan, rank_most_used


def test_rank_orders_by_frequency() -> None:
    assert rank_most_used(["go", "rust", "go"], limit=2) == ["go", "rust"]


def test_rank_ties_keep_first_seen_order() -> None:
    assert rank_most_used(["web", "cli", "api", "cli", "web"], limit=None) == ["web", "cli", "api"]


def test_rank_respects_limit_and_skips_empty_names() -> None:
    names = ["a", "b", "b", "c", "c", "c", None, ""]
    assert rank_most_used(names, limit=2) == ["c", "b"]
    assert rank_most_used([], limit=5) == []


def test_sync_plan_is_minimal_diff() -> None:
    plan = compute_sync_plan(["a", "b", "c"], ["b", "c", "d"])

    assert plan.to_add == ["d"]
    assert plan.to_remove == ["a"]


def test_sync_plan_empty_target_removes_everything() -> None:
    plan = compute_sync_plan(["backend", "web"], [])

    assert plan.to_add == []
    assert plan.to_remove == ["backend", "web"]


def test_sync_plan_same_set_is_empty() -> None:
    assert compute_sync_plan(["x", "y"], ["y", "x", "x"]).is_empty
