"""Unit tests for the per-table feed sources."""

import pytest

from routefeed.schemas.feed import ActivityType, FeedMode
from routefeed.services.feed_sources import (
    EventSource,
    ExerciseCompletionSource,
    PathExerciseCompletionSource,
    RouteSource,
)
from tests.mocks.fake_queries import (
    at,
    event_row,
    exercise_completion_row,
    path_completion_row,
    route_row,
)


class TestRouteSource:
    @pytest.mark.asyncio
    async def test_converts_public_routes(self, queries):
        queries.routes = [route_row("r1", "alice", 10), route_row("r2", "bob", 20, visibility="unlisted")]
        result = await RouteSource(queries, limit=30).fetch(FeedMode.ALL, set())
        assert result.failed is False
        assert [item.id for item in result.items] == ["route_r2", "route_r1"]
        assert all(item.type == ActivityType.ROUTE_CREATED for item in result.items)
        assert result.items[1].user.id == "alice"
        assert result.items[1].created_at == at(10)
        assert result.items[1].data["name"] == "Route r1"

    @pytest.mark.asyncio
    async def test_private_routes_excluded(self, queries):
        queries.routes = [route_row("r1", "alice", 10, visibility="private")]
        result = await RouteSource(queries, limit=30).fetch(FeedMode.ALL, set())
        assert result.items == []

    @pytest.mark.asyncio
    async def test_drops_routes_without_creator(self, queries):
        queries.routes = [route_row("r1", "ghost", 10, creator_exists=False), route_row("r2", "bob", 5)]
        result = await RouteSource(queries, limit=30).fetch(FeedMode.ALL, set())
        assert [item.id for item in result.items] == ["route_r2"]

    @pytest.mark.asyncio
    async def test_all_mode_does_not_scope_query(self, queries):
        await RouteSource(queries, limit=12).fetch(FeedMode.ALL, {"alice"})
        assert queries.calls_to("list_routes") == [{"creator_in": None, "limit": 12}]

    @pytest.mark.asyncio
    async def test_following_mode_pushes_scope_into_query(self, queries):
        queries.routes = [route_row("r1", "alice", 10), route_row("r2", "carol", 20)]
        result = await RouteSource(queries, limit=30).fetch(FeedMode.FOLLOWING, {"bob", "alice"})
        assert queries.calls_to("list_routes") == [{"creator_in": ["alice", "bob"], "limit": 30}]
        assert [item.id for item in result.items] == ["route_r1"]

    @pytest.mark.asyncio
    async def test_following_nobody_skips_query(self, queries):
        queries.routes = [route_row("r1", "alice", 10)]
        result = await RouteSource(queries, limit=30).fetch(FeedMode.FOLLOWING, set())
        assert result.items == []
        assert result.failed is False
        assert queries.calls_to("list_routes") == []

    @pytest.mark.asyncio
    async def test_failure_yields_empty_failed_result(self, queries):
        queries.failing.add("list_routes")
        result = await RouteSource(queries, limit=30).fetch(FeedMode.ALL, set())
        assert result.failed is True
        assert result.items == []
        assert result.source == "routes"


class TestEventSource:
    @pytest.mark.asyncio
    async def test_converts_events(self, queries):
        queries.events = [event_row("1", "bob", 5), event_row("2", "bob", 6, visibility="private")]
        result = await EventSource(queries, limit=30).fetch(FeedMode.ALL, set())
        assert [item.id for item in result.items] == ["event_1"]
        assert result.items[0].type == ActivityType.EVENT_CREATED

    @pytest.mark.asyncio
    async def test_ids_do_not_collide_with_routes(self, queries):
        queries.routes = [route_row("1", "alice", 10)]
        queries.events = [event_row("1", "alice", 10)]
        routes = await RouteSource(queries, limit=30).fetch(FeedMode.ALL, set())
        events = await EventSource(queries, limit=30).fetch(FeedMode.ALL, set())
        assert routes.items[0].id != events.items[0].id

    @pytest.mark.asyncio
    async def test_following_mode_scopes_by_creator(self, queries):
        queries.events = [event_row("1", "bob", 5), event_row("2", "carol", 6)]
        result = await EventSource(queries, limit=30).fetch(FeedMode.FOLLOWING, {"bob"})
        assert [item.user.id for item in result.items] == ["bob"]


class TestExerciseCompletionSource:
    @pytest.mark.asyncio
    async def test_payload_carries_exercise_and_completion(self, queries):
        queries.exercise_completions = [exercise_completion_row("c1", "alice", 30, exercise_id="ex-9")]
        result = await ExerciseCompletionSource(queries, limit=50).fetch(FeedMode.ALL, set())
        item = result.items[0]
        assert item.id == "completion_c1"
        assert item.type == ActivityType.EXERCISE_COMPLETED
        assert item.created_at == at(30)
        assert item.data["exercise"]["id"] == "ex-9"
        assert item.data["completion"]["id"] == "c1"

    @pytest.mark.asyncio
    async def test_drops_completions_without_exercise(self, queries):
        queries.exercise_completions = [exercise_completion_row("c1", "alice", 30, with_exercise=False)]
        result = await ExerciseCompletionSource(queries, limit=50).fetch(FeedMode.ALL, set())
        assert result.items == []

    @pytest.mark.asyncio
    async def test_limit_truncates_before_merge(self, queries):
        queries.exercise_completions = [exercise_completion_row(f"c{i}", "alice", i) for i in range(5)]
        result = await ExerciseCompletionSource(queries, limit=2).fetch(FeedMode.ALL, set())
        assert [item.id for item in result.items] == ["completion_c4", "completion_c3"]


class TestPathExerciseCompletionSource:
    @pytest.mark.asyncio
    async def test_returns_raw_rows(self, queries):
        queries.path_completions = [path_completion_row("p1", "alice", "lp-1", "ex-1", 10)]
        result = await PathExerciseCompletionSource(queries, limit=100).fetch(FeedMode.ALL, set())
        assert result.items == queries.path_completions

    @pytest.mark.asyncio
    async def test_drops_rows_without_path_id(self, queries):
        row = path_completion_row("p1", "alice", "lp-1", "ex-1", 10)
        row["learning_path_exercises"]["learning_path_id"] = None
        queries.path_completions = [row]
        result = await PathExerciseCompletionSource(queries, limit=100).fetch(FeedMode.ALL, set())
        assert result.items == []


class TestMalformedRows:
    @pytest.mark.asyncio
    async def test_bad_timestamp_drops_only_that_route(self, queries):
        bad = route_row("r1", "alice", 10)
        bad["created_at"] = "garbage"
        queries.routes = [route_row("r2", "bob", 5), bad]
        result = await RouteSource(queries, limit=30).fetch(FeedMode.ALL, set())
        assert result.failed is False
        assert [item.id for item in result.items] == ["route_r2"]

    @pytest.mark.asyncio
    async def test_bad_completion_time_drops_path_row(self, queries):
        bad = path_completion_row("p1", "alice", "lp-1", "ex-1", 10)
        bad["completed_at"] = "not-a-timestamp"
        good = path_completion_row("p2", "alice", "lp-1", "ex-2", 20)
        queries.path_completions = [good, bad]
        result = await PathExerciseCompletionSource(queries, limit=100).fetch(FeedMode.ALL, set())
        assert result.failed is False
        assert [row["id"] for row in result.items] == ["p2"]
