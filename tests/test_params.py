"""Tests for perch.params — explicit param tasks and failure semantics."""

import anyio
import pytest

from perch.errors import ParamResolutionError
from perch.params import ParamResolvers, ParamTask, TaskState, resolve_params
from perch.routing.matcher import match_path
from perch.routing.tree import RouteTree


class TestParamResolvers:
    def test_register_decorator(self) -> None:
        resolvers = ParamResolvers()

        @resolvers.register("videoID")
        def load(raw: str) -> str:
            return raw.upper()

        assert "videoID" in resolvers
        assert resolvers.get("videoID") is load
        assert resolvers.get("listID") is None

    def test_register_direct(self) -> None:
        resolvers = ParamResolvers()
        resolvers.register("listID", int)
        assert resolvers.get("listID") is int

    def test_from_mapping(self) -> None:
        resolvers = ParamResolvers({"trackID": int})
        assert "trackID" in resolvers


class TestResolveParams:
    async def test_no_dynamic_nodes(self, video_tree: RouteTree) -> None:
        resolved = await resolve_params(match_path(video_tree, "/feed"))
        assert dict(resolved.values) == {}
        assert dict(resolved.raw) == {}

    async def test_unregistered_params_stay_raw(self, video_tree: RouteTree) -> None:
        resolved = await resolve_params(match_path(video_tree, "/abc123"))
        assert resolved["videoID"] == "abc123"
        assert dict(resolved.raw) == {"videoID": "abc123"}

    async def test_sync_and_async_resolvers(self, video_tree: RouteTree) -> None:
        resolvers = ParamResolvers()

        @resolvers.register("listID")
        def load_list(raw: str) -> int:
            return int(raw)

        @resolvers.register("trackID")
        async def load_track(raw: str) -> dict[str, str]:
            await anyio.sleep(0)
            return {"track": raw}

        match = match_path(video_tree, "/library/playlists/42/7")
        resolved = await resolve_params(match, resolvers)
        assert resolved["listID"] == 42
        assert resolved["trackID"] == {"track": "7"}

    async def test_builtin_resolver(self, video_tree: RouteTree) -> None:
        resolvers = ParamResolvers({"listID": int})
        resolved = await resolve_params(match_path(video_tree, "/library/playlists/42"), resolvers)
        assert resolved["listID"] == 42

    async def test_ancestor_params_injected(self, video_tree: RouteTree) -> None:
        seen: dict[str, str] = {}

        def load_track(raw: str, listID: str) -> str:  # noqa: N803
            seen["listID"] = listID
            return f"{listID}:{raw}"

        resolvers = ParamResolvers({"trackID": load_track})
        match = match_path(video_tree, "/library/playlists/42/7")
        resolved = await resolve_params(match, resolvers)
        assert resolved["trackID"] == "42:7"
        assert seen == {"listID": "42"}

    async def test_resolutions_run_concurrently(self, video_tree: RouteTree) -> None:
        track_started = anyio.Event()

        async def load_list(raw: str) -> str:
            # The ancestor waits on its descendant: only passes if both run at once
            await track_started.wait()
            return raw

        async def load_track(raw: str) -> str:
            track_started.set()
            return raw

        resolvers = ParamResolvers({"listID": load_list, "trackID": load_track})
        match = match_path(video_tree, "/library/playlists/1/2")
        with anyio.fail_after(2):
            resolved = await resolve_params(match, resolvers)
        assert dict(resolved.values) == {"listID": "1", "trackID": "2"}

    async def test_on_start_sees_pending_tasks(self, video_tree: RouteTree) -> None:
        captured: list[ParamTask] = []

        def on_start(tasks: tuple[ParamTask, ...]) -> None:
            captured.extend(tasks)
            assert all(t.state is TaskState.PENDING for t in tasks)

        match = match_path(video_tree, "/library/playlists/1/2")
        await resolve_params(match, on_start=on_start)
        assert [t.param for t in captured] == ["listID", "trackID"]
        assert all(t.state is TaskState.RESOLVED for t in captured)
        assert [await t.wait() for t in captured] == ["1", "2"]


class TestResolutionFailures:
    async def test_failure_raises_param_resolution_error(self, video_tree: RouteTree) -> None:
        def missing(raw: str) -> None:
            raise LookupError(f"no video {raw}")

        resolvers = ParamResolvers({"videoID": missing})
        with pytest.raises(ParamResolutionError) as exc_info:
            await resolve_params(match_path(video_tree, "/abc"), resolvers)

        err = exc_info.value
        assert err.param == "videoID"
        assert err.raw == "abc"
        assert isinstance(err.__cause__, LookupError)
        assert "no video abc" in str(err)

    async def test_failure_cancels_siblings(self, video_tree: RouteTree) -> None:
        captured: list[ParamTask] = []

        async def load_list(raw: str) -> str:
            await anyio.sleep(10)
            return raw

        async def load_track(raw: str) -> str:
            await anyio.sleep(0)
            raise ValueError("bad track")

        resolvers = ParamResolvers({"listID": load_list, "trackID": load_track})
        match = match_path(video_tree, "/library/playlists/1/2")
        with anyio.fail_after(2), pytest.raises(ParamResolutionError) as exc_info:
            await resolve_params(match, resolvers, on_start=captured.extend)

        assert exc_info.value.param == "trackID"
        states = {t.param: t.state for t in captured}
        assert states == {"listID": TaskState.CANCELLED, "trackID": TaskState.FAILED}
        with pytest.raises(ParamResolutionError, match="cancelled"):
            captured[0].result()

    async def test_timeout(self, video_tree: RouteTree) -> None:
        async def slow(raw: str) -> str:
            await anyio.sleep(10)
            return raw

        resolvers = ParamResolvers({"videoID": slow})
        with pytest.raises(ParamResolutionError, match="timed out") as exc_info:
            await resolve_params(match_path(video_tree, "/abc"), resolvers, timeout=0.01)
        assert isinstance(exc_info.value.__cause__, TimeoutError)


class TestParamTask:
    async def test_pending_result(self) -> None:
        task = ParamTask("id", "1")
        assert not task.done()
        with pytest.raises(RuntimeError, match="pending"):
            task.result()

    async def test_repr(self) -> None:
        assert repr(ParamTask("id", "1")) == "<ParamTask [id]='1' pending>"

    async def test_failed_result_raises_recorded_error(self) -> None:
        task = ParamTask("id", "1")
        error = ParamResolutionError("id", "1", "missing")
        task._finish(TaskState.FAILED, error=error)
        assert task.done()
        with pytest.raises(ParamResolutionError) as exc_info:
            task.result()
        assert exc_info.value is error
