"""Dynamic-parameter resolution.

Runs after path matching and before any layout or page render.  Each
dynamic node of the matched chain gets an explicit ``ParamTask`` handle;
the tasks are started ancestor-first and resolve concurrently inside an
anyio task group::

    resolvers = ParamResolvers()

    @resolvers.register("videoID")
    async def load_video(raw: str) -> Video:
        return await catalog.get(raw)

    @resolvers.register("trackID")
    def load_track(raw: str, listID: str) -> Track:
        ...  # receives the raw value of the ancestor [listID]

    resolved = await resolve_params(match, resolvers)
    resolved["videoID"]  # -> Video

The first failure cancels the remaining tasks and surfaces as a
``ParamResolutionError``.  Nothing here touches navigation state.
"""

import inspect
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

import anyio
from anyio import CancelScope

from perch._internal.types import Resolver
from perch.errors import ParamResolutionError
from perch.routing.matcher import MatchResult

logger = logging.getLogger("perch.params")


class TaskState(Enum):
    """Lifecycle of a single param resolution."""

    PENDING = "pending"
    RESOLVED = "resolved"
    FAILED = "failed"
    CANCELLED = "cancelled"


class ParamTask:
    """Handle for one dynamic segment's resolution.

    Observable while in flight: ``state`` moves from ``PENDING`` to exactly
    one terminal state, and ``wait()`` suspends until it gets there.
    """

    __slots__ = ("_done", "error", "param", "raw", "state", "value")

    def __init__(self, param: str, raw: str) -> None:
        self.param = param
        self.raw = raw
        self.state = TaskState.PENDING
        self.value: Any = None
        self.error: ParamResolutionError | None = None
        self._done = anyio.Event()

    def done(self) -> bool:
        return self.state is not TaskState.PENDING

    async def wait(self) -> Any:
        """Suspend until the task finishes, then return its value."""
        await self._done.wait()
        return self.result()

    def result(self) -> Any:
        """Return the resolved value.

        Raises:
            ParamResolutionError: If the task failed or was cancelled.
            RuntimeError: If the task is still pending.
        """
        if self.state is TaskState.RESOLVED:
            return self.value
        if self.error is not None:
            raise self.error
        if self.state is TaskState.CANCELLED:
            raise ParamResolutionError(self.param, self.raw, "cancelled")
        msg = f"Resolution of [{self.param}] is still pending"
        raise RuntimeError(msg)

    def _finish(
        self,
        state: TaskState,
        *,
        value: Any = None,
        error: ParamResolutionError | None = None,
    ) -> None:
        self.state = state
        self.value = value
        self.error = error
        self._done.set()

    def __repr__(self) -> str:
        return f"<ParamTask [{self.param}]={self.raw!r} {self.state.value}>"


class ParamResolvers:
    """Registry of resolvers keyed by dynamic param name.

    Params without a registered resolver resolve to their raw string.
    """

    __slots__ = ("_resolvers",)

    def __init__(self, resolvers: Mapping[str, Resolver] | None = None) -> None:
        self._resolvers: dict[str, Resolver] = dict(resolvers or {})

    def register(
        self, param: str, func: Resolver | None = None,
    ) -> Resolver | Callable[[Resolver], Resolver]:
        """Register *func* for *param*. Usable as a decorator."""
        if func is not None:
            self._resolvers[param] = func
            return func

        def decorator(f: Resolver) -> Resolver:
            self._resolvers[param] = f
            return f

        return decorator

    def get(self, param: str) -> Resolver | None:
        return self._resolvers.get(param)

    def __contains__(self, param: object) -> bool:
        return param in self._resolvers


@dataclass(frozen=True, slots=True)
class ResolvedParams:
    """Raw captures and resolved values for one match."""

    raw: Mapping[str, str] = field(default_factory=dict)
    values: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "raw", MappingProxyType(dict(self.raw)))
        object.__setattr__(self, "values", MappingProxyType(dict(self.values)))

    def __getitem__(self, param: str) -> Any:
        return self.values[param]

    def __contains__(self, param: object) -> bool:
        return param in self.values


async def resolve_params(
    match: MatchResult,
    resolvers: ParamResolvers | None = None,
    *,
    timeout: float | None = None,
    on_start: Callable[[tuple[ParamTask, ...]], None] | None = None,
) -> ResolvedParams:
    """Resolve every dynamic segment of *match*.

    Args:
        match: The completed path match.
        resolvers: Resolver registry. Defaults to raw strings for all params.
        timeout: Per-task limit in seconds (``None`` waits indefinitely).
        on_start: Called with the task handles once they are created,
            before any of them runs.

    Returns:
        Raw captures and resolved values, keyed by param name.

    Raises:
        ParamResolutionError: The first failing task in chain order.
    """
    resolvers = resolvers or ParamResolvers()
    tasks = tuple(
        ParamTask(node.param, match.params[node.param])  # type: ignore[arg-type, index]
        for node in match.dynamic_nodes
    )
    if on_start is not None:
        on_start(tasks)

    try:
        if tasks:
            async with anyio.create_task_group() as tg:
                for i, task in enumerate(tasks):
                    ancestors = {t.param: t.raw for t in tasks[:i]}
                    tg.start_soon(
                        _run_task,
                        task,
                        resolvers.get(task.param),
                        ancestors,
                        timeout,
                        tg.cancel_scope,
                    )
    finally:
        for task in tasks:
            if not task.done():
                # Cancelled before its first step ran
                task._finish(TaskState.CANCELLED)

    for task in tasks:
        if task.error is not None:
            raise task.error

    return ResolvedParams(
        raw=match.params,
        values={task.param: task.value for task in tasks},
    )


async def _run_task(
    task: ParamTask,
    resolver: Resolver | None,
    ancestors: dict[str, str],
    timeout: float | None,
    group_scope: CancelScope,
) -> None:
    """Resolve one task, recording its terminal state."""
    try:
        with anyio.fail_after(timeout):
            value: Any = task.raw
            if resolver is not None:
                value = _call_resolver(resolver, task.raw, ancestors)
                if inspect.isawaitable(value):
                    value = await value
    except anyio.get_cancelled_exc_class():
        task._finish(TaskState.CANCELLED)
        raise
    except Exception as exc:
        detail = "timed out" if isinstance(exc, TimeoutError) else str(exc) or type(exc).__name__
        error = ParamResolutionError(task.param, task.raw, detail)
        error.__cause__ = exc
        logger.warning("Resolution of [%s]=%r failed: %s", task.param, task.raw, detail)
        task._finish(TaskState.FAILED, error=error)
        # One failure fails the whole render; stop the siblings
        group_scope.cancel()
    else:
        task._finish(TaskState.RESOLVED, value=value)


def _call_resolver(func: Resolver, raw: str, ancestors: dict[str, str]) -> Any:
    """Call a resolver with the raw value and any ancestor params it names.

    The first positional parameter receives the raw value::

        async def resolve(raw: str) -> Video: ...
        def resolve(raw: str, listID: str) -> Track: ...
    """
    try:
        sig = inspect.signature(func)
    except (TypeError, ValueError):
        # Builtins such as ``int`` expose no signature
        return func(raw)
    names = list(sig.parameters)
    kwargs = {name: ancestors[name] for name in names[1:] if name in ancestors}
    return func(raw, **kwargs)
