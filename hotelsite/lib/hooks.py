"""Action/filter hooks around media library operations.

Actions run callbacks for side effects (purging a CDN after a merge,
auditing deletes), filters pass a value through each callback in turn
(extending the list of content fields that hold media URLs). Callbacks may
be sync or async; lower priority runs first, equal priorities run in
registration order. Errors raised by a callback propagate to the caller.

Usage:
    from hotelsite.lib.hooks import hooks, action, AFTER_DUPLICATE_MERGE

    @action(AFTER_DUPLICATE_MERGE)
    async def purge_cdn(outcome):
        ...

    await hooks.do_action(AFTER_DUPLICATE_MERGE, outcome)
    fields = await hooks.apply_filters(MEDIA_REFERENCE_FIELDS, REFERENCE_FIELDS)
"""

import asyncio
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, TypeVar

T = TypeVar("T")
F = TypeVar("F", bound=Callable[..., Any])

# Actions
BEFORE_MEDIA_REGISTER = "before_media_register"
AFTER_MEDIA_REGISTER = "after_media_register"
BEFORE_MEDIA_DELETE = "before_media_delete"
AFTER_MEDIA_DELETE = "after_media_delete"
BEFORE_DUPLICATE_MERGE = "before_duplicate_merge"
AFTER_DUPLICATE_MERGE = "after_duplicate_merge"
AFTER_HASH_BACKFILL = "after_hash_backfill"

# Filters
MEDIA_REFERENCE_FIELDS = "media_reference_fields"


@dataclass(order=True)
class HookHandler:
    """A registered callback with its priority."""

    priority: int
    callback: Callable = field(compare=False)

    async def call(self, *args: Any, **kwargs: Any) -> Any:
        result = self.callback(*args, **kwargs)
        if asyncio.iscoroutine(result):
            return await result
        return result


class HookRegistry:
    """Registry of action and filter callbacks, keyed by hook name."""

    def __init__(self) -> None:
        self._actions: dict[str, list[HookHandler]] = defaultdict(list)
        self._filters: dict[str, list[HookHandler]] = defaultdict(list)

    @staticmethod
    def _add(table: dict[str, list[HookHandler]], hook_name: str, callback: Callable, priority: int) -> None:
        handlers = table[hook_name]
        handlers.append(HookHandler(priority=priority, callback=callback))
        # list.sort is stable, so equal priorities keep registration order
        handlers.sort()

    @staticmethod
    def _remove(table: dict[str, list[HookHandler]], hook_name: str, callback: Callable) -> bool:
        handlers = table.get(hook_name, [])
        for i, handler in enumerate(handlers):
            if handler.callback is callback:
                handlers.pop(i)
                return True
        return False

    def add_action(self, hook_name: str, callback: Callable[..., Any], priority: int = 10) -> None:
        self._add(self._actions, hook_name, callback, priority)

    def add_filter(self, hook_name: str, callback: Callable[..., T], priority: int = 10) -> None:
        self._add(self._filters, hook_name, callback, priority)

    def remove_action(self, hook_name: str, callback: Callable[..., Any]) -> bool:
        """Remove an action callback. Returns True if it was registered."""
        return self._remove(self._actions, hook_name, callback)

    def remove_filter(self, hook_name: str, callback: Callable[..., Any]) -> bool:
        """Remove a filter callback. Returns True if it was registered."""
        return self._remove(self._filters, hook_name, callback)

    def has_action(self, hook_name: str) -> bool:
        return bool(self._actions.get(hook_name))

    def has_filter(self, hook_name: str) -> bool:
        return bool(self._filters.get(hook_name))

    async def do_action(self, hook_name: str, *args: Any, **kwargs: Any) -> None:
        """Run every action callback for ``hook_name`` in priority order."""
        handlers = list(self._actions.get(hook_name, ()))
        if not handlers:
            return

        from hotelsite.lib.observability import span

        with span("media.hook.action", hook_name=hook_name, handlers=len(handlers)):
            for handler in handlers:
                await handler.call(*args, **kwargs)

    async def apply_filters(self, hook_name: str, value: T, *args: Any, **kwargs: Any) -> T:
        """Pass ``value`` through every filter callback and return the result."""
        handlers = list(self._filters.get(hook_name, ()))
        if not handlers:
            return value

        from hotelsite.lib.observability import span

        with span("media.hook.filter", hook_name=hook_name, handlers=len(handlers)):
            for handler in handlers:
                value = await handler.call(value, *args, **kwargs)
        return value

    def clear(self) -> None:
        """Clear all registered hooks. Useful for testing."""
        self._actions.clear()
        self._filters.clear()


hooks = HookRegistry()


def action(hook_name: str, priority: int = 10) -> Callable[[F], F]:
    """Register the decorated function as an action callback."""

    def decorator(func: F) -> F:
        hooks.add_action(hook_name, func, priority)
        return func

    return decorator


def filter(hook_name: str, priority: int = 10) -> Callable[[F], F]:
    """Register the decorated function as a filter callback."""

    def decorator(func: F) -> F:
        hooks.add_filter(hook_name, func, priority)
        return func

    return decorator
