"""Entity handlers.

Each handler performs its store reads and writes and returns either a
``View`` (template name + context) or a ``Redirect``. Rendering and HTTP
details live in ``locallibrary.api``.
"""
import asyncio
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Tuple


@dataclass
class View:
    template: str
    context: Dict[str, Any] = field(default_factory=dict)
    status_code: int = 200


@dataclass
class Redirect:
    url: str


@dataclass
class Choice:
    """A candidate in a multi-choice form field, annotated for this request only."""

    item: Any
    checked: bool = False


async def call(func: Callable, *args: Any, **kwargs: Any) -> Any:
    """Run a blocking store call in a worker thread."""
    return await asyncio.to_thread(func, *args, **kwargs)


async def fan_out(**calls: Tuple) -> Dict[str, Any]:
    """Run independent store reads concurrently and collect them by name.

    Each keyword maps to ``(func, *args)``. All reads must complete; the first
    failure propagates to the caller.
    """
    names = list(calls)
    results = await asyncio.gather(*(call(*calls[name]) for name in names))
    return dict(zip(names, results))


def mark_checked(candidates: Iterable[Any], selected_ids: Iterable[str]) -> List[Choice]:
    selected = {str(i) for i in selected_ids or ()}
    return [Choice(item, item.id in selected) for item in candidates]
