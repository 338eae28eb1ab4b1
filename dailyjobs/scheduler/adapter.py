"""TaskAdapter — the contract every scheduled job implements."""

from __future__ import annotations

from typing import Any, Protocol


class TaskAdapter(Protocol):
    """A unit of work the engine can run for an idempotency key.

    The engine only decides *when* to call these methods. Both may perform
    I/O. ``execute`` signals failure by raising; the returned mapping is kept
    as the attempt's metrics.
    """

    async def already_done(self, key: str) -> bool: ...

    async def execute(self, key: str) -> dict[str, Any]: ...
