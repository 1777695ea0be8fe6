from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

from .pair_metadata_task import pair_metadata_task
from .sandwiches_task import sandwiches_task

TaskFn = Callable[..., Awaitable[Any]]

TASKS: dict[str, TaskFn] = {
    "pair_metadata_task": pair_metadata_task,
    "sandwiches_task": sandwiches_task,
}
