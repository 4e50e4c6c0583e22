"""Side effects that run after a primary write has committed.

Each task runs on its own; a failure is logged and turned into a warning
string on the operation's result instead of failing the request.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class PostCommitTasks:
    """Ordered list of named side effects."""

    context: dict[str, Any] = field(default_factory=dict)
    _tasks: list[tuple[str, Callable[[], Any]]] = field(default_factory=list)

    def add(self, name: str, task: Callable[[], Any]) -> None:
        self._tasks.append((name, task))

    def run(self) -> list[str]:
        """Run every task; return one warning per failed task."""
        warnings: list[str] = []
        for name, task in self._tasks:
            try:
                outcome = task()
            except Exception as exc:
                logger.error(
                    "post_commit_task_failed",
                    extra={**self.context, "task": name, "error": str(exc)},
                    exc_info=True,
                )
                warnings.append(f"{name}: {exc}")
                continue
            # Tasks may report partial failures as a list of warnings
            if isinstance(outcome, list):
                warnings.extend(f"{name}: {w}" for w in outcome if isinstance(w, str))
        return warnings
