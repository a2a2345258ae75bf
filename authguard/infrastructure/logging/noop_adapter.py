"""No-op logger - discards everything.

Default logger for components constructed without one (library use,
tests that do not care about log output).
"""

from __future__ import annotations

from typing import Any


class NoOpLogger:
    """Logger whose methods do nothing.

    Example:
        store = BoundedMemoryStore()            # logs nowhere
        store = BoundedMemoryStore(logger=get_logger())
    """

    def debug(self, message: str, /, **context: Any) -> None:
        pass

    def info(self, message: str, /, **context: Any) -> None:
        pass

    def warning(self, message: str, /, **context: Any) -> None:
        pass

    def error(
        self, message: str, /, *, error: Exception | None = None, **context: Any
    ) -> None:
        pass

    def bind(self, **context: Any) -> NoOpLogger:
        return self
