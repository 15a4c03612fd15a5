from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Row progress display with tqdm (TTY only).

In non-TTY environments (CI, redirected output) no bar is created so that log
lines are not interleaved with ANSI control sequences.
"""

__all__ = [
    "RowProgress",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    return sys.stdout.isatty()


class RowProgress:
    """Progress bar over the data rows of one sheet."""

    def __init__(self, total_rows: int, *, description: str = "Importing rows") -> None:
        self.total_rows = total_rows
        self.description = description
        self.processed = 0
        self.enabled = is_tty_enabled()
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=total_rows,
                desc=description,
                unit="row",
                disable=False,
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )
        else:
            self.pbar = None

    def advance(self, count: int = 1) -> None:
        self.processed += count
        if self.enabled and self.pbar is not None:
            self.pbar.update(count)

    def set_postfix(self, **kwargs: Any) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.set_postfix(**kwargs)

    def close(self) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> RowProgress:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
