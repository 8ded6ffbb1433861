# src/rowstream/plugins/processors.py
"""Ready-made RowProcessor implementations.

Applications usually write their own processor; these cover the two common
shapes: per-row callbacks and fixed-size batches.
"""

from collections.abc import Callable

from rowstream.contracts import Row


class CallbackRowProcessor:
    """Hands each row to a callback.

    Reports a checkpoint-safe boundary after every ``pause_every`` rows.
    ``pause_every=0`` never pauses, so a single process_some() call drains
    the whole source.
    """

    def __init__(
        self,
        on_row: Callable[[Row], None],
        on_complete: Callable[[], None] | None = None,
        *,
        pause_every: int = 1,
    ) -> None:
        if pause_every < 0:
            raise ValueError(f"pause_every must be >= 0, got {pause_every}")
        self._on_row = on_row
        self._on_complete = on_complete
        self._pause_every = pause_every
        self._count = 0

    @property
    def rows_seen(self) -> int:
        return self._count

    def process(self, row: Row) -> bool:
        self._on_row(row)
        self._count += 1
        return self._pause_every > 0 and self._count % self._pause_every == 0

    def complete(self) -> None:
        if self._on_complete is not None:
            self._on_complete()


class BatchingRowProcessor:
    """Buffers rows and flushes them in fixed-size batches.

    The pipeline may pause only right after a flush: at that point every row
    delivered so far has been handed to ``flush``, so the last row's
    fingerprint is a safe resume marker. complete() flushes the remainder.
    """

    def __init__(self, flush: Callable[[list[Row]], None], *, batch_size: int = 100) -> None:
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        self._flush = flush
        self._batch_size = batch_size
        self._batch: list[Row] = []
        self.batches_flushed = 0

    def process(self, row: Row) -> bool:
        self._batch.append(row)
        if len(self._batch) < self._batch_size:
            return False
        self._emit()
        return True

    def complete(self) -> None:
        if self._batch:
            self._emit()

    def _emit(self) -> None:
        batch, self._batch = self._batch, []
        self._flush(batch)
        self.batches_flushed += 1
