"""Row and RowProcessor contracts.

A Row is an ordered mapping of column name to value. Column names come from a
header discovered at runtime (or positional indexes rendered as strings), so
rows are plain dicts rather than fixed records. Values are strings for the
delimited-text format and any JSON value for the JSON lines format;
processors narrow and validate as needed.
"""

from typing import Any, Protocol, TypeAlias, runtime_checkable

Row: TypeAlias = dict[str, Any]

# A Marker is the fingerprint of a fully decoded row (see core.canonical).
Marker: TypeAlias = str


@runtime_checkable
class RowProcessor(Protocol):
    """Consumer of decoded rows, supplied by the application.

    The processor owns no pipeline state and must be safe to invoke
    repeatedly with fresh rows.
    """

    def process(self, row: Row) -> bool:
        """Process one row.

        Returns:
            True if the pipeline may safely pause immediately after this row
            (the caller has durably recorded its progress), False to continue
            without yielding control.
        """
        ...

    def complete(self) -> None:
        """Finish pending work.

        Called exactly once, only after the source is exhausted and every row
        was processed successfully.
        """
        ...
