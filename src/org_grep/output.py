"""Delimiter-separated output of match records."""

import csv
import re
from dataclasses import dataclass
from typing import List, Sequence, TextIO, Tuple

FIXED_COLUMNS = ("repo", "file")


@dataclass(frozen=True)
class OutputSchema:
    """Columns of every output record, fixed for the whole run."""

    columns: Tuple[str, ...]

    @classmethod
    def from_group_count(cls, groups: int) -> "OutputSchema":
        """``repo, file, line`` without groups, else ``repo, file, group1..groupN``."""
        if groups < 0:
            raise ValueError(f"negative group count {groups}")
        if groups == 0:
            return cls(FIXED_COLUMNS + ("line",))
        return cls(FIXED_COLUMNS + tuple(f"group{i}" for i in range(1, groups + 1)))

    @classmethod
    def from_pattern(cls, pattern: "re.Pattern[str]") -> "OutputSchema":
        return cls.from_group_count(pattern.groups)

    @property
    def value_count(self) -> int:
        return len(self.columns) - len(FIXED_COLUMNS)


class CsvOutputSink:
    """Writes the header once, then one flushed record per match."""

    def __init__(self, stream: TextIO, schema: OutputSchema, delimiter: str = ","):
        self.stream = stream
        self.schema = schema
        self._writer = csv.writer(stream, delimiter=delimiter, lineterminator="\n")
        # Older csv modules only quote characters of the line terminator
        self._quoting_writer = csv.writer(
            stream, delimiter=delimiter, lineterminator="\n", quoting=csv.QUOTE_ALL
        )
        self._header_written = False
        self.records = 0

    def _write_row(self, row: Sequence[str]) -> None:
        if any("\r" in value for value in row):
            self._quoting_writer.writerow(row)
        else:
            self._writer.writerow(row)
        self.stream.flush()

    def write_header(self) -> None:
        """Write the header row. Later calls do nothing."""
        if self._header_written:
            return
        self._write_row(self.schema.columns)
        self._header_written = True

    def write(self, repository: str, file: str, values: List[str]) -> None:
        """Append one match record and flush it.

        Raises:
            RuntimeError: If the header has not been written yet
            ValueError: If the number of values does not fit the schema
        """
        if not self._header_written:
            raise RuntimeError("header must be written before any record")
        if len(values) != self.schema.value_count:
            raise ValueError(
                f"record for {file!r} has {len(values)} values, "
                f"expected {self.schema.value_count}"
            )
        self._write_row([repository, file, *values])
        self.records += 1
