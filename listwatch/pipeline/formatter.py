"""Turns change records into notification text.

Phrasing is fixed and deterministic so identical change sets always
produce byte-identical output.
"""

from typing import List

from listwatch.models.schemas import Added, ChangeRecord, Moved, Removed

# Discord caps an embed description at 4096 characters
DEFAULT_CHUNK_LIMIT = 4096


def format_change(record: ChangeRecord) -> str:
    """Render one change record as a single line."""
    if isinstance(record, Added):
        return f"{record.display_name} added to the list at #{record.new_rank}."
    if isinstance(record, Removed):
        return f"{record.display_name} removed from the list (was #{record.old_rank})."
    if isinstance(record, Moved):
        return (
            f"{record.display_name} moved {record.direction} "
            f"from #{record.old_rank} to #{record.new_rank}."
        )
    raise TypeError(f"Unknown change record: {record!r}")


def format_changes(records: List[ChangeRecord]) -> List[str]:
    return [format_change(r) for r in records]


def chunk_lines(lines: List[str], limit: int = DEFAULT_CHUNK_LIMIT) -> List[str]:
    """Pack lines into newline-joined bodies of at most ``limit`` characters.

    Lines are never split. A single line longer than ``limit`` is
    truncated with an ellipsis so it still fits.
    """
    if limit < 2:
        raise ValueError("limit must be at least 2")

    chunks = []
    current: List[str] = []
    size = 0
    for line in lines:
        if len(line) > limit:
            line = line[: limit - 1] + "…"
        added = len(line) + (1 if current else 0)
        if current and size + added > limit:
            chunks.append("\n".join(current))
            current, size = [], 0
            added = len(line)
        current.append(line)
        size += added
    if current:
        chunks.append("\n".join(current))
    return chunks
