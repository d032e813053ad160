"""Change detection between two snapshots of the same ranked list.

Entries are first partitioned by key into added, removed and common. The
common entries are then aligned with a longest common subsequence: the
LCS is the largest group of entries whose relative order survived, so
only entries outside it are reported as moved. An entry whose rank number
changed only because something was inserted or removed above it stays
inside the LCS and is not reported.
"""

from typing import Dict, List, Sequence, Set

from listwatch.models.schemas import (
    Added,
    ChangeRecord,
    ChangeSummary,
    Moved,
    Removed,
    Snapshot,
)

ADDED = "added"
REMOVED = "removed"
MOVED = "moved"
UNCHANGED = "unchanged"


def partition_keys(previous: Snapshot, current: Snapshot) -> Dict[str, set]:
    """Split the key union into 'added', 'removed', and 'common' sets."""
    previous_keys = set(previous.keys())
    current_keys = set(current.keys())
    return {
        "added": current_keys - previous_keys,
        "removed": previous_keys - current_keys,
        "common": current_keys & previous_keys,
    }


def longest_common_subsequence(a: Sequence[str], b: Sequence[str]) -> List[str]:
    """Return the LCS of two key sequences.

    ``dp[i][j]`` holds the LCS length of ``a[i:]`` and ``b[j:]``. When
    reconstructing, a mismatch with ``dp[i+1][j] >= dp[i][j+1]`` advances
    along ``a``: ties prefer consuming the previous ordering first. When
    several alignments are equally long, entries that come earliest in the
    previous ordering are the ones left out, so a swap [A, B] -> [B, A]
    reports A as moved and keeps B.
    """
    n, m = len(a), len(b)
    dp = [[0] * (m + 1) for _ in range(n + 1)]
    for i in range(n - 1, -1, -1):
        row, below = dp[i], dp[i + 1]
        for j in range(m - 1, -1, -1):
            if a[i] == b[j]:
                row[j] = below[j + 1] + 1
            else:
                row[j] = max(below[j], row[j + 1])

    result = []
    i = j = 0
    while i < n and j < m:
        if a[i] == b[j]:
            result.append(a[i])
            i += 1
            j += 1
        elif dp[i + 1][j] >= dp[i][j + 1]:
            i += 1
        else:
            j += 1
    return result


def moved_keys(previous: Snapshot, current: Snapshot, common: Set[str]) -> Set[str]:
    """Common keys that fall outside the LCS of the two common orderings.

    A key outside the LCS that still holds the same rank number is not
    counted: its neighbours were rearranged around it, it did not move.
    """
    prev_common = [k for k in previous.keys() if k in common]
    cur_common = [k for k in current.keys() if k in common]
    stable = set(longest_common_subsequence(prev_common, cur_common))

    old_ranks = {e.key: e.rank for e in previous.entities}
    return {
        e.key for e in current.entities
        if e.key in common and e.key not in stable and old_ranks[e.key] != e.rank
    }


def classify_keys(previous: Snapshot, current: Snapshot) -> Dict[str, str]:
    """Map every key of either snapshot to exactly one category."""
    parts = partition_keys(previous, current)
    moved = moved_keys(previous, current, parts["common"])

    categories = {}
    for key in parts["added"]:
        categories[key] = ADDED
    for key in parts["removed"]:
        categories[key] = REMOVED
    for key in parts["common"]:
        categories[key] = MOVED if key in moved else UNCHANGED
    return categories


def detect_changes(previous: Snapshot, current: Snapshot) -> List[ChangeRecord]:
    """Diff two snapshots of the same list type.

    Returns all Removed records (by previous rank), then all Added (by
    current rank), then all Moved (by current rank). Unchanged entries are
    not emitted. Matching list types is the caller's responsibility.
    """
    if previous.same_order_as(current):
        return []

    parts = partition_keys(previous, current)
    moved_set = moved_keys(previous, current, parts["common"])

    removed: List[ChangeRecord] = [
        Removed(key=e.key, display_name=e.display_name, old_rank=e.rank)
        for e in previous.entities
        if e.key in parts["removed"]
    ]
    added: List[ChangeRecord] = [
        Added(key=e.key, display_name=e.display_name, new_rank=e.rank)
        for e in current.entities
        if e.key in parts["added"]
    ]

    old_ranks = {e.key: e.rank for e in previous.entities}
    moved: List[ChangeRecord] = [
        Moved(
            key=e.key,
            display_name=e.display_name,
            old_rank=old_ranks[e.key],
            new_rank=e.rank,
        )
        for e in current.entities
        if e.key in moved_set
    ]

    return removed + added + moved


def build_change_summary(changes: List[ChangeRecord], current: Snapshot) -> ChangeSummary:
    """Summarize a change set into counts for the run log."""
    added = sum(1 for c in changes if c.kind == ADDED)
    removed = sum(1 for c in changes if c.kind == REMOVED)
    moved = sum(1 for c in changes if c.kind == MOVED)
    return ChangeSummary(
        added_count=added,
        removed_count=removed,
        moved_count=moved,
        unchanged_count=len(current) - added - moved,
        total_count=len(current),
    )
