"""Pydantic models for ranked-list snapshots and the changes between them."""

from datetime import datetime, timezone
from typing import Dict, Iterable, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Entity(BaseModel):
    """One ranked item. Identity is ``key`` alone; rank and name are display attributes."""
    model_config = ConfigDict(frozen=True)

    key: str
    rank: int = Field(ge=1)
    display_name: str

    @field_validator("key")
    @classmethod
    def key_not_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("Entity key must not be empty")
        return v


class EntityMetadata(BaseModel):
    """Per-entity metadata as returned by a list source."""
    display_name: Optional[str] = None


class Snapshot(BaseModel):
    """An immutable, ordered capture of one list at one point in time.

    Entities are stored in rank order; ranks must be exactly 1..N and keys
    unique.
    """
    model_config = ConfigDict(frozen=True)

    list_type: str
    captured_at: datetime = Field(default_factory=utc_now)
    entities: Tuple[Entity, ...] = ()

    @model_validator(mode="after")
    def check_ranks_and_keys(self) -> "Snapshot":
        seen = set()
        for position, entity in enumerate(self.entities, start=1):
            if entity.rank != position:
                raise ValueError(
                    f"Rank {entity.rank} of '{entity.key}' does not match position {position}"
                )
            if entity.key in seen:
                raise ValueError(f"Duplicate key '{entity.key}' in {self.list_type} snapshot")
            seen.add(entity.key)
        return self

    @classmethod
    def from_keys(
        cls,
        list_type: str,
        keys: Iterable[str],
        names: Optional[Dict[str, str]] = None,
        captured_at: Optional[datetime] = None,
    ) -> "Snapshot":
        """Build a snapshot from keys in rank order, names defaulting to the key."""
        names = names or {}
        entities = tuple(
            Entity(key=key, rank=rank, display_name=names.get(key) or key)
            for rank, key in enumerate(keys, start=1)
        )
        return cls(
            list_type=list_type,
            captured_at=captured_at or utc_now(),
            entities=entities,
        )

    def __len__(self) -> int:
        return len(self.entities)

    def keys(self) -> List[str]:
        return [e.key for e in self.entities]

    def get(self, key: str) -> Optional[Entity]:
        return self._index().get(key)

    def rank_of(self, key: str) -> int:
        entity = self.get(key)
        if entity is None:
            raise KeyError(key)
        return entity.rank

    def same_order_as(self, other: "Snapshot") -> bool:
        return self.keys() == other.keys()

    def _index(self) -> Dict[str, Entity]:
        return {e.key: e for e in self.entities}


class Added(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["added"] = "added"
    key: str
    display_name: str
    new_rank: int


class Removed(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["removed"] = "removed"
    key: str
    display_name: str
    old_rank: int


class Moved(BaseModel):
    """A genuine reorder: the entity left the longest run of undisturbed neighbours."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["moved"] = "moved"
    key: str
    display_name: str
    old_rank: int
    new_rank: int

    @property
    def direction(self) -> str:
        return "up" if self.new_rank < self.old_rank else "down"


ChangeRecord = Union[Added, Removed, Moved]


class ChangeSummary(BaseModel):
    """Counts describing one diff, used for run logging."""
    added_count: int = 0
    removed_count: int = 0
    moved_count: int = 0
    unchanged_count: int = 0
    total_count: int = 0


class ListRunResult(BaseModel):
    """Outcome of processing one list type in a run."""
    list_type: str
    status: str  # baseline, unchanged, notified, delivery_failed, source_failed, store_failed, failed
    entity_count: int = 0
    notified: bool = False
    summary: Optional[ChangeSummary] = None
    error: Optional[str] = None
