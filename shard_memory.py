"""
Group shards of an Elasticsearch cluster by index and sort the groups by
index total segment memory size.

For each index:
   list shard instances (primaries and replicas)
   for each shard instance:
       sum segments memory size, as the shard memory size
   sum shards memory size, as index total memory size

Sort groups by memory size (stable, ascending).
"""
from dataclasses import dataclass, field
from operator import attrgetter
from typing import List, Mapping, Optional


@dataclass(frozen=True)
class ShardRecord:
    """One shard instance as reported by the segments API."""
    primary: bool
    node: Optional[str] = None
    segment_memory: List[int] = field(default_factory=list)

    @property
    def memory(self) -> int:
        return sum(self.segment_memory)


@dataclass(frozen=True)
class ShardSummary:
    id: str
    primary: bool
    node: Optional[str] = None


@dataclass(frozen=True)
class IndexGroup:
    index_name: str
    memory: int
    shards: List[ShardSummary] = field(default_factory=list)


# index name -> shard id -> shard instances
IndexSegments = Mapping[str, Mapping[str, List[ShardRecord]]]


def aggregate_shards(index_name: str, shards_by_id: Mapping[str, List[ShardRecord]]) -> IndexGroup:
    total_memory = 0
    shards = []
    for shard_id, records in shards_by_id.items():
        for record in records:
            total_memory += record.memory
            shards.append(ShardSummary(id=shard_id, primary=record.primary, node=record.node))
    return IndexGroup(index_name=index_name, memory=total_memory, shards=shards)


def aggregate(index_segments: IndexSegments) -> List[IndexGroup]:
    groups = [aggregate_shards(name, shards_by_id) for name, shards_by_id in index_segments.items()]
    # sorted() is stable: equal sizes keep input order
    return sorted(groups, key=attrgetter("memory"))

