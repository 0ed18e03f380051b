import logging
import warnings
from enum import Enum
from typing import Dict, List, Optional

from elasticsearch import Elasticsearch, ElasticsearchWarning
from elasticsearch.exceptions import ApiError, TransportError

from shard_memory import ShardRecord

logger = logging.getLogger(__name__)

DEFAULT_PING_TIMEOUT_MS = 1000


class ClusterStatus(Enum):
    OK = "ok"
    UNAVAILABLE = "unavailable"


class ClusterQueryError(Exception):
    """The segments query could not be completed."""


# -------------------- CLIENT --------------------

def make_client(host: str, port: int, user: Optional[str] = None, password: Optional[str] = None,
                request_timeout: float = 30) -> Elasticsearch:
    warnings.simplefilter("ignore", ElasticsearchWarning)
    kwargs = {}
    if user and password:
        kwargs["basic_auth"] = (user, password)
    # single attempt per call, no retries
    return Elasticsearch(
        hosts=[f"http://{host}:{port}"],
        request_timeout=request_timeout,
        max_retries=0,
        retry_on_timeout=False,
        **kwargs
    )


class SegmentsClient:
    """Liveness check and `indices segments` query against one cluster."""

    def __init__(self, es: Elasticsearch, ping_timeout_ms: int = DEFAULT_PING_TIMEOUT_MS):
        self.es = es
        self.ping_timeout_ms = ping_timeout_ms

    def check_alive(self, timeout_ms: Optional[int] = None) -> ClusterStatus:
        timeout_ms = self.ping_timeout_ms if timeout_ms is None else timeout_ms
        try:
            alive = self.es.options(request_timeout=timeout_ms / 1000.0).ping()
        except (ApiError, TransportError) as e:
            logger.warning("Ping failed: %s", e)
            return ClusterStatus.UNAVAILABLE
        return ClusterStatus.OK if alive else ClusterStatus.UNAVAILABLE

    def fetch_segment_stats(self) -> Dict[str, Dict[str, List[ShardRecord]]]:
        try:
            resp = self.es.indices.segments()
        except (ApiError, TransportError) as e:
            raise ClusterQueryError(f"segments query failed: {e}") from e
        # ES 8 client wraps in ObjectApiResponse; get dict body if present
        try:
            return parse_segments_response(getattr(resp, "body", resp))
        except (AttributeError, TypeError, ValueError) as e:
            raise ClusterQueryError(f"unexpected segments response: {e}") from e

    def close(self):
        self.es.close()


# -------------------- RESPONSE MAPPING --------------------

def is_primary(routing: dict) -> bool:
    primary = routing.get("primary")
    if isinstance(primary, bool):
        return primary
    return str(routing.get("state", "")).lower() == "primary"


def parse_shard(shard: dict) -> ShardRecord:
    routing = shard.get("routing") or {}
    segments = shard.get("segments") or {}
    return ShardRecord(
        primary=is_primary(routing),
        node=routing.get("node"),
        segment_memory=[int((seg or {}).get("memory_in_bytes") or 0) for seg in segments.values()],
    )


def parse_segments_response(body: Optional[dict]) -> Dict[str, Dict[str, List[ShardRecord]]]:
    """
    Map the loosely structured segments payload
    ({"indices": {name: {"shards": {id: [shard, ...]}}}}) into typed records.
    Missing maps are treated as empty and missing memory sizes as 0.
    """
    indices = (body or {}).get("indices") or {}
    parsed = {}
    for index_name, index_info in indices.items():
        shards_by_id = (index_info or {}).get("shards") or {}
        parsed[index_name] = {
            str(shard_id): [parse_shard(s or {}) for s in (instances or [])]
            for shard_id, instances in shards_by_id.items()
        }
    return parsed
