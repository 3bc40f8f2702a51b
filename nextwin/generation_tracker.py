# nextwin/generation_tracker.py
"""
Generation Tracker - in-memory record of model generations.

The daily picks response looks the same whether it came from the model or
the fallback table, so the fallback rate is only visible here and in logs.
Observability only: nothing in the generation path reads these records.
"""
from __future__ import annotations

import threading
import uuid
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

OUTCOME_MODEL = "model"
OUTCOME_FALLBACK = "fallback"
OUTCOME_ERROR = "error"


# =============================================================================
# Data Classes
# =============================================================================


@dataclass
class GenerationRecord:
    """Record of a single generation attempt."""
    id: str
    timestamp: datetime
    endpoint: str
    model: Optional[str]
    latency_ms: float
    outcome: str
    reason: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict."""
        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "endpoint": self.endpoint,
            "model": self.model,
            "latencyMs": round(self.latency_ms, 2),
            "outcome": self.outcome,
            "reason": self.reason,
            "metadata": self.metadata,
        }


# =============================================================================
# In-Memory Store
# =============================================================================

_MAX_RECORDS = 5000  # Prevent unbounded growth

_records: List[GenerationRecord] = []
_lock = threading.Lock()


def record_generation(
    endpoint: str,
    outcome: str,
    model: Optional[str] = None,
    latency_ms: float = 0.0,
    reason: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> GenerationRecord:
    """Append a generation record, dropping the oldest past the cap."""
    record = GenerationRecord(
        id=str(uuid.uuid4()),
        timestamp=datetime.now(timezone.utc),
        endpoint=endpoint,
        model=model,
        latency_ms=latency_ms,
        outcome=outcome,
        reason=reason,
        metadata=metadata or {},
    )
    with _lock:
        _records.append(record)
        if len(_records) > _MAX_RECORDS:
            del _records[: len(_records) - _MAX_RECORDS]
    return record


def get_recent(limit: int = 100, endpoint: Optional[str] = None) -> List[GenerationRecord]:
    """Most recent records first."""
    with _lock:
        records = list(_records)
    if endpoint:
        records = [r for r in records if r.endpoint == endpoint]
    return list(reversed(records))[:limit]


def get_summary(hours: int = 24) -> dict:
    """
    Aggregate records over the lookback window.

    Returns totals and, per endpoint, model vs fallback counts and the
    fallback rate as a percentage.
    """
    period_end = datetime.now(timezone.utc)
    period_start = period_end - timedelta(hours=hours)

    with _lock:
        records = [r for r in _records if r.timestamp >= period_start]

    per_endpoint: Dict[str, Dict[str, float]] = defaultdict(
        lambda: {"total": 0, OUTCOME_MODEL: 0, OUTCOME_FALLBACK: 0, OUTCOME_ERROR: 0, "latency_ms": 0.0}
    )
    reasons: Dict[str, int] = defaultdict(int)
    for record in records:
        bucket = per_endpoint[record.endpoint]
        bucket["total"] += 1
        bucket[record.outcome] = bucket.get(record.outcome, 0) + 1
        bucket["latency_ms"] += record.latency_ms
        if record.reason:
            reasons[record.reason] += 1

    endpoints = {}
    for name, bucket in per_endpoint.items():
        total = int(bucket["total"])
        endpoints[name] = {
            "total": total,
            "modelSourced": int(bucket[OUTCOME_MODEL]),
            "fallback": int(bucket[OUTCOME_FALLBACK]),
            "errors": int(bucket[OUTCOME_ERROR]),
            "fallbackRate": round(100.0 * bucket[OUTCOME_FALLBACK] / total, 2) if total else 0.0,
            "avgLatencyMs": round(bucket["latency_ms"] / total, 2) if total else 0.0,
        }

    return {
        "periodStart": period_start.isoformat(),
        "periodEnd": period_end.isoformat(),
        "totalGenerations": len(records),
        "endpoints": endpoints,
        "reasons": dict(reasons),
    }


def clear_records() -> None:
    """Clear all records (for testing)."""
    with _lock:
        _records.clear()
