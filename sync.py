from datetime import datetime
from decimal import Decimal
from typing import Optional, Union

from logscan.types import LagClass, SizeDelta, SyncRecord, round2
from logscan.units import normalize


# Per-table CDC checks tolerate a smaller gap than whole-pipeline totals.
TABLE_NEAR_SYNC_THRESHOLD = 5
PIPELINE_NEAR_SYNC_THRESHOLD = 10


def classify(
    source_count: Optional[int],
    target_count: Optional[int],
    near_sync_threshold: int,
) -> LagClass:
    if target_count is None:
        return LagClass.NO_TARGET
    if source_count is None:
        return LagClass.NO_SOURCE

    diff = source_count - target_count
    if diff == 0:
        return LagClass.SYNCED
    if abs(diff) <= near_sync_threshold:
        return LagClass.NEAR_SYNC
    return LagClass.LAG


def compare(
    source_count: Optional[int],
    target_count: Optional[int],
    entity_name: str = "",
    near_sync_threshold: int = TABLE_NEAR_SYNC_THRESHOLD,
) -> SyncRecord:
    """
    Compare source and target row counts of one entity.

    Absent counts stay absent: a missing target is NO_TARGET, a missing
    source is NO_SOURCE, and either leaves the diff as None.
    """
    diff = None
    if source_count is not None and target_count is not None:
        diff = source_count - target_count

    return SyncRecord(
        entity_name=entity_name,
        source_count=source_count,
        target_count=target_count,
        lag=classify(source_count, target_count, near_sync_threshold),
        diff=diff,
    )


def compare_total(
    source_total: Optional[int],
    target_total: Optional[int],
    entity_name: str = "TOTAL",
) -> SyncRecord:
    return compare(
        source_total,
        target_total,
        entity_name=entity_name,
        near_sync_threshold=PIPELINE_NEAR_SYNC_THRESHOLD,
    )


def compare_sizes(
    entity_name: str,
    source_size: Union[str, int, None],
    target_size: Union[str, int, None],
) -> SizeDelta:
    """
    Byte-size comparison in KiB. The delta is |source - target|.
    """
    source = normalize(source_size)
    if target_size is None:
        return SizeDelta(entity_name, source, None, None)

    target = normalize(target_size)
    delta = source - target if source >= target else target - source

    return SizeDelta(entity_name, source, target, delta)


def efficiency(source_count: Optional[int], target_count: Optional[int]) -> float:
    """
    Target rows as a percentage of source rows. Never divides by zero.
    """
    if not source_count or target_count is None:
        return 0.0
    return float(round2(Decimal(target_count) / Decimal(source_count) * 100))


def throughput(
    rows: Optional[int],
    start: Optional[datetime],
    end: Optional[datetime],
) -> Optional[float]:
    """
    Rows per second between two phase timestamps.
    """
    if rows is None or start is None or end is None:
        return None

    seconds = (end - start).total_seconds()
    if seconds <= 0:
        return None

    return float(round2(Decimal(rows) / Decimal(str(seconds))))
