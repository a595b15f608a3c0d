from dataclasses import dataclass
from functools import reduce
from typing import List, Optional, Sequence, Tuple

from logscan.phases import find_phase
from logscan.types import PhaseType, PhaseWindow, SizeDelta, SyncRecord
from query_runner import SOURCE, TARGET, QueryRunner
from severity import SyncStatus, sync_status
from sync import compare, compare_sizes, compare_total, efficiency, throughput


@dataclass(frozen=True)
class ConsistencyReport:
    records: List[SyncRecord]
    sizes: List[SizeDelta]
    total: SyncRecord
    efficiency: float
    status: SyncStatus
    throughput: Optional[float]


def _add_optional(acc: Optional[int], value: Optional[int]) -> Optional[int]:
    if value is None:
        return acc
    return (acc or 0) + value


def fold_totals(records: Sequence[SyncRecord]) -> Tuple[Optional[int], Optional[int]]:
    """
    Sum source and target counts, skipping absent ones. A total stays
    None when no table reported a count for that side.
    """
    source = reduce(lambda acc, r: _add_optional(acc, r.source_count), records, None)
    target = reduce(lambda acc, r: _add_optional(acc, r.target_count), records, None)
    return source, target


def load_phase_throughput(
    rows: Optional[int],
    phases: Optional[Sequence[PhaseWindow]],
) -> Optional[float]:
    if not phases:
        return None
    baseline = find_phase(phases, PhaseType.BASELINE)
    final = find_phase(phases, PhaseType.FINAL)
    if baseline is None or final is None:
        return None
    return throughput(rows, baseline.parsed_time, final.parsed_time)


def build_consistency_report(
    runner: QueryRunner,
    tables: Sequence[str],
    phases: Optional[Sequence[PhaseWindow]] = None,
) -> ConsistencyReport:
    """
    Query both systems for every table and fold the answers into one report.

    Counts come from the runner as int or None; None flows through as
    an absent value and is rendered later as N/A.
    """
    records: List[SyncRecord] = []
    sizes: List[SizeDelta] = []

    for table in tables:
        records.append(
            compare(
                runner.query_row_count(SOURCE, table),
                runner.query_row_count(TARGET, table),
                entity_name=table,
            )
        )
        sizes.append(
            compare_sizes(
                table,
                runner.query_size_bytes(SOURCE, table),
                runner.query_size_bytes(TARGET, table),
            )
        )

    source_total, target_total = fold_totals(records)
    eff = efficiency(source_total, target_total)

    return ConsistencyReport(
        records=records,
        sizes=sizes,
        total=compare_total(source_total, target_total),
        efficiency=eff,
        status=sync_status(eff),
        throughput=load_phase_throughput(target_total, phases),
    )
