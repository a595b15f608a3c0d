import logging
from decimal import Decimal
from functools import reduce
from typing import List, Optional, Sequence, Tuple

from logscan.ingest import scan_log
from logscan.phases import find_phase
from logscan.types import (
    BatchSnapshots,
    BatchSummary,
    ContainerSnapshot,
    LogAnalysis,
    PhaseType,
    SizeQuantity,
    round2,
)


logger = logging.getLogger(__name__)


# Replication worker, source catalog, workflow engine, target store.
RELEVANT_CONTAINERS: Tuple[str, ...] = (
    "flow",
    "catalog",
    "temporal",
    "clickhouse",
)


def is_relevant(snapshot: ContainerSnapshot) -> bool:
    name = snapshot.name.lower()
    return any(part in name for part in RELEVANT_CONTAINERS)


def _mean(values: Sequence[float]) -> float:
    total = reduce(lambda acc, v: acc + Decimal(str(v)), values, Decimal(0))
    return float(round2(total / len(values)))


# ---------- Per-batch ----------

def summarize_batch(
    batch: int,
    snapshots: Sequence[ContainerSnapshot],
) -> Optional[BatchSummary]:
    relevant = [s for s in snapshots if is_relevant(s)]
    if not relevant:
        return None

    return BatchSummary(
        batch=batch,
        average_cpu_percent=_mean([s.cpu_percent for s in relevant]),
        total_memory=SizeQuantity.sum(s.memory_used for s in relevant),
        container_count=len(relevant),
    )


def summarize(batches: Sequence[BatchSnapshots]) -> List[BatchSummary]:
    """
    One summary per batch with at least one relevant container.

    Batches without relevant containers are skipped, not reported.
    """
    summaries: List[BatchSummary] = []
    for batch, snapshots in batches:
        summary = summarize_batch(batch, snapshots)
        if summary is None:
            logger.debug("batch %d has no relevant containers", batch)
            continue
        summaries.append(summary)
    return summaries


# ---------- Run-level ----------

def trend(summaries: Sequence[BatchSummary]) -> Optional[float]:
    """
    Mean CPU of the last third minus mean CPU of the first third.

    Positive means load is building up over the run. None with fewer
    than three batches.
    """
    third = len(summaries) // 3
    if third == 0:
        return None

    first = [s.average_cpu_percent for s in summaries[:third]]
    last = [s.average_cpu_percent for s in summaries[-third:]]

    return float(round2(Decimal(str(_mean(last))) - Decimal(str(_mean(first)))))


def total_relevant_memory(snapshots: Sequence[ContainerSnapshot]) -> SizeQuantity:
    return SizeQuantity.sum(s.memory_used for s in snapshots if is_relevant(s))


def memory_growth(
    baseline: Optional[Sequence[ContainerSnapshot]],
    final: Optional[Sequence[ContainerSnapshot]],
) -> Optional[SizeQuantity]:
    if baseline is None or final is None:
        return None
    return total_relevant_memory(final) - total_relevant_memory(baseline)


def analyze_log(lines: Sequence[str]) -> LogAnalysis:
    """
    Run the whole log path: phases, container tables, batch summaries,
    trend and memory growth between BASELINE and FINAL.
    """
    scanned = scan_log(lines)
    phases = [window for window, _ in scanned]

    by_type = {
        PhaseType.BASELINE: None,
        PhaseType.FINAL: None,
    }
    batches: List[BatchSnapshots] = []

    for window, snapshots in scanned:
        if window.kind.type == PhaseType.INSERT_BATCH:
            batches.append((window.kind.batch, snapshots))
        elif by_type[window.kind.type] is None:
            by_type[window.kind.type] = snapshots

    baseline = by_type[PhaseType.BASELINE]
    final = by_type[PhaseType.FINAL]
    summaries = summarize(batches)

    if find_phase(phases, PhaseType.BASELINE) is None:
        logger.debug("log has no BASELINE phase")
    if find_phase(phases, PhaseType.FINAL) is None:
        logger.debug("log has no FINAL phase")

    return LogAnalysis(
        phases=phases,
        baseline=list(baseline or []),
        final=list(final or []),
        batches=batches,
        summaries=summaries,
        trend=trend(summaries),
        memory_growth=memory_growth(baseline, final),
    )
