from typing import List, Optional, Sequence

from consistency import ConsistencyReport
from logscan.types import (
    BatchSummary,
    ContainerSnapshot,
    LogAnalysis,
    PhaseWindow,
    SizeQuantity,
)


NA = "N/A"


# ---------- Helpers ----------

def fmt_optional(value) -> str:
    return NA if value is None else str(value)


def fmt_size(size: Optional[SizeQuantity]) -> str:
    return NA if size is None else str(size)


def fmt_pct(value: Optional[float]) -> str:
    return NA if value is None else f"{value:.2f}%"


def fmt_signed(value: Optional[float]) -> str:
    return NA if value is None else f"{value:+.2f}"


# ---------- Log path ----------

def render_phases(phases: Sequence[PhaseWindow]) -> str:
    if not phases:
        return "No phases found."

    lines = ["Phases"]
    for w in phases:
        lines.append(
            f"  {w.kind.label:<18} line {w.start + 1:<6} {w.timestamp or NA}"
        )
    return "\n".join(lines)


def render_containers(title: str, snapshots: Sequence[ContainerSnapshot]) -> str:
    if not snapshots:
        return f"{title}: {NA}"

    lines = [title]
    for s in snapshots:
        lines.append(
            f"  {s.name:<28} {s.cpu_percent:>7.2f}%  "
            f"{str(s.memory_used):>14} / {s.memory_limit}"
        )
    return "\n".join(lines)


def render_batches(summaries: Sequence[BatchSummary], trend: Optional[float]) -> str:
    if not summaries:
        return "No INSERT-BATCH phases with relevant containers."

    lines: List[str] = ["Batches"]
    for s in summaries:
        lines.append(
            f"  #{s.batch:<4} cpu {s.average_cpu_percent:>7.2f}%  "
            f"mem {str(s.total_memory):>14}  containers {s.container_count}"
        )
    lines.append(f"  CPU trend (last third - first third): {fmt_signed(trend)}")
    return "\n".join(lines)


def render_analysis(analysis: LogAnalysis) -> str:
    return "\n\n".join(
        [
            render_phases(analysis.phases),
            render_containers("BASELINE containers", analysis.baseline),
            render_batches(analysis.summaries, analysis.trend),
            render_containers("FINAL containers", analysis.final),
            f"Memory growth BASELINE → FINAL: {fmt_size(analysis.memory_growth)}",
        ]
    )


# ---------- Sync path ----------

def render_consistency(report: ConsistencyReport) -> str:
    lines = [
        "Replication consistency",
        f"  {'table':<28} {'source':>12} {'target':>12} {'diff':>8}  status",
    ]

    for r in report.records + [report.total]:
        lines.append(
            f"  {r.entity_name:<28} {fmt_optional(r.source_count):>12} "
            f"{fmt_optional(r.target_count):>12} {fmt_optional(r.diff):>8}  "
            f"{r.lag.value}"
        )

    if report.sizes:
        lines.append("")
        lines.append("Sizes")
        for s in report.sizes:
            lines.append(
                f"  {s.entity_name:<28} {str(s.source):>16} "
                f"{fmt_size(s.target):>16}  delta {fmt_size(s.delta)}"
            )

    lines.append("")
    lines.append(f"Efficiency : {fmt_pct(report.efficiency)}")
    lines.append(f"Status     : {report.status.value}")
    if report.throughput is not None:
        lines.append(f"Throughput : {report.throughput:.2f} rows/s")
    else:
        lines.append(f"Throughput : {NA}")

    return "\n".join(lines)
