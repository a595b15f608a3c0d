import logging
from typing import List, Optional, Sequence, Tuple

from .detect import find_timestamp, is_boundary, match_phase
from .types import PhaseKind, PhaseType, PhaseWindow


logger = logging.getLogger(__name__)

# Lines scanned past a phase marker before its window is cut off.
MAX_WINDOW_LINES = 100

# The marker line itself plus this many following lines may carry its timestamp.
TIMESTAMP_LOOKAHEAD = 1


def _window_end(lines: Sequence[str], start: int, next_start: int) -> int:
    limit = min(start + 1 + MAX_WINDOW_LINES, len(lines), next_start)
    for idx in range(start + 1, limit):
        if is_boundary(lines[idx]):
            return idx
    return limit


def _timestamp_near(lines: Sequence[str], start: int) -> str:
    for idx in range(start, min(start + 1 + TIMESTAMP_LOOKAHEAD, len(lines))):
        ts = find_timestamp(lines[idx])
        if ts:
            return ts
    return ""


def parse_phases(lines: Sequence[str]) -> List[PhaseWindow]:
    """
    Extract phase windows in report order.

    Single forward scan. Every INSERT-BATCH-<n> marker is kept; BASELINE
    and FINAL keep their first occurrence only. The result is ordered
    BASELINE, batches by ascending batch number (file order on ties),
    FINAL, independent of where they sit in the file.
    """
    markers: List[Tuple[int, PhaseKind]] = []
    # Any marker line closes the window before it, including ignored repeats.
    starts: List[int] = []
    seen_edges = set()

    for idx, line in enumerate(lines):
        kind = match_phase(line)
        if kind is None:
            continue
        starts.append(idx)
        if kind.type != PhaseType.INSERT_BATCH:
            if kind.type in seen_edges:
                continue
            seen_edges.add(kind.type)
        markers.append((idx, kind))

    windows: List[PhaseWindow] = []
    for idx, kind in markers:
        next_start = next((s for s in starts if s > idx), len(lines))
        windows.append(
            PhaseWindow(
                kind=kind,
                start=idx,
                end=_window_end(lines, idx, next_start),
                timestamp=_timestamp_near(lines, idx),
            )
        )

    baseline = [w for w in windows if w.kind.type == PhaseType.BASELINE]
    final = [w for w in windows if w.kind.type == PhaseType.FINAL]
    batches = sorted(
        (w for w in windows if w.kind.type == PhaseType.INSERT_BATCH),
        key=lambda w: (w.kind.batch, w.start),
    )

    if not batches:
        logger.debug("no INSERT-BATCH markers found")

    return baseline + batches + final


def find_phase(
    phases: Sequence[PhaseWindow],
    phase_type: PhaseType,
) -> Optional[PhaseWindow]:
    for w in phases:
        if w.kind.type == phase_type:
            return w
    return None
