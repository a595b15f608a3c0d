import logging
import math
import re
from typing import List, Optional, Sequence, Set, Tuple

from .detect import LineKind, classify_line, match_phase
from .types import ContainerSnapshot, PhaseWindow, SizeQuantity, ZERO
from .units import normalize


logger = logging.getLogger(__name__)

# Lines examined from the window start when looking for container tables.
CONTAINER_LOOKAHEAD = 100

# "100.00MiB / 2.00GiB", "100.00MiB/2.00GiB", "1.5 GiB / 8 GiB"
MEMORY_PAIR_RE = re.compile(
    r"""
    (?P<used>\d[\d,]*(?:\.\d+)?\s*[A-Za-z]+)
    \s*/\s*
    (?P<limit>\d[\d,]*(?:\.\d+)?\s*[A-Za-z]+)
    """,
    re.VERBOSE,
)


# -----------------------------
# ROW PARSING
# -----------------------------

def parse_cpu(field: str) -> float:
    try:
        value = float(field.rstrip("%").replace(",", ""))
    except ValueError:
        return 0.0
    return value if math.isfinite(value) and value >= 0 else 0.0


def parse_memory(fields: Sequence[str]) -> Tuple[SizeQuantity, SizeQuantity]:
    """
    Parse the memory columns of a stats row.

    Accepts a pre-joined `used/limit` token or the split `used / limit`
    sequence. Anything else is a zero pair.
    """
    m = MEMORY_PAIR_RE.search(" ".join(fields))
    if not m:
        return ZERO, ZERO
    return normalize(m.group("used")), normalize(m.group("limit"))


def parse_row(
    line: str,
    phase: Optional[PhaseWindow] = None,
) -> Optional[ContainerSnapshot]:
    """
    Parse rows like:
      flow-worker   12.50%   100.00MiB / 2.00GiB
    """
    fields = line.split()
    if len(fields) < 3:
        return None

    used, limit = parse_memory(fields[2:])

    return ContainerSnapshot(
        name=fields[0],
        cpu_percent=parse_cpu(fields[1]),
        memory_used=used,
        memory_limit=limit,
        phase=phase,
    )


# -----------------------------
# SECTION SCANNING
# -----------------------------

def _scan_section(
    lines: Sequence[str],
    idx: int,
    end: int,
    phase: Optional[PhaseWindow],
    seen: Set[str],
    out: List[ContainerSnapshot],
) -> int:
    """
    Consume the rows under one section header.

    Returns the index the caller should resume from. A new header or
    phase marker is not consumed, so the caller sees it next.
    """
    while idx < end:
        line = lines[idx]
        kind = classify_line(line)

        if kind in (LineKind.BLANK, LineKind.SEPARATOR):
            return idx + 1
        if kind == LineKind.SECTION_HEADER or match_phase(line) is not None:
            return idx
        if kind == LineKind.TABLE_HEADER:
            idx += 1
            continue

        snapshot = parse_row(line, phase)
        if snapshot is None:
            logger.debug("skipping short container row at line %d: %r", idx, line)
        elif snapshot.name in seen:
            logger.debug("duplicate container %s at line %d", snapshot.name, idx)
        else:
            seen.add(snapshot.name)
            out.append(snapshot)

        idx += 1

    return idx


def parse_containers(
    lines: Sequence[str],
    window_start: int,
    phase: Optional[PhaseWindow] = None,
) -> List[ContainerSnapshot]:
    """
    Extract container snapshots below `window_start`.

    Looks at most CONTAINER_LOOKAHEAD lines ahead and stops early at the
    next phase marker. Rows sit under `DOCKER STATS:` or `<GROUP> CONTAINERS:`
    headers. A container name is kept once per window, first row wins.

    It should NEVER throw.
    """
    snapshots: List[ContainerSnapshot] = []
    seen: Set[str] = set()

    if window_start < 0:
        return snapshots

    end = min(window_start + CONTAINER_LOOKAHEAD, len(lines))
    idx = window_start

    while idx < end:
        line = lines[idx]

        if idx > window_start and match_phase(line) is not None:
            break

        if classify_line(line) == LineKind.SECTION_HEADER:
            idx = _scan_section(lines, idx + 1, end, phase, seen, snapshots)
            continue

        idx += 1

    return snapshots
