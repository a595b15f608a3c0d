import re
from enum import Enum, auto
from typing import Optional

from .types import PhaseKind


class LineKind(Enum):
    """
    Structural shapes of a monitoring log line.

    This is about structure, not meaning.
    """
    BLANK = auto()
    SEPARATOR = auto()
    SECTION_HEADER = auto()
    TABLE_HEADER = auto()
    OTHER = auto()


TIMESTAMP_RE = re.compile(r"\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}")

INSERT_BATCH_RE = re.compile(r"INSERT-BATCH-(\d+)")

# BASELINE / FINAL must end the line, optionally after a timestamp prefix
EDGE_PHASE_RE = re.compile(
    r"""
    (?:^|[\s\[\]:|-])
    (?P<token>BASELINE|FINAL)
    $
    """,
    re.VERBOSE,
)

SEPARATOR_RE = re.compile(r"^={3,}$")

# DOCKER STATS:  /  PEERDB CONTAINERS:  /  CLICKHOUSE CONTAINERS:
# optionally after a timestamp prefix
SECTION_HEADER_RE = re.compile(
    r"""
    ^
    (?:\[?\d{4}-\d{2}-\d{2}\ \d{2}:\d{2}:\d{2}\]?\s+)?
    (?:DOCKER\ STATS|[A-Z][A-Z0-9\ _-]*\ CONTAINERS)
    :$
    """,
    re.VERBOSE,
)

# "NAME  CPU %  MEM USAGE / LIMIT" or "CONTAINER ID  NAME  CPU %  MEM USAGE / LIMIT"
TABLE_HEADER_RE = re.compile(r"\bNAME\b.*\bCPU\b.*\bMEM")


def match_phase(line: str) -> Optional[PhaseKind]:
    """
    Return the phase a line opens, or None.

    INSERT-BATCH-<n> may appear anywhere in the line.
    BASELINE and FINAL must be the last token.
    """
    if not line:
        return None

    s = line.strip()

    m = INSERT_BATCH_RE.search(s)
    if m:
        return PhaseKind.insert_batch(int(m.group(1)))

    m = EDGE_PHASE_RE.search(s)
    if m:
        if m.group("token") == "BASELINE":
            return PhaseKind.baseline()
        return PhaseKind.final()

    return None


def find_timestamp(line: str) -> str:
    m = TIMESTAMP_RE.search(line or "")
    return m.group(0) if m else ""


def classify_line(line: str) -> LineKind:
    """
    Cheap structural classification used by the container scanner.

    It should NEVER throw.
    """
    s = (line or "").strip()
    if not s:
        return LineKind.BLANK
    if SEPARATOR_RE.match(s):
        return LineKind.SEPARATOR
    if SECTION_HEADER_RE.match(s):
        return LineKind.SECTION_HEADER
    if TABLE_HEADER_RE.search(s):
        return LineKind.TABLE_HEADER
    return LineKind.OTHER


def is_boundary(line: str) -> bool:
    return classify_line(line) in (LineKind.BLANK, LineKind.SEPARATOR)
