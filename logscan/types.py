from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP, getcontext, localcontext
from enum import Enum
from functools import reduce
from typing import Iterable, List, Optional, Sequence, Tuple


TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

TWO_PLACES = Decimal("0.01")

# Digits kept beyond the integer part: two decimals plus the ten that
# dividing by 1024 can add.
EXTRA_DIGITS = 16


def exact_context(*values: Decimal):
    """
    Decimal context wide enough to keep arithmetic on `values` exact.
    """
    ctx = getcontext().copy()
    ctx.prec = max([ctx.prec] + [v.adjusted() + EXTRA_DIGITS for v in values])
    return localcontext(ctx)


def round2(value: Decimal) -> Decimal:
    """Round half away from zero to two decimal places."""
    with exact_context(value):
        return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


@dataclass(frozen=True, order=True)
class SizeQuantity:
    """
    A non-negative size in KiB.

    Every size comparison and sum goes through this type, never through
    raw strings or mixed-unit numbers.
    """
    kib: Decimal = Decimal("0.00")

    def __add__(self, other: "SizeQuantity") -> "SizeQuantity":
        with exact_context(self.kib, other.kib):
            return SizeQuantity(round2(self.kib + other.kib))

    def __sub__(self, other: "SizeQuantity") -> "SizeQuantity":
        with exact_context(self.kib, other.kib):
            return SizeQuantity(round2(max(self.kib - other.kib, Decimal(0))))

    def __str__(self) -> str:
        return f"{self.kib:.2f} KiB"

    @staticmethod
    def sum(quantities: Iterable["SizeQuantity"]) -> "SizeQuantity":
        return reduce(lambda acc, q: acc + q, quantities, ZERO)


ZERO = SizeQuantity(Decimal("0.00"))


class PhaseType(Enum):
    BASELINE = "BASELINE"
    INSERT_BATCH = "INSERT_BATCH"
    FINAL = "FINAL"


@dataclass(frozen=True)
class PhaseKind:
    """
    Tagged phase variant: Baseline | InsertBatch(n) | Final.
    """
    type: PhaseType
    batch: Optional[int] = None

    @classmethod
    def baseline(cls) -> "PhaseKind":
        return cls(PhaseType.BASELINE)

    @classmethod
    def final(cls) -> "PhaseKind":
        return cls(PhaseType.FINAL)

    @classmethod
    def insert_batch(cls, n: int) -> "PhaseKind":
        return cls(PhaseType.INSERT_BATCH, n)

    @property
    def label(self) -> str:
        if self.type == PhaseType.INSERT_BATCH:
            return f"INSERT-BATCH-{self.batch}"
        return self.type.value


@dataclass(frozen=True)
class PhaseWindow:
    """
    One monitoring phase anchored at a line index.

    `end` is exclusive: the next phase start, a blank line, a `===`
    separator or the maximum window length, whichever comes first.
    """
    kind: PhaseKind
    start: int
    end: int
    timestamp: str = ""

    @property
    def parsed_time(self) -> Optional[datetime]:
        if not self.timestamp:
            return None
        try:
            return datetime.strptime(self.timestamp, TIMESTAMP_FORMAT)
        except ValueError:
            return None


@dataclass(frozen=True)
class ContainerSnapshot:
    name: str
    cpu_percent: float
    memory_used: SizeQuantity
    memory_limit: SizeQuantity
    phase: Optional[PhaseWindow] = None


@dataclass(frozen=True)
class BatchSummary:
    batch: int
    average_cpu_percent: float
    total_memory: SizeQuantity
    container_count: int


class LagClass(str, Enum):
    SYNCED = "SYNCED"
    NEAR_SYNC = "NEAR_SYNC"
    LAG = "LAG"
    NO_TARGET = "NO_TARGET"
    NO_SOURCE = "NO_SOURCE"


@dataclass(frozen=True)
class SyncRecord:
    entity_name: str
    source_count: Optional[int]
    target_count: Optional[int]
    lag: LagClass
    diff: Optional[int]


@dataclass(frozen=True)
class SizeDelta:
    entity_name: str
    source: SizeQuantity
    target: Optional[SizeQuantity]
    delta: Optional[SizeQuantity]


BatchSnapshots = Tuple[int, Sequence[ContainerSnapshot]]


@dataclass(frozen=True)
class LogAnalysis:
    """
    Everything the log path produces for one file.
    """
    phases: List[PhaseWindow]
    baseline: List[ContainerSnapshot]
    final: List[ContainerSnapshot]
    batches: List[BatchSnapshots]
    summaries: List[BatchSummary]
    trend: Optional[float]
    memory_growth: Optional[SizeQuantity]
