import logging
import re
from decimal import Decimal, getcontext, localcontext
from typing import Dict, Optional, Union

from .types import SizeQuantity, ZERO, round2


logger = logging.getLogger(__name__)

KIB = Decimal(1024)

# Decimal units: multiplier to bytes. The byte total is then divided by 1024.
DECIMAL_UNITS: Dict[str, Decimal] = {
    "b": Decimal(1),
    "bytes": Decimal(1),
    "kb": Decimal(1000),
    "mb": Decimal(1000) ** 2,
    "gb": Decimal(1000) ** 3,
    "tb": Decimal(1000) ** 4,
}

# Binary units: multiplier straight to KiB.
BINARY_UNITS: Dict[str, Decimal] = {
    "kib": Decimal(1),
    "mib": KIB,
    "gib": KIB ** 2,
    "tib": KIB ** 3,
}

# Digits beyond the input length: the TB factor plus the 1024 division.
UNIT_HEADROOM_DIGITS = 32

BARE_BYTES_RE = re.compile(r"^\d+$")

SIZE_RE = re.compile(
    r"""
    ^
    (?P<num>\d[\d,]*(?:\.\d+)?)   # 1,234.5
    \s*
    (?P<unit>[A-Za-z]+)
    $
    """,
    re.VERBOSE,
)


def _context_for(text: str):
    """
    Decimal context wide enough for `text` times the largest unit factor.
    """
    ctx = getcontext().copy()
    ctx.prec = max(ctx.prec, len(text) + UNIT_HEADROOM_DIGITS)
    return localcontext(ctx)


def _from_bytes(count: Decimal) -> SizeQuantity:
    return SizeQuantity(round2(count / KIB))


def _convert(number: Decimal, unit: str) -> Optional[SizeQuantity]:
    if unit in BINARY_UNITS:
        return SizeQuantity(round2(number * BINARY_UNITS[unit]))
    if unit in DECIMAL_UNITS:
        return _from_bytes(number * DECIMAL_UNITS[unit])
    return None


def normalize(value: Union[str, int, None]) -> SizeQuantity:
    """
    Convert a size representation into KiB.

    Accepts a byte count (int or digit string) or `<number><unit>`.
    Decimal units (B, KB, MB, GB, TB, bytes) are resolved to bytes first
    and then divided by 1024; binary units (KiB .. TiB) map to KiB directly.

    This function must be:
    - deterministic
    - total: anything unparsable is 0 KiB

    It should NEVER throw.
    """
    if value is None or isinstance(value, bool):
        return ZERO

    if isinstance(value, int):
        if value < 0:
            return ZERO
        try:
            s = str(value)
        except ValueError:
            # past the interpreter's int-to-str digit limit
            logger.debug("byte count too long, using 0 KiB")
            return ZERO
    elif isinstance(value, str):
        s = value.strip()
    else:
        return ZERO

    if not s:
        return ZERO

    try:
        with _context_for(s):
            if BARE_BYTES_RE.match(s):
                return _from_bytes(Decimal(s))

            m = SIZE_RE.match(s)
            if not m:
                logger.debug("unparsable size %r, using 0 KiB", value)
                return ZERO

            unit = m.group("unit").lower()
            size = _convert(Decimal(m.group("num").replace(",", "")), unit)
    except ArithmeticError:
        logger.debug("size %r out of decimal range, using 0 KiB", value)
        return ZERO

    if size is None:
        logger.debug("unknown size unit %r in %r, using 0 KiB", unit, value)
        return ZERO

    return size
