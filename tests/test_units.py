from decimal import Decimal, ROUND_HALF_UP, localcontext

from logscan.types import SizeQuantity, ZERO
from logscan.units import normalize
from aggregate import analyze_log


def kib(size: SizeQuantity) -> str:
    return str(size)


def test_bare_byte_count():
    assert kib(normalize("1024")) == "1.00 KiB"
    assert kib(normalize(1024)) == "1.00 KiB"
    assert kib(normalize(0)) == "0.00 KiB"


def test_binary_units_are_native_kib():
    assert kib(normalize("1 KiB")) == "1.00 KiB"
    assert kib(normalize("1 MiB")) == "1024.00 KiB"
    assert kib(normalize("1GiB")) == "1048576.00 KiB"
    assert kib(normalize("1 TiB")) == "1073741824.00 KiB"
    assert kib(normalize("100.00MiB")) == "102400.00 KiB"


def test_decimal_units_go_through_bytes():
    assert kib(normalize("1 MB")) == "976.56 KiB"
    assert kib(normalize("1 KB")) == "0.98 KiB"
    assert kib(normalize("2048 B")) == "2.00 KiB"
    assert kib(normalize("2048 bytes")) == "2.00 KiB"
    assert kib(normalize("1 GB")) == "976562.50 KiB"


def test_units_are_case_insensitive():
    assert normalize("1 mib") == normalize("1 MiB") == normalize("1MIB")
    assert normalize("1 mb") == normalize("1 MB")


def test_thousands_separator():
    assert kib(normalize("1,024 KiB")) == "1024.00 KiB"
    assert kib(normalize("1,000,000 B")) == "976.56 KiB"


def test_unparsable_input_is_zero():
    assert normalize("") == ZERO
    assert normalize("   ") == ZERO
    assert normalize("garbage") == ZERO
    assert normalize("12 parsecs") == ZERO
    assert normalize(None) == ZERO
    assert normalize(-5) == ZERO
    assert kib(normalize("garbage")) == "0.00 KiB"


def test_byte_counts_match_direct_rounding():
    for b in [0, 1, 5, 511, 512, 513, 1023, 1536, 10_000, 123_456_789, 2**40 + 7]:
        expected = (Decimal(b) / Decimal(1024)).quantize(
            Decimal("0.01"), rounding=ROUND_HALF_UP
        )
        assert normalize(b).kib == expected
        assert normalize(str(b)).kib == expected


def test_midpoint_rounds_away_from_zero():
    # 5.12 B is exactly 0.005 KiB
    assert normalize("5.12 B").kib == Decimal("0.01")


def test_sum_and_difference():
    total = SizeQuantity.sum([normalize("1 MiB"), normalize("1024"), ZERO])
    assert str(total) == "1025.00 KiB"
    assert normalize("1 KiB") - normalize("1 MiB") == ZERO


def test_normalize_is_deterministic():
    assert normalize("1.5 GiB") == normalize("1.5 GiB")
    assert str(normalize("777 MB")) == str(normalize("777 MB"))


def exact_kib(digits: str, byte_factor: int = 1) -> Decimal:
    with localcontext() as ctx:
        ctx.prec = 200
        return (Decimal(digits) * byte_factor / Decimal(1024)).quantize(
            Decimal("0.01"), rounding=ROUND_HALF_UP
        )


def test_huge_byte_strings_stay_exact():
    digits = "9" * 40

    assert normalize(digits).kib == exact_kib(digits)
    assert normalize(int(digits)).kib == exact_kib(digits)


def test_huge_decimal_unit_values_stay_exact():
    digits = "9" * 30

    assert normalize(digits + " TB").kib == exact_kib(digits, 10 ** 12)
    assert normalize(digits + "TiB").kib > normalize("1 TiB").kib


def test_huge_sizes_add_up():
    big = normalize("9" * 40)

    # (10**40 - 1) / 1024 rounds up to a whole KiB count, so doubling is exact
    assert (big + big).kib == exact_kib("9" * 40, 2)


def test_huge_memory_in_log_does_not_abort_analysis():
    lines = [
        "INSERT-BATCH-1",
        "DOCKER STATS:",
        "flow-worker 10% " + "9" * 30 + "TB / 2GiB",
    ]

    analysis = analyze_log(lines)

    assert analysis.summaries[0].average_cpu_percent == 10.0
    assert analysis.summaries[0].total_memory == normalize("9" * 30 + " TB")
