import argparse
import logging
import sys

from aggregate import analyze_log
from config import load_settings, split_tables
from consistency import build_consistency_report
from logscan.ingest import LogSourceError, read_lines
from query_runner import CliQueryRunner
from report import render_analysis, render_consistency


logger = logging.getLogger(__name__)


# ---------------- CLI ----------------

def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="syncwatch: CDC load-test log and replication consistency report"
    )
    parser.add_argument("--log-file", help="monitoring log with BASELINE / INSERT-BATCH-N / FINAL phases")
    parser.add_argument("--tables", help="comma separated tables to compare")
    parser.add_argument("--source-cli", help="command prefix for source queries")
    parser.add_argument("--target-cli", help="command prefix for target queries")
    parser.add_argument("--timeout", type=int, help="per-query timeout in seconds")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING, ERROR")

    return parser.parse_args(argv)


# ---------------- Main ----------------

def main(argv=None) -> int:
    args = parse_args(argv)

    try:
        settings = load_settings()
        logging.basicConfig(
            level=(args.log_level or settings.log_level).upper(),
            format="%(asctime)s %(levelname)s %(name)s %(message)s",
        )
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    tables = split_tables(args.tables) or list(settings.tables)

    if not args.log_file and not tables:
        print("Nothing to do: pass --log-file and/or --tables.", file=sys.stderr)
        return 2

    phases = None
    log_ok = None
    sync_ok = None

    # ---- Log path ----
    if args.log_file:
        try:
            lines = read_lines(args.log_file)
        except LogSourceError as e:
            print(f"\n[LOG ERROR]\n{e}")
            log_ok = False
        else:
            analysis = analyze_log(lines)
            phases = analysis.phases
            log_ok = True

            print("\n=== LOAD TEST RESOURCES ===\n")
            print(render_analysis(analysis))

    # ---- Sync path ----
    if tables:
        runner = CliQueryRunner(
            source_cli=args.source_cli or settings.source_cli,
            target_cli=args.target_cli or settings.target_cli,
            timeout=args.timeout or settings.query_timeout,
        )
        report = build_consistency_report(runner, tables, phases=phases)
        sync_ok = (
            report.total.target_count is not None
            or report.total.source_count is not None
        )
        if not sync_ok:
            logger.warning("no query returned a row count")

        print("\n=== REPLICATION CONSISTENCY ===\n")
        print(render_consistency(report))

    print("\nDone.")

    if log_ok or sync_ok:
        return 0
    return 1


if __name__ == "__main__":
    sys.exit(main())
