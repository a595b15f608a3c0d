import logging
import re
import shlex
import subprocess
from typing import Dict, Optional, Protocol

from config import Settings


logger = logging.getLogger(__name__)

SOURCE = "source"
TARGET = "target"

# Table references are interpolated into SQL, keep them to identifiers.
TABLE_REF_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(?:\.[A-Za-z_][A-Za-z0-9_]*)?$")

ROW_COUNT_SQL: Dict[str, str] = {
    SOURCE: "SELECT count(*) FROM {table}",
    TARGET: "SELECT count() FROM {table}",
}

SIZE_BYTES_SQL: Dict[str, str] = {
    SOURCE: "SELECT pg_total_relation_size('{table}')",
    TARGET: (
        "SELECT sum(bytes_on_disk) FROM system.parts "
        "WHERE active AND table = '{name}'"
    ),
}


# ---------- Interface ----------

class QueryRunner(Protocol):
    def query_row_count(self, system_id: str, table_ref: str) -> Optional[int]:
        ...

    def query_size_bytes(self, system_id: str, table_ref: str) -> Optional[int]:
        ...


# ---------- Database CLI runner ----------

class CliQueryRunner:
    """
    Runs scalar queries through the source and target database CLIs.

    Every failure is logged and reported as None, never raised.
    """

    def __init__(
        self,
        source_cli: str,
        target_cli: str,
        timeout: int = 30,
    ):
        self.commands = {
            SOURCE: shlex.split(source_cli),
            TARGET: shlex.split(target_cli),
        }
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "CliQueryRunner":
        return cls(
            source_cli=settings.source_cli,
            target_cli=settings.target_cli,
            timeout=settings.query_timeout,
        )

    def query_row_count(self, system_id: str, table_ref: str) -> Optional[int]:
        return self._scalar(system_id, table_ref, ROW_COUNT_SQL)

    def query_size_bytes(self, system_id: str, table_ref: str) -> Optional[int]:
        return self._scalar(system_id, table_ref, SIZE_BYTES_SQL)

    def _scalar(
        self,
        system_id: str,
        table_ref: str,
        templates: Dict[str, str],
    ) -> Optional[int]:
        if system_id not in self.commands:
            logger.warning("unknown system %r", system_id)
            return None
        if not TABLE_REF_RE.match(table_ref):
            logger.warning("refusing table reference %r", table_ref)
            return None

        sql = templates[system_id].format(
            table=table_ref,
            name=table_ref.rsplit(".", 1)[-1],
        )
        output = self.run(system_id, sql)
        if output is None:
            return None

        value = output.strip().splitlines()[0].strip() if output.strip() else ""
        try:
            return int(value)
        except ValueError:
            logger.warning(
                "%s returned non-numeric output for %s: %r",
                system_id, table_ref, value,
            )
            return None

    def run(self, system_id: str, sql: str) -> Optional[str]:
        cmd = self.commands[system_id] + [sql]
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=True,
            )
        except subprocess.TimeoutExpired:
            logger.warning("%s query timed out after %ss", system_id, self.timeout)
            return None
        except subprocess.CalledProcessError as e:
            logger.warning(
                "%s query failed (exit %s): %s",
                system_id, e.returncode, (e.stderr or "").strip(),
            )
            return None
        except FileNotFoundError as e:
            logger.warning("%s client not found: %s", system_id, e)
            return None

        return result.stdout
