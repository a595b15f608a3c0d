import logging
from pathlib import Path
from typing import List, Sequence, Tuple, Union

from .parsers import parse_containers
from .phases import parse_phases
from .types import ContainerSnapshot, PhaseWindow


logger = logging.getLogger(__name__)


class LogSourceError(RuntimeError):
    pass


def read_lines(path: Union[str, Path]) -> List[str]:
    """
    Read a monitoring log as UTF-8, one entry per line, newlines stripped.
    """
    try:
        with open(path, encoding="utf-8") as f:
            return [line.rstrip("\r\n") for line in f]
    except (OSError, UnicodeDecodeError) as e:
        raise LogSourceError(f"Cannot read log file {path}: {e}") from e


def scan_log(
    lines: Sequence[str],
) -> List[Tuple[PhaseWindow, List[ContainerSnapshot]]]:
    """
    Pair every phase window with the containers reported under it.

    Pipeline:
      raw lines
        → phase windows
          → container tables below each window start
    """
    scanned = []
    for window in parse_phases(lines):
        snapshots = parse_containers(lines, window.start, window)
        if not snapshots:
            logger.debug("no container rows under %s", window.kind.label)
        scanned.append((window, snapshots))
    return scanned
