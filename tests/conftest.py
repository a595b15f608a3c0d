import textwrap

import pytest


SAMPLE_LOG = textwrap.dedent(
    """\
    ==========================================
    CDC LOAD TEST MONITOR
    ==========================================
    2024-05-01 10:00:00 BASELINE
    DOCKER STATS:
    NAME                 CPU %     MEM USAGE / LIMIT
    peerdb-flow-worker   2.00%     100.00MiB / 2.00GiB
    catalog              1.00%     50MiB / 1GiB
    temporal             3.00%     200MiB / 4GiB
    clickhouse           4.00%     1GiB / 8GiB
    redis                9.00%     10MiB / 1GiB

    2024-05-01 10:01:00 === INSERT-BATCH-2 ===
    DOCKER STATS:
    NAME CPU % MEM USAGE / LIMIT
    peerdb-flow-worker 30.00% 150MiB/2GiB
    PEERDB CONTAINERS:
    peerdb-flow-worker 99.00% 999MiB / 2GiB
    catalog 10.00% 60MiB / 1GiB

    2024-05-01 10:00:30 === INSERT-BATCH-1 ===
    DOCKER STATS:
    peerdb-flow-worker 10.00% 120MiB / 2GiB
    catalog 20.00% 55MiB / 1GiB
    broken-row

    ==========================================
    2024-05-01 10:05:00 FINAL
    DOCKER STATS:
    peerdb-flow-worker 5.00% 130MiB / 2GiB
    catalog 1.00% 52MiB / 1GiB
    temporal 3.00% 210MiB / 4GiB
    clickhouse 4.00% 1.5GiB / 8GiB
    """
)


@pytest.fixture
def sample_lines():
    return SAMPLE_LOG.splitlines()


class FakeQueryRunner:
    """
    In-memory QueryRunner: {(system, table): value}, missing keys are absent.
    """

    def __init__(self, counts=None, sizes=None):
        self.counts = counts or {}
        self.sizes = sizes or {}
        self.calls = []

    def query_row_count(self, system_id, table_ref):
        self.calls.append(("count", system_id, table_ref))
        return self.counts.get((system_id, table_ref))

    def query_size_bytes(self, system_id, table_ref):
        self.calls.append(("size", system_id, table_ref))
        return self.sizes.get((system_id, table_ref))


@pytest.fixture
def fake_runner():
    return FakeQueryRunner
