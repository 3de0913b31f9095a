import threading
from collections import defaultdict

import pytest

from loadgen.config import Config
from loadgen.generator import make_faker
from loadgen.loader import WriteResult


class StubWriter:
    def __init__(self, fail=False):
        self.fail = fail
        self.batches = defaultdict(list)
        self._lock = threading.Lock()

    def write(self, table):
        if self.fail:
            raise ConnectionError("ingest unavailable")
        with self._lock:
            self.batches[table.name].append(table)
        return WriteResult(table.name, len(table.rows), 0.001)


@pytest.fixture
def fake():
    return make_faker(1234)


@pytest.fixture
def config():
    # No bursts, single-row batches, fast pacing
    return Config(rate=100, table_num=1, min_rows=1, max_rows=1,
                  burst_duration=0, cycle_duration=60, seed=42)


@pytest.fixture
def writer():
    return StubWriter()
