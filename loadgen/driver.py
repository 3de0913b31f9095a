import logging
import threading
import time
from collections import deque

from loadgen.generator import Generator, make_faker
from loadgen.schema import access_log_table
from loadgen.shaper import TableState

logger = logging.getLogger(__name__)


# Most recent write latencies kept per driver for the run summary
LATENCY_SAMPLES = 10000


class DriverStats:
    def __init__(self, max_samples=LATENCY_SAMPLES):
        self.batches = 0
        self.burst_batches = 0
        self.rows = 0
        self.errors = 0
        self.latencies = deque(maxlen=max_samples)  # seconds, successful writes only


class TableDriver:
    """Feeds one table forever: wait, build a batch, hand it to the writer."""

    def __init__(self, state, config, writer, fake):
        self.state = state
        self.config = config
        self.writer = writer
        self.generator = Generator(config, fake)
        self.stats = DriverStats()
        self._bursting = False

    @property
    def name(self):
        return self.state.name

    def run(self, stop=None):
        stop = stop or threading.Event()
        logger.info(
            "Starting %s: rate=%.2f/s burst x%.2f for %ds every %ds",
            self.name, self.state.steady_rate, self.state.burst_multiplier,
            self.state.burst_duration, self.state.cycle_duration,
        )
        while not stop.is_set():
            self.run_once(stop)
        logger.info("Stopped %s after %d batches", self.name, self.stats.batches)

    def run_once(self, stop=None):
        shape = self.state.shape(self.config.max_rows, self.config.min_rows)
        if shape.bursting != self._bursting:
            self._bursting = shape.bursting
            logger.info("%s %s burst mode", self.name, "entering" if shape.bursting else "leaving")

        # Interval raises on a non-positive rate instead of sleeping forever
        interval = shape.interval
        if stop is not None:
            if stop.wait(interval):
                return None
        else:
            time.sleep(interval)

        tbl = access_log_table(self.name)
        rows = self.generator.row_count(shape.max_rows)
        logger.debug("Generating %d rows for table %s", rows, self.name)
        for row in self.generator.generate_batch(rows):
            # SchemaError propagates: a malformed row is fatal
            tbl.add_row(*row.values())

        try:
            resp = self.writer.write(tbl)
        except Exception as e:
            self.stats.errors += 1
            logger.warning("Write to %s failed, dropping %d rows: %s", self.name, rows, e)
            return None

        self.stats.batches += 1
        self.stats.rows += rows
        if shape.bursting:
            self.stats.burst_batches += 1
        latency = getattr(resp, "latency", None)
        if latency is not None:
            self.stats.latencies.append(latency)
        logger.info("%s", resp)
        return resp


def build_drivers(config, writer, now=None):
    """One driver per table, each with its own seeded Faker stream."""
    fake = make_faker(config.seed)
    now = time.time() if now is None else now
    drivers = []
    for i in range(config.table_num):
        state = TableState.create(i, config, fake, now=now)
        if state.burst_duration >= state.cycle_duration:
            logger.warning("%s bursts for %ds of a %ds cycle and will never run steady",
                           state.name, state.burst_duration, state.cycle_duration)
        drivers.append(TableDriver(state, config, writer, make_faker(config.table_seed(i))))
    return drivers


class Supervisor:
    """Runs every driver on its own thread and waits for them.

    Any exception escaping a driver stops the rest and is re-raised from run().
    """

    def __init__(self, drivers):
        self.drivers = drivers
        self.stop = threading.Event()
        self.failures = []
        self._lock = threading.Lock()

    def _run_driver(self, driver):
        try:
            driver.run(self.stop)
        except Exception as e:
            logger.error("Driver %s crashed: %s", driver.name, e)
            with self._lock:
                self.failures.append(e)
            self.stop.set()

    def run(self, duration=None):
        threads = []
        for driver in self.drivers:
            t = threading.Thread(target=self._run_driver, args=(driver,), name=driver.name, daemon=True)
            threads.append(t)
            t.start()

        deadline = None if duration is None else time.time() + duration
        try:
            while not self.stop.is_set() and any(t.is_alive() for t in threads):
                if deadline is not None:
                    remaining = deadline - time.time()
                    if remaining <= 0:
                        self.stop.set()
                        break
                    self.stop.wait(min(0.5, remaining))
                else:
                    self.stop.wait(0.5)
        except KeyboardInterrupt:
            logger.info("Interrupted, stopping drivers...")
            self.stop.set()

        for t in threads:
            t.join()

        if self.failures:
            raise self.failures[0]
        return self.drivers
