import math
import time

import pytest

pytest.importorskip("PySide6")
pytest.importorskip("pyqtgraph")

from dynamic_fit.polynomial import CHEBYSHEV3  # noqa: E402
from dynamic_fit.dynamic import Dynamic  # noqa: E402
from dynamic_fit.trajectory import ArcTrajectory  # noqa: E402
from dynamic_fit.viewer import FitWorker, SampleProducer  # noqa: E402


def wait_for(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return False


def test_producer_feeds_and_restarts():
    X, Y = Dynamic(8, CHEBYSHEV3), Dynamic(8, CHEBYSHEV3)
    producer = SampleProducer(X, Y, ArcTrajectory(5.0, math.radians(30.0)), period=0.001)
    producer.start()
    try:
        assert wait_for(lambda: X.length() == 8)
        producer.paused.set()
        producer.restart()
        # a paused producer still carries out the clear
        assert wait_for(lambda: not producer.reset_flag.is_set())
        assert X.length() == Y.length() == 0
        producer.paused.clear()
        assert wait_for(lambda: X.length() > 0)
        # time restarted from zero without an out-of-order error
        assert producer.is_alive()
    finally:
        producer.stop()
        producer.join(timeout=2.0)
    assert not producer.is_alive()


def test_fit_worker_process_tolerates_empty_window():
    f = Dynamic(4, CHEBYSHEV3)
    assert FitWorker._process(f).iterations == 0
    f.update(0.0, 1.0)
    f.update(1.0, 2.0)
    assert FitWorker._process(f).rank >= 1
