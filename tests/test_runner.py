import threading
import time

from statcore.analysis import run_monte_carlo
from statcore.runner import SUPERSEDED, AnalysisRunner
from statcore.sampling import Normal
from statcore.schema import Failure, SimulationResult


def test_single_job_result():
    with AnalysisRunner() as runner:
        future = runner.submit(run_monte_carlo, [Normal("X")], "X", 100, seed=1)
        assert isinstance(future.result(timeout=30), SimulationResult)
        assert runner.latest(timeout=30) is future.result()


def test_newer_submission_supersedes_older():
    started = threading.Event()
    release = threading.Event()

    def slow(value):
        started.set()
        release.wait(timeout=30)
        return value

    with AnalysisRunner() as runner:
        first = runner.submit(slow, "first")
        assert started.wait(timeout=30)
        second = runner.submit(lambda: "second")
        release.set()
        stale = first.result(timeout=30)
        assert isinstance(stale, Failure)
        assert stale.kind == "cancelled"
        assert stale.error == SUPERSEDED
        assert second.result(timeout=30) == "second"
        assert runner.latest(timeout=30) == "second"


def test_cancellable_simulation_stops_early():
    with AnalysisRunner() as runner:
        first = runner.submit(
            run_monte_carlo, [Normal("X")], "X", 5_000_000, seed=1, cancellable=True
        )
        time.sleep(0.05)
        runner.cancel()
        result = first.result(timeout=60)
        assert isinstance(result, Failure)
        assert result.kind == "cancelled"


def test_latest_without_jobs():
    runner = AnalysisRunner()
    assert runner.latest() is None
    runner.shutdown()
