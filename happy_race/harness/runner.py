"""
Sequential scenario execution.

Scenarios run strictly one after another so that one scenario's DNS
answers and connections cannot leak into the next. Each scenario holds a
listening address for its whole lifetime and returns it on every exit
path. The actual network work (DNS mock, proxy, client, server) is done by
an injected executor; this module only sequences, times out and verifies.
"""

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from happy_race.harness.verification import (
    Observation,
    VerificationResult,
    verify_observation,
)
from happy_race.race.scenario import HappyCase, ScenarioDescriptor
from happy_race.utils.config import get_settings
from happy_race.utils.errors import AddressPoolExhaustedError
from happy_race.utils.logging import LogContext, get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ListeningAddress:
    """A port reserved for one scenario's server."""

    host: str
    port: int


class ListeningAddressPool:
    """Hands out listening ports from a fixed range."""

    def __init__(self, host: str = "127.0.0.1", base_port: int = 13128, count: int = 64):
        if count <= 0:
            raise ValueError("count must be positive")
        self.host = host
        self._free = [base_port + i for i in range(count)]
        self._in_use: set[int] = set()
        self._capacity = count

    @classmethod
    def from_settings(cls, family: int = 4) -> "ListeningAddressPool":
        """Pool on the configured listening host of ``family``."""
        harness = get_settings().harness
        return cls(
            host=harness.listen_host6 if family == 6 else harness.listen_host4,
            base_port=harness.base_port,
            count=harness.port_count,
        )

    @property
    def in_use(self) -> int:
        return len(self._in_use)

    def reserve(self) -> ListeningAddress:
        """Reserve the lowest free port.

        Raises:
            AddressPoolExhaustedError: If every port is reserved.
        """
        if not self._free:
            raise AddressPoolExhaustedError(self._capacity)
        port = self._free.pop(0)
        self._in_use.add(port)
        return ListeningAddress(self.host, port)

    def release(self, address: ListeningAddress) -> None:
        if address.port not in self._in_use:
            raise ValueError(f"port {address.port} is not reserved")
        self._in_use.remove(address.port)
        self._free.append(address.port)
        self._free.sort()


ScenarioExecutor = Callable[[ScenarioDescriptor, ListeningAddress], Awaitable[Observation]]


@dataclass
class RunReport:
    """Per-scenario results of one test run."""

    run_id: int
    results: list[VerificationResult] = field(default_factory=list)

    @property
    def passed(self) -> int:
        return sum(1 for r in self.results if r.passed)

    @property
    def failed(self) -> int:
        return len(self.results) - self.passed

    @property
    def ok(self) -> bool:
        return self.failed == 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "passed": self.passed,
            "failed": self.failed,
            "results": [r.to_dict() for r in self.results],
        }


def run_stagger_delay(run_id: int, stagger_ms: int | None = None) -> float:
    """Seconds to wait before starting test run ``run_id`` (1-based).

    Some proxies ignore zero DNS TTLs when collapsing queries; staggering
    concurrent runs reduces that collapsing.
    """
    if run_id < 1:
        raise ValueError("run_id must be >= 1")
    if stagger_ms is None:
        stagger_ms = get_settings().harness.run_stagger_ms
    return (run_id - 1) * stagger_ms / 1000.0


class ScenarioRunner:
    """Runs planned scenarios one at a time and verifies each outcome."""

    def __init__(
        self,
        executor: ScenarioExecutor,
        pool: ListeningAddressPool | None = None,
        *,
        tolerance_ms: float | None = None,
        timeout_seconds: float | None = None,
        stagger_ms: int | None = None,
    ):
        harness = get_settings().harness
        self.executor = executor
        self.pool = pool or ListeningAddressPool.from_settings()
        self.tolerance_ms = harness.tolerance_ms if tolerance_ms is None else tolerance_ms
        self.timeout_seconds = (
            harness.scenario_timeout_seconds if timeout_seconds is None else timeout_seconds
        )
        self.stagger_ms = harness.run_stagger_ms if stagger_ms is None else stagger_ms

    async def run_one(self, case: HappyCase) -> VerificationResult:
        """Execute and verify a single scenario.

        Timeouts and executor errors are reported as failed results.
        """
        descriptor = case.descriptor()
        with LogContext(scenario=descriptor.name):
            address = self.pool.reserve()
            try:
                logger.info(
                    "Running scenario",
                    winner=case.winner.domain_label(),
                    winner_address=descriptor.winner_address,
                    port=address.port,
                    gist=case.gist,
                )
                observation = await asyncio.wait_for(
                    self.executor(descriptor, address),
                    timeout=self.timeout_seconds,
                )
            except asyncio.TimeoutError:
                logger.warning("Scenario timed out", timeout_seconds=self.timeout_seconds)
                return VerificationResult(
                    name=descriptor.name,
                    passed=False,
                    failures=[f"timed out after {self.timeout_seconds}s"],
                    min_response_time=descriptor.min_response_time,
                )
            except Exception as e:
                logger.exception("Scenario execution failed", error=str(e))
                return VerificationResult(
                    name=descriptor.name,
                    passed=False,
                    failures=[f"execution error: {e}"],
                    min_response_time=descriptor.min_response_time,
                )
            finally:
                self.pool.release(address)

            result = verify_observation(descriptor, observation, self.tolerance_ms)
            logger.info(
                "Scenario finished",
                passed=result.passed,
                elapsed_ms=observation.elapsed_ms,
                min_response_time_ms=descriptor.min_response_time,
                failures=result.failures,
            )
            return result

    async def run(self, cases: Iterable[HappyCase], run_id: int = 1) -> RunReport:
        """Run all scenarios sequentially after the run's stagger delay."""
        delay = run_stagger_delay(run_id, self.stagger_ms)
        logger.info("Planned test run", run_id=run_id, start_delay_seconds=delay)
        if delay:
            await asyncio.sleep(delay)
        logger.info("Actually starting test run", run_id=run_id)

        report = RunReport(run_id=run_id)
        for case in cases:
            report.results.append(await self.run_one(case))

        logger.info(
            "Test run finished",
            run_id=run_id,
            passed=report.passed,
            failed=report.failed,
        )
        return report
