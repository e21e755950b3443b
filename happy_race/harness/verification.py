"""
Verification of an executed scenario against its descriptor.

A scenario passes when the client connected over the expected family and
the connection took at least the minimum response time, but not more than
the allowed tolerance on top of it.
"""

import ipaddress
from dataclasses import dataclass, field
from typing import Any

from happy_race.race.scenario import ScenarioDescriptor
from happy_race.utils.errors import VerificationError


@dataclass(frozen=True)
class Observation:
    """What the harness saw while running one scenario."""

    family: int  # 4 or 6, the family the client actually used
    elapsed_ms: float  # request sent -> server transaction started
    total_ms: float | None = None  # whole test case runtime, informational

    @classmethod
    def from_address(cls, host: str, elapsed_ms: float, total_ms: float | None = None) -> "Observation":
        """Build an observation from the address the server saw."""
        return cls(family=host_family(host), elapsed_ms=elapsed_ms, total_ms=total_ms)


@dataclass
class VerificationResult:
    """Outcome of one scenario execution."""

    name: str
    passed: bool
    failures: list[str] = field(default_factory=list)
    observation: Observation | None = None
    min_response_time: int | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "name": self.name,
            "passed": self.passed,
            "failures": list(self.failures),
            "min_response_time_ms": self.min_response_time,
        }
        if self.observation is not None:
            result["family"] = self.observation.family
            result["elapsed_ms"] = self.observation.elapsed_ms
            if self.observation.total_ms is not None:
                result["total_ms"] = self.observation.total_ms
        return result


def host_family(host: str) -> int:
    """Address family (4 or 6) of a literal IP address."""
    return ipaddress.ip_address(host.strip("[]")).version


def verify_observation(
    descriptor: ScenarioDescriptor,
    observation: Observation,
    tolerance_ms: float,
) -> VerificationResult:
    """Check an observation against the scenario expectations.

    Args:
        descriptor: Expected winner family and minimum response time.
        observation: Family used and elapsed time.
        tolerance_ms: Allowed time on top of the minimum.

    Returns:
        VerificationResult listing every violated expectation.
    """
    failures: list[str] = []
    planned = descriptor.min_response_time

    if observation.family != descriptor.winner_family:
        failures.append(
            f"used faster IPv{descriptor.winner_family} path: "
            f"expected IPv{descriptor.winner_family}, got IPv{observation.family}"
        )
    if observation.elapsed_ms < planned:
        failures.append(
            f"honored delays: connected in {observation.elapsed_ms}ms, "
            f"expected at least {planned}ms"
        )
    if observation.elapsed_ms > planned + tolerance_ms:
        failures.append(
            f"finished ASAP: connected in {observation.elapsed_ms}ms, "
            f"expected at most {planned + tolerance_ms}ms"
        )

    return VerificationResult(
        name=descriptor.name,
        passed=not failures,
        failures=failures,
        observation=observation,
        min_response_time=planned,
    )


def ensure_verified(result: VerificationResult) -> None:
    """Raise if a verification result did not pass.

    Raises:
        VerificationError: With the list of failures.
    """
    if not result.passed:
        raise VerificationError(result.name, result.failures)
