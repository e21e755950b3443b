"""
Scenario execution helpers: sequential runner and outcome verification.
"""

from happy_race.harness.runner import (
    ListeningAddress,
    ListeningAddressPool,
    RunReport,
    ScenarioRunner,
    run_stagger_delay,
)
from happy_race.harness.verification import (
    Observation,
    VerificationResult,
    ensure_verified,
    host_family,
    verify_observation,
)

__all__ = [
    "ListeningAddress",
    "ListeningAddressPool",
    "Observation",
    "RunReport",
    "ScenarioRunner",
    "VerificationResult",
    "ensure_verified",
    "host_family",
    "run_stagger_delay",
    "verify_observation",
]
