"""
Concrete race scenarios.

A HappyCase is one fully timed race: the committed steps in the order the
scenario domain name lists them, the winning step and the minimum time a
client needs to reach it. It is built once from timed family steps and
never changes afterwards.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from happy_race.race.family import FamilySteps
from happy_race.race.merge import WinningPath, find_winning_path
from happy_race.race.steps import DEFAULT_STEP_SIZE_MS, AddressFamily, Step
from happy_race.utils.errors import GenerationError

DEFAULT_DOMAIN_SUFFIX = "happy.test"


@dataclass(frozen=True)
class ScenarioDescriptor:
    """What the executing harness needs to know about a scenario."""

    name: str
    winner_family: int
    winner_address: str
    min_response_time: int  # milliseconds
    gist: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "winner_family": self.winner_family,
            "winner_address": self.winner_address,
            "min_response_time_ms": self.min_response_time,
            "gist": self.gist,
        }


@dataclass(frozen=True)
class HappyCase:
    """One named, fully timed race instance."""

    gist: str
    prime: FamilySteps
    spare: FamilySteps
    steps: tuple[Step, ...]
    winner: Step
    min_response_time: int
    step_size: int = DEFAULT_STEP_SIZE_MS
    domain_suffix: str = DEFAULT_DOMAIN_SUFFIX

    @classmethod
    def from_leaders(
        cls,
        prime: FamilySteps,
        spare: FamilySteps,
        gist: str,
        leaders: Sequence[Step],
        *,
        step_size: int = DEFAULT_STEP_SIZE_MS,
        domain_suffix: str = DEFAULT_DOMAIN_SUFFIX,
    ) -> "HappyCase":
        """Build a scenario from its leading steps.

        A DNS leader stands for itself. A TCP leader stands for all TCP
        steps of its family, in order. Exactly one committed step may be
        terminal; its family's wait and delay values add up to the minimum
        response time.

        Args:
            prime: Timed prime family steps.
            spare: Timed spare family steps.
            gist: Placement summary, e.g. "p0 s0 SW s1+".
            leaders: DNS steps and first TCP steps in naming order.
            step_size: Delay quantum used to derive the winner address.
            domain_suffix: Suffix appended to the scenario name.

        Raises:
            GenerationError: If the leaders do not yield exactly one winner.
        """
        if len(leaders) < 3:
            # p0, s0, and a winning TCP step
            raise GenerationError("need at least three leading steps", context=gist)

        committed: list[Step] = []
        for leader in leaders:
            if leader.is_dns:
                committed.append(leader)
            elif leader.family == prime.family:
                committed.extend(prime.tcp_steps)
            else:
                committed.extend(spare.tcp_steps)

        terminals = [step for step in committed if step.terminal]
        labels = ".".join(step.domain_label() for step in committed)
        if not terminals:
            raise GenerationError("leading steps have no winner", context=f"{labels} # {gist}")
        if len(terminals) > 1:
            raise GenerationError("leading steps have several winners", context=f"{labels} # {gist}")

        winner = terminals[0]
        min_response_time = sum(
            step.wait + step.delay for step in committed if step.family == winner.family
        )

        return cls(
            gist=gist,
            prime=prime,
            spare=spare,
            steps=tuple(committed),
            winner=winner,
            min_response_time=min_response_time,
            step_size=step_size,
            domain_suffix=domain_suffix,
        )

    @property
    def name(self) -> str:
        """Scenario domain name, e.g. ``a4.pause40-a6.up6.happy.test``."""
        return f"{self}.{self.domain_suffix}"

    @property
    def winner_family(self) -> AddressFamily:
        return self.winner.family

    @property
    def winner_address(self) -> str:
        return self.winner.address(self.step_size)

    @property
    def description(self) -> str:
        return f"{self.winner.domain_label()} wins in {self.name} # {self.gist}"

    def winning_path(self) -> WinningPath:
        """Merged chronological trace of this scenario's two families."""
        return find_winning_path(
            self.prime.all_steps(), self.spare.all_steps(), self.step_size
        )

    def descriptor(self) -> ScenarioDescriptor:
        return ScenarioDescriptor(
            name=self.name,
            winner_family=self.winner_family.value,
            winner_address=self.winner_address,
            min_response_time=self.min_response_time,
            gist=self.gist,
        )

    def to_dict(self) -> dict[str, Any]:
        result = self.descriptor().to_dict()
        result["description"] = self.description
        result["steps"] = [
            {"label": step.domain_label(), "wait_ms": step.wait, "delay_ms": step.delay}
            for step in self.steps
        ]
        return result

    def __str__(self) -> str:
        return ".".join(step.domain_label() for step in self.steps)
