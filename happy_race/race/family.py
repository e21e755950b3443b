"""
Same-family step sequences: one DNS query followed by zero to two TCP connection attempts.
"""

from collections.abc import Iterator
from dataclasses import dataclass

from happy_race.race.steps import AddressFamily, Outcome, Step
from happy_race.utils.errors import InvalidStepError

# (wait, delay) in milliseconds
Timing = tuple[int, int]

UNTIMED: Timing = (0, 0)

MAX_TCP_STEPS = 2


def _apply(step: Step, timing: Timing) -> Step:
    wait, delay = timing
    return step.with_wait_and_delay(wait, delay)


@dataclass(frozen=True)
class FamilySteps:
    """A DNS step and the TCP steps probing the addresses it returned."""

    dns_step: Step
    tcp_steps: tuple[Step, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "tcp_steps", tuple(self.tcp_steps))
        if not self.dns_step.is_dns:
            raise InvalidStepError(
                "a family starts with a DNS step",
                field="dns_step",
                received=self.dns_step.kind.value,
            )
        if len(self.tcp_steps) > MAX_TCP_STEPS:
            raise InvalidStepError(
                f"a family has at most {MAX_TCP_STEPS} TCP steps",
                field="tcp_steps",
                received=len(self.tcp_steps),
            )
        for step in self.tcp_steps:
            if not step.is_tcp:
                raise InvalidStepError(
                    "only TCP steps follow the DNS step",
                    field="tcp_steps",
                    received=step.kind.value,
                )
            if step.family is not self.dns_step.family:
                raise InvalidStepError(
                    f"TCP step family must be IPv{self.dns_step.family.value}",
                    field="tcp_steps",
                    received=f"IPv{step.family.value}",
                )

    @property
    def family(self) -> AddressFamily:
        return self.dns_step.family

    def all_steps(self) -> list[Step]:
        return [self.dns_step, *self.tcp_steps]

    def _final_step_index(self) -> int:
        for idx, step in enumerate(self.tcp_steps):
            if step.terminal:
                return idx
        return -1

    def has_final(self) -> bool:
        """Contains a terminal TCP step."""
        return self._final_step_index() >= 0

    def useful(self) -> bool:
        """No steps after the terminal step."""
        idx = self._final_step_index()
        return idx < 0 or idx == len(self.tcp_steps) - 1

    def find_final_step(self) -> Step | None:
        idx = self._final_step_index()
        return None if idx < 0 else self.tcp_steps[idx]

    def timed(self, dns: Timing = UNTIMED, first_tcp: Timing = UNTIMED) -> "FamilySteps":
        """Copy with the DNS step and the first TCP step timed.

        Remaining TCP steps start and finish immediately.
        """
        tcp_steps = [_apply(step, UNTIMED) for step in self.tcp_steps]
        if tcp_steps:
            tcp_steps[0] = _apply(self.tcp_steps[0], first_tcp)
        return FamilySteps(_apply(self.dns_step, dns), tuple(tcp_steps))

    def __str__(self) -> str:
        return ".".join(step.domain_label() for step in self.all_steps())


def make_tcp_steps(family: AddressFamily | int) -> Iterator[Step]:
    yield Step.tcp(family, Outcome.SUCCEEDED)
    yield Step.tcp(family, Outcome.FAILED)


def make_family_steps(family: AddressFamily | int) -> Iterator[FamilySteps]:
    """Every step sequence shape of a family, in a fixed order.

    No addresses, one address (up/down), then two addresses (up/down squared).
    """
    dns_step = Step.dns(family)

    yield FamilySteps(dns_step)

    for tcp_step in make_tcp_steps(family):
        yield FamilySteps(dns_step, (tcp_step,))

    for tcp_step1 in make_tcp_steps(family):
        for tcp_step2 in make_tcp_steps(family):
            yield FamilySteps(dns_step, (tcp_step1, tcp_step2))
