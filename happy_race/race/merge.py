"""
Chronological merge of the prime and spare step sequences.

Both sequences are consumed in order of their would-be cumulative finish
time. The prime family wins ties. The first terminal step consumed is the
winner; both sequences are still drained so the merged trace is complete.
"""

import math
from collections import deque
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from happy_race.race.steps import DEFAULT_STEP_SIZE_MS, AddressFamily, Step
from happy_race.utils.errors import GenerationError


@dataclass(frozen=True)
class WinningPath:
    """Result of merging two family step sequences."""

    winner: Step
    min_response_time: int
    trace: tuple[Step, ...] = field(default_factory=tuple)
    step_size: int = DEFAULT_STEP_SIZE_MS

    @property
    def family(self) -> AddressFamily:
        return self.winner.family

    @property
    def address(self) -> str:
        return self.winner.address(self.step_size)

    @property
    def description(self) -> str:
        return self.winner.domain_label()

    def to_dict(self) -> dict[str, Any]:
        return {
            "description": self.description,
            "family": self.family.value,
            "address": self.address,
            "min_response_time_ms": self.min_response_time,
            "trace": [step.domain_label() for step in self.trace],
        }


def find_winning_path(
    prime_steps: Sequence[Step],
    spare_steps: Sequence[Step],
    step_size: int = DEFAULT_STEP_SIZE_MS,
) -> WinningPath:
    """Find the first terminal step when both families race.

    Only step delays are accumulated. ``min_response_time`` is the smaller
    of the two final family totals, a deliberately loose lower bound used
    for tolerance checks.

    Args:
        prime_steps: Prime family steps, in execution order.
        spare_steps: Spare family steps, in execution order.
        step_size: Delay quantum used to derive the winner address.

    Returns:
        WinningPath with the winner and the full merged trace.

    Raises:
        GenerationError: If neither sequence has a terminal step.
    """
    prime = deque(prime_steps)
    spare = deque(spare_steps)
    prime_total = 0
    spare_total = 0
    winner: Step | None = None
    trace: list[Step] = []

    while prime or spare:
        prime_next = prime_total + prime[0].delay if prime else math.inf
        spare_next = spare_total + spare[0].delay if spare else math.inf
        if prime_next <= spare_next:
            prime_total = prime_next
            step = prime.popleft()
        else:
            spare_total = spare_next
            step = spare.popleft()

        trace.append(step)
        if step.terminal and winner is None:
            winner = step
            # keep going to fill the trace

    if winner is None:
        labels = ".".join(step.domain_label() for step in trace)
        raise GenerationError("no terminal step in either family", context=labels)

    return WinningPath(
        winner=winner,
        min_response_time=min(prime_total, spare_total),
        trace=tuple(trace),
        step_size=step_size,
    )
