"""
Race steps: DNS queries and TCP connection attempts for one address family.

A step is an immutable tagged variant. DNS steps never end a race; a TCP
step ends it when its connection succeeds. Timing is expressed as a ``wait``
(idle time before the step starts) and a ``delay`` (time the step takes
once started), both in integer milliseconds.

Timed copies are produced with ``with_wait()``, ``with_delay()`` and
``with_wait_and_delay()``; a step is never changed in place, so one
template can seed any number of scenarios.
"""

from dataclasses import dataclass, replace
from enum import Enum

from happy_race.utils.errors import InvalidStepError

# TCP step delays are configured in DEFAULT_STEP_SIZE_MS increments to
# reduce the number of IP addresses needed to support all delays.
DEFAULT_STEP_SIZE_MS = 40


class AddressFamily(int, Enum):
    """IP address family of a step."""

    SPARE = 0  # placeholder, resolved to IPV4 or IPV6 by a walk
    IPV4 = 4
    IPV6 = 6

    def complement(self) -> "AddressFamily":
        """Return the other concrete family (4 <-> 6)."""
        if self is AddressFamily.IPV4:
            return AddressFamily.IPV6
        if self is AddressFamily.IPV6:
            return AddressFamily.IPV4
        raise InvalidStepError("spare placeholder has no complement", field="family")

    @property
    def label(self) -> str:
        """Human-readable name (``IPv4``/``IPv6``)."""
        return f"IPv{self.value}"


class StepKind(str, Enum):
    """Step variant tag."""

    DNS = "dns"
    TCP = "tcp"


class Outcome(str, Enum):
    """Result of a TCP connection attempt. Values double as domain label words."""

    SUCCEEDED = "up"
    FAILED = "down"


def _to_family(value: int) -> AddressFamily:
    try:
        return AddressFamily(value)
    except ValueError as e:
        raise InvalidStepError(
            "family must be 0, 4 or 6", field="family", received=value
        ) from e


def _check_duration(name: str, value: int) -> None:
    if value < 0:
        raise InvalidStepError(f"{name} must not be negative", field=name, received=value)


@dataclass(frozen=True)
class Step:
    """A DNS query or a TCP connection attempt to an IPv4 or IPv6 address."""

    family: AddressFamily
    kind: StepKind
    outcome: Outcome | None = None
    wait: int = 0  # the race waits that long to start this step
    delay: int = 0  # this step takes that long (from start) to finish

    def __post_init__(self) -> None:
        object.__setattr__(self, "family", _to_family(self.family))
        _check_duration("wait", self.wait)
        _check_duration("delay", self.delay)

        if self.kind is StepKind.DNS and self.outcome is not None:
            raise InvalidStepError(
                "DNS steps have no outcome", field="outcome", received=self.outcome
            )
        if self.kind is StepKind.TCP and self.outcome is None:
            raise InvalidStepError("TCP steps need an outcome", field="outcome")

    @classmethod
    def dns(cls, family: AddressFamily | int) -> "Step":
        """Create an untimed DNS query step."""
        return cls(family=family, kind=StepKind.DNS)

    @classmethod
    def tcp(cls, family: AddressFamily | int, outcome: Outcome) -> "Step":
        """Create an untimed TCP step."""
        return cls(family=family, kind=StepKind.TCP, outcome=outcome)

    @property
    def is_dns(self) -> bool:
        return self.kind is StepKind.DNS

    @property
    def is_tcp(self) -> bool:
        return self.kind is StepKind.TCP

    @property
    def failed(self) -> bool:
        return self.outcome is Outcome.FAILED

    @property
    def terminal(self) -> bool:
        """True when no more same-family steps are needed after this one.

        In other words, this step should lead to an HTTP transaction.
        """
        if self.kind is StepKind.TCP:
            return self.outcome is Outcome.SUCCEEDED
        return False

    def with_wait(self, wait: int) -> "Step":
        """Copy that waits ``wait`` ms and finishes immediately once started."""
        return replace(self, wait=wait, delay=0)

    def with_delay(self, delay: int) -> "Step":
        """Copy that starts immediately and takes ``delay`` ms."""
        return replace(self, wait=0, delay=delay)

    def with_wait_and_delay(self, wait: int, delay: int) -> "Step":
        """Copy with both timing components set."""
        return replace(self, wait=wait, delay=delay)

    def clone(self) -> "Step":
        """Independent copy with the same variant and timing."""
        return replace(self)

    def _label_prefix(self) -> str:
        return f"pause{self.delay}-" if self.delay else ""

    def _label_suffix(self) -> str:
        if self.kind is StepKind.TCP:
            return f"{self.outcome.value}{self.family.value}"
        return f"a{self.family.value}"

    def domain_label(self) -> str:
        """DNS label encoding family, outcome and a non-zero delay.

        Examples: ``a4``, ``pause40-a6``, ``up6``, ``pause280-down4``.
        """
        return self._label_prefix() + self._label_suffix()

    def slot_index(self, step_size: int = DEFAULT_STEP_SIZE_MS) -> int:
        """Delay slot: the number of step_size quanta covering the delay."""
        return (self.delay + step_size - 1) // step_size

    def address(self, step_size: int = DEFAULT_STEP_SIZE_MS) -> str:
        """Synthetic target address of a TCP step.

        The address depends only on family, outcome and delay slot, so a DNS
        mock can derive it from the domain label alone.
        """
        if self.kind is not StepKind.TCP:
            raise InvalidStepError(
                "only TCP steps have an address", field="kind", received=self.kind.value
            )

        slot = self.slot_index(step_size)
        host = 10 if self.outcome is Outcome.SUCCEEDED else 11
        if self.family is AddressFamily.IPV4:
            return f"127.0.{slot}.{host}"
        if self.family is AddressFamily.IPV6:
            return f"fc00::{slot}:{host}"
        raise InvalidStepError(
            "spare placeholder steps have no address", field="family", received=0
        )

    def __str__(self) -> str:
        return self.domain_label()
