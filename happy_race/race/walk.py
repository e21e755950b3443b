"""
Walks: pairings of a prime family with its complementary spare family.

A walk enumerates every operationally distinct placement of the spare wait
timer (SW, the moment a client normally starts racing the spare family)
relative to the race steps, and builds one HappyCase per placement.

Step shorthand used in scenario gists:
- p0: prime DNS step
- s0: spare DNS step
- p1: the first prime TCP step (``p1+`` = all prime TCP steps)
- s1: the first spare TCP step (``s1+`` = all spare TCP steps)
"""

from collections.abc import Iterator
from dataclasses import dataclass

from happy_race.race.family import UNTIMED, FamilySteps, Timing
from happy_race.race.merge import WinningPath, find_winning_path
from happy_race.race.scenario import DEFAULT_DOMAIN_SUFFIX, HappyCase
from happy_race.race.steps import DEFAULT_STEP_SIZE_MS, AddressFamily
from happy_race.utils.config import get_settings
from happy_race.utils.errors import GenerationError


@dataclass(frozen=True)
class RaceTiming:
    """Timing constants of the race, in milliseconds."""

    step_size: int = DEFAULT_STEP_SIZE_MS
    spare_wait_exact: int = 250

    def __post_init__(self) -> None:
        if self.step_size <= 0:
            raise ValueError("step_size must be positive")
        if self.spare_wait_exact <= 0:
            raise ValueError("spare_wait_exact must be positive")
        # "p0 s0 p1+ SW" and "p0 p1+ s0 s1+ SW" finish two steps in
        if 2 * self.step_size >= self.spare_wait_exact:
            raise GenerationError(
                "spare_wait_exact must exceed two steps",
                context=f"step_size={self.step_size} spare_wait_exact={self.spare_wait_exact}",
            )

    @classmethod
    def from_settings(cls) -> "RaceTiming":
        timing = get_settings().timing
        return cls(step_size=timing.step_size_ms, spare_wait_exact=timing.spare_wait_exact_ms)

    @property
    def spare_wait_delay(self) -> int:
        """Smallest step_size multiple that places a TCP step after SW."""
        return (self.spare_wait_exact // self.step_size + 1) * self.step_size

    @property
    def family_delay(self) -> int:
        """Time sufficient for all same-family TCP steps to complete."""
        return 3 * self.step_size


def _delay(value: int) -> Timing:
    return (0, value)


def _wait(value: int) -> Timing:
    return (value, 0)


class Walk:
    """A complete race: two DNS queries and the TCP connection attempts they lead to."""

    def __init__(
        self,
        prime_family_id: AddressFamily | int,
        timing: RaceTiming | None = None,
        domain_suffix: str = DEFAULT_DOMAIN_SUFFIX,
    ):
        self.prime_family_id = AddressFamily(prime_family_id)
        self.spare_family_id = self.prime_family_id.complement()
        self.timing = timing or RaceTiming()
        self.domain_suffix = domain_suffix
        self.prime_family: FamilySteps | None = None
        self.spare_family: FamilySteps | None = None
        self._winning_path: WinningPath | None = None

    def clear(self) -> None:
        self.spare_family = None
        self._winning_path = None

    def set_prime(self, prime_family: FamilySteps) -> bool:
        """Accept a prime family shape unless it is clearly redundant."""
        if prime_family.family != self.prime_family_id:
            raise GenerationError(
                f"prime family must be IPv{self.prime_family_id.value}",
                context=str(prime_family),
            )
        self.clear()
        self.prime_family = prime_family
        return prime_family.useful()

    def set_spare(self, spare_family: FamilySteps) -> bool:
        """Accept a spare family shape that leaves exactly one final step."""
        if self.prime_family is None:
            raise GenerationError("set_prime() must precede set_spare()")
        if spare_family.family != self.spare_family_id:
            raise GenerationError(
                f"spare family must be IPv{self.spare_family_id.value}",
                context=str(spare_family),
            )
        self.spare_family = spare_family
        self._winning_path = None
        if not spare_family.useful():
            return False

        return self.prime_family.has_final() != spare_family.has_final()

    def useful(self) -> bool:
        return self._prime().has_final() or self._spare().has_final()

    def winning_path(self) -> WinningPath:
        """Merge of the untimed family templates.

        Every template step has a zero delay, so the prime family wins each
        tie and the whole prime sequence precedes the spare one in the
        trace. Per-placement traces come from the scenarios yielded by
        ``test_cases()``.
        """
        if self._winning_path is None:
            self._winning_path = find_winning_path(
                self._prime().all_steps(),
                self._spare().all_steps(),
                self.timing.step_size,
            )
        return self._winning_path

    def domain_name(self) -> str:
        """Scenario-style name of the untimed merge, prime steps first."""
        path = self.winning_path()
        return ".".join(step.domain_label() for step in path.trace) + f".{self.domain_suffix}"

    def _prime(self) -> FamilySteps:
        if self.prime_family is None:
            raise GenerationError("walk has no prime family")
        return self.prime_family

    def _spare(self) -> FamilySteps:
        if self.spare_family is None:
            raise GenerationError("walk has no spare family")
        return self.spare_family

    def _case(
        self,
        gist: str,
        order: tuple[str, ...],
        *,
        s0: Timing = UNTIMED,
        p1: Timing = UNTIMED,
        s1: Timing = UNTIMED,
    ) -> HappyCase:
        prime = self._prime().timed(first_tcp=p1)
        spare = self._spare().timed(dns=s0, first_tcp=s1)
        by_role = {"p0": prime.dns_step, "s0": spare.dns_step}
        if prime.tcp_steps:
            by_role["p1"] = prime.tcp_steps[0]
        if spare.tcp_steps:
            by_role["s1"] = spare.tcp_steps[0]

        return HappyCase.from_leaders(
            prime,
            spare,
            gist,
            [by_role[role] for role in order],
            step_size=self.timing.step_size,
            domain_suffix=self.domain_suffix,
        )

    def test_cases(self) -> Iterator[HappyCase]:
        """Yield one scenario per distinct SW placement.

        The generator has no side effects on the walk, so calling it again
        yields the same scenarios in the same order.
        """
        step = self.timing.step_size
        exact = self.timing.spare_wait_exact
        sw_delay = self.timing.spare_wait_delay
        family_delay = self.timing.family_delay

        prime = self._prime()
        spare = self._spare()

        # cases without prime IPs
        if not prime.tcp_steps:
            # SW positions: p0 __ s0 __ s1+ __
            order = ("p0", "s0", "s1")
            yield self._case("p0 SW s0 s1+", order, s0=_delay(exact), s1=_delay(0))
            yield self._case("p0 s0 SW s1+", order, s0=_delay(step), s1=_delay(sw_delay - step))
            yield self._case("p0 s0 s1+ SW", order, s0=_delay(step), s1=_delay(0))
            return

        # cases without spare IPs
        if not spare.tcp_steps:
            # SW positions: p0 __ s0 __ p1+ __
            order = ("p0", "s0", "p1")
            yield self._case("p0 SW s0 p1+", order, s0=_delay(exact), p1=_delay(sw_delay + step))
            yield self._case("p0 s0 SW p1+", order, s0=_delay(step), p1=_delay(sw_delay))
            yield self._case("p0 s0 p1+ SW", order, s0=_delay(step), p1=_delay(2 * step))

            # SW positions: p0 __ p1+ __ s0 __
            order = ("p0", "p1", "s0")
            yield self._case("p0 SW p1+ s0", order, p1=_delay(sw_delay), s0=_delay(sw_delay + step))
            yield self._case("p0 p1+ SW s0", order, p1=_delay(0), s0=_delay(exact))
            yield self._case("p0 p1+ s0 SW", order, p1=_delay(0), s0=_delay(2 * step))
            return

        # cases with prime and spare IPs

        # SW positions: p0 __ p1+ __ s0 __ s1+ __
        order = ("p0", "p1", "s0", "s1")
        yield self._case(
            "p0 SW p1+ s0 s1+", order,
            p1=_delay(sw_delay), s0=_delay(sw_delay + step), s1=_delay(0),
        )
        yield self._case(
            "p0 p1+ SW s0 s1+", order,
            p1=_delay(0), s0=_delay(exact), s1=_delay(0),
        )
        yield self._case(
            "p0 p1+ s0 SW s1+", order,
            p1=_delay(0), s0=_delay(2 * step), s1=_delay(sw_delay),
        )
        yield self._case(
            "p0 p1+ s0 s1+ SW", order,
            p1=_delay(0), s0=_delay(2 * step), s1=_delay(0),
        )

        # SW positions: p0 __ s0 __ p1+ __ s1+ __
        # s1 waits for p1 to finish before it starts
        order = ("p0", "s0", "p1", "s1")
        yield self._case(
            "p0 SW s0 p1+ s1+", order,
            s0=_delay(exact), p1=_delay(sw_delay + step), s1=_delay(2 * step),
        )
        yield self._case(
            "p0 s0 SW p1+ s1+", order,
            s0=_delay(step), p1=_delay(sw_delay), s1=(exact - step, 2 * step),
        )
        s0_delay = step
        p1_delay = 2 * step
        yield self._case(
            "p0 s0 p1+ SW s1+", order,
            s0=_delay(s0_delay), p1=_delay(p1_delay),
            s1=(p1_delay - s0_delay, sw_delay - p1_delay),
        )
        yield self._case(
            "p0 s0 p1+ s1+ SW", order,
            s0=_delay(s0_delay), p1=_delay(p1_delay), s1=_wait(p1_delay - s0_delay),
        )

        # SW positions: p0 __ s0 __ s1+ __ p1+ __
        # "p0 s0 s1+ SW p1+" and "p0 s0 s1+ p1+ SW" are impossible
        order = ("p0", "s0", "s1", "p1")
        yield self._case(
            "p0 SW s0 s1+ p1+", order,
            s0=_delay(exact), s1=_delay(0), p1=_delay(sw_delay + family_delay),
        )
        yield self._case(
            "p0 s0 SW s1+ p1+", order,
            s0=_delay(step), s1=_wait(exact - step), p1=_delay(sw_delay + family_delay),
        )

    def __str__(self) -> str:
        steps = []
        if self.prime_family is not None:
            steps.extend(self.prime_family.all_steps())
        if self.spare_family is not None:
            steps.extend(self.spare_family.all_steps())
        return ".".join(step.domain_label() for step in steps)
