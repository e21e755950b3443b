"""
Tests for same-family step sequences.

## Test Perspectives Table
| Case ID | Input / Precondition | Perspective (Equivalence / Boundary) | Expected Result | Notes |
|---------|----------------------|---------------------------------------|-----------------|-------|
| TC-FS-01 | make_family_steps(4) | Equivalence – shapes | 7 shapes in fixed order | - |
| TC-FS-02 | each shape | Equivalence – predicates | has_final/useful table | - |
| TC-FS-03 | shapes with a terminal step | Equivalence – invariant | useful iff terminal is last | - |
| TC-FS-04 | timed() | Equivalence – builder | DNS + first TCP timed, rest zero | - |
| TC-FS-05 | find_final_step | Boundary – no final | None | - |
| TC-FS-06 | DNS step missing, 3 TCP steps, foreign family | Abnormal – shape | InvalidStepError | - |
"""

import pytest

from happy_race.race.family import FamilySteps, make_family_steps, make_tcp_steps
from happy_race.race.steps import AddressFamily, Outcome, Step
from happy_race.utils.errors import InvalidStepError, RaceErrorCode

pytestmark = pytest.mark.unit


class TestMakeFamilySteps:
    """Tests for family shape enumeration."""

    def test_tcp_steps_success_first(self):
        """Successful attempts are enumerated before failed ones."""
        steps = list(make_tcp_steps(6))

        assert [step.outcome for step in steps] == [Outcome.SUCCEEDED, Outcome.FAILED]

    def test_shapes_in_fixed_order(self):
        """All seven shapes come out in the same order every time."""
        shapes = [str(family) for family in make_family_steps(4)]

        assert shapes == [
            "a4",
            "a4.up4",
            "a4.down4",
            "a4.up4.up4",
            "a4.up4.down4",
            "a4.down4.up4",
            "a4.down4.down4",
        ]
        assert [str(f) for f in make_family_steps(4)] == shapes

    def test_shapes_share_family(self):
        """Every step of a shape belongs to the shape's family."""
        for family in make_family_steps(6):
            assert family.family is AddressFamily.IPV6
            assert all(step.family is AddressFamily.IPV6 for step in family.all_steps())


class TestFamilyPredicates:
    """Tests for has_final() and useful()."""

    @pytest.mark.parametrize(
        "outcomes,has_final,useful",
        [
            ((), False, True),
            (("up",), True, True),
            (("down",), False, True),
            (("up", "up"), True, False),
            (("up", "down"), True, False),
            (("down", "up"), True, True),
            (("down", "down"), False, True),
        ],
    )
    def test_predicates(self, make_family, outcomes, has_final, useful):
        """Predicate values for every shape."""
        family = make_family(4, *outcomes)

        assert family.has_final() is has_final
        assert family.useful() is useful

    def test_useful_iff_terminal_is_last(self):
        """For shapes with a terminal step, useful means it is the last step."""
        for family in make_family_steps(6):
            if not family.has_final():
                continue
            final = family.find_final_step()
            assert family.useful() is (family.tcp_steps[-1] is final)

    def test_find_final_step_none(self, make_family):
        """Shapes without a successful attempt have no final step."""
        assert make_family(4, "down", "down").find_final_step() is None

    def test_find_final_step(self, make_family):
        family = make_family(6, "down", "up")

        assert family.find_final_step() == family.tcp_steps[1]


class TestFamilyTimed:
    """Tests for FamilySteps.timed()."""

    def test_timed_sets_dns_and_first_tcp(self, make_family):
        """Only the DNS step and the first TCP step get explicit timing."""
        # Given: A family with two TCP steps
        family = make_family(6, "down", "up")

        # When: Timing the DNS step and the first TCP step
        timed = family.timed(dns=(0, 40), first_tcp=(210, 80))

        # Then: The remaining TCP step finishes immediately
        assert (timed.dns_step.wait, timed.dns_step.delay) == (0, 40)
        assert (timed.tcp_steps[0].wait, timed.tcp_steps[0].delay) == (210, 80)
        assert (timed.tcp_steps[1].wait, timed.tcp_steps[1].delay) == (0, 0)
        assert str(timed) == "pause40-a6.pause80-down6.up6"

    def test_timed_returns_new_value(self, make_family):
        """The untimed family is left as it was."""
        family = make_family(4, "up")

        family.timed(dns=(0, 250))

        assert str(family) == "a4.up4"

    def test_timed_without_tcp_steps(self):
        family = next(make_family_steps(4))

        timed = family.timed(dns=(0, 40), first_tcp=(0, 80))

        assert timed.tcp_steps == ()
        assert str(timed) == "pause40-a4"

    def test_tcp_steps_become_tuple(self, make_family):
        family = FamilySteps(make_family(4).dns_step, [])

        assert family.tcp_steps == ()


class TestFamilyShapeValidation:
    """Tests for the FamilySteps shape checks."""

    def test_dns_step_required(self):
        with pytest.raises(InvalidStepError, match="starts with a DNS step") as exc_info:
            FamilySteps(Step.tcp(4, Outcome.SUCCEEDED))

        assert exc_info.value.code is RaceErrorCode.INVALID_STEP
        assert exc_info.value.details == {"field": "dns_step", "received": "tcp"}

    def test_at_most_two_tcp_steps(self):
        # Given: Three TCP steps after an IPv4 DNS step
        tcp_steps = [Step.tcp(4, Outcome.FAILED)] * 3

        # When/Then: The shape is refused
        with pytest.raises(InvalidStepError, match="at most 2 TCP steps") as exc_info:
            FamilySteps(Step.dns(4), tcp_steps)

        assert exc_info.value.details == {"field": "tcp_steps", "received": "3"}

    def test_second_dns_step_rejected(self):
        with pytest.raises(InvalidStepError, match="only TCP steps"):
            FamilySteps(Step.dns(6), (Step.dns(6),))

    def test_mixed_family_rejected(self):
        with pytest.raises(InvalidStepError, match="must be IPv4") as exc_info:
            FamilySteps(Step.dns(4), (Step.tcp(4, Outcome.FAILED), Step.tcp(6, Outcome.SUCCEEDED)))

        assert exc_info.value.details["received"] == "IPv6"

    def test_two_tcp_steps_accepted(self, make_family):
        family = make_family(6, "down", "up")

        assert len(family.tcp_steps) == 2
