"""
Tests for race steps.

## Test Perspectives Table
| Case ID | Input / Precondition | Perspective (Equivalence / Boundary) | Expected Result | Notes |
|---------|----------------------|---------------------------------------|-----------------|-------|
| TC-AF-01 | complement of IPv4/IPv6 | Equivalence – pairing | 4 <-> 6 | - |
| TC-AF-02 | complement of placeholder | Boundary – spare | InvalidStepError | - |
| TC-ST-01 | DNS step label | Equivalence – label | a4 / pause40-a4 | - |
| TC-ST-02 | TCP step label | Equivalence – label | up6 / down6 | - |
| TC-ST-03 | with_wait/with_delay | Equivalence – exclusivity | other value zeroed | - |
| TC-ST-04 | clone | Equivalence – copy | equal, distinct, frozen | - |
| TC-ST-05 | terminal | Equivalence – variant | only successful TCP | - |
| TC-ST-06 | TCP address | Equivalence – slots | family/outcome/slot encoded | - |
| TC-ST-07 | DNS address | Boundary – variant | InvalidStepError | - |
| TC-ST-08 | invalid family/timing/outcome | Boundary – validation | InvalidStepError | - |
"""

import dataclasses

import pytest

from happy_race.race.steps import AddressFamily, Outcome, Step, StepKind
from happy_race.utils.errors import InvalidStepError, RaceErrorCode

pytestmark = pytest.mark.unit


class TestAddressFamily:
    """Tests for AddressFamily enum."""

    def test_complement_pairs_ipv4_and_ipv6(self):
        """IPv4 and IPv6 complement each other."""
        assert AddressFamily.IPV4.complement() is AddressFamily.IPV6
        assert AddressFamily.IPV6.complement() is AddressFamily.IPV4

    def test_spare_placeholder_has_no_complement(self):
        """The placeholder family cannot be complemented."""
        with pytest.raises(InvalidStepError):
            AddressFamily.SPARE.complement()

    def test_label(self):
        """Labels read like the families' common names."""
        assert AddressFamily.IPV4.label == "IPv4"
        assert AddressFamily.IPV6.label == "IPv6"


class TestStepLabels:
    """Tests for Step.domain_label()."""

    def test_dns_label(self):
        """DNS labels carry the family only."""
        assert Step.dns(4).domain_label() == "a4"
        assert Step.dns(6).domain_label() == "a6"

    def test_dns_label_with_delay(self):
        """A non-zero delay is encoded as a pause prefix."""
        assert Step.dns(6).with_delay(250).domain_label() == "pause250-a6"

    def test_tcp_labels(self):
        """TCP labels carry the outcome and the family."""
        assert Step.tcp(6, Outcome.SUCCEEDED).domain_label() == "up6"
        assert Step.tcp(4, Outcome.FAILED).domain_label() == "down4"

    def test_wait_is_not_part_of_label(self):
        """Only the delay shows up in the label."""
        # Given: A TCP step that waits but has no delay
        step = Step.tcp(4, Outcome.SUCCEEDED).with_wait(210)

        # When/Then: The label has no pause prefix
        assert step.domain_label() == "up4"
        assert str(step) == "up4"


class TestStepTiming:
    """Tests for the timed copy helpers."""

    def test_with_wait_zeroes_delay(self):
        """Setting the wait clears the delay."""
        step = Step.dns(4).with_delay(40).with_wait(10)

        assert step.wait == 10
        assert step.delay == 0

    def test_with_delay_zeroes_wait(self):
        """Setting the delay clears the wait."""
        step = Step.dns(4).with_wait(10).with_delay(40)

        assert step.wait == 0
        assert step.delay == 40

    def test_with_wait_and_delay_keeps_both(self):
        """Both components can be set together."""
        step = Step.tcp(6, Outcome.SUCCEEDED).with_wait_and_delay(210, 80)

        assert (step.wait, step.delay) == (210, 80)

    def test_timed_copy_leaves_template_untouched(self):
        """Timing a step never changes the template it came from."""
        # Given: An untimed template
        template = Step.tcp(4, Outcome.SUCCEEDED)

        # When: Creating a timed copy
        timed = template.with_delay(280)

        # Then: The template is still untimed
        assert template.delay == 0
        assert timed.delay == 280
        assert timed.kind is StepKind.TCP
        assert timed.outcome is Outcome.SUCCEEDED

    def test_clone_is_equal_but_independent(self):
        """Clones compare equal but are separate frozen objects."""
        step = Step.tcp(6, Outcome.FAILED).with_wait_and_delay(10, 40)

        copy = step.clone()

        assert copy == step
        assert copy is not step
        with pytest.raises(dataclasses.FrozenInstanceError):
            copy.delay = 0  # type: ignore[misc]


class TestStepTerminal:
    """Tests for Step.terminal."""

    def test_dns_is_never_terminal(self):
        step = Step.dns(4)

        assert step.terminal is False
        assert step.is_dns is True
        assert step.is_tcp is False

    def test_successful_tcp_is_terminal(self):
        assert Step.tcp(4, Outcome.SUCCEEDED).terminal is True

    def test_failed_tcp_is_not_terminal(self):
        step = Step.tcp(6, Outcome.FAILED)

        assert step.terminal is False
        assert step.failed is True


class TestStepAddress:
    """Tests for synthetic TCP step addresses."""

    @pytest.mark.parametrize(
        "family,outcome,delay,expected",
        [
            (4, Outcome.SUCCEEDED, 0, "127.0.0.10"),
            (4, Outcome.FAILED, 0, "127.0.0.11"),
            (4, Outcome.SUCCEEDED, 240, "127.0.6.10"),
            (6, Outcome.SUCCEEDED, 280, "fc00::7:10"),
            (6, Outcome.FAILED, 250, "fc00::7:11"),
            (6, Outcome.SUCCEEDED, 1, "fc00::1:10"),
            (4, Outcome.SUCCEEDED, 400, "127.0.10.10"),
        ],
    )
    def test_address_encodes_family_outcome_and_slot(self, family, outcome, delay, expected):
        """Address is a function of family, outcome and delay slot."""
        step = Step.tcp(family, outcome).with_delay(delay)

        assert step.address() == expected

    def test_wait_does_not_change_address(self):
        """Only the delay selects the slot."""
        step = Step.tcp(4, Outcome.SUCCEEDED).with_wait(210)

        assert step.slot_index() == 0
        assert step.address() == "127.0.0.10"

    def test_custom_step_size(self):
        """Slots follow the configured step size."""
        step = Step.tcp(4, Outcome.SUCCEEDED).with_delay(100)

        assert step.slot_index(step_size=50) == 2
        assert step.address(step_size=50) == "127.0.2.10"

    def test_dns_step_has_no_address(self):
        """Asking a DNS step for its address is a programming error."""
        with pytest.raises(InvalidStepError) as exc_info:
            Step.dns(4).address()

        assert exc_info.value.code is RaceErrorCode.INVALID_STEP


class TestStepValidation:
    """Tests for Step construction checks."""

    def test_family_is_coerced(self):
        """Integer families become AddressFamily members."""
        assert Step.dns(6).family is AddressFamily.IPV6

    def test_unknown_family_rejected(self):
        with pytest.raises(InvalidStepError, match="family must be 0, 4 or 6"):
            Step.dns(5)

    def test_negative_delay_rejected(self):
        with pytest.raises(InvalidStepError, match="delay must not be negative"):
            Step.dns(4).with_delay(-1)

    def test_negative_wait_rejected(self):
        with pytest.raises(InvalidStepError, match="wait must not be negative"):
            Step.dns(4).with_wait(-40)

    def test_dns_with_outcome_rejected(self):
        with pytest.raises(InvalidStepError, match="DNS steps have no outcome"):
            Step(family=4, kind=StepKind.DNS, outcome=Outcome.SUCCEEDED)

    def test_tcp_without_outcome_rejected(self):
        with pytest.raises(InvalidStepError, match="TCP steps need an outcome"):
            Step(family=4, kind=StepKind.TCP)
