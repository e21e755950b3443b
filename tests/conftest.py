"""
Pytest fixtures and configuration for happy-race tests.

=============================================================================
Test Classification
=============================================================================

- @pytest.mark.unit: Single class/function, no external dependencies
  - Fast (<1s per test)
  - DEFAULT: Tests without marker are auto-classified as unit

- @pytest.mark.integration: Multiple components working together
  (catalog generation end to end, CLI, sequential runner with fake executors)

No test touches the network: scenario execution is driven by fake
executors that return canned observations.
"""

import os
from pathlib import Path

import pytest

# Set test environment before importing anything else
os.environ["HAPPY_RACE_CONFIG_DIR"] = str(Path(__file__).parent.parent / "config")

from happy_race.race.catalog import Catalog, CatalogBuilder  # noqa: E402
from happy_race.race.family import FamilySteps  # noqa: E402
from happy_race.race.steps import Outcome, Step  # noqa: E402
from happy_race.race.walk import RaceTiming  # noqa: E402
from happy_race.utils.config import get_settings  # noqa: E402


def pytest_configure(config):
    """Register custom markers for test classification."""
    config.addinivalue_line(
        "markers", "unit: Unit tests with no external dependencies (fast, <1s/test)"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests across several components"
    )


def pytest_collection_modifyitems(config, items):
    """Tests without explicit markers are assumed to be unit tests."""
    for item in items:
        has_classification = any(
            marker.name in ("unit", "integration") for marker in item.iter_markers()
        )
        if not has_classification:
            item.add_marker(pytest.mark.unit)


@pytest.fixture(autouse=True)
def reset_settings_cache():
    """Reload settings for every test so env overrides do not leak."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def timing() -> RaceTiming:
    """Default race timing: 40ms steps, 250ms spare wait."""
    return RaceTiming(step_size=40, spare_wait_exact=250)


@pytest.fixture(scope="session")
def catalog() -> Catalog:
    """The full default scenario catalog (generated once)."""
    return CatalogBuilder(RaceTiming()).build()


@pytest.fixture
def make_family():
    """Factory for untimed family steps from outcome words.

    Example:
        make_family(6, "down", "up") -> a6.down6.up6
    """

    def _make(family: int, *outcomes: str) -> FamilySteps:
        return FamilySteps(
            Step.dns(family),
            tuple(Step.tcp(family, Outcome(word)) for word in outcomes),
        )

    return _make
