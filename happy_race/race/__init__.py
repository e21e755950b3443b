"""
Race model and scenario catalog.

Provides race steps, family step shapes, the winner merge, walks over
prime/spare pairings and the deterministic scenario catalog.
"""

from happy_race.race.catalog import (
    Catalog,
    CatalogBuilder,
    build_catalog,
)
from happy_race.race.family import (
    FamilySteps,
    make_family_steps,
    make_tcp_steps,
)
from happy_race.race.merge import (
    WinningPath,
    find_winning_path,
)
from happy_race.race.scenario import (
    HappyCase,
    ScenarioDescriptor,
)
from happy_race.race.steps import (
    AddressFamily,
    Outcome,
    Step,
    StepKind,
)
from happy_race.race.walk import (
    RaceTiming,
    Walk,
)

__all__ = [
    "AddressFamily",
    "Catalog",
    "CatalogBuilder",
    "FamilySteps",
    "HappyCase",
    "Outcome",
    "RaceTiming",
    "ScenarioDescriptor",
    "Step",
    "StepKind",
    "Walk",
    "WinningPath",
    "build_catalog",
    "find_winning_path",
    "make_family_steps",
    "make_tcp_steps",
]
