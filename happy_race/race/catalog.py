"""
Scenario catalog.

Iterates both family orderings, every prime and spare step shape and every
valid walk placement. Generation is deterministic: the same timing and
suffix always give the same scenarios in the same order, which callers
rely on when selecting and counting scenarios by name.
"""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from happy_race.race.family import make_family_steps
from happy_race.race.scenario import DEFAULT_DOMAIN_SUFFIX, HappyCase
from happy_race.race.steps import AddressFamily
from happy_race.race.walk import RaceTiming, Walk
from happy_race.utils.config import get_settings
from happy_race.utils.errors import GenerationError, UnknownCaseError
from happy_race.utils.logging import get_logger

logger = get_logger(__name__)

PRIME_FAMILY_ORDER = (AddressFamily.IPV4, AddressFamily.IPV6)


@dataclass
class Catalog:
    """All supported scenarios, unique by name, in generation order."""

    scenarios: list[HappyCase] = field(default_factory=list)

    def __post_init__(self) -> None:
        self._by_name = {case.name.lower(): case for case in self.scenarios}

    def __len__(self) -> int:
        return len(self.scenarios)

    def __iter__(self) -> Iterator[HappyCase]:
        return iter(self.scenarios)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._by_name

    def names(self) -> list[str]:
        return [case.name for case in self.scenarios]

    def get(self, name: str) -> HappyCase:
        try:
            return self._by_name[name.lower()]
        except KeyError:
            raise UnknownCaseError([name], self.names()) from None

    def select(self, names: Iterable[str] | None = None) -> list[HappyCase]:
        """Scenarios named in ``names`` (case-insensitive), in catalog order.

        With no names, every scenario is selected. Extra catalog entries
        are never an error; an unknown name is.

        Raises:
            UnknownCaseError: If any name is not in the catalog.
        """
        wanted = {name.lower() for name in (names or ()) if name}
        if not wanted:
            return list(self.scenarios)

        unknown = sorted(wanted - self._by_name.keys())
        if unknown:
            raise UnknownCaseError(unknown, self.names())

        return [case for case in self.scenarios if case.name.lower() in wanted]


class CatalogBuilder:
    """Builds the scenario catalog from timing constants."""

    def __init__(
        self,
        timing: RaceTiming | None = None,
        domain_suffix: str = DEFAULT_DOMAIN_SUFFIX,
    ):
        self.timing = timing or RaceTiming()
        self.domain_suffix = domain_suffix

    @classmethod
    def from_settings(cls) -> "CatalogBuilder":
        settings = get_settings()
        return cls(
            timing=RaceTiming.from_settings(),
            domain_suffix=settings.naming.domain_suffix,
        )

    def iter_scenarios(self) -> Iterator[HappyCase]:
        """Yield every scenario, duplicates included, in generation order."""
        for prime_family_id in PRIME_FAMILY_ORDER:
            walk = Walk(prime_family_id, self.timing, self.domain_suffix)
            spare_family_id = prime_family_id.complement()

            for prime_family in make_family_steps(prime_family_id):
                if not walk.set_prime(prime_family):
                    continue

                for spare_family in make_family_steps(spare_family_id):
                    if not walk.set_spare(spare_family):
                        continue

                    yield from walk.test_cases()

    def build(self) -> Catalog:
        """Generate the full catalog.

        Raises:
            GenerationError: If no scenario could be generated.
        """
        scenarios: list[HappyCase] = []
        seen: set[str] = set()
        for case in self.iter_scenarios():
            key = case.name.lower()
            if key in seen:
                logger.warning("Dropping duplicate scenario", name=case.name, gist=case.gist)
                continue
            seen.add(key)
            scenarios.append(case)

        if not scenarios:
            raise GenerationError("no test cases generated")

        return Catalog(scenarios)


def build_catalog(
    cases: Iterable[str] | None = None,
    builder: CatalogBuilder | None = None,
) -> list[HappyCase]:
    """Plan the scenarios to run.

    The whole catalog is generated before any selection is checked, so a
    bad selection fails before any scenario executes.

    Args:
        cases: Optional scenario names to restrict the plan to.
        builder: Catalog builder; configured from settings if None.

    Returns:
        Planned scenarios in catalog order.

    Raises:
        GenerationError: If generation fails or plans nothing.
        UnknownCaseError: If a requested name is not in the catalog.
    """
    builder = builder or CatalogBuilder.from_settings()
    catalog = builder.build()
    planned = catalog.select(cases)

    for case in planned:
        logger.debug("Planned scenario", name=case.name, gist=case.description)

    if not planned:
        raise GenerationError("no test cases planned")

    logger.info("Scenario catalog ready", planned=len(planned), supported=len(catalog))
    return planned
