"""
happy-race utilities module.
"""

from happy_race.utils.config import get_settings
from happy_race.utils.errors import (
    AddressPoolExhaustedError,
    GenerationError,
    InvalidStepError,
    RaceError,
    RaceErrorCode,
    UnknownCaseError,
    VerificationError,
)
from happy_race.utils.logging import (
    LogContext,
    bind_context,
    configure_logging,
    get_logger,
    unbind_context,
)
