"""Non-fatal diagnostics collected while placing cores."""

import logging
from dataclasses import dataclass, field
from typing import List

logger = logging.getLogger(__name__)

NO_FLOORS_OR_LEVELS = "No Floors or Levels found in model."
UNABLE_TO_PLACE_CORE = (
    "Unable to automatically place core for at least one building. "
    "Use Additional Core Locations to specify a core position manually."
)


@dataclass
class Diagnostics:
    """Collects human-readable warnings; each distinct message is kept once."""

    warnings: List[str] = field(default_factory=list)

    def warn(self, message: str) -> None:
        logger.warning(message)
        if message not in self.warnings:
            self.warnings.append(message)
