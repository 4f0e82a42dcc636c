"""Decide whether tool console output reports a failure.

gfix and gbak exit with 0 on partial failures and print warnings that are
not real errors, so the verdict comes from the text. A heuristic written as
``/pattern/`` is a case-insensitive regex; anything else is a
case-insensitive substring.
"""

import logging
import re
from typing import Optional

logger = logging.getLogger(__name__)


def _is_pattern(heuristic: str) -> bool:
    return len(heuristic) >= 2 and heuristic.startswith("/") and heuristic.endswith("/")


def matches(output: str, heuristic: str) -> bool:
    """Return True if a single heuristic matches the output."""
    if not heuristic:
        return False
    if _is_pattern(heuristic):
        try:
            return re.search(heuristic[1:-1], output, re.IGNORECASE) is not None
        except re.error as e:
            logger.debug(f"Invalid pattern {heuristic!r}, matching literally: {e}")
    return heuristic.lower() in output.lower()


def first_match(output: str, heuristics: list[str]) -> Optional[str]:
    for heuristic in heuristics:
        if matches(output, heuristic):
            return heuristic
    return None


def is_failure(
    output: str,
    failure_heuristics: list[str],
    success_markers: list[str],
) -> bool:
    """Failure when a failure heuristic matches and no success marker does."""
    hit = first_match(output, failure_heuristics)
    if hit is None:
        return False
    marker = first_match(output, success_markers)
    if marker is not None:
        logger.info(f"Output matched {hit!r} but also success marker {marker!r}")
        return False
    return True
