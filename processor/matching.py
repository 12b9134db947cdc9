"""Heuristic matching of normalized event titles."""
import math

MIN_FUZZY_LENGTH = 5
CONTAINMENT_MIN_RATIO = 0.6
PREFIX_MIN_LENGTH = 8
PREFIX_MAX_LENGTH_RATIO = 1.3
PREFIX_FRACTION = 0.9


def _prefix_overlap(shorter: str, longer: str) -> bool:
    prefix = shorter[:math.floor(len(shorter) * PREFIX_FRACTION)]
    return prefix in longer


def titles_match(a: str, b: str) -> bool:
    """
    Decide whether two normalized titles describe the same event.

    Rules, first match wins:
    1. exact equality, at any length;
    2. one contains the other and the shorter is at least 60% of the
       longer (skipped when either is under 5 characters);
    3. both are at least 8 characters, the longer is at most 1.3 times the
       shorter, and the longer contains the first 90% of the shorter.

    Args:
        a: Title fingerprint from normalize_title
        b: Title fingerprint from normalize_title

    Returns:
        True if the titles match
    """
    if a == b:
        return True
    if len(a) < MIN_FUZZY_LENGTH or len(b) < MIN_FUZZY_LENGTH:
        return False

    shorter, longer = (a, b) if len(a) <= len(b) else (b, a)

    if shorter in longer and len(shorter) / len(longer) >= CONTAINMENT_MIN_RATIO:
        return True

    if len(shorter) >= PREFIX_MIN_LENGTH and len(longer) <= len(shorter) * PREFIX_MAX_LENGTH_RATIO:
        if _prefix_overlap(shorter, longer):
            return True
        # Equal lengths have no natural "shorter" side; check both ways
        if len(shorter) == len(longer):
            return _prefix_overlap(longer, shorter)

    return False
