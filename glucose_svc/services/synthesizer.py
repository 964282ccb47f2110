"""
Turns detected patterns into advice text.

Tiers are evaluated in order and only the first matching tier produces
messages. Message text depends only on the inputs, so the dedup gate can
compare advice by exact string.
"""
from typing import List, Sequence

ONBOARDING_MESSAGE = "Log your first reading to start receiving personalised insights."
PATTERN_TEMPLATE = "Recurring spike detected after '{token}'. Consider adjusting intake."
STABILIZATION_MESSAGE = (
    "Some readings are outside the target range. "
    "Keep logging meals and activities so recurring triggers can be identified."
)
POSITIVE_MESSAGE = "Your readings are within the target range. Keep up the good work!"


def pattern_message(token: str) -> str:
    """Advice for one recurring trigger."""
    return PATTERN_TEMPLATE.format(token=token)


def synthesize(
    patterns: Sequence[str],
    abnormal_count: int,
    total_count: int
) -> List[str]:
    """
    Build the advice messages for one analysis run.

    Args:
        patterns: Recurring triggers, most frequent first.
        abnormal_count: All of the patient's Abnormal readings.
        total_count: All of the patient's readings.

    Returns:
        1. The onboarding message alone when total_count is 0.
        2. One message per pattern when there are patterns.
        3. The stabilization message alone when there are abnormal readings.
        4. The positive-reinforcement message alone otherwise.
    """
    if total_count == 0:
        return [ONBOARDING_MESSAGE]
    if patterns:
        return [pattern_message(token) for token in patterns]
    if abnormal_count > 0:
        return [STABILIZATION_MESSAGE]
    return [POSITIVE_MESSAGE]
