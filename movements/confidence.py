"""
Confidence Scorer - Coarse data-quality bucket per movement.

Additive points:
- +3 per present label (from / to)
- +2 per resolved entity id (from / to)
- +2 if the data came from Nansen
- +1 if the amount is above $10M

>= 10 is high, 6-9 is med, <= 5 is low. Maximum is 13.
"""

from movements.labels import is_present
from movements.models import Confidence, DataSource, Movement


LABEL_POINTS = 3
ENTITY_POINTS = 2
NANSEN_POINTS = 2
LARGE_AMOUNT_POINTS = 1
LARGE_AMOUNT_USD = 10_000_000

HIGH_THRESHOLD = 10
MED_THRESHOLD = 6


def confidence_points(movement: Movement) -> int:
    points = 0

    if is_present(movement.from_label):
        points += LABEL_POINTS
    if is_present(movement.to_label):
        points += LABEL_POINTS

    if movement.from_entity_id:
        points += ENTITY_POINTS
    if movement.to_entity_id:
        points += ENTITY_POINTS

    if movement.data_source == DataSource.NANSEN:
        points += NANSEN_POINTS

    if movement.amount_usd > LARGE_AMOUNT_USD:
        points += LARGE_AMOUNT_POINTS

    return points


def calculate_confidence(movement: Movement) -> Confidence:
    """Bucket the point total."""
    points = confidence_points(movement)
    if points >= HIGH_THRESHOLD:
        return Confidence.HIGH
    if points >= MED_THRESHOLD:
        return Confidence.MED
    return Confidence.LOW


def score_confidence(movement: Movement) -> Movement:
    """Return a copy with ``confidence`` set."""
    return movement.evolve(confidence=calculate_confidence(movement))
