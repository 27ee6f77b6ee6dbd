import math
from typing import Dict, List

from ..schemas.fit import FitResult


TIGHT_THRESHOLD_PCT = -5.0
LOOSE_THRESHOLD_PCT = 10.0
MIN_FITTING_SCORE = 70.0


def _whole_percent(value: float) -> int:
    # halves round up, so 6.5 reads as 7
    return math.floor(value + 0.5)


def check_fit_compatibility(user_measurements: Dict[str, float], item_measurements: Dict[str, float]) -> FitResult:
    """Compare a user's measurements with a garment's, key by key.

    Each shared key contributes its absolute percentage difference to the
    average; the score is ``100 - average`` floored at zero. With nothing to
    compare the average is taken as 100, so the score is 0.
    """
    warnings: List[str] = []
    recommendations: List[str] = []
    total_diff = 0.0
    count = 0

    for key, user_value in user_measurements.items():
        item_value = item_measurements.get(key)
        if item_value is None or not user_value or user_value <= 0:
            continue

        diff = (item_value - user_value) / user_value * 100
        total_diff += abs(diff)
        count += 1

        if diff < TIGHT_THRESHOLD_PCT:
            warnings.append(f"{key} may be tight ({_whole_percent(abs(diff))}% smaller)")
            recommendations.append(f"Consider sizing up for better {key} fit")
        elif diff > LOOSE_THRESHOLD_PCT:
            warnings.append(f"{key} may be loose ({_whole_percent(diff)}% larger)")
            recommendations.append(f"Consider sizing down or tailoring the {key}")

    avg_diff = total_diff / count if count else 100.0
    score = max(0.0, 100.0 - avg_diff)
    fits = score > MIN_FITTING_SCORE and not warnings

    return FitResult(fits=fits, score=score, warnings=warnings, recommendations=recommendations)
