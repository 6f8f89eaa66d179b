"""
Transformer load calculations from per-leg phase currents.

Rated load is ``rating (kVA) * 1.334``; percentage load, neutral and phase
imbalance are derived from the summed (bulk) phase currents.
"""
import math

RATED_LOAD_FACTOR = 1.334
OVERLOAD_PERCENT = 100
ACTION_REQUIRED_PERCENT = 70
IMBALANCE_WARNING_PERCENT = 10
IMBALANCE_CRITICAL_PERCENT = 20

PHASE_KEYS = ('red_phase_current', 'yellow_phase_current', 'blue_phase_current', 'neutral_current')


def empty_metrics():
    return {
        'rated_load': 0,
        'red_phase_bulk_load': 0,
        'yellow_phase_bulk_load': 0,
        'blue_phase_bulk_load': 0,
        'average_current': 0,
        'percentage_load': 0,
        'ten_percent_full_load_neutral': 0,
        'calculated_neutral': 0,
        'load_status': load_status(0),
        'neutral_warning_level': 'normal',
        'neutral_warning_message': '',
        'imbalance_percentage': 0,
        'imbalance_warning_level': 'normal',
        'imbalance_warning_message': '',
        'max_phase_current': 0,
        'min_phase_current': 0,
    }


def _is_number(value):
    return isinstance(value, (int, float)) and not isinstance(value, bool) and not math.isnan(value)


def load_status(percentage_load):
    if percentage_load >= OVERLOAD_PERCENT:
        return 'OVERLOAD'
    if percentage_load >= ACTION_REQUIRED_PERCENT:
        return 'Action Required'
    return 'OKAY'


def neutral_warning(calculated_neutral, ten_percent_full_load_neutral):
    """(level, message) for the calculated neutral against the rated neutral"""
    if calculated_neutral > ten_percent_full_load_neutral * 2:
        return 'critical', 'Critical: Neutral current exceeds 200% of rated neutral'
    if calculated_neutral > ten_percent_full_load_neutral:
        return 'warning', 'Warning: Neutral current exceeds rated neutral'
    return 'normal', ''


def phase_imbalance(red, yellow, blue):
    """(percentage, level, message) where percentage = (max - avg) / avg * 100"""
    average = (red + yellow + blue) / 3
    if average <= 0:
        return 0, 'normal', ''
    percentage = (max(red, yellow, blue) - average) / average * 100
    if percentage > IMBALANCE_CRITICAL_PERCENT:
        return percentage, 'critical', 'Critical: Severe phase imbalance detected'
    if percentage > IMBALANCE_WARNING_PERCENT:
        return percentage, 'warning', 'Warning: Significant phase imbalance detected'
    return percentage, 'normal', ''


def calculate_load_metrics(rating, feeder_legs):
    """
    Compute load figures for a transformer reading.

    Args:
        rating: transformer rating in kVA
        feeder_legs: list of dicts with red/yellow/blue phase and neutral currents

    Returns:
        dict of metrics; all zeros when the rating is not positive, there are no
        legs or any current is not a number
    """
    try:
        rating = float(rating)
    except (TypeError, ValueError):
        return empty_metrics()
    if math.isnan(rating) or rating <= 0 or not feeder_legs:
        return empty_metrics()
    if not all(isinstance(leg, dict) and all(_is_number(leg.get(key)) for key in PHASE_KEYS) for leg in feeder_legs):
        return empty_metrics()

    red = sum(leg['red_phase_current'] for leg in feeder_legs)
    yellow = sum(leg['yellow_phase_current'] for leg in feeder_legs)
    blue = sum(leg['blue_phase_current'] for leg in feeder_legs)

    average_current = (red + yellow + blue) / 3
    rated_load = rating * RATED_LOAD_FACTOR
    percentage_load = average_current * 100 / rated_load if rated_load > 0 else 0
    ten_percent_full_load_neutral = 0.1 * rated_load
    calculated_neutral = math.sqrt(max(0, red ** 2 + yellow ** 2 + blue ** 2 - red * yellow - red * blue - yellow * blue))

    neutral_level, neutral_message = neutral_warning(calculated_neutral, ten_percent_full_load_neutral)
    imbalance, imbalance_level, imbalance_message = phase_imbalance(red, yellow, blue)

    return {
        'rated_load': round(rated_load, 2),
        'red_phase_bulk_load': round(red, 2),
        'yellow_phase_bulk_load': round(yellow, 2),
        'blue_phase_bulk_load': round(blue, 2),
        'average_current': round(average_current, 2),
        'percentage_load': round(percentage_load, 2),
        'ten_percent_full_load_neutral': round(ten_percent_full_load_neutral, 2),
        'calculated_neutral': round(calculated_neutral, 2),
        'load_status': load_status(percentage_load),
        'neutral_warning_level': neutral_level,
        'neutral_warning_message': neutral_message,
        'imbalance_percentage': round(imbalance, 2),
        'imbalance_warning_level': imbalance_level,
        'imbalance_warning_message': imbalance_message,
        'max_phase_current': round(max(red, yellow, blue), 2),
        'min_phase_current': round(max(0, min(red, yellow, blue)), 2),
    }
