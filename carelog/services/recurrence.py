"""
Recurrence rules for medication schedules.

Pure functions, no database access. The medication window check is done by
the caller before is_due is consulted.
"""

from datetime import date

from carelog.services.view_models import MedicationWindow, ScheduleEntry
from carelog.utils.dates import weekday_name

FREQUENCY_DAILY = 'daily'
FREQUENCY_ALTERNATING_DAYS = 'alternating_days'
FREQUENCY_WEEKLY = 'weekly'
# Older rows use this name for the weekly rule
FREQUENCY_SPECIFIC_DAYS = 'specific_days'

FREQUENCIES = (FREQUENCY_DAILY, FREQUENCY_ALTERNATING_DAYS, FREQUENCY_WEEKLY, FREQUENCY_SPECIFIC_DAYS)
WEEKDAY_FREQUENCIES = (FREQUENCY_WEEKLY, FREQUENCY_SPECIFIC_DAYS)


def is_due(schedule: ScheduleEntry, window: MedicationWindow, candidate: date) -> bool:
    """
    Decide whether a schedule has a dose on a calendar date.

    Args:
        schedule: Schedule with its frequency and weekday set
        window: Validity window of the owning medication (start_date anchors
            the alternating-days parity)
        candidate: Calendar date being evaluated

    Returns:
        bool: True if a dose is due
    """
    frequency = schedule.frequency

    if frequency == FREQUENCY_DAILY:
        return True

    if frequency in WEEKDAY_FREQUENCIES:
        return weekday_name(candidate) in schedule.weekdays

    if frequency == FREQUENCY_ALTERNATING_DAYS:
        # Without a start date there is no parity anchor: due every day
        if window.start_date is None:
            return True
        return (candidate - window.start_date).days % 2 == 0

    # Unknown legacy frequency: show it rather than hide a dose
    return True
