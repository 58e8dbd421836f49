"""
Reconciler
==========
Merges what is due (catalog + recurrence rules) with what was recorded
(administration logs) into the list of DueItems a view renders.

Pure: no database access, no clock. Same inputs give the same list in the
same order, so it can run on every navigation of the calendar.
"""

from datetime import date
from typing import Dict, Iterable, List, Optional

from carelog.services.recurrence import is_due
from carelog.services.view_models import (
    KIND_RETURN,
    KIND_VISIT,
    AdministrationRecord,
    AppointmentEntry,
    AppointmentItem,
    AppointmentRecord,
    DueItem,
    ScheduleEntry,
)
from carelog.utils.dates import iter_dates


def build_log_index(records: Iterable) -> Dict:
    """
    Index log records by their natural key.

    Works for AdministrationRecord (AdministrationKey) and AppointmentRecord
    (AppointmentKey); keys are value objects, so an equal key built elsewhere
    finds the same record.
    """
    return {record.key: record for record in records}


def due_item_sort_key(item: DueItem):
    # date, then time slot, then subject name; schedule_id breaks remaining ties
    return (item.scheduled_date, item.scheduled_time, item.subject_name.casefold(), item.schedule_id)


def reconcile(schedules: Iterable[ScheduleEntry],
              logs: Iterable[AdministrationRecord],
              start_date: date,
              end_date: Optional[date] = None) -> List[DueItem]:
    """
    Build the due items of a date or an inclusive date range.

    Args:
        schedules: Active catalog entries
        logs: Administration logs covering the range
        start_date: First date
        end_date: Last date (defaults to start_date)

    Returns:
        List[DueItem] sorted by date, time and subject name. Items without a
        matching log are pending (log_id None, administered False).
    """
    end_date = end_date or start_date
    schedules = list(schedules)
    log_index = build_log_index(logs)

    items = []
    for day in iter_dates(start_date, end_date):
        for schedule in schedules:
            if not schedule.window.covers(day):
                continue
            if not is_due(schedule, schedule.window, day):
                continue

            item = _new_due_item(schedule, day)
            record = log_index.get(item.key)
            if record is not None:
                _apply_log(item, record)
            items.append(item)

    items.sort(key=due_item_sort_key)
    return items


def _new_due_item(schedule: ScheduleEntry, day: date) -> DueItem:
    return DueItem(
        schedule_id=schedule.schedule_id,
        scheduled_date=day,
        scheduled_time=schedule.time_of_day,
        medication_id=schedule.medication_id,
        medication_name=schedule.medication_name,
        subject_id=schedule.subject_id,
        subject_name=schedule.subject_name,
        subject_code=schedule.subject_code,
        dosage=schedule.dosage,
        active_ingredient=schedule.active_ingredient,
        instructions=schedule.instructions,
        frequency=schedule.frequency,
        department_id=schedule.department_id,
        department_name=schedule.department_name
    )


def _apply_log(item: DueItem, record: AdministrationRecord) -> None:
    item.log_id = record.log_id
    item.administered = record.administered
    item.administered_at = record.administered_at
    item.administered_by = record.administered_by
    item.administered_by_name = record.administered_by_name
    item.notes = record.notes
    item.not_administered_reason = record.not_administered_reason


# ============================================================================
# APPOINTMENTS
# ============================================================================

_KIND_ORDER = {KIND_VISIT: 0, KIND_RETURN: 1}


def appointment_sort_key(item: AppointmentItem):
    return (item.scheduled_date, _KIND_ORDER.get(item.kind, 2), item.subject_name.casefold(), item.record_id)


def reconcile_appointments(records: Iterable[AppointmentEntry],
                           logs: Iterable[AppointmentRecord],
                           start_date: date,
                           end_date: Optional[date] = None) -> List[AppointmentItem]:
    """
    Build appointment items: one "visit" on visit_date and one "return" on
    return_date for every record whose dates fall inside the range.
    """
    end_date = end_date or start_date
    log_index = build_log_index(logs)

    items = []
    for entry in records:
        occurrences = ((KIND_VISIT, entry.visit_date), (KIND_RETURN, entry.return_date))
        for kind, day in occurrences:
            if day is None or not (start_date <= day <= end_date):
                continue

            item = AppointmentItem(
                record_id=entry.record_id,
                scheduled_date=day,
                kind=kind,
                subject_id=entry.subject_id,
                subject_name=entry.subject_name,
                subject_code=entry.subject_code,
                visit_type=entry.visit_type,
                specialty=entry.specialty,
                professional=entry.professional,
                location=entry.location,
                reason=entry.reason
            )
            record = log_index.get(item.key)
            if record is not None:
                item.log_id = record.log_id
                item.completed = record.completed
                item.completed_at = record.completed_at
                item.completed_by = record.completed_by
                item.completed_by_name = record.completed_by_name
                item.notes = record.notes
                item.not_completed_reason = record.not_completed_reason
            items.append(item)

    items.sort(key=appointment_sort_key)
    return items
