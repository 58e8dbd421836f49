"""
Medication Catalog
==================
Loads the active schedules with their medication, subject and department
in a single join query.

Only the active flags are filtered here (schedule, medication and subject).
The medication date window is passed through on each ScheduleEntry; the
reconciler decides per date.
"""

import logging
from datetime import date
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError

from carelog.models.base import db
from carelog.models.department import Department
from carelog.models.medication import Medication
from carelog.models.medication_schedule import MedicationSchedule
from carelog.models.subject import Subject
from carelog.services.errors import StorageError
from carelog.services.view_models import MedicationWindow, ScheduleEntry
from carelog.utils.dates import normalize_weekday

logger = logging.getLogger(__name__)


def load_active_schedules(as_of_date: Optional[date] = None) -> List[ScheduleEntry]:
    """
    Fetch every active schedule of an active medication of an active subject.

    Args:
        as_of_date: When given, medications that ended before this date are
            left out of the query (they cannot be due on or after it).

    Returns:
        List[ScheduleEntry] ordered by schedule_id

    Raises:
        StorageError: The query failed
    """
    query = db.session.query(MedicationSchedule, Medication, Subject, Department).join(
        Medication, MedicationSchedule.medication_id == Medication.medication_id
    ).join(
        Subject, Medication.subject_id == Subject.subject_id
    ).outerjoin(
        Department, MedicationSchedule.department_id == Department.department_id
    ).filter(
        MedicationSchedule.is_active.is_(True),
        Medication.is_active.is_(True),
        Subject.is_active.is_(True)
    )

    if as_of_date is not None:
        query = query.filter(or_(Medication.end_date.is_(None), Medication.end_date >= as_of_date))

    try:
        rows = query.order_by(MedicationSchedule.schedule_id).all()
    except SQLAlchemyError as e:
        logger.error(f"Error loading medication catalog: {e}")
        db.session.rollback()
        raise StorageError(str(e)) from e

    return [_to_entry(schedule, medication, subject, department)
            for schedule, medication, subject, department in rows]


def _to_entry(schedule, medication, subject, department) -> ScheduleEntry:
    weekdays = []
    for name in schedule.get_weekday_list():
        try:
            weekdays.append(normalize_weekday(name))
        except ValueError:
            logger.warning(f"Ignoring unknown weekday {name!r} on schedule {schedule.schedule_id}")

    return ScheduleEntry(
        schedule_id=schedule.schedule_id,
        time_of_day=schedule.time_of_day,
        frequency=schedule.frequency,
        weekdays=tuple(weekdays),
        window=MedicationWindow(medication.start_date, medication.end_date),
        medication_id=medication.medication_id,
        medication_name=medication.medication_name,
        subject_id=subject.subject_id,
        subject_name=subject.full_name,
        subject_code=subject.registration_code or '',
        dosage=medication.dosage,
        active_ingredient=medication.active_ingredient,
        instructions=schedule.instructions,
        department_id=schedule.department_id,
        department_name=department.name if department else None
    )
