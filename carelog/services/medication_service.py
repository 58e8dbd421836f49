"""
Medication Service
==================
Catalog administration: a medication and its schedules are created and
edited together, in one transaction, the way the medication form submits them.

Main functions:
1. `create_medication`: validate everything, then insert medication + schedules.
2. `update_medication`: update fields; when a new schedule list is sent, old
   schedules still referenced by administration logs are soft-disabled,
   orphaned ones are deleted, new ones inserted.
3. `deactivate_schedule`: soft delete (is_active = False).

Nothing is written when validation fails.
"""

import logging
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from carelog.models.base import db
from carelog.models.department import Department
from carelog.models.medication import Medication
from carelog.models.medication_administration_log import MedicationAdministrationLog
from carelog.models.medication_schedule import MedicationSchedule
from carelog.models.subject import Subject
from carelog.services.errors import NotFoundError, StorageError, ValidationError
from carelog.services.recurrence import FREQUENCIES, FREQUENCY_DAILY, WEEKDAY_FREQUENCIES
from carelog.utils.dates import normalize_time, normalize_weekday, parse_date

logger = logging.getLogger(__name__)


# ============================================================================
# VALIDATION HELPERS
# ============================================================================

def _build_schedule(data: Dict) -> MedicationSchedule:
    """
    Validate one schedule payload and build an unsaved MedicationSchedule.

    Raises:
        ValidationError: Unknown frequency, bad time, weekly without weekdays,
            unknown department
    """
    if 'time_of_day' not in data:
        raise ValidationError('Each schedule needs a time_of_day (HH:MM)')

    frequency = data.get('frequency') or FREQUENCY_DAILY
    if frequency not in FREQUENCIES:
        raise ValidationError(f'frequency must be one of {", ".join(FREQUENCIES)}')

    weekdays = []
    if frequency in WEEKDAY_FREQUENCIES:
        for name in data.get('weekdays') or []:
            canonical = normalize_weekday(name)
            if canonical not in weekdays:
                weekdays.append(canonical)
        if not weekdays:
            raise ValidationError('A weekly schedule needs at least one weekday')

    department_id = data.get('department_id')
    if department_id is not None and db.session.get(Department, department_id) is None:
        raise ValidationError(f'Unknown department: {department_id}')

    schedule = MedicationSchedule(
        time_of_day=normalize_time(data['time_of_day']),
        frequency=frequency,
        instructions=data.get('instructions'),
        department_id=department_id,
        is_active=True
    )
    schedule.set_weekday_list(weekdays)
    return schedule


def _apply_window(medication: Medication, data: Dict) -> None:
    if 'start_date' in data:
        medication.start_date = parse_date(data['start_date'], 'start_date')
    if 'end_date' in data:
        medication.end_date = parse_date(data['end_date'], 'end_date')

    if medication.start_date and medication.end_date and medication.end_date < medication.start_date:
        raise ValidationError('end_date must not be before start_date')


def _commit(action: str) -> None:
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Error {action}: {e}", exc_info=True)
        raise StorageError(str(e)) from e


# ============================================================================
# MEDICATION MANAGEMENT
# ============================================================================

def create_medication(subject_id: int, data: Dict) -> Medication:
    """
    Create a medication and its schedules.

    Args:
        subject_id: Owner of the medication
        data: medication_name, dosage, active_ingredient, start_date, end_date,
            notes, schedules=[{time_of_day, frequency, weekdays, instructions,
            department_id}]

    Returns:
        Medication object just created

    Raises:
        ValidationError: Invalid payload (nothing written)
        StorageError: Database failure
    """
    if db.session.get(Subject, subject_id) is None:
        raise ValidationError(f'Unknown subject: {subject_id}')

    name = (data.get('medication_name') or '').strip()
    if not name:
        raise ValidationError('medication_name is required')

    medication = Medication(
        subject_id=subject_id,
        medication_name=name,
        dosage=data.get('dosage'),
        active_ingredient=data.get('active_ingredient'),
        notes=data.get('notes'),
        is_active=True
    )
    _apply_window(medication, data)
    schedules = [_build_schedule(s) for s in data.get('schedules') or []]

    medication.schedules = schedules
    db.session.add(medication)
    _commit('creating medication')

    logger.info(f"Medication {medication.medication_id} created for subject {subject_id} "
                f"with {len(schedules)} schedule(s)")
    return medication


def update_medication(medication_id: int, data: Dict) -> Medication:
    """
    Update a medication and optionally replace its schedule set.

    Raises:
        NotFoundError: Unknown medication
        ValidationError: Invalid payload (nothing written)
        StorageError: Database failure
    """
    medication = db.session.get(Medication, medication_id)
    if medication is None:
        raise NotFoundError(f'Medication {medication_id} not found')

    if 'medication_name' in data:
        name = (data['medication_name'] or '').strip()
        if not name:
            raise ValidationError('medication_name cannot be empty')
        medication.medication_name = name
    for attr in ('dosage', 'active_ingredient', 'notes', 'is_active'):
        if attr in data:
            setattr(medication, attr, data[attr])

    try:
        _apply_window(medication, data)
        new_schedules = None
        if 'schedules' in data:
            new_schedules = [_build_schedule(s) for s in data['schedules'] or []]
    except ValidationError:
        db.session.rollback()
        raise

    if new_schedules is not None:
        _replace_schedules(medication, new_schedules)

    _commit('updating medication')
    return medication


def _replace_schedules(medication: Medication, new_schedules: List[MedicationSchedule]) -> None:
    """Retire the current schedules (soft when logs reference them) and attach new ones."""
    for schedule in list(medication.schedules):
        if not schedule.is_active:
            continue
        has_logs = db.session.query(MedicationAdministrationLog.log_id).filter_by(
            schedule_id=schedule.schedule_id
        ).first() is not None

        if has_logs:
            schedule.is_active = False
        else:
            medication.schedules.remove(schedule)
            db.session.delete(schedule)

    for schedule in new_schedules:
        medication.schedules.append(schedule)


def deactivate_schedule(schedule_id: int) -> MedicationSchedule:
    """
    Soft delete: the schedule stops producing doses, its logs stay.

    Raises:
        NotFoundError: Unknown schedule
    """
    schedule = db.session.get(MedicationSchedule, schedule_id)
    if schedule is None:
        raise NotFoundError(f'Schedule {schedule_id} not found')

    schedule.is_active = False
    _commit('deactivating schedule')
    return schedule


def get_medication(medication_id: int) -> Optional[Medication]:
    return db.session.get(Medication, medication_id)
