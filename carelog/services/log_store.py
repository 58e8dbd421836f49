"""
Log Store
=========
Read/write access to the two outcome tables:

1. MedicationAdministrationLogs, keyed by (schedule_id, scheduled_date, scheduled_time)
2. MedicalAppointmentLogs, keyed by (record_id, scheduled_date, kind)

Reads return frozen records with the actor's display name already resolved.
Actor names are fetched with one IN query per result set, never one per row.

Every database failure is rolled back and re-raised as StorageError. No
retries: the caller decides.
"""

import logging
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from carelog.models.base import db
from carelog.models.medical_appointment_log import MedicalAppointmentLog
from carelog.models.medication_administration_log import MedicationAdministrationLog
from carelog.models.user import User
from carelog.services.errors import NotFoundError, StorageError
from carelog.services.view_models import AdministrationRecord, AppointmentRecord

logger = logging.getLogger(__name__)


# ============================================================================
# SHARED HELPERS
# ============================================================================

def _run(action: str, fn):
    """Run a storage callable, turning SQLAlchemy failures into StorageError."""
    try:
        return fn()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Storage failure while {action}: {e}")
        raise StorageError(str(e)) from e


def resolve_actor_names(user_ids: Iterable[Optional[int]]) -> Dict[int, str]:
    """
    Batch lookup of display names.

    Args:
        user_ids: Actor ids, duplicates and None are ignored

    Returns:
        dict: {user_id: full_name}
    """
    ids = sorted({uid for uid in user_ids if uid is not None})
    if not ids:
        return {}

    rows = _run(
        'resolving actor names',
        lambda: db.session.query(User.user_id, User.full_name).filter(User.user_id.in_(ids)).all()
    )
    return {user_id: full_name for user_id, full_name in rows}


# ============================================================================
# MEDICATION ADMINISTRATION LOGS
# ============================================================================

def load_logs(start_date: date, end_date: Optional[date] = None) -> List[AdministrationRecord]:
    """
    Load administration logs for a date or an inclusive date range.

    Args:
        start_date: First scheduled date
        end_date: Last scheduled date (defaults to start_date)

    Returns:
        List[AdministrationRecord] with administered_by_name filled in

    Raises:
        StorageError: The query failed
    """
    end_date = end_date or start_date

    logs = _run('loading administration logs', lambda: MedicationAdministrationLog.query.filter(
        MedicationAdministrationLog.scheduled_date >= start_date,
        MedicationAdministrationLog.scheduled_date <= end_date
    ).order_by(MedicationAdministrationLog.log_id).all())

    names = resolve_actor_names(log.administered_by for log in logs)

    return [
        AdministrationRecord(
            log_id=log.log_id,
            schedule_id=log.schedule_id,
            scheduled_date=log.scheduled_date,
            scheduled_time=log.scheduled_time,
            administered=bool(log.administered),
            administered_at=log.administered_at,
            administered_by=log.administered_by,
            administered_by_name=names.get(log.administered_by),
            notes=log.notes,
            not_administered_reason=log.not_administered_reason
        )
        for log in logs
    ]


def insert_administration_log(item, actor_id: Optional[int], administered: bool,
                              administered_at: Optional[datetime] = None,
                              notes: Optional[str] = None,
                              reason: Optional[str] = None) -> int:
    """
    Insert the log for a due item that has none yet.

    If another session already logged the same natural key since the item
    was built, that row is overwritten instead (last write wins).

    Args:
        item: DueItem supplying the natural key, medication and subject

    Returns:
        int: log_id of the inserted (or overwritten) row
    """
    existing = _run('loading administration log', lambda: MedicationAdministrationLog.query.filter_by(
        schedule_id=item.schedule_id,
        scheduled_date=item.scheduled_date,
        scheduled_time=item.scheduled_time
    ).first())
    if existing is not None:
        logger.info(f"Schedule {item.schedule_id} on {item.scheduled_date} {item.scheduled_time} "
                    f"already logged as {existing.log_id}, overwriting")
        return update_administration_log(existing.log_id, actor_id, administered,
                                         now=administered_at, notes=notes, reason=reason)

    log = MedicationAdministrationLog(
        schedule_id=item.schedule_id,
        medication_id=item.medication_id,
        subject_id=item.subject_id,
        scheduled_date=item.scheduled_date,
        scheduled_time=item.scheduled_time,
        administered=administered,
        administered_at=administered_at,
        administered_by=actor_id,
        notes=notes,
        not_administered_reason=reason
    )

    def _insert():
        db.session.add(log)
        db.session.commit()
        return log.log_id

    return _run('inserting administration log', _insert)


def update_administration_log(log_id: int, actor_id: Optional[int], administered: bool,
                              now: Optional[datetime] = None,
                              notes: Optional[str] = None,
                              reason: Optional[str] = None) -> int:
    """
    Overwrite the disposition of an existing log in place.

    Raises:
        NotFoundError: The log was deleted in the meantime
    """
    log = _run('loading administration log', lambda: db.session.get(MedicationAdministrationLog, log_id))
    if log is None:
        raise NotFoundError(f'Administration log {log_id} not found')

    if administered:
        log.mark_as_administered(actor_id, now, notes)
    else:
        log.mark_as_not_administered(actor_id, reason, notes)

    _run('updating administration log', db.session.commit)
    return log.log_id


def delete_administration_log(log_id: int) -> None:
    """
    Raises:
        NotFoundError: The log does not exist
    """
    def _delete():
        deleted = MedicationAdministrationLog.query.filter_by(log_id=log_id).delete()
        db.session.commit()
        return deleted

    if not _run('deleting administration log', _delete):
        raise NotFoundError(f'Administration log {log_id} not found')


# ============================================================================
# MEDICAL APPOINTMENT LOGS
# ============================================================================

def load_appointment_logs(record_ids: Iterable[int], start_date: date,
                          end_date: Optional[date] = None) -> List[AppointmentRecord]:
    """
    Load appointment logs of the given medical records inside a date range.

    Returns:
        List[AppointmentRecord] with completed_by_name filled in
    """
    ids = sorted(set(record_ids))
    if not ids:
        return []
    end_date = end_date or start_date

    logs = _run('loading appointment logs', lambda: MedicalAppointmentLog.query.filter(
        MedicalAppointmentLog.record_id.in_(ids),
        MedicalAppointmentLog.scheduled_date >= start_date,
        MedicalAppointmentLog.scheduled_date <= end_date
    ).order_by(MedicalAppointmentLog.log_id).all())

    names = resolve_actor_names(log.completed_by for log in logs)

    return [
        AppointmentRecord(
            log_id=log.log_id,
            record_id=log.record_id,
            scheduled_date=log.scheduled_date,
            kind=log.kind,
            completed=bool(log.completed),
            completed_at=log.completed_at,
            completed_by=log.completed_by,
            completed_by_name=names.get(log.completed_by),
            notes=log.notes,
            not_completed_reason=log.not_completed_reason
        )
        for log in logs
    ]


def save_appointment_log(item, actor_id: Optional[int], completed: bool,
                         completed_at: Optional[datetime] = None,
                         notes: Optional[str] = None,
                         reason: Optional[str] = None) -> int:
    """
    Insert or overwrite the log of an appointment item.

    The item's log_id, or else a lookup by (record_id, scheduled_date, kind),
    decides between update-in-place and insert, so the key never gets a
    second row.

    Raises:
        NotFoundError: item.log_id points at a log that no longer exists
    """
    if item.log_id is not None:
        log = _run('loading appointment log', lambda: db.session.get(MedicalAppointmentLog, item.log_id))
        if log is None:
            raise NotFoundError(f'Appointment log {item.log_id} not found')
    else:
        log = _run('loading appointment log', lambda: MedicalAppointmentLog.query.filter_by(
            record_id=item.record_id,
            scheduled_date=item.scheduled_date,
            kind=item.kind
        ).first())
        if log is None:
            log = MedicalAppointmentLog(
                record_id=item.record_id,
                scheduled_date=item.scheduled_date,
                kind=item.kind
            )
            db.session.add(log)

    log.completed = completed
    log.completed_at = completed_at
    log.completed_by = actor_id
    log.notes = notes
    log.not_completed_reason = reason

    def _save():
        db.session.commit()
        return log.log_id

    return _run('saving appointment log', _save)


def delete_appointment_log(log_id: int) -> None:
    def _delete():
        deleted = MedicalAppointmentLog.query.filter_by(log_id=log_id).delete()
        db.session.commit()
        return deleted

    if not _run('deleting appointment log', _delete):
        raise NotFoundError(f'Appointment log {log_id} not found')
