"""
Appointment Service
===================
Appointment board: medical visits and follow-up returns due on a date or a
range, merged with their logged outcome.

Same shape as the medication board, with a simpler rule: a medical record is
due on its visit_date ("visit") and on its return_date ("return").
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, List, Optional

from sqlalchemy import and_, or_
from sqlalchemy.exc import SQLAlchemyError

from carelog.models.base import db
from carelog.models.medical_record import MedicalRecord
from carelog.models.subject import Subject
from carelog.services import log_store
from carelog.services.administration_service import DEFAULT_MAX_RANGE_DAYS, validate_range
from carelog.services.errors import NotFoundError, StorageError, ValidationError
from carelog.services.grouping import filter_items, group_appointments, summarize
from carelog.services.reconciler import reconcile_appointments
from carelog.services.view_models import (
    APPOINTMENT_STATUSES,
    KIND_RETURN,
    KIND_VISIT,
    AppointmentEntry,
    AppointmentItem,
    GroupedView,
)
from carelog.utils.dates import utc_now

logger = logging.getLogger(__name__)

APPOINTMENT_KINDS = (KIND_VISIT, KIND_RETURN)


@dataclass
class AppointmentView:
    start_date: date
    end_date: date
    items: List[AppointmentItem] = field(default_factory=list)
    groups: List[GroupedView] = field(default_factory=list)
    stats: Dict[str, int] = field(default_factory=dict)

    def to_dict(self):
        return {
            'start_date': self.start_date.isoformat(),
            'end_date': self.end_date.isoformat(),
            'stats': self.stats,
            'count': len(self.items),
            'items': [item.to_dict() for item in self.items],
            'groups': [group.to_dict() for group in self.groups]
        }


# ============================================================================
# QUERIES
# ============================================================================

def load_appointment_entries(start_date: date, end_date: Optional[date] = None) -> List[AppointmentEntry]:
    """
    Medical records with a visit or a return inside the range.

    Raises:
        StorageError: The query failed
    """
    end_date = end_date or start_date
    query = db.session.query(MedicalRecord, Subject).join(
        Subject, MedicalRecord.subject_id == Subject.subject_id
    ).filter(
        or_(
            and_(MedicalRecord.visit_date >= start_date, MedicalRecord.visit_date <= end_date),
            and_(MedicalRecord.return_date >= start_date, MedicalRecord.return_date <= end_date)
        )
    ).order_by(MedicalRecord.visit_date, MedicalRecord.record_id)

    try:
        rows = query.all()
    except SQLAlchemyError as e:
        logger.error(f"Error loading medical records: {e}")
        db.session.rollback()
        raise StorageError(str(e)) from e

    return [
        AppointmentEntry(
            record_id=record.record_id,
            subject_id=subject.subject_id,
            subject_name=subject.full_name,
            subject_code=subject.registration_code or '',
            visit_date=record.visit_date,
            visit_type=record.visit_type,
            return_date=record.return_date,
            specialty=record.specialty,
            professional=record.professional,
            location=record.location,
            reason=record.reason
        )
        for record, subject in rows
    ]


def load_appointment_items(start_date: date, end_date: Optional[date] = None) -> List[AppointmentItem]:
    end_date = end_date or start_date
    entries = load_appointment_entries(start_date, end_date)
    logs = log_store.load_appointment_logs((e.record_id for e in entries), start_date, end_date)
    return reconcile_appointments(entries, logs, start_date, end_date)


def get_appointment_view(start_date: date, end_date: Optional[date] = None,
                         status: Optional[str] = None,
                         max_days: int = DEFAULT_MAX_RANGE_DAYS) -> AppointmentView:
    """
    Build the appointment board, grouped by category.

    Args:
        status: Optional filter: pending / completed / not_completed
    """
    end_date = validate_range(start_date, end_date, max_days)
    if status and status not in APPOINTMENT_STATUSES:
        raise ValidationError(f'status must be one of {", ".join(APPOINTMENT_STATUSES)}')

    items = filter_items(load_appointment_items(start_date, end_date), status)
    return AppointmentView(
        start_date=start_date,
        end_date=end_date,
        items=items,
        groups=group_appointments(items),
        stats=summarize(items)
    )


def find_appointment_item(record_id: int, scheduled_date: date, kind: str) -> AppointmentItem:
    """
    Raises:
        ValidationError: Unknown kind
        NotFoundError: No such appointment on that date
    """
    if kind not in APPOINTMENT_KINDS:
        raise ValidationError(f'kind must be one of {", ".join(APPOINTMENT_KINDS)}')

    for item in load_appointment_items(scheduled_date):
        if item.record_id == record_id and item.kind == kind:
            return item
    raise NotFoundError(f'Medical record {record_id} has no {kind} on {scheduled_date.isoformat()}')


# ============================================================================
# TRANSITIONS
# ============================================================================

def mark_completed(item: AppointmentItem, actor_id: Optional[int], notes: Optional[str] = None,
                   now: Optional[datetime] = None) -> AppointmentView:
    now = now or utc_now()
    item.log_id = log_store.save_appointment_log(item, actor_id, True, completed_at=now, notes=notes)
    logger.info(f"Appointment completed: record {item.record_id} {item.kind} on {item.scheduled_date} "
                f"by user {actor_id}")
    return get_appointment_view(item.scheduled_date)


def mark_not_completed(item: AppointmentItem, actor_id: Optional[int], reason: str,
                       notes: Optional[str] = None) -> AppointmentView:
    """
    Raises:
        ValidationError: reason missing or blank (nothing is written)
    """
    if not isinstance(reason, str) or not reason.strip():
        raise ValidationError('A reason is required to mark an appointment as not completed')
    reason = reason.strip()

    item.log_id = log_store.save_appointment_log(item, actor_id, False, notes=notes, reason=reason)
    logger.info(f"Appointment not completed: record {item.record_id} {item.kind} on "
                f"{item.scheduled_date} ({reason})")
    return get_appointment_view(item.scheduled_date)


def undo(item: AppointmentItem) -> AppointmentView:
    """
    Raises:
        NotFoundError: The appointment has no log
    """
    if item.log_id is None:
        raise NotFoundError('Nothing to undo: this appointment has no record')

    log_store.delete_appointment_log(item.log_id)
    removed_log_id, item.log_id = item.log_id, None
    logger.info(f"Appointment record {removed_log_id} removed for record {item.record_id} "
                f"{item.kind} on {item.scheduled_date}")
    return get_appointment_view(item.scheduled_date)
