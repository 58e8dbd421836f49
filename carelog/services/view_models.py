"""
View Models
===========
Plain value objects passed between the catalog loader, the log store, the
reconciler and the grouping step. None of them is a database row: they are
rebuilt on every query.
"""

from dataclasses import dataclass, field, asdict
from datetime import date, datetime
from typing import List, Optional, Tuple

STATUS_PENDING = 'pending'
STATUS_ADMINISTERED = 'administered'
STATUS_NOT_ADMINISTERED = 'not_administered'
STATUSES = (STATUS_PENDING, STATUS_ADMINISTERED, STATUS_NOT_ADMINISTERED)

STATUS_COMPLETED = 'completed'
STATUS_NOT_COMPLETED = 'not_completed'
APPOINTMENT_STATUSES = (STATUS_PENDING, STATUS_COMPLETED, STATUS_NOT_COMPLETED)


def _iso(value):
    return value.isoformat() if value is not None else None


# ============================================================================
# MEDICATIONS
# ============================================================================

@dataclass(frozen=True)
class MedicationWindow:
    """Days on which a medication can be given; None means unbounded."""
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    def covers(self, day: date) -> bool:
        if self.start_date and day < self.start_date:
            return False
        if self.end_date and day > self.end_date:
            return False
        return True


@dataclass(frozen=True)
class ScheduleEntry:
    """An active schedule joined with its medication, subject and department."""
    schedule_id: int
    time_of_day: str
    frequency: str
    weekdays: Tuple[str, ...]
    window: MedicationWindow
    medication_id: int
    medication_name: str
    subject_id: int
    subject_name: str
    subject_code: str = ''
    dosage: Optional[str] = None
    active_ingredient: Optional[str] = None
    instructions: Optional[str] = None
    department_id: Optional[int] = None
    department_name: Optional[str] = None


@dataclass(frozen=True)
class AdministrationKey:
    """Natural key of a dose: at most one log exists per key."""
    schedule_id: int
    scheduled_date: date
    scheduled_time: str


@dataclass(frozen=True)
class AdministrationRecord:
    """A stored administration log with the actor's display name resolved."""
    log_id: int
    schedule_id: int
    scheduled_date: date
    scheduled_time: str
    administered: bool
    administered_at: Optional[datetime] = None
    administered_by: Optional[int] = None
    administered_by_name: Optional[str] = None
    notes: Optional[str] = None
    not_administered_reason: Optional[str] = None

    @property
    def key(self) -> AdministrationKey:
        return AdministrationKey(self.schedule_id, self.scheduled_date, self.scheduled_time)


@dataclass
class DueItem:
    """One dose of one schedule on one date, merged with its log (if any)."""
    schedule_id: int
    scheduled_date: date
    scheduled_time: str
    medication_id: int
    medication_name: str
    subject_id: int
    subject_name: str
    subject_code: str = ''
    dosage: Optional[str] = None
    active_ingredient: Optional[str] = None
    instructions: Optional[str] = None
    frequency: str = 'daily'
    department_id: Optional[int] = None
    department_name: Optional[str] = None

    log_id: Optional[int] = None
    administered: bool = False
    administered_at: Optional[datetime] = None
    administered_by: Optional[int] = None
    administered_by_name: Optional[str] = None
    notes: Optional[str] = None
    not_administered_reason: Optional[str] = None

    @property
    def key(self) -> AdministrationKey:
        return AdministrationKey(self.schedule_id, self.scheduled_date, self.scheduled_time)

    @property
    def item_id(self) -> str:
        return f'{self.schedule_id}-{self.scheduled_date.isoformat()}-{self.scheduled_time}'

    @property
    def status(self) -> str:
        if self.log_id is None:
            return STATUS_PENDING
        return STATUS_ADMINISTERED if self.administered else STATUS_NOT_ADMINISTERED

    def to_dict(self):
        data = asdict(self)
        data['id'] = self.item_id
        data['status'] = self.status
        data['scheduled_date'] = self.scheduled_date.isoformat()
        data['administered_at'] = _iso(self.administered_at)
        return data


# ============================================================================
# APPOINTMENTS
# ============================================================================

KIND_VISIT = 'visit'
KIND_RETURN = 'return'


@dataclass(frozen=True)
class AppointmentEntry:
    """A medical record joined with its subject."""
    record_id: int
    subject_id: int
    subject_name: str
    visit_date: date
    visit_type: str
    subject_code: str = ''
    return_date: Optional[date] = None
    specialty: Optional[str] = None
    professional: Optional[str] = None
    location: Optional[str] = None
    reason: Optional[str] = None


@dataclass(frozen=True)
class AppointmentKey:
    record_id: int
    scheduled_date: date
    kind: str


@dataclass(frozen=True)
class AppointmentRecord:
    log_id: int
    record_id: int
    scheduled_date: date
    kind: str
    completed: bool
    completed_at: Optional[datetime] = None
    completed_by: Optional[int] = None
    completed_by_name: Optional[str] = None
    notes: Optional[str] = None
    not_completed_reason: Optional[str] = None

    @property
    def key(self) -> AppointmentKey:
        return AppointmentKey(self.record_id, self.scheduled_date, self.kind)


@dataclass
class AppointmentItem:
    record_id: int
    scheduled_date: date
    kind: str
    subject_id: int
    subject_name: str
    visit_type: str
    subject_code: str = ''
    specialty: Optional[str] = None
    professional: Optional[str] = None
    location: Optional[str] = None
    reason: Optional[str] = None

    log_id: Optional[int] = None
    completed: bool = False
    completed_at: Optional[datetime] = None
    completed_by: Optional[int] = None
    completed_by_name: Optional[str] = None
    notes: Optional[str] = None
    not_completed_reason: Optional[str] = None

    @property
    def key(self) -> AppointmentKey:
        return AppointmentKey(self.record_id, self.scheduled_date, self.kind)

    @property
    def item_id(self) -> str:
        return f'{self.record_id}-{self.scheduled_date.isoformat()}-{self.kind}'

    @property
    def status(self) -> str:
        if self.log_id is None:
            return STATUS_PENDING
        return STATUS_COMPLETED if self.completed else STATUS_NOT_COMPLETED

    def to_dict(self):
        data = asdict(self)
        data['id'] = self.item_id
        data['status'] = self.status
        data['scheduled_date'] = self.scheduled_date.isoformat()
        data['completed_at'] = _iso(self.completed_at)
        return data


# ============================================================================
# GROUPS
# ============================================================================

@dataclass
class GroupedView:
    key: str
    items: List = field(default_factory=list)
    total: int = 0
    completed: int = 0
    label: Optional[str] = None
    icon: Optional[str] = None

    @property
    def is_fully_complete(self) -> bool:
        return self.completed == self.total

    @property
    def is_partially_complete(self) -> bool:
        return 0 < self.completed < self.total

    def to_dict(self):
        return {
            'key': self.key,
            'label': self.label or self.key,
            'icon': self.icon,
            'total': self.total,
            'completed': self.completed,
            'is_fully_complete': self.is_fully_complete,
            'is_partially_complete': self.is_partially_complete,
            'items': [item.to_dict() for item in self.items]
        }
