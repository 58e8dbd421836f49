"""
Medication Schedule Model
=========================
One recurring dose of a medication.

Purpose:
- Store the time of day and the recurrence rule (daily, alternating_days, weekly)
- Store which weekdays apply for weekly schedules
- Point at the department responsible for giving the dose

Schedules are soft-disabled through is_active; rows referenced by
administration logs are never hard-deleted.
"""

from datetime import datetime
from carelog.models.base import db
import json


class MedicationSchedule(db.Model):
    """
    Relationship: 1 Medication - N MedicationSchedules (One-to-Many)
    """
    __tablename__ = 'MedicationSchedules'

    # ========================================================================
    # PRIMARY KEY
    # ========================================================================
    schedule_id = db.Column(
        db.Integer,
        primary_key=True,
        autoincrement=True
    )

    # ========================================================================
    # FOREIGN KEYS
    # ========================================================================
    medication_id = db.Column(
        db.Integer,
        db.ForeignKey('Medications.medication_id', ondelete='CASCADE'),
        nullable=False,
        index=True
    )

    department_id = db.Column(
        db.Integer,
        db.ForeignKey('Departments.department_id', ondelete='SET NULL'),
        nullable=True,
        comment='Department responsible for the dose'
    )

    # ========================================================================
    # RECURRENCE
    # ========================================================================
    time_of_day = db.Column(
        db.String(5),
        nullable=False,
        comment='HH:MM'
    )

    frequency = db.Column(
        db.String(30),
        nullable=False,
        default='daily',
        comment='daily, alternating_days, weekly'
    )

    weekdays = db.Column(
        db.Text,
        nullable=True,
        comment='JSON array of weekday names, only for weekly. e.g. ["monday", "wednesday"]'
    )

    instructions = db.Column(
        db.Text,
        nullable=True,
        comment='e.g. "After breakfast", "Crush before giving"'
    )

    is_active = db.Column(
        db.Boolean,
        default=True,
        nullable=False
    )

    # ========================================================================
    # METADATA
    # ========================================================================
    created_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        nullable=False
    )

    updated_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False
    )

    # ========================================================================
    # RELATIONSHIPS
    # ========================================================================
    department = db.relationship('Department', lazy='joined')
    logs = db.relationship('MedicationAdministrationLog', backref='schedule', lazy=True)

    # ========================================================================
    # HELPER METHODS
    # ========================================================================

    def get_weekday_list(self):
        """
        Decode the weekdays JSON column.

        Returns:
            list: Weekday names, e.g. ["monday", "wednesday"]
        """
        if not self.weekdays:
            return []
        try:
            return json.loads(self.weekdays)
        except json.JSONDecodeError:
            return []

    def set_weekday_list(self, weekday_list):
        self.weekdays = json.dumps(list(weekday_list)) if weekday_list else None

    def to_dict(self):
        return {
            'schedule_id': self.schedule_id,
            'medication_id': self.medication_id,
            'department_id': self.department_id,
            'department_name': self.department.name if self.department else None,
            'time_of_day': self.time_of_day,
            'frequency': self.frequency,
            'weekdays': self.get_weekday_list(),
            'instructions': self.instructions or "",
            'is_active': self.is_active,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None
        }

    def __repr__(self):
        return f'<MedicationSchedule {self.schedule_id}: {self.frequency} at {self.time_of_day}>'
