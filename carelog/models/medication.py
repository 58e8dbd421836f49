"""
Medication Model
================
A prescription held by one subject.

- start_date / end_date bound the days on which any of its schedules can be due.
- end_date NULL means continuous use (no upper bound).
- Doses themselves are described by MedicationSchedule rows.
"""

from datetime import datetime
from carelog.models.base import db


class Medication(db.Model):
    """
    Relationship: 1 Subject - N Medications, 1 Medication - N MedicationSchedules.
    """
    __tablename__ = 'Medications'

    # ========================================================================
    # PRIMARY KEY / FOREIGN KEY
    # ========================================================================
    medication_id = db.Column(db.Integer, primary_key=True, autoincrement=True)

    subject_id = db.Column(
        db.Integer,
        db.ForeignKey('Subjects.subject_id', ondelete='CASCADE'),
        nullable=False,
        index=True
    )

    # ========================================================================
    # MEDICATION INFO
    # ========================================================================
    medication_name = db.Column(
        db.String(200),
        nullable=False,
        comment='Commercial name (e.g. Ritalina, Depakene)'
    )

    dosage = db.Column(db.String(100), nullable=True, comment='e.g. "10mg", "2 tablets"')

    active_ingredient = db.Column(db.String(200), nullable=True)

    # ========================================================================
    # VALIDITY WINDOW
    # ========================================================================
    start_date = db.Column(
        db.Date,
        nullable=True,
        comment='First day of treatment; also the parity anchor for alternating days'
    )

    end_date = db.Column(
        db.Date,
        nullable=True,
        comment='Last day of treatment (NULL = continuous use)'
    )

    notes = db.Column(db.Text, nullable=True)

    is_active = db.Column(db.Boolean, default=True, nullable=False)

    # ========================================================================
    # METADATA
    # ========================================================================
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    updated_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False
    )

    schedules = db.relationship(
        'MedicationSchedule',
        backref='medication',
        lazy=True,
        order_by='MedicationSchedule.time_of_day'
    )

    def to_dict(self, include_schedules=True):
        data = {
            'medication_id': self.medication_id,
            'subject_id': self.subject_id,
            'medication_name': self.medication_name,
            'dosage': self.dosage or "",
            'active_ingredient': self.active_ingredient or "",
            'start_date': self.start_date.isoformat() if self.start_date else None,
            'end_date': self.end_date.isoformat() if self.end_date else None,
            'notes': self.notes or "",
            'is_active': self.is_active,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None
        }
        if include_schedules:
            data['schedules'] = [s.to_dict() for s in self.schedules]
        return data

    def __repr__(self):
        return f'<Medication {self.medication_id}: {self.medication_name} for subject {self.subject_id}>'
