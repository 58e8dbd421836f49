"""
Medication Administration Log Model
===================================
The only persisted fact about a scheduled dose.

- One row per (schedule_id, scheduled_date, scheduled_time), enforced by a
  unique constraint.
- administered=True: dose given, administered_at holds when.
- administered=False: dose not given, not_administered_reason holds why.
- No row: the dose is still pending. Undo deletes the row.
"""

from datetime import datetime
from carelog.models.base import db


class MedicationAdministrationLog(db.Model):
    """
    Relationship:
    - 1 MedicationSchedule - N MedicationAdministrationLogs
    - 1 Subject - N MedicationAdministrationLogs
    """
    __tablename__ = 'MedicationAdministrationLogs'
    __table_args__ = (
        db.UniqueConstraint(
            'schedule_id', 'scheduled_date', 'scheduled_time',
            name='uq_administration_log_key'
        ),
    )

    # ========================================================================
    # PRIMARY KEY
    # ========================================================================
    log_id = db.Column(
        db.Integer,
        primary_key=True,
        autoincrement=True
    )

    # ========================================================================
    # FOREIGN KEYS
    # ========================================================================
    schedule_id = db.Column(
        db.Integer,
        db.ForeignKey('MedicationSchedules.schedule_id'),
        nullable=False,
        index=True
    )

    medication_id = db.Column(
        db.Integer,
        db.ForeignKey('Medications.medication_id'),
        nullable=False
    )

    subject_id = db.Column(
        db.Integer,
        db.ForeignKey('Subjects.subject_id'),
        nullable=False,
        index=True
    )

    # ========================================================================
    # NATURAL KEY
    # ========================================================================
    scheduled_date = db.Column(
        db.Date,
        nullable=False,
        index=True,
        comment='Calendar date the dose was due'
    )

    scheduled_time = db.Column(
        db.String(5),
        nullable=False,
        comment='HH:MM copied from the schedule'
    )

    # ========================================================================
    # DISPOSITION
    # ========================================================================
    administered = db.Column(
        db.Boolean,
        nullable=False,
        default=False
    )

    administered_at = db.Column(
        db.DateTime,
        nullable=True,
        comment='UTC timestamp, NULL when not administered'
    )

    administered_by = db.Column(
        db.Integer,
        db.ForeignKey('Users.user_id'),
        nullable=True,
        comment='User who recorded the outcome'
    )

    notes = db.Column(db.Text, nullable=True)

    not_administered_reason = db.Column(
        db.Text,
        nullable=True,
        comment='Why the dose was not given (refused, absent, ...)'
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
    # HELPER METHODS
    # ========================================================================

    def mark_as_administered(self, actor_id, now, notes=None):
        """
        Record the dose as given.

        Args:
            actor_id (int): User recording the outcome
            now (datetime): Action timestamp
            notes (str, optional): Free-text notes
        """
        self.administered = True
        self.administered_at = now
        self.administered_by = actor_id
        self.not_administered_reason = None
        self.notes = notes

    def mark_as_not_administered(self, actor_id, reason, notes=None):
        """
        Record the dose as not given.

        Args:
            actor_id (int): User recording the outcome
            reason (str): Why the dose was not given
            notes (str, optional): Free-text notes
        """
        self.administered = False
        self.administered_at = None
        self.administered_by = actor_id
        self.not_administered_reason = reason
        self.notes = notes

    def __repr__(self):
        return f'<MedicationAdministrationLog {self.log_id}: schedule {self.schedule_id} on {self.scheduled_date} {self.scheduled_time}>'
