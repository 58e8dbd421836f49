"""
Medical Appointment Log Model
=============================
Outcome of one appointment occurrence, keyed by (record_id, scheduled_date, kind).
kind is "visit" for the appointment itself and "return" for the follow-up
sharing the same medical record.
"""

from datetime import datetime
from carelog.models.base import db


class MedicalAppointmentLog(db.Model):
    __tablename__ = 'MedicalAppointmentLogs'
    __table_args__ = (
        db.UniqueConstraint(
            'record_id', 'scheduled_date', 'kind',
            name='uq_appointment_log_key'
        ),
    )

    log_id = db.Column(db.Integer, primary_key=True, autoincrement=True)

    record_id = db.Column(
        db.Integer,
        db.ForeignKey('MedicalRecords.record_id'),
        nullable=False,
        index=True
    )

    kind = db.Column(db.String(10), nullable=False, comment='visit or return')

    scheduled_date = db.Column(db.Date, nullable=False, index=True)

    completed = db.Column(db.Boolean, nullable=False, default=False)
    completed_at = db.Column(db.DateTime, nullable=True)
    completed_by = db.Column(db.Integer, db.ForeignKey('Users.user_id'), nullable=True)

    notes = db.Column(db.Text, nullable=True)
    not_completed_reason = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False
    )

    def __repr__(self):
        return f'<MedicalAppointmentLog {self.log_id}: record {self.record_id} {self.kind} on {self.scheduled_date}>'
