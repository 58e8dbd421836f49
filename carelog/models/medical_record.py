"""
Medical Record Model
====================
A medical visit of a subject. visit_date is the appointment itself,
return_date (optional) the follow-up. Both show up on the appointments
board for their date.
"""

from datetime import datetime
from carelog.models.base import db


class MedicalRecord(db.Model):
    __tablename__ = 'MedicalRecords'

    record_id = db.Column(db.Integer, primary_key=True, autoincrement=True)

    subject_id = db.Column(
        db.Integer,
        db.ForeignKey('Subjects.subject_id', ondelete='CASCADE'),
        nullable=False,
        index=True
    )

    visit_date = db.Column(db.Date, nullable=False, index=True)

    visit_type = db.Column(
        db.String(50),
        nullable=False,
        default='other',
        comment='medical_consultation, dental_consultation, lab_exam, ...'
    )

    specialty = db.Column(db.String(120), nullable=True)
    professional = db.Column(db.String(200), nullable=True)
    location = db.Column(db.String(200), nullable=True)
    reason = db.Column(db.Text, nullable=True)

    return_date = db.Column(db.Date, nullable=True, index=True, comment='Follow-up date')

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    logs = db.relationship('MedicalAppointmentLog', backref='record', lazy=True)

    def __repr__(self):
        return f'<MedicalRecord {self.record_id}: {self.visit_type} on {self.visit_date}>'
