"""
Subject Model
=============
A resident/student followed by the institution. Medications and medical
records hang off a subject; inactive subjects drop out of every daily view.
"""

from datetime import datetime
from carelog.models.base import db


class Subject(db.Model):
    __tablename__ = 'Subjects'

    subject_id = db.Column(db.Integer, primary_key=True, autoincrement=True)

    full_name = db.Column(
        db.String(200),
        nullable=False,
        comment='Display name used for sorting due items'
    )

    registration_code = db.Column(
        db.String(50),
        nullable=True,
        comment='Institutional registration code'
    )

    is_active = db.Column(db.Boolean, default=True, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    medications = db.relationship('Medication', backref='subject', lazy=True)
    medical_records = db.relationship('MedicalRecord', backref='subject', lazy=True)

    def to_dict(self):
        return {
            'subject_id': self.subject_id,
            'full_name': self.full_name,
            'registration_code': self.registration_code or "",
            'is_active': self.is_active,
        }

    def __repr__(self):
        return f'<Subject {self.subject_id}: {self.full_name}>'
