from carelog.models.base import db
from carelog.models.user import User
from carelog.models.department import Department
from carelog.models.subject import Subject
from carelog.models.medication import Medication
from carelog.models.medication_schedule import MedicationSchedule
from carelog.models.medication_administration_log import MedicationAdministrationLog
from carelog.models.medical_record import MedicalRecord
from carelog.models.medical_appointment_log import MedicalAppointmentLog

__all__ = [
    'db',
    'User',
    'Department',
    'Subject',
    'Medication',
    'MedicationSchedule',
    'MedicationAdministrationLog',
    'MedicalRecord',
    'MedicalAppointmentLog'
]
