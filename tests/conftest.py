from datetime import date

import jwt
import pytest

from carelog import create_app
from carelog.config.config import Config
from carelog.models import (
    Department,
    MedicalRecord,
    Medication,
    MedicationSchedule,
    Subject,
    User,
    db,
)


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_ENGINE_OPTIONS = {}
    SECRET_KEY = 'test-secret'
    TIMEZONE = 'UTC'
    MAX_RANGE_DAYS = 31


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def nurse(app):
    user = User(email='nurse@example.org', full_name='Maria Nurse')
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def admin(app):
    user = User(email='admin@example.org', full_name='Admin', is_admin=True)
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def auth_header(app):
    def _header(user):
        token = jwt.encode({'user_id': user.user_id}, TestingConfig.SECRET_KEY, algorithm='HS256')
        return {'Authorization': f'Bearer {token}'}
    return _header


@pytest.fixture
def add_subject(app):
    def _add(name='Ana Souza', code='A-001', is_active=True):
        subject = Subject(full_name=name, registration_code=code, is_active=is_active)
        db.session.add(subject)
        db.session.commit()
        return subject
    return _add


@pytest.fixture
def add_department(app):
    def _add(name='Nursing'):
        department = Department(name=name)
        db.session.add(department)
        db.session.commit()
        return department
    return _add


@pytest.fixture
def add_medication(app):
    def _add(subject, name='Ritalin', start=date(2024, 1, 1), end=None, is_active=True,
             time_of_day='08:00', frequency='daily', weekdays=None, department=None,
             schedule_active=True):
        medication = Medication(
            subject_id=subject.subject_id,
            medication_name=name,
            dosage='10mg',
            start_date=start,
            end_date=end,
            is_active=is_active
        )
        schedule = MedicationSchedule(
            time_of_day=time_of_day,
            frequency=frequency,
            department_id=department.department_id if department else None,
            is_active=schedule_active
        )
        schedule.set_weekday_list(weekdays or [])
        medication.schedules.append(schedule)
        db.session.add(medication)
        db.session.commit()
        return medication, schedule
    return _add


@pytest.fixture
def add_record(app):
    def _add(subject, visit_date, visit_type='medical_consultation', return_date=None):
        record = MedicalRecord(
            subject_id=subject.subject_id,
            visit_date=visit_date,
            visit_type=visit_type,
            return_date=return_date,
            professional='Dr. Lima'
        )
        db.session.add(record)
        db.session.commit()
        return record
    return _add
