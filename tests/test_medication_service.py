"""Catalog administration: create / update / deactivate."""
from datetime import date

import pytest

from carelog.models import Medication, MedicationSchedule, db
from carelog.services import administration_service, medication_service
from carelog.services.errors import NotFoundError, ValidationError


def test_create_medication_with_schedules(add_subject, add_department):
    subject = add_subject()
    ward = add_department('Ward')

    medication = medication_service.create_medication(subject.subject_id, {
        'medication_name': ' Ritalin ',
        'dosage': '10mg',
        'start_date': '2024-01-01',
        'schedules': [
            {'time_of_day': '8:00', 'frequency': 'daily', 'department_id': ward.department_id},
            {'time_of_day': '20:00', 'frequency': 'weekly', 'weekdays': ['Mon', 'wednesday', 'monday']},
        ]
    })

    assert medication.medication_name == 'Ritalin'
    assert medication.start_date == date(2024, 1, 1)
    schedules = {s.time_of_day: s for s in medication.schedules}
    assert set(schedules) == {'08:00', '20:00'}
    assert schedules['20:00'].get_weekday_list() == ['monday', 'wednesday']
    assert schedules['08:00'].department.name == 'Ward'


def test_weekly_without_weekdays_writes_nothing(add_subject):
    subject = add_subject()

    with pytest.raises(ValidationError):
        medication_service.create_medication(subject.subject_id, {
            'medication_name': 'Ritalin',
            'schedules': [{'time_of_day': '08:00', 'frequency': 'weekly', 'weekdays': []}]
        })

    assert Medication.query.count() == 0
    assert MedicationSchedule.query.count() == 0


@pytest.mark.parametrize('payload', [
    {'medication_name': ''},
    {'medication_name': 'X', 'schedules': [{'time_of_day': '25:00'}]},
    {'medication_name': 'X', 'schedules': [{'time_of_day': '08:00', 'frequency': 'hourly'}]},
    {'medication_name': 'X', 'schedules': [{'frequency': 'daily'}]},
    {'medication_name': 'X', 'schedules': [{'time_of_day': '08:00', 'department_id': 999}]},
    {'medication_name': 'X', 'start_date': '2024-02-01', 'end_date': '2024-01-01'},
])
def test_create_rejects_invalid_payloads(add_subject, payload):
    subject = add_subject()
    with pytest.raises(ValidationError):
        medication_service.create_medication(subject.subject_id, payload)
    assert Medication.query.count() == 0


def test_create_for_unknown_subject(app):
    with pytest.raises(ValidationError):
        medication_service.create_medication(404, {'medication_name': 'Ritalin'})


def test_update_replaces_schedules_and_keeps_logged_ones(nurse, add_subject, add_medication):
    subject = add_subject()
    medication, logged = add_medication(subject, time_of_day='08:00')
    administration_service.mark_done(
        administration_service.find_due_item(logged.schedule_id, date(2024, 1, 5)), nurse.user_id
    )
    logged_id = logged.schedule_id

    medication_service.update_medication(medication.medication_id, {
        'dosage': '20mg',
        'schedules': [{'time_of_day': '09:30'}]
    })

    retired = db.session.get(MedicationSchedule, logged_id)
    assert retired is not None and retired.is_active is False
    active = [s.time_of_day for s in medication.schedules if s.is_active]
    assert active == ['09:30']
    assert medication.dosage == '20mg'

    # the past record stays attached to the retired schedule
    view = administration_service.get_administration_view(date(2024, 1, 6))
    assert [i.scheduled_time for i in view.items] == ['09:30']


def test_update_deletes_unlogged_schedules(add_subject, add_medication):
    subject = add_subject()
    medication, schedule = add_medication(subject)
    schedule_id = schedule.schedule_id

    medication_service.update_medication(medication.medication_id, {'schedules': [{'time_of_day': '10:00'}]})

    assert db.session.get(MedicationSchedule, schedule_id) is None


def test_update_invalid_payload_keeps_old_values(add_subject, add_medication):
    subject = add_subject()
    medication, _ = add_medication(subject, end=date(2024, 6, 30))

    with pytest.raises(ValidationError):
        medication_service.update_medication(medication.medication_id, {
            'dosage': '99mg',
            'end_date': '2023-01-01'
        })

    stored = db.session.get(Medication, medication.medication_id)
    assert stored.dosage == '10mg'
    assert stored.end_date == date(2024, 6, 30)


def test_update_unknown_medication(app):
    with pytest.raises(NotFoundError):
        medication_service.update_medication(404, {'dosage': '1mg'})


def test_deactivate_schedule(add_subject, add_medication):
    subject = add_subject()
    _, schedule = add_medication(subject)

    medication_service.deactivate_schedule(schedule.schedule_id)

    assert administration_service.get_administration_view(date(2024, 1, 5)).items == []
    with pytest.raises(NotFoundError):
        medication_service.deactivate_schedule(404)
