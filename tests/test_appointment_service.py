"""Appointment board against an in-memory database."""
from datetime import date, datetime
from unittest.mock import patch

import pytest

from carelog.models import MedicalAppointmentLog
from carelog.services import appointment_service, log_store
from carelog.services.errors import NotFoundError, ValidationError


def test_visits_and_returns_on_a_date(add_subject, add_record):
    ana = add_subject('Ana', 'A-1')
    bruno = add_subject('Bruno', 'B-1')
    add_record(ana, date(2024, 1, 5), 'dental_consultation')
    add_record(bruno, date(2023, 12, 20), 'medical_consultation', return_date=date(2024, 1, 5))
    add_record(bruno, date(2024, 1, 6), 'lab_exam')

    view = appointment_service.get_appointment_view(date(2024, 1, 5))

    assert [(i.subject_name, i.kind) for i in view.items] == [('Ana', 'visit'), ('Bruno', 'return')]
    assert [g.label for g in view.groups] == ['Dental Consultations', 'Follow-up Returns']
    assert view.stats['pending'] == 2


def test_complete_then_undo(nurse, add_subject, add_record):
    subject = add_subject()
    record = add_record(subject, date(2024, 1, 5))
    day = date(2024, 1, 5)

    item = appointment_service.find_appointment_item(record.record_id, day, 'visit')
    now = datetime(2024, 1, 5, 14, 0)
    view = appointment_service.mark_completed(item, nurse.user_id, notes='all fine', now=now)

    assert view.items[0].status == 'completed'
    assert view.items[0].completed_at == now
    assert view.items[0].completed_by_name == 'Maria Nurse'
    assert view.groups[0].is_fully_complete

    view = appointment_service.undo(item)
    assert view.items[0].status == 'pending'
    assert MedicalAppointmentLog.query.count() == 0


def test_not_completed_overwrites_and_clears_timestamp(nurse, add_subject, add_record):
    subject = add_subject()
    record = add_record(subject, date(2024, 1, 5))
    item = appointment_service.find_appointment_item(record.record_id, date(2024, 1, 5), 'visit')

    appointment_service.mark_completed(item, nurse.user_id)
    view = appointment_service.mark_not_completed(item, nurse.user_id, 'Subject absent')

    assert view.items[0].status == 'not_completed'
    assert view.items[0].not_completed_reason == 'Subject absent'
    assert view.items[0].completed_at is None
    assert MedicalAppointmentLog.query.count() == 1


def test_not_completed_requires_reason(nurse, add_subject, add_record):
    subject = add_subject()
    record = add_record(subject, date(2024, 1, 5))
    item = appointment_service.find_appointment_item(record.record_id, date(2024, 1, 5), 'visit')

    with patch.object(log_store, 'save_appointment_log') as save:
        with pytest.raises(ValidationError):
            appointment_service.mark_not_completed(item, nurse.user_id, ' ')
    assert save.call_count == 0


def test_undo_pending_appointment_raises(add_subject, add_record):
    subject = add_subject()
    record = add_record(subject, date(2024, 1, 5))
    item = appointment_service.find_appointment_item(record.record_id, date(2024, 1, 5), 'visit')

    with pytest.raises(NotFoundError):
        appointment_service.undo(item)


def test_find_appointment_item_errors(add_subject, add_record):
    subject = add_subject()
    record = add_record(subject, date(2024, 1, 5))

    with pytest.raises(ValidationError):
        appointment_service.find_appointment_item(record.record_id, date(2024, 1, 5), 'checkup')
    with pytest.raises(NotFoundError):
        appointment_service.find_appointment_item(record.record_id, date(2024, 1, 5), 'return')


def test_status_filter(nurse, add_subject, add_record):
    subject = add_subject()
    first = add_record(subject, date(2024, 1, 5), 'procedure')
    add_record(subject, date(2024, 1, 5), 'imaging_exam')
    item = appointment_service.find_appointment_item(first.record_id, date(2024, 1, 5), 'visit')
    appointment_service.mark_completed(item, nurse.user_id)

    view = appointment_service.get_appointment_view(date(2024, 1, 5), status='pending')
    assert [i.visit_type for i in view.items] == ['imaging_exam']

    with pytest.raises(ValidationError):
        appointment_service.get_appointment_view(date(2024, 1, 5), status='administered')


def test_stale_item_overwrites_existing_record(nurse, add_subject, add_record):
    subject = add_subject()
    record = add_record(subject, date(2024, 1, 5))
    first = appointment_service.find_appointment_item(record.record_id, date(2024, 1, 5), 'visit')
    second = appointment_service.find_appointment_item(record.record_id, date(2024, 1, 5), 'visit')

    appointment_service.mark_completed(first, nurse.user_id)
    view = appointment_service.mark_not_completed(second, nurse.user_id, 'Rescheduled')

    assert second.log_id == first.log_id
    assert view.items[0].status == 'not_completed'
    assert MedicalAppointmentLog.query.count() == 1


def test_undo_logs_the_removal(caplog, nurse, add_subject, add_record):
    subject = add_subject()
    record = add_record(subject, date(2024, 1, 5))
    item = appointment_service.find_appointment_item(record.record_id, date(2024, 1, 5), 'visit')
    appointment_service.mark_completed(item, nurse.user_id)

    with caplog.at_level('INFO', logger='carelog.services.appointment_service'):
        appointment_service.undo(item)

    assert any('removed' in message for message in caplog.messages)
