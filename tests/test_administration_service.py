"""Medication board against an in-memory database."""
from datetime import date, datetime
from unittest.mock import patch

import pytest
from sqlalchemy.exc import SQLAlchemyError

from carelog.models import MedicationAdministrationLog, db
from carelog.services import administration_service, log_store
from carelog.services.errors import NotFoundError, StorageError, ValidationError


def test_daily_dose_done_then_undo(nurse, add_subject, add_medication):
    subject = add_subject()
    _, schedule = add_medication(subject)
    day = date(2024, 1, 5)

    view = administration_service.get_administration_view(day)
    assert len(view.items) == 1
    assert view.items[0].status == 'pending'
    assert [g.key for g in view.groups] == ['08:00']
    assert view.stats == {'total': 1, 'completed': 0, 'not_completed': 0, 'pending': 1}

    item = administration_service.find_due_item(schedule.schedule_id, day)
    now = datetime(2024, 1, 5, 8, 2)
    view = administration_service.mark_done(item, nurse.user_id, notes='ok', now=now)

    done = view.items[0]
    assert done.status == 'administered'
    assert done.administered_at == now
    assert done.administered_by_name == 'Maria Nurse'
    assert view.groups[0].is_fully_complete
    assert MedicationAdministrationLog.query.count() == 1

    view = administration_service.undo(item)
    assert item.log_id is None
    assert view.items[0].status == 'pending'
    assert view.items[0].administered_by_name is None
    assert MedicationAdministrationLog.query.count() == 0


def test_alternating_schedule(add_subject, add_medication):
    subject = add_subject()
    add_medication(subject, start=date(2024, 3, 1), frequency='alternating_days')

    assert len(administration_service.get_administration_view(date(2024, 3, 1)).items) == 1
    assert administration_service.get_administration_view(date(2024, 3, 2)).items == []
    assert len(administration_service.get_administration_view(date(2024, 3, 3)).items) == 1


def test_weekly_schedule(add_subject, add_medication):
    subject = add_subject()
    add_medication(subject, frequency='weekly', weekdays=['monday', 'wednesday'])

    view = administration_service.get_administration_view(date(2024, 1, 7), date(2024, 1, 13))
    assert view.is_range
    assert [d['date'] for d in view.date_groups] == ['2024-01-08', '2024-01-10']


def test_not_done_without_reason_writes_nothing(nurse, add_subject, add_medication):
    subject = add_subject()
    _, schedule = add_medication(subject)
    item = administration_service.find_due_item(schedule.schedule_id, date(2024, 1, 5))

    with patch.object(log_store, 'insert_administration_log') as insert, \
            patch.object(log_store, 'update_administration_log') as update, \
            patch.object(log_store, 'delete_administration_log') as delete:
        for reason in (None, '', '   '):
            with pytest.raises(ValidationError):
                administration_service.mark_not_done(item, nurse.user_id, reason)

    assert insert.call_count == 0
    assert update.call_count == 0
    assert delete.call_count == 0
    assert item.log_id is None


def test_undo_without_record_raises(add_subject, add_medication):
    subject = add_subject()
    _, schedule = add_medication(subject)
    item = administration_service.find_due_item(schedule.schedule_id, date(2024, 1, 5))

    with pytest.raises(NotFoundError):
        administration_service.undo(item)


def test_transitions_overwrite_the_same_row(nurse, add_subject, add_medication):
    subject = add_subject()
    _, schedule = add_medication(subject)
    day = date(2024, 1, 5)
    item = administration_service.find_due_item(schedule.schedule_id, day)

    administration_service.mark_done(item, nurse.user_id, now=datetime(2024, 1, 5, 8, 0))
    first_log_id = item.log_id

    view = administration_service.mark_not_done(item, nurse.user_id, '  Refused  ')
    assert item.log_id == first_log_id
    assert view.items[0].status == 'not_administered'
    assert view.items[0].not_administered_reason == 'Refused'
    assert view.items[0].administered_at is None

    # a freshly rebuilt item carries the stored log id
    again = administration_service.find_due_item(schedule.schedule_id, day)
    assert again.log_id == first_log_id
    view = administration_service.mark_done(again, nurse.user_id, now=datetime(2024, 1, 5, 9, 0))
    assert view.items[0].status == 'administered'
    assert view.items[0].not_administered_reason is None
    assert MedicationAdministrationLog.query.count() == 1


def test_inactive_rows_are_excluded(add_subject, add_medication):
    active = add_subject('Ana', 'A-1')
    inactive = add_subject('Bruno', 'B-1', is_active=False)
    add_medication(active, name='Kept')
    add_medication(active, name='Stopped', is_active=False)
    add_medication(active, name='Paused', schedule_active=False)
    add_medication(inactive, name='Other')

    view = administration_service.get_administration_view(date(2024, 1, 5))
    assert [i.medication_name for i in view.items] == ['Kept']


def test_window_limits_the_board(add_subject, add_medication):
    subject = add_subject()
    add_medication(subject, start=date(2024, 1, 10), end=date(2024, 1, 12))

    assert administration_service.get_administration_view(date(2024, 1, 9)).items == []
    assert len(administration_service.get_administration_view(date(2024, 1, 12)).items) == 1
    assert administration_service.get_administration_view(date(2024, 1, 13)).items == []


def test_filters(nurse, add_subject, add_department, add_medication):
    subject = add_subject()
    ward = add_department('Ward')
    _, first = add_medication(subject, name='A', time_of_day='08:00', department=ward)
    add_medication(subject, name='B', time_of_day='12:00')
    day = date(2024, 1, 5)
    administration_service.mark_done(administration_service.find_due_item(first.schedule_id, day), nurse.user_id)

    pending = administration_service.get_administration_view(day, status='pending')
    assert [i.medication_name for i in pending.items] == ['B']

    by_ward = administration_service.get_administration_view(day, department_id=ward.department_id)
    assert [i.medication_name for i in by_ward.items] == ['A']
    assert by_ward.items[0].department_name == 'Ward'

    with pytest.raises(ValidationError):
        administration_service.get_administration_view(day, status='lost')


def test_range_validation():
    with pytest.raises(ValidationError):
        administration_service.validate_range(date(2024, 1, 5), date(2024, 1, 4))
    with pytest.raises(ValidationError):
        administration_service.validate_range(date(2024, 1, 1), date(2024, 3, 31), max_days=62)
    assert administration_service.validate_range(date(2024, 1, 1), None) == date(2024, 1, 1)


def test_find_due_item_not_due(add_subject, add_medication):
    subject = add_subject()
    _, schedule = add_medication(subject, frequency='weekly', weekdays=['monday'])

    with pytest.raises(NotFoundError):
        administration_service.find_due_item(schedule.schedule_id, date(2024, 1, 9))


def test_storage_failure_is_reported(nurse, add_subject, add_medication):
    subject = add_subject()
    _, schedule = add_medication(subject)
    item = administration_service.find_due_item(schedule.schedule_id, date(2024, 1, 5))

    with patch.object(db.session, 'commit', side_effect=SQLAlchemyError('disk full')):
        with pytest.raises(StorageError):
            administration_service.mark_done(item, nurse.user_id)

    assert MedicationAdministrationLog.query.count() == 0


def test_actor_names_resolved_in_one_query(nurse, add_subject, add_medication):
    subject = add_subject()
    day = date(2024, 1, 5)
    for hour in ('08:00', '12:00', '20:00'):
        _, schedule = add_medication(subject, name=f'Med {hour}', time_of_day=hour)
        item = administration_service.find_due_item(schedule.schedule_id, day)
        administration_service.mark_done(item, nurse.user_id)

    with patch.object(log_store, 'resolve_actor_names', wraps=log_store.resolve_actor_names) as resolve:
        records = log_store.load_logs(day)

    assert resolve.call_count == 1
    assert {r.administered_by_name for r in records} == {'Maria Nurse'}


def test_stale_item_overwrites_existing_record(nurse, add_subject, add_medication):
    subject = add_subject()
    _, schedule = add_medication(subject)
    day = date(2024, 1, 5)
    first = administration_service.find_due_item(schedule.schedule_id, day)
    second = administration_service.find_due_item(schedule.schedule_id, day)

    administration_service.mark_not_done(first, nurse.user_id, 'Refused')
    assert second.log_id is None

    view = administration_service.mark_done(second, nurse.user_id, now=datetime(2024, 1, 5, 8, 30))

    assert second.log_id == first.log_id
    assert view.items[0].status == 'administered'
    assert view.items[0].not_administered_reason is None
    assert view.items[0].administered_at == datetime(2024, 1, 5, 8, 30)
    assert MedicationAdministrationLog.query.count() == 1
