"""Tests for carelog/services/grouping.py."""
from datetime import date

from carelog.services.grouping import (
    filter_items,
    group_appointments,
    group_by_date,
    group_by_time,
    summarize,
)
from carelog.services.view_models import AppointmentItem, DueItem


def due(schedule_id, time_of_day, status='pending', day=date(2024, 1, 5), department_id=None):
    item = DueItem(
        schedule_id=schedule_id,
        scheduled_date=day,
        scheduled_time=time_of_day,
        medication_id=1,
        medication_name='Med',
        subject_id=schedule_id,
        subject_name=f'Subject {schedule_id}',
        department_id=department_id
    )
    if status != 'pending':
        item.log_id = schedule_id
        item.administered = status == 'administered'
        if not item.administered:
            item.not_administered_reason = 'Refused'
    return item


def appointment(record_id, visit_type, kind='visit', status='pending'):
    item = AppointmentItem(
        record_id=record_id,
        scheduled_date=date(2024, 1, 5),
        kind=kind,
        subject_id=1,
        subject_name='Ana',
        visit_type=visit_type
    )
    if status != 'pending':
        item.log_id = record_id
        item.completed = status == 'completed'
    return item


def test_group_by_time_counts():
    items = [
        due(1, '08:00', 'administered'),
        due(2, '08:00'),
        due(3, '12:00', 'not_administered'),
        due(4, '20:00', 'administered'),
    ]
    groups = group_by_time(items)

    assert [g.key for g in groups] == ['08:00', '12:00', '20:00']
    assert [(g.total, g.completed) for g in groups] == [(2, 1), (1, 0), (1, 1)]
    assert groups[0].is_partially_complete
    assert not groups[1].is_partially_complete and not groups[1].is_fully_complete
    assert groups[2].is_fully_complete


def test_group_invariants_hold():
    items = [due(i, f'{8 + i % 3:02d}:00', ['pending', 'administered', 'not_administered'][i % 3])
             for i in range(20)]
    for group in group_by_time(items):
        assert 0 <= group.completed <= group.total
        assert group.total == len(group.items)


def test_group_by_date_nests_time_slots():
    items = [
        due(1, '08:00', 'administered', day=date(2024, 1, 5)),
        due(2, '20:00', day=date(2024, 1, 5)),
        due(1, '08:00', day=date(2024, 1, 6)),
    ]
    days = group_by_date(items)

    assert [d['date'] for d in days] == ['2024-01-05', '2024-01-06']
    assert (days[0]['total'], days[0]['completed']) == (2, 1)
    assert [g.key for g in days[0]['groups']] == ['08:00', '20:00']


def test_appointment_groups_put_returns_last_and_sort_others_by_label():
    items = [
        appointment(1, 'procedure'),
        appointment(2, 'medical_consultation', kind='return'),
        appointment(3, 'lab_exam', status='completed'),
        appointment(4, 'dental_consultation'),
        appointment(5, 'custom_type'),
    ]
    groups = group_appointments(items)

    assert [g.label for g in groups] == [
        'custom_type',
        'Dental Consultations',
        'Laboratory Exams',
        'Procedures',
        'Follow-up Returns',
    ]
    assert groups[0].icon == 'FileText'
    assert groups[-1].icon == 'RotateCcw'
    assert groups[2].completed == 1


def test_filter_by_status_and_department():
    items = [
        due(1, '08:00', 'administered', department_id=1),
        due(2, '08:00', department_id=2),
        due(3, '12:00', 'not_administered', department_id=1),
    ]
    assert [i.schedule_id for i in filter_items(items, status='pending')] == [2]
    assert [i.schedule_id for i in filter_items(items, department_id=1)] == [1, 3]
    assert filter_items(items, status='administered', department_id=2) == []


def test_summarize_counts_add_up():
    items = [
        due(1, '08:00', 'administered'),
        due(2, '08:00'),
        due(3, '08:00', 'not_administered'),
        due(4, '08:00'),
    ]
    stats = summarize(items)
    assert stats == {'total': 4, 'completed': 1, 'not_completed': 1, 'pending': 2}
    assert stats['completed'] + stats['not_completed'] + stats['pending'] == stats['total']
