"""
Grouping & statistics for the daily boards.

- Medications are grouped by time slot ("08:00"), and for range views by date
  first, then time slot.
- Appointments are grouped by category with a label and an icon; the
  follow-up ("return") group always comes last.
"""

from collections import OrderedDict
from typing import Callable, Dict, Iterable, List, Optional

from carelog.services.view_models import (
    KIND_RETURN,
    STATUS_ADMINISTERED,
    STATUS_COMPLETED,
    STATUS_NOT_ADMINISTERED,
    STATUS_NOT_COMPLETED,
    STATUS_PENDING,
    GroupedView,
)

APPOINTMENT_GROUPS = {
    'medical_consultation': {'label': 'Medical Consultations', 'icon': 'Stethoscope'},
    'dental_consultation': {'label': 'Dental Consultations', 'icon': 'Smile'},
    'psychological_consultation': {'label': 'Psychological Consultations', 'icon': 'Brain'},
    'lab_exam': {'label': 'Laboratory Exams', 'icon': 'TestTube'},
    'imaging_exam': {'label': 'Imaging Exams', 'icon': 'Scan'},
    'procedure': {'label': 'Procedures', 'icon': 'Syringe'},
    'emergency': {'label': 'Urgent/Emergency Care', 'icon': 'Ambulance'},
    'other': {'label': 'Other', 'icon': 'FileText'},
    KIND_RETURN: {'label': 'Follow-up Returns', 'icon': 'RotateCcw'},
}
DEFAULT_GROUP_ICON = 'FileText'


def _is_completed(item) -> bool:
    return item.status in (STATUS_ADMINISTERED, STATUS_COMPLETED)


def group_items(items: Iterable, key_fn: Callable, completed_fn: Callable = _is_completed) -> List[GroupedView]:
    """
    Group items by key_fn, keeping the order in which keys first appear.

    Args:
        items: Already sorted DueItems or AppointmentItems
        key_fn: Extracts the presentation key
        completed_fn: Decides whether an item counts as completed

    Returns:
        List[GroupedView] with total/completed computed from the members
    """
    groups: Dict[str, GroupedView] = OrderedDict()
    for item in items:
        key = key_fn(item)
        group = groups.get(key)
        if group is None:
            group = groups[key] = GroupedView(key=key)
        group.items.append(item)

    for group in groups.values():
        group.total = len(group.items)
        group.completed = sum(1 for item in group.items if completed_fn(item))

    return list(groups.values())


def group_by_time(items: Iterable) -> List[GroupedView]:
    return group_items(items, lambda item: item.scheduled_time)


def group_by_date(items: Iterable) -> List[Dict]:
    """
    Range view: one entry per date holding that date's time-slot groups.

    Returns:
        list of {'date', 'total', 'completed', 'groups'}
    """
    by_date = group_items(items, lambda item: item.scheduled_date.isoformat())
    return [
        {
            'date': day_group.key,
            'total': day_group.total,
            'completed': day_group.completed,
            'groups': group_by_time(day_group.items)
        }
        for day_group in by_date
    ]


def appointment_group_key(item) -> str:
    return KIND_RETURN if item.kind == KIND_RETURN else item.visit_type


def group_appointments(items: Iterable) -> List[GroupedView]:
    """
    Group appointments by category. Order: follow-up returns last, every
    other category alphabetically by label.
    """
    groups = group_items(items, appointment_group_key)
    for group in groups:
        info = APPOINTMENT_GROUPS.get(group.key, {'label': group.key, 'icon': DEFAULT_GROUP_ICON})
        group.label = info['label']
        group.icon = info['icon']

    groups.sort(key=lambda g: (g.key == KIND_RETURN, g.label.casefold()))
    return groups


def filter_items(items: Iterable, status: Optional[str] = None,
                 department_id: Optional[int] = None) -> List:
    """
    Apply the board filters.

    Args:
        status: pending / administered / not_administered (appointments use
            pending / completed / not_completed)
        department_id: Responsible department of the schedule
    """
    result = list(items)
    if status:
        result = [item for item in result if item.status == status]
    if department_id is not None:
        result = [item for item in result if getattr(item, 'department_id', None) == department_id]
    return result


def summarize(items: Iterable) -> Dict[str, int]:
    """
    Board counters.

    Returns:
        dict: total, completed, not_completed, pending
    """
    stats = {'total': 0, 'completed': 0, 'not_completed': 0, 'pending': 0}
    for item in items:
        stats['total'] += 1
        if item.status == STATUS_PENDING:
            stats['pending'] += 1
        elif item.status in (STATUS_NOT_ADMINISTERED, STATUS_NOT_COMPLETED):
            stats['not_completed'] += 1
        else:
            stats['completed'] += 1
    return stats
