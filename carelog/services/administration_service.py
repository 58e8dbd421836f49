"""
Medication Administration Service
=================================
Business logic for the daily medication board.

Main functions:
1. Board query (`get_administration_view`): catalog + logs -> reconcile ->
   filter -> group by time slot (or by date for a range) -> counters.
2. Transitions (`mark_done`, `mark_not_done`, `undo`): each writes exactly one
   log row (insert, update in place, or delete) and returns the board
   re-reconciled from the database, never a locally patched copy.
3. `find_due_item`: rebuilds a DueItem from its natural key so the API only
   has to receive (schedule_id, scheduled_date).

Nothing here reads the wall clock except when the caller does not pass `now`.
Concurrent edits of the same dose: last write wins.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, List, Optional

from carelog.services import log_store, medication_catalog
from carelog.services.errors import NotFoundError, ValidationError
from carelog.services.grouping import filter_items, group_by_date, group_by_time, summarize
from carelog.services.reconciler import reconcile
from carelog.services.view_models import STATUSES, DueItem, GroupedView
from carelog.utils.dates import utc_now

logger = logging.getLogger(__name__)

DEFAULT_MAX_RANGE_DAYS = 62


@dataclass
class AdministrationView:
    """What the medication board renders for a date or a range."""
    start_date: date
    end_date: date
    items: List[DueItem] = field(default_factory=list)
    groups: List[GroupedView] = field(default_factory=list)
    date_groups: List[Dict] = field(default_factory=list)
    stats: Dict[str, int] = field(default_factory=dict)

    @property
    def is_range(self) -> bool:
        return self.start_date != self.end_date

    def to_dict(self):
        return {
            'start_date': self.start_date.isoformat(),
            'end_date': self.end_date.isoformat(),
            'stats': self.stats,
            'count': len(self.items),
            'items': [item.to_dict() for item in self.items],
            'groups': [group.to_dict() for group in self.groups],
            'date_groups': [
                {**day, 'groups': [group.to_dict() for group in day['groups']]}
                for day in self.date_groups
            ]
        }


def validate_range(start_date: date, end_date: Optional[date],
                   max_days: int = DEFAULT_MAX_RANGE_DAYS) -> date:
    """
    Check a requested range and return the effective end date.

    Raises:
        ValidationError: end before start, or range longer than max_days
    """
    if start_date is None:
        raise ValidationError('A date is required')
    end_date = end_date or start_date
    if end_date < start_date:
        raise ValidationError('end_date must not be before start_date')
    if (end_date - start_date).days + 1 > max_days:
        raise ValidationError(f'Date range cannot exceed {max_days} days')
    return end_date


# ============================================================================
# BOARD QUERY
# ============================================================================

def load_due_items(start_date: date, end_date: Optional[date] = None) -> List[DueItem]:
    """Catalog + logs for the range, reconciled. No filters."""
    end_date = end_date or start_date
    schedules = medication_catalog.load_active_schedules(as_of_date=start_date)
    logs = log_store.load_logs(start_date, end_date)
    return reconcile(schedules, logs, start_date, end_date)


def get_administration_view(start_date: date, end_date: Optional[date] = None,
                            status: Optional[str] = None,
                            department_id: Optional[int] = None,
                            max_days: int = DEFAULT_MAX_RANGE_DAYS) -> AdministrationView:
    """
    Build the medication board.

    Args:
        start_date: Selected date (or first date of the range)
        end_date: Last date of the range, None for a single day
        status: Optional filter: pending / administered / not_administered
        department_id: Optional filter on the responsible department
        max_days: Longest accepted range

    Returns:
        AdministrationView: single day -> `groups` by time slot;
        range -> `date_groups` by date then time slot

    Raises:
        ValidationError: Bad range or unknown status
        StorageError: Database failure
    """
    end_date = validate_range(start_date, end_date, max_days)
    if status and status not in STATUSES:
        raise ValidationError(f'status must be one of {", ".join(STATUSES)}')

    items = filter_items(load_due_items(start_date, end_date), status, department_id)

    view = AdministrationView(start_date=start_date, end_date=end_date, items=items, stats=summarize(items))
    if view.is_range:
        view.date_groups = group_by_date(items)
    else:
        view.groups = group_by_time(items)
    return view


def find_due_item(schedule_id: int, scheduled_date: date,
                  scheduled_time: Optional[str] = None) -> DueItem:
    """
    Rebuild the DueItem of a schedule on a date.

    Raises:
        NotFoundError: The schedule is not active or not due that day
    """
    for item in load_due_items(scheduled_date):
        if item.schedule_id != schedule_id:
            continue
        if scheduled_time and item.scheduled_time != scheduled_time:
            continue
        return item
    raise NotFoundError(f'Schedule {schedule_id} has no dose due on {scheduled_date.isoformat()}')


# ============================================================================
# TRANSITIONS
# ============================================================================

def mark_done(item: DueItem, actor_id: Optional[int], notes: Optional[str] = None,
              now: Optional[datetime] = None) -> AdministrationView:
    """
    Record a dose as administered.

    Updates the existing log in place when the item has one, otherwise
    inserts it. Repeating the call converges to the same state apart from
    the timestamp.

    Returns:
        AdministrationView of the item's date, re-read from the database
    """
    now = now or utc_now()

    if item.log_id is not None:
        log_store.update_administration_log(item.log_id, actor_id, True, now=now, notes=notes)
    else:
        item.log_id = log_store.insert_administration_log(
            item, actor_id, True, administered_at=now, notes=notes
        )

    logger.info(f"Dose administered: schedule {item.schedule_id} on {item.scheduled_date} "
                f"{item.scheduled_time} by user {actor_id}")
    return get_administration_view(item.scheduled_date)


def mark_not_done(item: DueItem, actor_id: Optional[int], reason: str,
                  notes: Optional[str] = None) -> AdministrationView:
    """
    Record a dose as not administered.

    Raises:
        ValidationError: reason missing or blank (nothing is written)
    """
    if not isinstance(reason, str) or not reason.strip():
        raise ValidationError('A reason is required to mark a dose as not administered')
    reason = reason.strip()

    if item.log_id is not None:
        log_store.update_administration_log(item.log_id, actor_id, False, notes=notes, reason=reason)
    else:
        item.log_id = log_store.insert_administration_log(
            item, actor_id, False, notes=notes, reason=reason
        )

    logger.info(f"Dose not administered: schedule {item.schedule_id} on {item.scheduled_date} "
                f"{item.scheduled_time} by user {actor_id} ({reason})")
    return get_administration_view(item.scheduled_date)


def undo(item: DueItem) -> AdministrationView:
    """
    Delete the item's log, returning the dose to pending.

    Raises:
        NotFoundError: The item has no log
    """
    if item.log_id is None:
        raise NotFoundError('Nothing to undo: this dose has no record')

    log_store.delete_administration_log(item.log_id)
    removed_log_id, item.log_id = item.log_id, None
    logger.info(f"Administration record {removed_log_id} removed for schedule {item.schedule_id} "
                f"on {item.scheduled_date}")
    return get_administration_view(item.scheduled_date)
