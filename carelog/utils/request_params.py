"""
Helpers shared by the controllers: reading the date range of a board query
and turning service errors into (body, status) responses.
"""

import logging
from flask import current_app
from carelog.services.errors import CarelogError, NotFoundError, StorageError, ValidationError
from carelog.utils.dates import local_today, parse_date

logger = logging.getLogger(__name__)


def resolve_date_range(args):
    """
    Read `date`, or `start_date` + `end_date`, from query args.

    Without any date the board shows today in the configured TIMEZONE.

    Returns:
        tuple (start_date, end_date or None)

    Raises:
        ValidationError: Malformed date
    """
    single = parse_date(args.get('date'), 'date')
    if single:
        return single, None

    start_date = parse_date(args.get('start_date'), 'start_date')
    end_date = parse_date(args.get('end_date'), 'end_date')
    if start_date is None:
        if end_date is not None:
            raise ValidationError('start_date is required when end_date is given')
        return local_today(current_app.config['TIMEZONE']), None
    return start_date, end_date


def parse_int(value, field):
    if value is None or value == '':
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f'{field} must be an integer')


def error_response(e: CarelogError):
    """Map a service error to its HTTP response."""
    if isinstance(e, ValidationError):
        logger.warning(f"Validation error: {e.message}")
        return {'message': e.message}, 400
    if isinstance(e, NotFoundError):
        return {'message': e.message}, 404
    if isinstance(e, StorageError):
        return {'message': f'Storage error: {e.message}'}, 500
    return {'message': e.message}, 500


def board_response(view, message='Success', sequence=None):
    """Board body; `sequence` is echoed so the client can discard stale responses."""
    body = {'message': message, **view.to_dict()}
    if sequence is not None:
        body['sequence'] = sequence
    return body
