"""
Medication Administration Controller
====================================
REST API for the daily medication board.

Endpoints:
1. GET  /            : doses due on a date (or range), merged with their records.
2. POST /done        : record a dose as administered.
3. POST /not-done    : record a dose as not administered (reason required).
4. POST /undo        : remove the record, the dose goes back to pending.

Transitions only receive (schedule_id, scheduled_date); the dose is rebuilt
server-side and the response carries the freshly reconciled board.
All endpoints require a JWT token.
"""

from flask import current_app, request
from flask_restx import Namespace, Resource, fields
import logging
from carelog.services import administration_service
from carelog.services.errors import CarelogError, ValidationError
from carelog.utils.auth_middleware import token_required
from carelog.utils.dates import parse_date
from carelog.utils.request_params import board_response, error_response, parse_int, resolve_date_range

logger = logging.getLogger(__name__)

administration_ns = Namespace(
    'medication-administration',
    description='Medication administration board - doses due per day and their records'
)

# ============================================================================
# API MODELS
# ============================================================================

dose_reference_input = administration_ns.model('DoseReferenceInput', {
    'schedule_id': fields.Integer(required=True, description='Schedule ID', example=1),
    'scheduled_date': fields.String(required=True, description='Due date (YYYY-MM-DD)', example='2024-01-05'),
    'scheduled_time': fields.String(description='Due time (HH:MM), defaults to the schedule time', example='08:00'),
    'notes': fields.String(description='Free-text notes', example='Given with water')
})

not_done_input = administration_ns.inherit('NotDoneInput', dose_reference_input, {
    'reason': fields.String(required=True, description='Why the dose was not given', example='Refused')
})


def _due_item_from_body(data):
    schedule_id = parse_int(data.get('schedule_id'), 'schedule_id')
    scheduled_date = parse_date(data.get('scheduled_date'), 'scheduled_date')
    if schedule_id is None or scheduled_date is None:
        raise ValidationError('schedule_id and scheduled_date are required')
    return administration_service.find_due_item(schedule_id, scheduled_date, data.get('scheduled_time'))


# ============================================================================
# API ENDPOINTS
# ============================================================================

@administration_ns.route('')
class AdministrationBoard(Resource):

    @administration_ns.response(200, 'Success')
    @administration_ns.response(400, 'Bad Request')
    @administration_ns.response(401, 'Unauthorized')
    @administration_ns.doc(security='Bearer')
    @administration_ns.param('date', 'Single date (YYYY-MM-DD), defaults to today', type='string')
    @administration_ns.param('start_date', 'Range start (YYYY-MM-DD)', type='string')
    @administration_ns.param('end_date', 'Range end (YYYY-MM-DD)', type='string')
    @administration_ns.param('status', 'pending, administered or not_administered', type='string')
    @administration_ns.param('department_id', 'Responsible department', type='int')
    @administration_ns.param('sequence', 'Echoed back so the client can drop stale responses', type='string')
    @token_required
    def get(self, current_user):
        """Doses due on a date or range, grouped by time slot (or by date for a range)."""
        try:
            start_date, end_date = resolve_date_range(request.args)
            view = administration_service.get_administration_view(
                start_date,
                end_date,
                status=request.args.get('status') or None,
                department_id=parse_int(request.args.get('department_id'), 'department_id'),
                max_days=current_app.config['MAX_RANGE_DAYS']
            )
            return board_response(view, sequence=request.args.get('sequence')), 200

        except CarelogError as e:
            return error_response(e)

        except Exception as e:
            logger.error(f"Error loading administration board: {e}", exc_info=True)
            return {'message': f'Internal server error: {str(e)}'}, 500


@administration_ns.route('/done')
class AdministrationDone(Resource):

    @administration_ns.expect(dose_reference_input)
    @administration_ns.response(200, 'Recorded')
    @administration_ns.response(404, 'Dose not due / not found')
    @administration_ns.response(401, 'Unauthorized')
    @administration_ns.doc(security='Bearer')
    @token_required
    def post(self, current_user):
        """Mark a dose as administered (inserts or overwrites its record)."""
        try:
            data = request.get_json(silent=True) or {}
            item = _due_item_from_body(data)
            view = administration_service.mark_done(item, current_user['user_id'], notes=data.get('notes'))
            return board_response(view, 'Medication recorded as administered'), 200

        except CarelogError as e:
            return error_response(e)

        except Exception as e:
            logger.error(f"Error marking dose as administered: {e}", exc_info=True)
            return {'message': f'Internal server error: {str(e)}'}, 500


@administration_ns.route('/not-done')
class AdministrationNotDone(Resource):

    @administration_ns.expect(not_done_input)
    @administration_ns.response(200, 'Recorded')
    @administration_ns.response(400, 'Reason is required')
    @administration_ns.response(404, 'Dose not due / not found')
    @administration_ns.response(401, 'Unauthorized')
    @administration_ns.doc(security='Bearer')
    @token_required
    def post(self, current_user):
        """Mark a dose as not administered."""
        try:
            data = request.get_json(silent=True) or {}
            reason = data.get('reason')
            if not isinstance(reason, str) or not reason.strip():
                raise ValidationError(
                    'A reason is required to mark a dose as not administered'
                )
            item = _due_item_from_body(data)
            view = administration_service.mark_not_done(
                item, current_user['user_id'], reason, notes=data.get('notes')
            )
            return board_response(view, 'Record saved'), 200

        except CarelogError as e:
            return error_response(e)

        except Exception as e:
            logger.error(f"Error marking dose as not administered: {e}", exc_info=True)
            return {'message': f'Internal server error: {str(e)}'}, 500


@administration_ns.route('/undo')
class AdministrationUndo(Resource):

    @administration_ns.expect(dose_reference_input)
    @administration_ns.response(200, 'Record removed')
    @administration_ns.response(404, 'Nothing to undo')
    @administration_ns.response(401, 'Unauthorized')
    @administration_ns.doc(security='Bearer')
    @token_required
    def post(self, current_user):
        """Delete the dose record; the dose becomes pending again."""
        try:
            item = _due_item_from_body(request.get_json(silent=True) or {})
            view = administration_service.undo(item)
            return board_response(view, 'Record removed'), 200

        except CarelogError as e:
            return error_response(e)

        except Exception as e:
            logger.error(f"Error undoing administration: {e}", exc_info=True)
            return {'message': f'Internal server error: {str(e)}'}, 500
