"""
Appointment Controller
======================
REST API for the appointment board: medical visits and follow-up returns
due on a date, and their outcome (completed / not completed / undo).
"""

from flask import current_app, request
from flask_restx import Namespace, Resource, fields
import logging
from carelog.services import appointment_service
from carelog.services.errors import CarelogError, ValidationError
from carelog.utils.auth_middleware import token_required
from carelog.utils.dates import parse_date
from carelog.utils.request_params import board_response, error_response, parse_int, resolve_date_range

logger = logging.getLogger(__name__)

appointment_ns = Namespace(
    'appointments',
    description='Medical appointments board - visits and returns due per day'
)

appointment_reference_input = appointment_ns.model('AppointmentReferenceInput', {
    'record_id': fields.Integer(required=True, description='Medical record ID', example=1),
    'scheduled_date': fields.String(required=True, description='Due date (YYYY-MM-DD)', example='2024-01-05'),
    'kind': fields.String(required=True, description='visit or return', enum=['visit', 'return'], example='visit'),
    'notes': fields.String(description='Free-text notes')
})

not_completed_input = appointment_ns.inherit('NotCompletedInput', appointment_reference_input, {
    'reason': fields.String(required=True, description='Why the appointment did not happen', example='No show')
})


def _appointment_from_body(data):
    record_id = parse_int(data.get('record_id'), 'record_id')
    scheduled_date = parse_date(data.get('scheduled_date'), 'scheduled_date')
    if record_id is None or scheduled_date is None or not data.get('kind'):
        raise ValidationError('record_id, scheduled_date and kind are required')
    return appointment_service.find_appointment_item(record_id, scheduled_date, data['kind'])


@appointment_ns.route('')
class AppointmentBoard(Resource):

    @appointment_ns.response(200, 'Success')
    @appointment_ns.response(400, 'Bad Request')
    @appointment_ns.response(401, 'Unauthorized')
    @appointment_ns.doc(security='Bearer')
    @appointment_ns.param('date', 'Single date (YYYY-MM-DD), defaults to today', type='string')
    @appointment_ns.param('start_date', 'Range start (YYYY-MM-DD)', type='string')
    @appointment_ns.param('end_date', 'Range end (YYYY-MM-DD)', type='string')
    @appointment_ns.param('status', 'pending, completed or not_completed', type='string')
    @appointment_ns.param('sequence', 'Echoed back so the client can drop stale responses', type='string')
    @token_required
    def get(self, current_user):
        """Appointments due on a date or range, grouped by category."""
        try:
            start_date, end_date = resolve_date_range(request.args)
            view = appointment_service.get_appointment_view(
                start_date,
                end_date,
                status=request.args.get('status') or None,
                max_days=current_app.config['MAX_RANGE_DAYS']
            )
            return board_response(view, sequence=request.args.get('sequence')), 200

        except CarelogError as e:
            return error_response(e)

        except Exception as e:
            logger.error(f"Error loading appointment board: {e}", exc_info=True)
            return {'message': f'Internal server error: {str(e)}'}, 500


@appointment_ns.route('/completed')
class AppointmentCompleted(Resource):

    @appointment_ns.expect(appointment_reference_input)
    @appointment_ns.doc(security='Bearer')
    @token_required
    def post(self, current_user):
        """Mark an appointment as completed."""
        try:
            data = request.get_json(silent=True) or {}
            item = _appointment_from_body(data)
            view = appointment_service.mark_completed(item, current_user['user_id'], notes=data.get('notes'))
            return board_response(view, 'Appointment recorded as completed'), 200

        except CarelogError as e:
            return error_response(e)

        except Exception as e:
            logger.error(f"Error marking appointment as completed: {e}", exc_info=True)
            return {'message': f'Internal server error: {str(e)}'}, 500


@appointment_ns.route('/not-completed')
class AppointmentNotCompleted(Resource):

    @appointment_ns.expect(not_completed_input)
    @appointment_ns.doc(security='Bearer')
    @token_required
    def post(self, current_user):
        """Mark an appointment as not completed (reason required)."""
        try:
            data = request.get_json(silent=True) or {}
            reason = data.get('reason')
            if not isinstance(reason, str) or not reason.strip():
                raise ValidationError('A reason is required to mark an appointment as not completed')
            item = _appointment_from_body(data)
            view = appointment_service.mark_not_completed(
                item, current_user['user_id'], reason, notes=data.get('notes')
            )
            return board_response(view, 'No-show recorded'), 200

        except CarelogError as e:
            return error_response(e)

        except Exception as e:
            logger.error(f"Error marking appointment as not completed: {e}", exc_info=True)
            return {'message': f'Internal server error: {str(e)}'}, 500


@appointment_ns.route('/undo')
class AppointmentUndo(Resource):

    @appointment_ns.expect(appointment_reference_input)
    @appointment_ns.doc(security='Bearer')
    @token_required
    def post(self, current_user):
        """Remove the appointment record."""
        try:
            item = _appointment_from_body(request.get_json(silent=True) or {})
            view = appointment_service.undo(item)
            return board_response(view, 'Record removed'), 200

        except CarelogError as e:
            return error_response(e)

        except Exception as e:
            logger.error(f"Error undoing appointment record: {e}", exc_info=True)
            return {'message': f'Internal server error: {str(e)}'}, 500
