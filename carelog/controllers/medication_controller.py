"""
Medication Controller
=====================
Admin REST API for the medication catalog: a medication is created or edited
together with its schedules, in one request.

Schedules referenced by administration records are never hard-deleted; they
are deactivated and stop producing doses.
"""

from flask import request
from flask_restx import Namespace, Resource, fields
import logging
from carelog.services import medication_service
from carelog.services.errors import CarelogError, ValidationError
from carelog.utils.auth_middleware import admin_required
from carelog.utils.request_params import error_response, parse_int

logger = logging.getLogger(__name__)

medication_ns = Namespace(
    'medications',
    description='Medication catalog - medications and their recurring schedules'
)

# ============================================================================
# API MODELS
# ============================================================================

schedule_input = medication_ns.model('MedicationScheduleInput', {
    'time_of_day': fields.String(required=True, description='HH:MM', example='08:00'),
    'frequency': fields.String(
        description='daily, alternating_days or weekly',
        enum=['daily', 'alternating_days', 'weekly'],
        default='daily',
        example='weekly'
    ),
    'weekdays': fields.List(
        fields.String,
        description='Required for weekly schedules',
        example=['monday', 'wednesday']
    ),
    'instructions': fields.String(example='After breakfast'),
    'department_id': fields.Integer(description='Responsible department')
})

medication_input = medication_ns.model('MedicationInput', {
    'subject_id': fields.Integer(required=True, example=1),
    'medication_name': fields.String(required=True, example='Ritalin'),
    'dosage': fields.String(example='10mg'),
    'active_ingredient': fields.String(example='Methylphenidate'),
    'start_date': fields.String(description='YYYY-MM-DD', example='2024-01-01'),
    'end_date': fields.String(description='YYYY-MM-DD, empty for continuous use'),
    'notes': fields.String,
    'schedules': fields.List(fields.Nested(schedule_input))
})


@medication_ns.route('')
class MedicationList(Resource):

    @medication_ns.expect(medication_input)
    @medication_ns.response(201, 'Created')
    @medication_ns.response(400, 'Bad Request')
    @medication_ns.response(401, 'Unauthorized')
    @medication_ns.response(403, 'Admin only')
    @medication_ns.doc(security='Bearer')
    @admin_required
    def post(self, current_user):
        """Create a medication with its schedules."""
        try:
            data = request.get_json(silent=True)
            if not data:
                return {'message': 'Request body is required'}, 400

            subject_id = parse_int(data.get('subject_id'), 'subject_id')
            if subject_id is None:
                raise ValidationError('subject_id is required')

            medication = medication_service.create_medication(subject_id, data)
            return {
                'message': 'Medication created successfully',
                'medication': medication.to_dict()
            }, 201

        except CarelogError as e:
            return error_response(e)

        except Exception as e:
            logger.error(f"Error creating medication: {e}", exc_info=True)
            return {'message': f'Internal server error: {str(e)}'}, 500


@medication_ns.route('/<int:medication_id>')
class MedicationDetail(Resource):

    @medication_ns.doc(security='Bearer')
    @admin_required
    def get(self, current_user, medication_id):
        """Medication with its schedules."""
        medication = medication_service.get_medication(medication_id)
        if not medication:
            return {'message': 'Medication not found'}, 404
        return medication.to_dict(), 200

    @medication_ns.expect(medication_input)
    @medication_ns.doc(security='Bearer')
    @admin_required
    def put(self, current_user, medication_id):
        """
        Update a medication.

        Sending `schedules` replaces the whole schedule set.
        """
        try:
            data = request.get_json(silent=True)
            if not data:
                return {'message': 'Request body is required'}, 400

            medication = medication_service.update_medication(medication_id, data)
            return {
                'message': 'Medication updated successfully',
                'medication': medication.to_dict()
            }, 200

        except CarelogError as e:
            return error_response(e)

        except Exception as e:
            logger.error(f"Error updating medication {medication_id}: {e}", exc_info=True)
            return {'message': f'Internal server error: {str(e)}'}, 500


@medication_ns.route('/schedules/<int:schedule_id>')
class MedicationScheduleDetail(Resource):

    @medication_ns.doc(security='Bearer')
    @admin_required
    def delete(self, current_user, schedule_id):
        """Deactivate a schedule (soft delete)."""
        try:
            medication_service.deactivate_schedule(schedule_id)
            return {'message': 'Schedule deactivated successfully'}, 200

        except CarelogError as e:
            return error_response(e)

        except Exception as e:
            logger.error(f"Error deactivating schedule {schedule_id}: {e}", exc_info=True)
            return {'message': f'Internal server error: {str(e)}'}, 500
