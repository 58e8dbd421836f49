import os
from flask import Flask
from flask_restx import Api
from flask_cors import CORS
from carelog.models.base import db
from carelog.config.config import Config

# Import all models to ensure they are registered with SQLAlchemy
import carelog.models  # noqa: F401


def create_app(config_object=Config):
    app = Flask(__name__)

    # Load configuration
    app.config.from_object(config_object)

    CORS(app, resources={
        r"/api/*": {
            "origins": app.config.get('CORS_ORIGINS', '*'),
            "methods": ["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            "allow_headers": ["Content-Type", "Authorization"],
            "expose_headers": ["Content-Type", "Authorization"],
            "max_age": 3600
        }
    })

    # Configure API with JWT authorization
    authorizations = {
        'Bearer': {
            'type': 'apiKey',
            'in': 'header',
            'name': 'Authorization',
            'description': "Type in the *'Value'* input box below: **'Bearer &lt;JWT&gt;'**, where JWT is the token"
        }
    }

    api = Api(
        title='Carelog API',
        version='1.0',
        description='Medication administration and medical appointment tracking',
        doc='/docs',
        authorizations=authorizations,
        security='Bearer'
    )

    # Initialize extensions
    db.init_app(app)

    # Register API
    api.init_app(app)

    # Add namespaces
    from carelog.controllers.administration_controller import administration_ns
    from carelog.controllers.appointment_controller import appointment_ns
    from carelog.controllers.medication_controller import medication_ns

    api.add_namespace(administration_ns, path='/api/medication-administration')
    api.add_namespace(appointment_ns, path='/api/appointments')
    api.add_namespace(medication_ns, path='/api/medications')

    # Default SQLite file lives in instance/
    os.makedirs(app.instance_path, exist_ok=True)

    with app.app_context():
        db.create_all()

    return app
