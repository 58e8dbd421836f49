"""
Simple Database Migration - Create Carelog Tables
=================================================
Creates every table of the medication administration and appointment boards
on the database configured by DATABASE_URL.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

EXPECTED_TABLES = (
    'Users',
    'Departments',
    'Subjects',
    'Medications',
    'MedicationSchedules',
    'MedicationAdministrationLogs',
    'MedicalRecords',
    'MedicalAppointmentLogs',
)

print("🔄 Starting migration...")

try:
    from carelog import create_app
    from carelog.models.base import db

    app = create_app()
    print("✅ Created Flask app")

    with app.app_context():
        print("🔄 Creating tables...")
        db.create_all()

        from sqlalchemy import inspect
        inspector = inspect(db.engine)
        tables = inspector.get_table_names()

        print(f"\n📊 Database tables ({len(tables)}):")
        for table in sorted(tables):
            print(f"   - {table}")

        missing = [t for t in EXPECTED_TABLES if t not in tables]
        if missing:
            print(f"\n⚠️  WARNING: missing tables: {', '.join(missing)}")
            sys.exit(1)
        print("\n✅ SUCCESS: all tables created!")

except Exception as e:
    print(f"\n❌ ERROR: {e}")
    import traceback
    traceback.print_exc()
    sys.exit(1)
