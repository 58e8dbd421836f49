from carelog.models.base import db


class Department(db.Model):
    """Department responsible for giving a scheduled dose (nursing, school, ...)."""
    __tablename__ = 'Departments'

    department_id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    name = db.Column(db.String(120), nullable=False)

    def __repr__(self):
        return f'<Department {self.department_id}: {self.name}>'
