from database import db
from datetime import datetime

class ProjectTransfer(db.Model):
    """Repasse do valor arrecadado ao dono do projeto (somente leitura)"""
    __tablename__ = 'project_transfers'

    project_id = db.Column(db.Integer, db.ForeignKey('projects.id'), primary_key=True)
    amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    project = db.relationship('Project', backref=db.backref('transfer', uselist=False))

    def to_dict(self):
        return {
            'project_id': self.project_id,
            'amount': float(self.amount),
            'created_at': self.created_at.isoformat() if self.created_at else None
        }
