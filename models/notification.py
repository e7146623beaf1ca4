from database import db
from datetime import datetime

class ContributionNotification(db.Model):
    """Histórico de notificações enviadas a respeito de um apoio"""
    __tablename__ = 'contribution_notifications'

    id = db.Column(db.Integer, primary_key=True)
    contribution_id = db.Column(db.Integer, db.ForeignKey('contributions.id'), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    template_name = db.Column(db.String(100), nullable=False)
    from_email = db.Column(db.String(100))
    extra = db.Column('metadata', db.JSON, default=dict)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    user = db.relationship('User')

    def to_dict(self):
        return {
            'id': self.id,
            'contribution_id': self.contribution_id,
            'user_id': self.user_id,
            'template_name': self.template_name,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }
