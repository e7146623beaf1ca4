from database import db
from datetime import datetime

class Project(db.Model):
    __tablename__ = 'projects'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    permalink = db.Column(db.String(100), nullable=False, unique=True)
    category = db.Column(db.String(100))
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    service_fee = db.Column(db.Numeric(4, 3), default=0.13)
    # online, successful, failed, ...
    state = db.Column(db.String(20), default='online')
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    user = db.relationship('User')
    rewards = db.relationship('Reward', backref='project', lazy=True,
                              order_by='Reward.minimum_value')
    contributions = db.relationship('Contribution', back_populates='project', lazy='dynamic')

    @property
    def total_contributions(self):
        """Quantidade de apoios com pagamento confirmado"""
        from models.contribution import Contribution
        from models.payment import Payment
        paid = db.session.query(Payment.id).filter(
            Payment.contribution_id == Contribution.id,
            Payment.state == 'paid'
        ).exists()
        return self.contributions.filter(paid).count()

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'permalink': self.permalink,
            'category': self.category,
            'state': self.state,
            'service_fee': float(self.service_fee or 0),
            'total_contributions': self.total_contributions
        }
