from database import db

class Reward(db.Model):
    __tablename__ = 'rewards'

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(db.Integer, db.ForeignKey('projects.id'), nullable=False)
    minimum_value = db.Column(db.Numeric(10, 2), nullable=False)
    description = db.Column(db.Text, nullable=False)
    # free, national, international, presential
    shipping_options = db.Column(db.String(20), default='free')

    shipping_fees = db.relationship('ShippingFee', backref='reward', lazy=True)

    def to_dict(self):
        return {
            'id': self.id,
            'project_id': self.project_id,
            'minimum_value': float(self.minimum_value),
            'description': self.description,
            'shipping_options': self.shipping_options
        }


class ShippingFee(db.Model):
    __tablename__ = 'shipping_fees'

    id = db.Column(db.Integer, primary_key=True)
    reward_id = db.Column(db.Integer, db.ForeignKey('rewards.id'), nullable=False)
    destination = db.Column(db.String(100), nullable=False)
    value = db.Column(db.Numeric(10, 2), nullable=False, default=0)
