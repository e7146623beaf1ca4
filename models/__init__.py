from models.country import Country
from models.user import User
from models.project import Project
from models.project_transfer import ProjectTransfer
from models.reward import Reward, ShippingFee
from models.donation import Donation, Origin
from models.payment import Payment
from models.notification import ContributionNotification
from models.contribution import Contribution
