from flask_sqlalchemy import SQLAlchemy
from shared.models import (
    Base, User, Job, Subcontractor, BidPackage, BidPackageInvite, SubcontractorBid, BidRFI, now
)
from shared.enums import JobStatus, BidPackageStatus, InviteStatus, BidStatus, RFIStatus

db = SQLAlchemy(model_class=Base)
