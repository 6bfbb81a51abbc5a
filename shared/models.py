import uuid
from datetime import datetime
from sqlalchemy import Column, Integer, String, Float, Boolean, Text, Date, DateTime, ForeignKey, Index, text, Enum, CheckConstraint, UniqueConstraint, JSON
from sqlalchemy.orm import relationship, declarative_base
from shared.enums import JobStatus, BidPackageStatus, InviteStatus, BidStatus, RFIStatus

Base = declarative_base()

# Global timezone configuration - Eastern Time (US/Eastern)
# Uses zoneinfo for proper DST handling (EST/EDT)
from zoneinfo import ZoneInfo
APP_TIMEZONE = ZoneInfo('America/New_York')


def now():
    """Return current datetime in application timezone (Eastern Time, timezone-aware).

    This is the default clock. The Flask app exposes it as ``CLOCK`` so tests
    can swap in a fixed instant. When stored in SQLite, timezone info is
    stripped; stored datetimes should be treated as Eastern Time.
    """
    return datetime.now(APP_TIMEZONE)


def generate_id():
    """Return a new string primary key."""
    return str(uuid.uuid4())


def _enum_values(enum_class):
    # Persist enum values ('draft') rather than member names ('DRAFT')
    return [member.value for member in enum_class]


class TimestampMixin:
    """Mixin providing created/updated timestamps."""

    created_at = Column(DateTime, default=now)
    updated_at = Column(DateTime, default=now, onupdate=now)


class User(Base):
    __tablename__ = 'users'
    id = Column(String(36), primary_key=True, default=generate_id)
    email = Column(String(120), unique=True, nullable=False)
    full_name = Column(String(200), server_default="")
    company_name = Column(String(200), server_default="")
    created_at = Column(DateTime, default=now)


class Job(Base, TimestampMixin):
    __tablename__ = 'jobs'
    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    client_name = Column(String(200))
    status = Column(Enum(JobStatus, values_callable=_enum_values), default=JobStatus.ACTIVE, nullable=False, server_default=text("'active'"))
    property_address = Column(Text)
    start_date = Column(Date)
    end_date = Column(Date)
    notes = Column(Text)

Index('idx_jobs_status', Job.status)


class Subcontractor(Base, TimestampMixin):
    __tablename__ = 'subcontractors'
    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    company_name = Column(String(200), nullable=False)
    contact_name = Column(String(200))
    email = Column(String(120))
    phone = Column(String(50))
    primary_trade = Column(String(100), index=True)
    license_number = Column(String(100))
    license_expiry = Column(Date)
    license_verified = Column(Boolean, default=False, nullable=False, server_default='0')
    insurance_company = Column(String(200))
    insurance_expiry = Column(Date)
    insurance_amount = Column(Float)
    coi_on_file = Column(Boolean, default=False, nullable=False, server_default='0')
    w9_on_file = Column(Boolean, default=False, nullable=False, server_default='0')
    workers_comp_policy = Column(String(100))
    workers_comp_expiry = Column(Date)
    rating = Column(Float)
    projects_completed = Column(Integer, default=0, nullable=False, server_default='0')
    is_active = Column(Boolean, default=True, nullable=False, server_default='1')
    notes = Column(Text)

    __table_args__ = (
        CheckConstraint('rating IS NULL OR (rating >= 0 AND rating <= 5)', name='chk_subcontractor_rating_range'),
    )


class BidPackage(Base, TimestampMixin):
    __tablename__ = 'bid_packages'
    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    job_id = Column(String(36), ForeignKey('jobs.id', ondelete='CASCADE'), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    package_number = Column(String(50))
    csi_division = Column(String(50))
    description = Column(Text)
    scope_of_work = Column(Text)
    inclusions = Column(Text)
    exclusions = Column(Text)
    bid_due_date = Column(Date)
    work_start_date = Column(Date)
    work_end_date = Column(Date)
    budget_estimate = Column(Float)
    attachments = Column(JSON)
    notes = Column(Text)
    status = Column(Enum(BidPackageStatus, values_callable=_enum_values), default=BidPackageStatus.DRAFT, nullable=False, server_default=text("'draft'"))
    awarded_to = Column(String(36), ForeignKey('subcontractors.id', ondelete='SET NULL'), nullable=True)
    awarded_amount = Column(Float)
    awarded_at = Column(DateTime)

    job = relationship('Job', lazy='select')
    awarded_subcontractor = relationship('Subcontractor', lazy='select')

Index('idx_bid_packages_status', BidPackage.status)


class BidPackageInvite(Base):
    __tablename__ = 'bid_package_invites'
    id = Column(String(36), primary_key=True, default=generate_id)
    bid_package_id = Column(String(36), ForeignKey('bid_packages.id', ondelete='CASCADE'), nullable=False, index=True)
    subcontractor_id = Column(String(36), ForeignKey('subcontractors.id', ondelete='CASCADE'), nullable=False, index=True)
    status = Column(Enum(InviteStatus, values_callable=_enum_values), default=InviteStatus.PENDING, nullable=False, server_default=text("'pending'"))
    invited_via = Column(String(50), default='email', server_default='email')
    invited_at = Column(DateTime, default=now)
    responded_at = Column(DateTime)

    subcontractor = relationship('Subcontractor', lazy='select')

    __table_args__ = (
        UniqueConstraint('bid_package_id', 'subcontractor_id', name='uq_invite_package_subcontractor'),
    )


class SubcontractorBid(Base):
    __tablename__ = 'subcontractor_bids'
    id = Column(String(36), primary_key=True, default=generate_id)
    bid_package_id = Column(String(36), ForeignKey('bid_packages.id', ondelete='CASCADE'), nullable=False, index=True)
    subcontractor_id = Column(String(36), ForeignKey('subcontractors.id', ondelete='CASCADE'), nullable=False, index=True)
    base_bid = Column(Float, nullable=False)
    labor_cost = Column(Float)
    material_cost = Column(Float)
    equipment_cost = Column(Float)
    overhead_profit = Column(Float)
    alternates = Column(JSON)
    assumptions = Column(Text)
    clarifications = Column(Text)
    exclusions = Column(Text)
    proposed_start = Column(Date)
    proposed_duration = Column(Integer)
    lead_time = Column(String(100))
    attachments = Column(JSON)
    status = Column(Enum(BidStatus, values_callable=_enum_values), default=BidStatus.SUBMITTED, nullable=False, server_default=text("'submitted'"))
    compliance_verified = Column(Boolean, default=False, nullable=False, server_default='0')
    score = Column(Float)
    evaluator_notes = Column(Text)
    submitted_at = Column(DateTime, default=now)
    reviewed_at = Column(DateTime)

    subcontractor = relationship('Subcontractor', lazy='select')

    __table_args__ = (
        CheckConstraint('score IS NULL OR (score >= 0 AND score <= 100)', name='chk_bid_score_range'),
    )

Index('idx_bids_package_status', SubcontractorBid.bid_package_id, SubcontractorBid.status)


class BidRFI(Base):
    __tablename__ = 'bid_rfis'
    id = Column(String(36), primary_key=True, default=generate_id)
    bid_package_id = Column(String(36), ForeignKey('bid_packages.id', ondelete='CASCADE'), nullable=False, index=True)
    subcontractor_id = Column(String(36), ForeignKey('subcontractors.id', ondelete='SET NULL'), nullable=True)
    question = Column(Text, nullable=False)
    answer = Column(Text)
    status = Column(Enum(RFIStatus, values_callable=_enum_values), default=RFIStatus.OPEN, nullable=False, server_default=text("'open'"))
    created_at = Column(DateTime, default=now)
    answered_at = Column(DateTime)
