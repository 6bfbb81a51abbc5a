"""Pydantic schemas for validation and serialization."""
from datetime import date, datetime
from typing import Optional, List
from pydantic import BaseModel, Field, field_validator, model_validator, ConfigDict
from shared.enums import JobStatus, BidPackageStatus, InviteStatus, BidStatus, RFIStatus, AlternateType
from shared.validation import Validator


def sanitize_text(value):
    if value:
        return Validator.sanitize_html(value.strip())
    return value


def reject_null(value, field_name):
    if value is None:
        raise ValueError(f"{field_name} cannot be null")
    return value


class UpdateSchema(BaseModel):
    """Base for partial updates: only fields the caller sent are applied."""

    def changes(self, exclude=()):
        return self.model_dump(exclude_unset=True, exclude=set(exclude))


# Job Schemas
class JobCreate(BaseModel):
    user_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=200)
    client_name: Optional[str] = Field(None, max_length=200)
    status: JobStatus = Field(default=JobStatus.ACTIVE)
    property_address: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    notes: Optional[str] = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        return Validator.validate_string_length(v, 'name', 1, 200)

    @field_validator('client_name', 'property_address', 'notes')
    @classmethod
    def sanitize_text_fields(cls, v):
        return sanitize_text(v)

    model_config = ConfigDict(use_enum_values=True)


class JobUpdate(UpdateSchema):
    id: str = Field(..., min_length=1)
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    client_name: Optional[str] = Field(None, max_length=200)
    status: Optional[JobStatus] = None
    property_address: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    notes: Optional[str] = None

    @field_validator('name', 'status')
    @classmethod
    def validate_not_null(cls, v, info):
        return reject_null(v, info.field_name)

    @field_validator('client_name', 'property_address', 'notes')
    @classmethod
    def sanitize_text_fields(cls, v):
        return sanitize_text(v)

    model_config = ConfigDict(use_enum_values=True)


class JobResponse(BaseModel):
    id: str
    user_id: str
    name: str
    client_name: Optional[str] = None
    status: JobStatus
    property_address: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(use_enum_values=True, from_attributes=True)


# Subcontractor Schemas
class SubcontractorFields(BaseModel):
    contact_name: Optional[str] = Field(None, max_length=200)
    email: Optional[str] = Field(None, max_length=120)
    phone: Optional[str] = Field(None, max_length=50)
    primary_trade: Optional[str] = Field(None, max_length=100)
    license_number: Optional[str] = Field(None, max_length=100)
    license_expiry: Optional[date] = None
    insurance_company: Optional[str] = Field(None, max_length=200)
    insurance_expiry: Optional[date] = None
    insurance_amount: Optional[float] = Field(None, ge=0)
    workers_comp_policy: Optional[str] = Field(None, max_length=100)
    workers_comp_expiry: Optional[date] = None
    notes: Optional[str] = None

    @field_validator('contact_name', 'primary_trade', 'insurance_company', 'notes')
    @classmethod
    def sanitize_text_fields(cls, v):
        return sanitize_text(v)


class SubcontractorCreate(SubcontractorFields):
    user_id: str = Field(..., min_length=1)
    company_name: str = Field(..., min_length=1, max_length=200)
    license_verified: bool = False
    coi_on_file: bool = False
    w9_on_file: bool = False
    rating: Optional[float] = Field(None, ge=0, le=5)
    projects_completed: int = Field(default=0, ge=0)
    is_active: bool = True

    @field_validator('company_name')
    @classmethod
    def validate_company_name(cls, v):
        return Validator.validate_string_length(v, 'company_name', 1, 200)


class SubcontractorUpdate(SubcontractorFields, UpdateSchema):
    id: str = Field(..., min_length=1)
    company_name: Optional[str] = Field(None, min_length=1, max_length=200)
    license_verified: Optional[bool] = None
    coi_on_file: Optional[bool] = None
    w9_on_file: Optional[bool] = None
    rating: Optional[float] = Field(None, ge=0, le=5)
    projects_completed: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None

    @field_validator('company_name', 'license_verified', 'coi_on_file', 'w9_on_file',
                     'projects_completed', 'is_active')
    @classmethod
    def validate_not_null(cls, v, info):
        return reject_null(v, info.field_name)


class SubcontractorResponse(SubcontractorFields):
    id: str
    user_id: str
    company_name: str
    license_verified: bool
    coi_on_file: bool
    w9_on_file: bool
    rating: Optional[float] = None
    projects_completed: int = 0
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


# Bid Package Schemas
class BidPackageFields(BaseModel):
    package_number: Optional[str] = Field(None, max_length=50)
    csi_division: Optional[str] = Field(None, max_length=50)
    description: Optional[str] = None
    scope_of_work: Optional[str] = None
    inclusions: Optional[str] = None
    exclusions: Optional[str] = None
    bid_due_date: Optional[date] = None
    work_start_date: Optional[date] = None
    work_end_date: Optional[date] = None
    budget_estimate: Optional[float] = Field(None, ge=0)
    attachments: Optional[List[str]] = None
    notes: Optional[str] = None

    @field_validator('description', 'scope_of_work', 'inclusions', 'exclusions', 'notes')
    @classmethod
    def sanitize_text_fields(cls, v):
        return sanitize_text(v)


class BidPackageCreate(BidPackageFields):
    user_id: str = Field(..., min_length=1)
    job_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=200)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        return Validator.validate_string_length(v, 'name', 1, 200)


AWARD_FIELDS = ('awarded_to', 'awarded_amount', 'awarded_at')


class BidPackageUpdate(BidPackageFields, UpdateSchema):
    id: str = Field(..., min_length=1)
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    status: Optional[BidPackageStatus] = None
    awarded_to: Optional[str] = None
    awarded_amount: Optional[float] = Field(None, ge=0)
    awarded_at: Optional[datetime] = None

    @field_validator('name', 'status')
    @classmethod
    def validate_not_null(cls, v, info):
        return reject_null(v, info.field_name)

    @model_validator(mode='after')
    def validate_award_fields(self):
        sent = [name for name in AWARD_FIELDS if name in self.model_fields_set]
        if not sent:
            return self
        if len(sent) != len(AWARD_FIELDS):
            raise ValueError('awarded_to, awarded_amount, and awarded_at must be updated together')
        values = [getattr(self, name) for name in AWARD_FIELDS]
        if any(v is None for v in values) and any(v is not None for v in values):
            raise ValueError('awarded_to, awarded_amount, and awarded_at must all be set or all be null')
        return self

    model_config = ConfigDict(use_enum_values=True)


class BidPackageResponse(BidPackageFields):
    id: str
    user_id: str
    job_id: str
    name: str
    status: BidPackageStatus
    awarded_to: Optional[str] = None
    awarded_amount: Optional[float] = None
    awarded_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(use_enum_values=True, from_attributes=True)


# Invite Schemas
class InviteCreate(BaseModel):
    subcontractor_ids: List[str] = Field(..., min_length=1)
    invited_via: str = Field(default='email', min_length=1, max_length=50)


class InviteResponse(BaseModel):
    id: str
    bid_package_id: str
    subcontractor_id: str
    status: InviteStatus
    invited_via: Optional[str] = None
    invited_at: Optional[datetime] = None
    responded_at: Optional[datetime] = None

    model_config = ConfigDict(use_enum_values=True, from_attributes=True)


# Bid Schemas
class Alternate(BaseModel):
    description: str = Field(..., min_length=1, max_length=500)
    amount: float
    type: AlternateType = Field(default=AlternateType.ADD, validate_default=True)

    model_config = ConfigDict(use_enum_values=True)


class BidFields(BaseModel):
    labor_cost: Optional[float] = Field(None, ge=0)
    material_cost: Optional[float] = Field(None, ge=0)
    equipment_cost: Optional[float] = Field(None, ge=0)
    overhead_profit: Optional[float] = Field(None, ge=0)
    alternates: Optional[List[Alternate]] = None
    assumptions: Optional[str] = None
    clarifications: Optional[str] = None
    exclusions: Optional[str] = None
    proposed_start: Optional[date] = None
    proposed_duration: Optional[int] = Field(None, ge=0)
    lead_time: Optional[str] = Field(None, max_length=100)
    attachments: Optional[List[str]] = None

    @field_validator('assumptions', 'clarifications', 'exclusions')
    @classmethod
    def sanitize_text_fields(cls, v):
        return sanitize_text(v)


class BidCreate(BidFields):
    subcontractor_id: str = Field(..., min_length=1)
    base_bid: float = Field(..., ge=0)


class BidUpdate(UpdateSchema):
    bid_id: str = Field(..., min_length=1)
    score: Optional[float] = Field(None, ge=0, le=100)
    status: Optional[BidStatus] = None
    evaluator_notes: Optional[str] = None

    @field_validator('status')
    @classmethod
    def validate_status(cls, v):
        return reject_null(v, 'status')

    @field_validator('evaluator_notes')
    @classmethod
    def sanitize_notes(cls, v):
        return sanitize_text(v)

    model_config = ConfigDict(use_enum_values=True)


class BidResponse(BidFields):
    id: str
    bid_package_id: str
    subcontractor_id: str
    base_bid: float
    status: BidStatus
    compliance_verified: bool
    score: Optional[float] = None
    evaluator_notes: Optional[str] = None
    submitted_at: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None

    model_config = ConfigDict(use_enum_values=True, from_attributes=True)


# RFI Schemas
class RFICreate(BaseModel):
    question: str = Field(..., min_length=1)
    subcontractor_id: Optional[str] = None

    @field_validator('question')
    @classmethod
    def sanitize_question(cls, v):
        return sanitize_text(v)


class RFIResponse(BaseModel):
    id: str
    bid_package_id: str
    subcontractor_id: Optional[str] = None
    question: str
    answer: Optional[str] = None
    status: RFIStatus
    created_at: Optional[datetime] = None
    answered_at: Optional[datetime] = None

    model_config = ConfigDict(use_enum_values=True, from_attributes=True)
