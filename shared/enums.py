import enum


class JobStatus(str, enum.Enum):
    """Job status values used throughout the application.

    Used in Job model to track job lifecycle stages.
    """
    ACTIVE = "active"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    PLANNED = "planned"


class BidPackageStatus(str, enum.Enum):
    """Bid package lifecycle stages.

    Packages move draft -> open -> reviewing -> awarded. There is no
    closed or cancelled state and awarded is terminal.
    """
    DRAFT = "draft"
    OPEN = "open"
    REVIEWING = "reviewing"
    AWARDED = "awarded"


class InviteStatus(str, enum.Enum):
    """Status of a subcontractor's invitation to bid."""
    PENDING = "pending"
    SUBMITTED = "submitted"


class BidStatus(str, enum.Enum):
    """Status of a subcontractor bid within a package."""
    SUBMITTED = "submitted"
    SELECTED = "selected"
    REJECTED = "rejected"


class RFIStatus(str, enum.Enum):
    """Request-for-information status on a bid package."""
    OPEN = "open"
    ANSWERED = "answered"


class ComplianceStatus(str, enum.Enum):
    """Per-document compliance classification for an expiry date."""
    VALID = "valid"
    EXPIRING = "expiring"
    EXPIRED = "expired"
    MISSING = "missing"


class AlternateType(str, enum.Enum):
    """Whether a bid alternate adds to or deducts from the base bid."""
    ADD = "add"
    DEDUCT = "deduct"
