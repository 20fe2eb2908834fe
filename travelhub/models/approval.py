"""
Listing approval state
Properties, vehicles and tours go live only after an admin approves them.
"""

from extensions import db
from enum import Enum


class ApprovalStatus(str, Enum):
    """Approval status enum"""
    PENDING = 'pending'
    APPROVED = 'approved'
    REJECTED = 'rejected'
    REQUIRES_CHANGES = 'requires_changes'


class ApprovalMixin:
    """Moderation columns shared by every listing kind"""

    approval_status = db.Column(db.Enum(ApprovalStatus), default=ApprovalStatus.PENDING, nullable=False,
                                index=True)
    rejection_reason = db.Column(db.Text)
    # admin user id; no foreign key so the owner relationship stays unambiguous
    reviewed_by = db.Column(db.Integer)
    reviewed_at = db.Column(db.DateTime)

    @property
    def is_approved(self):
        return self.approval_status == ApprovalStatus.APPROVED

    def resubmit(self):
        """Owner edits after a rejection put the listing back in the queue"""
        if self.approval_status in (ApprovalStatus.REJECTED, ApprovalStatus.REQUIRES_CHANGES):
            self.approval_status = ApprovalStatus.PENDING

    def approval_dict(self):
        return {
            'approval_status': self.approval_status.value if self.approval_status else None,
            'rejection_reason': self.rejection_reason,
            'reviewed_at': self.reviewed_at.isoformat() if self.reviewed_at else None,
        }
