from .approval_request import ApprovalRequest

__all__ = ["ApprovalRequest"]
