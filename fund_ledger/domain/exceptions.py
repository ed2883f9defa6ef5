"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class RepositoryFailure(DomainException):
    """Underlying query or store error, distinct from an empty result"""

    pass


class NotFound(DomainException):
    """Singleton or referenced record is missing"""

    def __init__(self, kind: str, record_id: object):
        super().__init__(f"{kind} {record_id} not found")
        self.kind = kind
        self.record_id = record_id


class InvalidState(DomainException):
    """Record state does not support the requested derivation or operation"""

    pass


class MemberNotEligibleError(DomainException):
    """Member is not eligible for a loan"""

    pass


class LoanAmountExceedsLimitError(DomainException):
    """Requested loan amount exceeds the member's maximum borrowable amount"""

    pass


class MemberHasActiveLoansError(DomainException):
    """Member has active loans that block the operation"""

    pass


class CannotCashOutActiveMemberError(DomainException):
    """Active members must be suspended or inactive before cashing out"""

    pass
