"""
Typed Exception Hierarchy for the Planning Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers (HTTP handlers, UI event handlers) surface these errors to a human
actor who corrects the input and retries.  They must be able to tell the
categories apart without parsing message strings:

    try:
        workflow.request_revision(...)
    except ValidationError as e:
        show_field_errors(e.field_errors)       # structured data
    except DuplicatePendingRevisionError as e:
        show_banner(e.code, e.field_to_change)  # machine-readable code

Every class has a CODE class attribute and stores its context as attributes.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    PlanningKernelError (base)
    |
    +-- ValidationError
    |
    +-- NotFoundError
    |   +-- PlanNotFoundError
    |   +-- RevisionNotFoundError
    |
    +-- InvalidStateError
    |   +-- InvalidPlanTransitionError
    |   |   +-- PlanNotDraftError  (also a ConflictError)
    |   +-- PlanNotActiveError
    |   +-- RevisionAlreadyDecidedError
    |
    +-- ConflictError
    |   +-- ActivePlanConflictError
    |   +-- DuplicatePendingRevisionError
    |   +-- OptimisticLockError
    |
    +-- ImmutabilityError
    |   +-- ImmutabilityViolationError
    |
    +-- AuditError
        +-- AuditChainBrokenError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category      | Code                        | When Raised
--------------|-----------------------------|------------------------------------------
Validation    | VALIDATION_FAILED           | One or more fields out of range
--------------|-----------------------------|------------------------------------------
Not found     | PLAN_NOT_FOUND              | Plan id unknown or not visible to caller
              | REVISION_NOT_FOUND          | Revision id unknown or not visible
--------------|-----------------------------|------------------------------------------
State         | INVALID_PLAN_TRANSITION     | Plan status change not allowed
              | PLAN_NOT_DRAFT              | Activating/archiving a non-draft plan
              | PLAN_NOT_ACTIVE             | Revising a plan that is not active
              | REVISION_ALREADY_DECIDED    | Deciding a non-pending revision
--------------|-----------------------------|------------------------------------------
Conflict      | ACTIVE_PLAN_CONFLICT        | Second active plan for owner/year
              | DUPLICATE_PENDING_REVISION  | Pending revision exists for plan/field
              | OPTIMISTIC_LOCK_CONFLICT    | Concurrent modification detected
--------------|-----------------------------|------------------------------------------
Immutability  | IMMUTABILITY_VIOLATION      | Mutating an audit entry / decided revision
--------------|-----------------------------|------------------------------------------
Audit         | AUDIT_CHAIN_BROKEN          | Hash chain validation failed

ConflictError subclasses that signal a lost compare-and-swap
(OptimisticLockError, ActivePlanConflictError) are retryable; the workflow
layer retries them.  Everything else is surfaced to the caller as-is.
"""

from typing import Any


class PlanningKernelError(Exception):
    """
    Base exception for all planning kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "PLANNING_KERNEL_ERROR"


# Validation


class ValidationError(PlanningKernelError):
    """
    One or more input fields are outside their domain range.

    Reports every offending field, never only the first.  Each item in
    ``field_errors`` is a dict with ``field``, ``value`` and ``message``.
    """

    code: str = "VALIDATION_FAILED"

    def __init__(self, field_errors: list[dict[str, Any]]):
        self.field_errors = field_errors
        fields = ", ".join(str(e["field"]) for e in field_errors)
        super().__init__(
            f"Validation failed for {len(field_errors)} field(s): {fields}"
        )

    @property
    def fields(self) -> tuple[str, ...]:
        return tuple(e["field"] for e in self.field_errors)


# Not found


class NotFoundError(PlanningKernelError):
    """Referenced entity does not exist or is not visible to the caller."""

    code: str = "NOT_FOUND"


class PlanNotFoundError(NotFoundError):
    """Business plan with given ID was not found."""

    code: str = "PLAN_NOT_FOUND"

    def __init__(self, plan_id: str):
        self.plan_id = plan_id
        super().__init__(f"Business plan not found: {plan_id}")


class RevisionNotFoundError(NotFoundError):
    """Plan revision with given ID was not found."""

    code: str = "REVISION_NOT_FOUND"

    def __init__(self, revision_id: str):
        self.revision_id = revision_id
        super().__init__(f"Plan revision not found: {revision_id}")


# State


class InvalidStateError(PlanningKernelError):
    """Operation attempted against an entity not in the required state."""

    code: str = "INVALID_STATE"


class InvalidPlanTransitionError(InvalidStateError):
    """Plan status transition is not allowed."""

    code: str = "INVALID_PLAN_TRANSITION"

    def __init__(self, plan_id: str, from_status: str, to_status: str):
        self.plan_id = plan_id
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Cannot transition plan {plan_id} from '{from_status}' to '{to_status}'"
        )


# Conflict


class ConflictError(PlanningKernelError):
    """An invariant-guarding compare-and-swap lost a race."""

    code: str = "CONFLICT"


class PlanNotDraftError(InvalidPlanTransitionError, ConflictError):
    """Plan must be in draft state for this operation."""

    code: str = "PLAN_NOT_DRAFT"


class PlanNotActiveError(InvalidStateError):
    """Plan must be active to receive revisions."""

    code: str = "PLAN_NOT_ACTIVE"

    def __init__(self, plan_id: str, status: str):
        self.plan_id = plan_id
        self.status = status
        super().__init__(f"Plan {plan_id} is '{status}', not 'active'")


class RevisionAlreadyDecidedError(InvalidStateError):
    """Revision is no longer pending."""

    code: str = "REVISION_ALREADY_DECIDED"

    def __init__(self, revision_id: str, status: str):
        self.revision_id = revision_id
        self.status = status
        super().__init__(f"Revision {revision_id} is already {status}")


class ActivePlanConflictError(ConflictError):
    """Another plan became active for the same owner and year."""

    code: str = "ACTIVE_PLAN_CONFLICT"

    def __init__(self, owner_id: str, plan_year: int):
        self.owner_id = owner_id
        self.plan_year = plan_year
        super().__init__(
            f"Concurrent activation detected for owner {owner_id}, year {plan_year}"
        )


class DuplicatePendingRevisionError(ConflictError):
    """A pending revision already targets this plan field."""

    code: str = "DUPLICATE_PENDING_REVISION"

    def __init__(self, plan_id: str, field_to_change: str, existing_revision_id: str):
        self.plan_id = plan_id
        self.field_to_change = field_to_change
        self.existing_revision_id = existing_revision_id
        super().__init__(
            f"Plan {plan_id} already has pending revision "
            f"{existing_revision_id} for '{field_to_change}'"
        )


class OptimisticLockError(ConflictError):
    """Concurrent modification detected via version mismatch."""

    code: str = "OPTIMISTIC_LOCK_CONFLICT"

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(
            f"{entity_type} {entity_id} was modified concurrently"
        )


# Immutability


class ImmutabilityError(PlanningKernelError):
    """Base exception for immutability violations."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """Attempted to modify or delete an immutable record."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Cannot modify {entity_type} {entity_id}: {reason}"
        )


# Audit


class AuditError(PlanningKernelError):
    """Base exception for audit trail errors."""

    code: str = "AUDIT_ERROR"


class AuditChainBrokenError(AuditError):
    """Audit hash chain validation failed."""

    code: str = "AUDIT_CHAIN_BROKEN"

    def __init__(self, audit_entry_id: str, expected_hash: str, actual_hash: str):
        self.audit_entry_id = audit_entry_id
        self.expected_hash = expected_hash
        self.actual_hash = actual_hash
        super().__init__(
            f"Audit chain broken at entry {audit_entry_id}: "
            f"expected {expected_hash}, got {actual_hash}"
        )
