"""
Error taxonomy
--------------
Missing engine inputs are never errors: the nutrition engine returns None
for the affected fields. Everything below is raised.
"""


class ValidationError(ValueError):
    """Plan parameters or slot references out of bounds. Raised before any mutation."""


class ConsistencyViolation(AssertionError):
    """Weekly and flat schedule projections disagree after a rebuild."""


class PersistenceFailure(RuntimeError):
    """A write to the plan or profile store failed and was rolled back."""


class PlanNotFound(LookupError):
    pass
