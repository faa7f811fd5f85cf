"""
Enums for domain models.
Enums provide type safety and clarity. Validation for categorical fields.
"""

import enum


class FinanceRecordType(str, enum.Enum):
    """Direction of a finance ledger entry."""

    INCOME = "income"
    EXPENSE = "expense"


class ChangeAction(str, enum.Enum):
    """Lifecycle action carried by a cascade change event."""

    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
