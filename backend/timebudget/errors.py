from __future__ import annotations


class TimeBudgetError(Exception):
    """Base class for domain errors raised by the budgeting core."""


class InvalidBudgetError(TimeBudgetError, ValueError):
    """A budget definition violates its own allocation rules."""


class UnknownCategoryError(TimeBudgetError, KeyError):
    """A category or subcategory is not part of the active budget."""

    def __init__(self, category: str, subcategory: str | None = None) -> None:
        self.category = category
        self.subcategory = subcategory
        if subcategory is None:
            message = f"Unknown category '{category}'"
        else:
            message = f"Unknown subcategory '{subcategory}' in category '{category}'"
        super().__init__(message)

    def __str__(self) -> str:
        return self.args[0]


class InvalidSplitError(TimeBudgetError, ValueError):
    """A retroactive split sequence cannot be applied."""


class InvalidReallocationError(TimeBudgetError, ValueError):
    """A reallocation refers to locations that do not exist."""


class InvalidPlanError(TimeBudgetError, ValueError):
    """Planned minutes cannot be spread over the given weekdays."""
