# fuzzy_search/errors.py
# Responsibility: Exception hierarchy shared by the fuzzy core, the store adapters and the API layer.


class FuzzySearchError(Exception):
    """Base class for all errors raised by this package."""


class InvalidSearchInput(FuzzySearchError, ValueError):
    """
    Raised when a search request cannot be executed as given.
    e.g. an empty field list for a ranked search, or page < 1.
    """


class StoreError(FuzzySearchError):
    """
    Raised by a DocumentStore adapter when the backing store fails.
    The original driver exception is chained as __cause__.
    """


class UnsupportedPredicate(StoreError):
    """Raised when a predicate uses an operator the adapter cannot evaluate."""
