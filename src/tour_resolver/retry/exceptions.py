"""
Retry engine exceptions.

The engine itself never raises for operation failures; RetryExhausted is
raised only when a caller asks for the data of a failed RetryResult.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tour_resolver.retry.metadata import RetryResult


class RetryExhausted(Exception):
    """
    Raised by RetryResult.unwrap() when every attempt failed.

    Attributes:
        result: The failed RetryResult, with attempts and classification
    """

    def __init__(self, result: "RetryResult") -> None:
        self.result = result
        categorized = result.categorized_error
        self.category = categorized.category if categorized else None
        super().__init__(
            f"{result.source_type} failed after {result.attempts} attempt(s): "
            f"{categorized.message if categorized else 'unknown error'}"
        )
