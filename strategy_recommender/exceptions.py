"""
Custom exceptions for the strategy recommender.

The engine itself does not raise for missing market data; these are raised
by the data collaborators and by strict contract parsing.
"""

from typing import Any


class RecommenderError(Exception):
    """Base exception for all recommender errors."""

    pass


class InvalidContractError(RecommenderError):
    """Exception raised when an option chain row is missing a required numeric field."""

    def __init__(self, field: str, value: Any = None, symbol: str = "") -> None:
        self.field = field
        self.value = value
        self.symbol = symbol
        message = f"Invalid contract field '{field}': {value!r}"
        if symbol:
            message += f" (contract {symbol})"
        super().__init__(message)


class InvalidParameterError(RecommenderError):
    """Exception raised when a configuration key or value is invalid."""

    def __init__(self, parameter: str, reason: str = "") -> None:
        self.parameter = parameter
        message = f"Invalid parameter: {parameter}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class DataFetchError(RecommenderError):
    """Exception raised when market data cannot be retrieved."""

    pass


class QuoteUnavailableError(DataFetchError):
    """Exception raised when no quote is available for a ticker."""

    def __init__(self, symbol: str, details: str = "") -> None:
        self.symbol = symbol
        message = f"No quote for {symbol}"
        if details:
            message += f": {details}"
        super().__init__(message)


class ChainUnavailableError(DataFetchError):
    """Exception raised when no option chain is available for a ticker/expiration."""

    def __init__(self, symbol: str, expiration: str = "", details: str = "") -> None:
        self.symbol = symbol
        self.expiration = expiration
        message = f"No chain for {symbol}"
        if expiration:
            message += f" expiring {expiration}"
        if details:
            message += f": {details}"
        super().__init__(message)
