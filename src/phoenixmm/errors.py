"""Exceptions raised by the quoting engine and its collaborators."""


class StrategyError(Exception):
    """Base exception for strategy errors."""
    pass


class ConfigurationError(StrategyError):
    """Raised when strategy parameters or runner configuration are invalid."""
    pass


class InvalidStrategyParams(ConfigurationError):
    """Raised when a required strategy parameter is missing at initialization."""
    pass


class EdgeMustBeNonZero(ConfigurationError):
    """Raised when a strategy is initialized with a zero quote edge."""
    pass


class StrategyNotInitialized(ConfigurationError):
    """Raised when quotes are updated for a (trader, market) with no state."""
    pass


class StrategyAlreadyInitialized(ConfigurationError):
    pass


class ProtocolMismatchError(StrategyError):
    """Raised when the referenced market is not a recognized venue instance."""
    pass


class InvalidVenueProgram(ProtocolMismatchError):
    pass


class FailedToDeserializeMarket(ProtocolMismatchError):
    pass


class ArithmeticGuardError(StrategyError):
    """Raised when a computed price or divisor would make size math undefined."""
    pass


class TransportError(StrategyError):
    """Raised when a request to an external service fails."""
    pass


class PriceFeedError(TransportError):
    pass


class OrderGatewayError(TransportError):
    pass


class OrderRejected(OrderGatewayError):
    """Raised when the venue refuses an order (e.g. a crossing post-only order)."""
    pass
