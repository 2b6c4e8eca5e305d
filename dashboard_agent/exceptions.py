"""Custom exception classes for the dashboard agent."""


class DashboardAgentError(Exception):
    """Base exception for dashboard agent errors."""
    pass


class StoreError(DashboardAgentError):
    """Exception raised when the key-value store cannot be read or written."""
    pass


class CorruptStoreError(StoreError):
    """Exception raised when persisted data is malformed for the expected record type."""
    pass


class SemanticServiceError(DashboardAgentError):
    """Exception raised for semantic similarity service errors."""
    pass


class SemanticTimeoutError(SemanticServiceError):
    """Exception raised when the semantic similarity call does not answer in time."""
    pass


class AdapterError(DashboardAgentError):
    """Exception raised for adapter errors."""
    pass


class ReloadError(AdapterError):
    """Exception raised when an adapter fails to reload its backing data."""
    pass


class TransformError(AdapterError):
    """Exception raised when an adapter cannot derive its snapshot data."""
    pass


class SubscriberError(DashboardAgentError):
    """Exception raised by (or on behalf of) a failing subscriber callback."""
    pass


class AdapterNotFoundError(DashboardAgentError):
    """Exception raised when an adapter is not registered."""
    pass
