"""Salesforce integration errors."""


class SalesforceError(RuntimeError):
    """Base class for Salesforce integration failures."""


class NotAuthenticatedError(SalesforceError):
    """Raised when a data call is made before a successful authenticate()."""


class SalesforceTransportError(SalesforceError):
    """Raised when a request never produced an HTTP response (DNS, connect, read)."""


class SalesforceApiError(SalesforceError):
    """Raised when Salesforce answered 2xx with a body we cannot interpret."""
