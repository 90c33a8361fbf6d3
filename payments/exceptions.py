class PaymentError(Exception):
    """Base class of payment failures; carries the HTTP status a view should answer with."""
    status_code = 500

    def __init__(self, message: str = "", *, reference: str = ""):
        self.reference = reference
        super().__init__(message or self.__class__.__doc__ or self.__class__.__name__)


class ValidationError(PaymentError):
    """Malformed request."""
    status_code = 400


class UnknownProvider(PaymentError):
    """The payment provider could not be determined."""
    status_code = 400


class ProviderUnreachable(PaymentError):
    """The payment provider could not be reached; retry later."""
    status_code = 502


class ProviderConfigMissing(PaymentError):
    """The payment provider is not configured on this server."""
    status_code = 500


class InvalidSignature(PaymentError):
    """Webhook signature is missing or does not match."""
    status_code = 401
