from typing import Optional

class AskEdithError(Exception):
    pass

class WizardValidationError(AskEdithError):
    """A step answer failed local validation. Always recoverable by correcting the input."""
    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field; self.message = message

class TransportError(AskEdithError):
    pass

class TransportAuthError(TransportError):
    """Missing or expired credential; the user must re-authorize."""

class TransportSendError(TransportError):
    pass

class MailboxError(TransportSendError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

class MailboxAuthError(TransportAuthError):
    pass
