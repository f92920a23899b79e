
class ContractDeskError(Exception):
    """Base class for domain errors raised by the core modules."""


class DocumentNotFound(ContractDeskError):
    pass


class InvalidSigningLink(ContractDeskError):
    """Token does not belong to the signer whose turn it is."""

    def __init__(self, message: str = "Invalid or expired signing link"):
        super().__init__(message)


class InvalidTransition(ContractDeskError):
    pass


class RevisionConflict(ContractDeskError):
    """The signer list changed between read and write; the caller may retry."""

    def __init__(self, document_id, expected: int):
        super().__init__(f"signer list for {document_id} changed (expected revision {expected})")
        self.document_id = document_id
        self.expected = expected


class MeasurementUnavailable(ContractDeskError):
    pass
