"""Custom exception classes for chunking, upload and verification."""


class ChunkedUploadError(Exception):
    """
    Base exception class for all chunked-upload errors.
    """
    pass


class InvalidChunkError(ChunkedUploadError):
    """
    Raised when a chunk is constructed with a payload larger than the chunk size.
    """
    pass


class TransientUploadError(ChunkedUploadError):
    """
    Raised when a single upload attempt fails (network, timeout, bad status).
    Contained by the upload queue and retried.
    """
    pass


class AddressMismatchError(TransientUploadError):
    """
    Raised when the store reports a different address than the one computed locally.
    """

    def __init__(self, expected: str, actual: str):
        super().__init__(f"Expected {expected} but got {actual}")
        self.expected = expected
        self.actual = actual


class ExhaustedRetryError(ChunkedUploadError):
    """
    Raised when every attempt to upload a chunk has failed.
    """

    def __init__(self, address: str, attempts: int, last_error: Exception = None, failed=None):
        super().__init__(f"Chunk {address} failed after {attempts} attempts: {last_error}")
        self.address = address
        self.attempts = attempts
        self.last_error = last_error
        self.failed = list(failed) if failed else [address]


class StreamReadError(ChunkedUploadError):
    """
    Raised when reading source bytes fails. Not retried.
    """
    pass


class VerificationMismatchError(ChunkedUploadError):
    """
    Raised when a remote chunk is missing or differs from the local copy.
    """

    def __init__(self, address: str, reason: str):
        super().__init__(f"{reason}: {address}")
        self.address = address
        self.reason = reason


class SerializationDeterminismViolation(ChunkedUploadError):
    """
    Raised when serializing an unchanged manifest yields a different root address.
    """
    pass
