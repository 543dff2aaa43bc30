class VaultError(Exception):
    """Base class for every error raised by the vault app"""


class ValidationFailedError(VaultError):
    """A vault attribute was declared with options that do not make sense"""


class UnrecognizedTypeError(VaultError):
    """The `type` option of a vault attribute has no known caster"""


class VaultArgumentError(VaultError, ValueError):
    """A call was made with arguments the attribute cannot support"""


class EncryptionKeyError(VaultError):
    """The key for an encrypted copy could not be resolved for a record"""


class TransitServiceError(VaultError):
    def __init__(self, message, status_code=None, errors=None):
        super().__init__(message)
        self.status_code = status_code
        self.errors = errors or []


class InvalidCiphertextError(TransitServiceError):
    """Ciphertext is malformed or was produced under another key"""
