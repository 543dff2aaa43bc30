"""
Local stand-in for the transit service, used in development and tests

Keys never leave the process: each `{path}/{key}` pair gets its own key
derived from VAULT_LOCAL_SECRET_KEY. Randomized encryption uses Fernet,
convergent encryption uses AES-SIV so equal plaintexts give equal ciphertexts.
"""
import base64
import binascii
import logging
from functools import lru_cache

from cryptography.exceptions import InvalidTag
from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESSIV
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from vault.conf import get_local_secret_key
from vault.exceptions import InvalidCiphertextError
from vault.transit.base import BaseTransitClient

logger = logging.getLogger(__name__)

CIPHERTEXT_PREFIX = 'vault:local:'


@lru_cache(maxsize=256)
def _derive_key(secret: str, info: str, length: int) -> bytes:
    hkdf = HKDF(algorithm=hashes.SHA256(), length=length, salt=None, info=info.encode())
    return hkdf.derive(secret.encode())


class LocalTransitClient(BaseTransitClient):
    def __init__(self, secret_key: str = None):
        self.secret_key = secret_key or get_local_secret_key()

    def get_fernet(self, path: str, key: str) -> Fernet:
        material = _derive_key(self.secret_key, f'fernet:{path}/{key}', 32)
        return Fernet(base64.urlsafe_b64encode(material))

    def get_siv(self, path: str, key: str) -> AESSIV:
        return AESSIV(_derive_key(self.secret_key, f'siv:{path}/{key}', 64))

    def _encrypt(self, path, key, plaintext, convergent):
        data = plaintext.encode('utf-8')
        if convergent:
            token = base64.urlsafe_b64encode(self.get_siv(path, key).encrypt(data, None))
        else:
            token = self.get_fernet(path, key).encrypt(data)
        return CIPHERTEXT_PREFIX + token.decode('ascii')

    def _decrypt(self, path, key, ciphertext, convergent):
        if not ciphertext.startswith(CIPHERTEXT_PREFIX):
            raise InvalidCiphertextError(f"Malformed ciphertext for {path}/{key}")

        token = ciphertext[len(CIPHERTEXT_PREFIX):].encode('ascii')
        try:
            if convergent:
                data = self.get_siv(path, key).decrypt(base64.urlsafe_b64decode(token), None)
            else:
                data = self.get_fernet(path, key).decrypt(token)
        except (InvalidTag, InvalidToken, binascii.Error, ValueError) as e:
            raise InvalidCiphertextError(
                f"Ciphertext cannot be decrypted with {path}/{key}"
            ) from e
        return data.decode('utf-8')
