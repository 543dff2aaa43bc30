import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

logger = logging.getLogger(__name__)


def is_blank(value) -> bool:
    return value is None or value == ''


class BaseTransitClient(ABC):
    """Contract of the transit encryption service

    Blank values (None or '') are never sent to the service, they come back
    unchanged. Batch methods keep positions: item i of the result belongs to
    item i of the input.
    """

    def encrypt(
        self, path: str, key: str, plaintext: Optional[str], convergent: bool = False
    ) -> Optional[str]:
        if is_blank(plaintext):
            return plaintext
        logger.debug(f"Encrypting with {path}/{key} (convergent={convergent})")
        return self._encrypt(path, key, plaintext, convergent)

    def decrypt(
        self, path: str, key: str, ciphertext: Optional[str], convergent: bool = False
    ) -> Optional[str]:
        if is_blank(ciphertext):
            return ciphertext
        logger.debug(f"Decrypting with {path}/{key} (convergent={convergent})")
        return self._decrypt(path, key, ciphertext, convergent)

    def batch_encrypt(
        self,
        path: str,
        key: str,
        plaintexts: Sequence[Optional[str]],
        convergent: bool = False,
    ) -> List[Optional[str]]:
        return self._batch(self._batch_encrypt, path, key, plaintexts, convergent)

    def batch_decrypt(
        self,
        path: str,
        key: str,
        ciphertexts: Sequence[Optional[str]],
        convergent: bool = False,
    ) -> List[Optional[str]]:
        return self._batch(self._batch_decrypt, path, key, ciphertexts, convergent)

    def _batch(self, operation, path, key, values, convergent):
        results = list(values)
        positions = [index for index, value in enumerate(values) if not is_blank(value)]
        if not positions:
            return results

        logger.debug(
            f"Batch {operation.__name__.strip('_')} of {len(positions)} values "
            f"with {path}/{key}"
        )
        outputs = operation(path, key, [values[index] for index in positions], convergent)
        if len(outputs) != len(positions):
            raise ValueError(
                f"Transit service returned {len(outputs)} results for "
                f"{len(positions)} inputs"
            )

        for index, output in zip(positions, outputs):
            results[index] = output
        return results

    @abstractmethod
    def _encrypt(self, path: str, key: str, plaintext: str, convergent: bool) -> str:
        raise NotImplementedError

    @abstractmethod
    def _decrypt(self, path: str, key: str, ciphertext: str, convergent: bool) -> str:
        raise NotImplementedError

    def _batch_encrypt(
        self, path: str, key: str, plaintexts: List[str], convergent: bool
    ) -> List[str]:
        return [self._encrypt(path, key, value, convergent) for value in plaintexts]

    def _batch_decrypt(
        self, path: str, key: str, ciphertexts: List[str], convergent: bool
    ) -> List[str]:
        return [self._decrypt(path, key, value, convergent) for value in ciphertexts]
