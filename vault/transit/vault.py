"""
HashiCorp Vault transit secrets engine over its HTTP API
"""
import base64
import logging
from typing import Dict, List, Optional

import requests

from vault.conf import get_vault_setting
from vault.exceptions import InvalidCiphertextError, TransitServiceError
from vault.transit.base import BaseTransitClient

logger = logging.getLogger(__name__)


def _b64encode(value: str) -> str:
    return base64.b64encode(value.encode('utf-8')).decode('ascii')


def _b64decode(value: str) -> str:
    return base64.b64decode(value).decode('utf-8')


class VaultTransitClient(BaseTransitClient):
    def __init__(
        self,
        address: Optional[str] = None,
        token: Optional[str] = None,
        namespace: Optional[str] = None,
        timeout: Optional[int] = None,
        convergent_context: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ):
        self.address = (address or get_vault_setting('VAULT_ADDRESS')).rstrip('/')
        self.token = token if token is not None else get_vault_setting('VAULT_TOKEN')
        self.namespace = (
            namespace if namespace is not None else get_vault_setting('VAULT_NAMESPACE')
        )
        self.timeout = timeout or get_vault_setting('VAULT_TIMEOUT')
        self.convergent_context = (
            convergent_context or get_vault_setting('VAULT_CONVERGENT_CONTEXT')
        )
        self.session = session or requests.Session()

    def _headers(self) -> Dict[str, str]:
        headers = {'X-Vault-Token': self.token}
        if self.namespace:
            headers['X-Vault-Namespace'] = self.namespace
        return headers

    def _post(self, path: str, operation: str, key: str, payload: Dict) -> Dict:
        url = f"{self.address}/v1/{path.strip('/')}/{operation}/{key}"
        try:
            response = self.session.post(
                url, json=payload, headers=self._headers(), timeout=self.timeout
            )
        except requests.RequestException as e:
            raise TransitServiceError(f"Vault {operation} request failed: {e}") from e

        if response.status_code >= 400:
            try:
                errors = response.json().get('errors', [])
            except ValueError:
                errors = [response.text]

            message = f"Vault {operation} with {path}/{key} failed: {errors}"
            # transit answers 400 for ciphertext it cannot decrypt
            if operation == 'decrypt' and response.status_code == 400:
                raise InvalidCiphertextError(message, response.status_code, errors)
            raise TransitServiceError(message, response.status_code, errors)

        return response.json().get('data', {})

    def _with_context(self, item: Dict, convergent: bool) -> Dict:
        if convergent:
            item['context'] = _b64encode(self.convergent_context)
        return item

    def _encrypt(self, path, key, plaintext, convergent):
        payload = self._with_context({'plaintext': _b64encode(plaintext)}, convergent)
        return self._post(path, 'encrypt', key, payload)['ciphertext']

    def _decrypt(self, path, key, ciphertext, convergent):
        payload = self._with_context({'ciphertext': ciphertext}, convergent)
        return _b64decode(self._post(path, 'decrypt', key, payload)['plaintext'])

    def _batch_encrypt(self, path, key, plaintexts, convergent) -> List[str]:
        batch_input = [
            self._with_context({'plaintext': _b64encode(plaintext)}, convergent)
            for plaintext in plaintexts
        ]
        results = self._batch_results(path, 'encrypt', key, batch_input)
        return [result['ciphertext'] for result in results]

    def _batch_decrypt(self, path, key, ciphertexts, convergent) -> List[str]:
        batch_input = [
            self._with_context({'ciphertext': ciphertext}, convergent)
            for ciphertext in ciphertexts
        ]
        results = self._batch_results(path, 'decrypt', key, batch_input)
        return [_b64decode(result['plaintext']) for result in results]

    def _batch_results(self, path, operation, key, batch_input) -> List[Dict]:
        data = self._post(path, operation, key, {'batch_input': batch_input})
        results = data.get('batch_results', [])

        errors = [
            f"#{index}: {result['error']}"
            for index, result in enumerate(results)
            if result.get('error')
        ]
        if errors:
            error_class = (
                InvalidCiphertextError if operation == 'decrypt' else TransitServiceError
            )
            raise error_class(
                f"Vault batch {operation} with {path}/{key} failed: {errors}",
                errors=errors,
            )
        return results
