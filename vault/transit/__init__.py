import logging

from django.core.signals import setting_changed
from django.dispatch import receiver

from utils.utils import get_class_from_path
from vault.conf import get_vault_setting

from .base import BaseTransitClient
from .local import LocalTransitClient
from .vault import VaultTransitClient

logger = logging.getLogger(__name__)

_client = None


def get_transit_client() -> BaseTransitClient:
    """Process-wide transit client chosen from settings"""
    global _client
    if _client is None:
        client_path = get_vault_setting('VAULT_TRANSIT_CLIENT_CLASS')
        if client_path:
            client_class = get_class_from_path(client_path)
        elif get_vault_setting('VAULT_ENABLED'):
            client_class = VaultTransitClient
        else:
            client_class = LocalTransitClient
        logger.info(f"Using {client_class.__name__} for transit encryption")
        _client = client_class()
    return _client


def reset_transit_client() -> None:
    global _client
    _client = None


@receiver(setting_changed)
def reset_transit_client_on_setting_change(setting, **kwargs):
    if setting.startswith('VAULT_') or setting == 'SECRET_KEY':
        reset_transit_client()


__all__ = [
    'BaseTransitClient',
    'LocalTransitClient',
    'VaultTransitClient',
    'get_transit_client',
    'reset_transit_client',
]
