"""
Vault settings with their defaults

Every value is read from django.conf.settings at call time so that
override_settings() in tests is honoured.
"""
from django.conf import settings

DEFAULTS = {
    'VAULT_ENABLED': False,
    'VAULT_ADDRESS': 'http://127.0.0.1:8200',
    'VAULT_TOKEN': '',
    'VAULT_NAMESPACE': '',
    'VAULT_APPLICATION': 'vaultmodels',
    'VAULT_CONVERGENT_CONTEXT': 'vaultmodels',
    'VAULT_TIMEOUT': 30,
    'VAULT_BATCH_SIZE': 250,
    'VAULT_LOCAL_SECRET_KEY': None,
    'VAULT_TRANSIT_CLIENT_CLASS': None,
}


def get_vault_setting(name: str):
    return getattr(settings, name, DEFAULTS[name])


def get_local_secret_key() -> str:
    # fall back to SECRET_KEY so a dev checkout works without extra config
    return get_vault_setting('VAULT_LOCAL_SECRET_KEY') or settings.SECRET_KEY
