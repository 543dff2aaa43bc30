"""
Base test classes for people app
"""
from django.test import TestCase, override_settings

from vault.transit import get_transit_client, reset_transit_client


@override_settings(VAULT_ENABLED=False, VAULT_TRANSIT_CLIENT_CLASS=None)
class BasePeopleTest(TestCase):
    """基礎測試類，使用本地 transit client"""

    def setUp(self):
        reset_transit_client()
        self.transit = get_transit_client()

    def tearDown(self):
        reset_transit_client()

    def create_person(self, **kwargs):
        """建立測試用 Person"""
        from people.models import Person

        kwargs.setdefault('name', 'Test Person')
        kwargs.setdefault('encryption_key', 'people_person_copies')
        return Person.objects.create(**kwargs)

    def decrypt_column(self, record, attribute, column=None, key=None):
        """直接解密資料庫中的密文欄位"""
        spec = record.get_vault_registry().get(attribute)
        record_from_db = type(record)._base_manager.get(pk=record.pk)
        ciphertext = getattr(record_from_db, column or spec.encrypted_column)
        plaintext = self.transit.decrypt(
            spec.path, key or spec.key, ciphertext, spec.convergent if key is None else False
        )
        return spec.decode(plaintext)
