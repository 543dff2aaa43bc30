"""
Tests for encrypted copies and their encryption metadata
"""
from people.models import Person
from people.tests.base import BasePeopleTest
from vault.exceptions import EncryptionKeyError
from vault.metadata import EncryptionMetadataEntry, EncryptionMetadataStore


class EncryptedCopyTest(BasePeopleTest):
    """加密副本測試"""

    def test_copy_is_encrypted_with_record_key(self):
        """測試副本使用記錄指定的金鑰加密"""
        person = self.create_person(first_name='Jane', encryption_key='people_jane')

        self.assertEqual(
            self.decrypt_column(
                person, 'first_name', column='first_name_custom_encrypted', key='people_jane'
            ),
            'Jane',
        )
        self.assertEqual(self.decrypt_column(person, 'first_name'), 'Jane')

    def test_metadata_entry_is_created(self):
        """測試建立加密 metadata"""
        person = self.create_person(first_name='Jane', encryption_key='people_jane')

        loaded = Person.objects.get(pk=person.pk)

        self.assertEqual(
            loaded.encryption_metadata,
            [{'field_path': '$.first_name_custom_encrypted', 'encryption_key_name': 'people_jane'}],
        )

    def test_custom_field_path(self):
        """測試自訂 field_json_path"""
        person = self.create_person(age=30, encryption_key='people_jane')

        entry = EncryptionMetadataStore.find(Person.objects.get(pk=person.pk), '$.age')

        self.assertEqual(entry, EncryptionMetadataEntry('$.age', 'people_jane'))
        self.assertEqual(
            self.decrypt_column(person, 'age', column='age_custom_encrypted', key='people_jane'),
            30,
        )

    def test_computed_key(self):
        """測試以函式計算金鑰"""
        person = self.create_person(last_name='Doe', encryption_key='jane')

        self.assertEqual(
            EncryptionMetadataStore.find(person, '$.last_name_custom_encrypted').encryption_key_name,
            'people_jane',
        )
        self.assertEqual(Person.objects.get(pk=person.pk).last_name, 'Doe')

    def test_key_is_stable_across_saves(self):
        """測試後續儲存沿用原本的金鑰"""
        person = self.create_person(first_name='Jane', encryption_key='people_jane')

        loaded = Person.objects.get(pk=person.pk)
        loaded.encryption_key = 'people_rotated'
        loaded.first_name = 'Janet'
        loaded.save()

        loaded = Person.objects.get(pk=person.pk)
        self.assertEqual(len(loaded.encryption_metadata), 1)
        self.assertEqual(
            self.decrypt_column(
                loaded, 'first_name', column='first_name_custom_encrypted', key='people_jane'
            ),
            'Janet',
        )

    def test_none_value_clears_copy_without_metadata(self):
        """測試 None 值清除副本且不建立 metadata"""
        person = self.create_person(first_name=None)

        loaded = Person.objects.get(pk=person.pk)

        self.assertIsNone(loaded.first_name_custom_encrypted)
        self.assertEqual(loaded.encryption_metadata, [])

    def test_copy_is_never_convergent(self):
        """測試副本永遠不是 convergent 加密"""
        first = self.create_person(first_name='Jane', encryption_key='people_jane')
        second = self.create_person(first_name='Jane', encryption_key='people_jane')

        self.assertNotEqual(
            Person.objects.get(pk=first.pk).first_name_custom_encrypted,
            Person.objects.get(pk=second.pk).first_name_custom_encrypted,
        )

    def test_empty_key(self):
        """測試金鑰為空時拋出錯誤"""
        with self.assertRaises(EncryptionKeyError):
            self.create_person(first_name='Jane', encryption_key='')

        self.assertFalse(Person.objects.exists())

    def test_key_equal_to_attribute_key(self):
        """測試副本金鑰不可與屬性金鑰相同"""
        primary_key = Person.get_vault_registry().get('first_name').key

        with self.assertRaises(EncryptionKeyError):
            self.create_person(first_name='Jane', encryption_key=primary_key)
