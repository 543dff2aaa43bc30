"""
Tests for searching on convergent attributes
"""
from people.models import Person
from people.tests.base import BasePeopleTest
from vault.exceptions import VaultArgumentError


class EncryptedQuerySetTest(BasePeopleTest):
    """convergent 屬性查詢測試"""

    def setUp(self):
        super().setUp()
        self.jane = self.create_person(name='Jane', email='jane@example.com')
        self.john = self.create_person(name='John', email='john@example.com')

    def test_search_options(self):
        """測試查詢條件改寫為密文欄位"""
        options = Person.vault_search_options(email='jane@example.com')

        self.assertEqual(list(options), ['email_encrypted'])
        self.assertEqual(
            options['email_encrypted'],
            Person.objects.filter(pk=self.jane.pk).values('email_encrypted').get()['email_encrypted'],
        )

    def test_encrypted_filter(self):
        """測試以明文條件過濾"""
        results = Person.objects.encrypted_filter(email='jane@example.com')

        self.assertEqual(list(results), [self.jane])

    def test_encrypted_filter_chains(self):
        """測試可與一般查詢串接"""
        self.assertFalse(
            Person.objects.filter(name='John').encrypted_filter(email='jane@example.com').exists()
        )

    def test_encrypted_exclude(self):
        """測試以明文條件排除"""
        results = Person.objects.encrypted_exclude(email='jane@example.com')

        self.assertEqual(list(results), [self.john])

    def test_encrypted_get_and_first(self):
        """測試取得單筆"""
        self.assertEqual(Person.objects.encrypted_get(email='john@example.com'), self.john)
        self.assertEqual(Person.objects.encrypted_first(email='jane@example.com'), self.jane)
        self.assertIsNone(Person.objects.encrypted_first(email='nobody@example.com'))

    def test_search_for_none(self):
        """測試以 None 查詢"""
        nobody = self.create_person(name='Nobody', email=None)

        self.assertEqual(list(Person.objects.encrypted_filter(email=None)), [nobody])

    def test_search_on_non_convergent_attribute(self):
        """測試非 convergent 屬性不可查詢"""
        with self.assertRaises(VaultArgumentError):
            Person.objects.encrypted_filter(ssn='123-45-6789')

    def test_search_casts_typed_values(self):
        """測試查詢值會依型別轉換"""
        person = self.create_person(ip_address='127.0.0.1')

        self.assertEqual(Person.objects.encrypted_get(ip_address='127.0.0.1'), person)
