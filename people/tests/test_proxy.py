"""
Tests for AttributeProxy
"""
from datetime import date

from people.models import Person
from people.tests.base import BasePeopleTest


class AttributeProxyTest(BasePeopleTest):
    """AttributeProxy 測試"""

    def test_set_writes_both_attributes(self):
        """測試設定值會同時寫入明文與加密屬性"""
        person = Person(county='Orange')

        self.assertEqual(person.county_legacy, 'Orange')
        self.assertEqual(person.county_plaintext, 'Orange')
        self.assertEqual(person.county, 'Orange')

    def test_get_prefers_encrypted_attribute(self):
        """測試讀取時優先使用加密屬性"""
        person = Person(county_legacy='Legacy', county_plaintext='Encrypted')

        self.assertEqual(person.county, 'Encrypted')

    def test_get_falls_back_to_plaintext_field(self):
        """測試加密屬性為空時讀取明文欄位"""
        person = self.create_person(county_legacy='Orange')

        loaded = Person.objects.get(pk=person.pk)

        self.assertIsNone(loaded.county_plaintext)
        self.assertEqual(loaded.county, 'Orange')

    def test_encrypted_attribute_only(self):
        """測試只使用加密屬性"""
        person = Person(state_legacy='Legacy')

        person.state = 'California'

        self.assertEqual(person.state_legacy, 'Legacy')
        self.assertEqual(person.state_plaintext, 'California')
        self.assertEqual(person.state, 'California')

    def test_encrypted_attribute_only_ignores_plaintext_field(self):
        """測試只使用加密屬性時不讀取明文欄位"""
        person = Person(state_legacy='Legacy')

        self.assertIsNone(person.state)

    def test_typed_proxy_round_trip(self):
        """測試有型別的 proxy 儲存後讀取"""
        person = self.create_person(date_of_birth='1990-02-03')

        loaded = Person.objects.get(pk=person.pk)

        self.assertEqual(loaded.date_of_birth_legacy, date(1990, 2, 3))
        self.assertEqual(loaded.date_of_birth_plaintext, date(1990, 2, 3))
        self.assertEqual(loaded.date_of_birth, date(1990, 2, 3))
        self.assertEqual(self.decrypt_column(person, 'date_of_birth_plaintext'), date(1990, 2, 3))

    def test_proxies_are_registered(self):
        """測試 proxy 註冊到模型"""
        proxies = Person.get_vault_registry().proxies()

        self.assertEqual(set(proxies), {'date_of_birth', 'county', 'state'})
        self.assertTrue(proxies['state'].encrypted_attribute_only)
