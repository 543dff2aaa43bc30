"""
Tests for vault attribute declarations and the attribute registry
"""
from django.test import TestCase

from vault.attributes import (
    AttributeRegistry,
    ComputedKey,
    RecordMethod,
    StaticKey,
    validate_options,
)
from vault.codecs import BUILTIN_CODECS, FunctionCodec
from vault.exceptions import UnrecognizedTypeError, ValidationFailedError, VaultArgumentError


class ValidateOptionsTest(TestCase):
    """屬性選項驗證測試"""

    def test_serializer_with_custom_functions(self):
        """測試 serializer 與自訂 encode/decode 不可並用"""
        with self.assertRaises(ValidationFailedError):
            validate_options({'serializer': 'json', 'encode': str, 'decode': str})

    def test_encode_without_decode(self):
        """測試只有 encode 沒有 decode"""
        with self.assertRaises(ValidationFailedError):
            validate_options({'encode': str})

    def test_decode_without_encode(self):
        """測試只有 decode 沒有 encode"""
        with self.assertRaises(ValidationFailedError):
            validate_options({'decode': str})

    def test_encrypted_copy_without_column_or_key(self):
        """測試 encrypted_copy 缺少 column 或 key"""
        with self.assertRaises(ValidationFailedError):
            validate_options({'encrypted_copy': {'key': 'k'}})
        with self.assertRaises(ValidationFailedError):
            validate_options({'encrypted_copy': {'column': 'copy_encrypted'}})

    def test_unknown_option(self):
        """測試未知選項"""
        with self.assertRaises(ValidationFailedError):
            validate_options({'colour': 'blue'})

    def test_unique_requires_convergent(self):
        """測試 unique 只能用於 convergent 屬性"""
        with self.assertRaises(ValidationFailedError):
            validate_options({'unique': True})
        validate_options({'unique': True, 'convergent': True})


class AttributeRegistryTest(TestCase):
    """AttributeRegistry 測試"""

    def setUp(self):
        self.registry = AttributeRegistry(table='people', application='crm')

    def test_register_defaults(self):
        """測試註冊屬性的預設值"""
        spec = self.registry.register('ssn')

        self.assertEqual(spec.key, 'crm_people_ssn')
        self.assertEqual(spec.path, 'transit')
        self.assertEqual(spec.encrypted_column, 'ssn_encrypted')
        self.assertFalse(spec.convergent)
        self.assertIs(spec.codec, BUILTIN_CODECS['string'])

    def test_register_explicit_options(self):
        """測試註冊屬性的自訂選項"""
        spec = self.registry.register(
            'credit_card',
            key='people_credit_cards',
            path='credit-secrets',
            encrypted_column='cc_encrypted',
            convergent=True,
        )

        self.assertEqual(spec.key, 'people_credit_cards')
        self.assertEqual(spec.path, 'credit-secrets')
        self.assertEqual(spec.columns, ['cc_encrypted'])
        self.assertTrue(spec.convergent)

    def test_codec_resolution(self):
        """測試 codec 推斷順序"""
        self.assertIs(self.registry.register('a', serializer='json').codec, BUILTIN_CODECS['json'])
        self.assertIs(self.registry.register('b', type='integer').codec, BUILTIN_CODECS['integer'])
        self.assertIsInstance(
            self.registry.register('c', encode=str, decode=str).codec, FunctionCodec
        )

    def test_type_casts_values(self):
        """測試 type 轉換輸入值"""
        spec = self.registry.register('age', type='integer')
        self.assertEqual(spec.cast('30'), 30)

    def test_unrecognized_type(self):
        """測試未知型別"""
        with self.assertRaises(UnrecognizedTypeError):
            self.registry.register('age', type='money')

    def test_encrypted_copy_key_sources(self):
        """測試 encrypted_copy 金鑰來源"""
        static = self.registry.register(
            'a', encrypted_copy={'column': 'a_copy', 'key': 'other_key'}
        )
        method = self.registry.register(
            'b', encrypted_copy={'column': 'b_copy', 'key_column': 'encryption_key'}
        )
        computed = self.registry.register(
            'c', encrypted_copy={'column': 'c_copy', 'key': lambda record: 'x'}
        )

        self.assertEqual(static.encrypted_copy.key_source, StaticKey('other_key'))
        self.assertEqual(method.encrypted_copy.key_source, RecordMethod('encryption_key'))
        self.assertIsInstance(computed.encrypted_copy.key_source, ComputedKey)
        self.assertEqual(static.encrypted_copy.field_path, '$.a_copy')
        self.assertEqual(static.columns, ['a_encrypted', 'a_copy'])

    def test_get_unknown_attribute(self):
        """測試取得未註冊的屬性"""
        with self.assertRaises(VaultArgumentError):
            self.registry.get('missing')

    def test_registry_views_are_read_only(self):
        """測試註冊表檢視為唯讀"""
        self.registry.register('ssn')

        self.assertIn('ssn', self.registry)
        self.assertEqual(len(self.registry), 1)
        with self.assertRaises(TypeError):
            self.registry.all()['other'] = None

    def test_encrypted_columns(self):
        """測試列出所有密文欄位"""
        self.registry.register('ssn')
        self.registry.register('name', encrypted_copy={'column': 'name_copy', 'key': 'k'})

        self.assertEqual(
            self.registry.encrypted_columns(), {'ssn_encrypted', 'name_encrypted', 'name_copy'}
        )
        self.assertEqual([spec.name for spec in self.registry.copy_specs()], ['name'])


class ModelRegistryTest(TestCase):
    """模型註冊表測試"""

    def test_model_registry_uses_table_name(self):
        """測試模型註冊表使用資料表名稱作為預設金鑰"""
        from people.models import Person

        spec = Person.get_vault_registry().get('ssn')
        self.assertEqual(spec.key, 'vaultmodels_people_person_ssn')

    def test_abstract_declarations_are_registered_per_model(self):
        """測試抽象父類別的屬性在每個具體模型各自註冊"""
        from people.models import EagerPerson, LazyPerson

        eager = EagerPerson.get_vault_registry()
        lazy = LazyPerson.get_vault_registry()

        self.assertIsNot(eager, lazy)
        self.assertEqual(eager.get('ssn').key, 'vaultmodels_people_eagerperson_ssn')
        self.assertEqual(lazy.get('ssn').key, 'vaultmodels_people_lazyperson_ssn')
        self.assertTrue(eager.get('email').convergent)
