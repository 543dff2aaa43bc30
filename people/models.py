from django.db import models

from vault.attributes import VaultAttribute
from vault.mixins import EncryptedModelMixin
from vault.proxy import AttributeProxy


def _wrap(raw):
    return f'xxx{raw}xxx' if raw is not None else None


def _unwrap(raw):
    return raw[3:-3] if raw else raw


class Person(EncryptedModelMixin):
    name = models.CharField(max_length=100, blank=True)

    # legacy plaintext columns being replaced by vault attributes
    date_of_birth_legacy = models.DateField(null=True, blank=True, db_column='date_of_birth')
    date_of_birth_encrypted = models.TextField(null=True, blank=True)
    county_legacy = models.CharField(max_length=100, null=True, blank=True, db_column='county')
    county_encrypted = models.TextField(null=True, blank=True)
    state_legacy = models.CharField(max_length=100, null=True, blank=True, db_column='state')
    state_encrypted = models.TextField(null=True, blank=True)

    passport_number_encrypted = models.TextField(null=True, blank=True)
    ssn_encrypted = models.TextField(null=True, blank=True)
    cc_encrypted = models.TextField(null=True, blank=True)
    details_encrypted = models.TextField(null=True, blank=True)
    business_card_encrypted = models.TextField(null=True, blank=True)
    favorite_color_encrypted = models.TextField(null=True, blank=True)
    non_ascii_encrypted = models.TextField(null=True, blank=True)
    email_encrypted = models.TextField(null=True, blank=True)
    driving_licence_number_encrypted = models.TextField(null=True, blank=True)
    ip_address_encrypted = models.TextField(null=True, blank=True)
    integer_data_encrypted = models.TextField(null=True, blank=True)
    float_data_encrypted = models.TextField(null=True, blank=True)
    time_data_encrypted = models.TextField(null=True, blank=True)

    # encrypted copies, keyed per record
    encryption_key = models.CharField(max_length=100, blank=True)
    encryption_metadata = models.JSONField(default=list, blank=True)
    first_name_encrypted = models.TextField(null=True, blank=True)
    first_name_custom_encrypted = models.TextField(null=True, blank=True)
    last_name_encrypted = models.TextField(null=True, blank=True)
    last_name_custom_encrypted = models.TextField(null=True, blank=True)
    age_encrypted = models.TextField(null=True, blank=True)
    age_custom_encrypted = models.TextField(null=True, blank=True)

    date_of_birth_plaintext = VaultAttribute(
        type='date', encrypted_column='date_of_birth_encrypted'
    )
    date_of_birth = AttributeProxy('date_of_birth_legacy', 'date_of_birth_plaintext')

    passport_number = VaultAttribute(encrypted_column='passport_number_encrypted')

    county_plaintext = VaultAttribute(encrypted_column='county_encrypted')
    county = AttributeProxy('county_legacy', 'county_plaintext')

    state_plaintext = VaultAttribute(encrypted_column='state_encrypted')
    state = AttributeProxy('state_legacy', 'state_plaintext', encrypted_attribute_only=True)

    ssn = VaultAttribute()
    credit_card = VaultAttribute(
        encrypted_column='cc_encrypted', path='credit-secrets', key='people_credit_cards'
    )
    details = VaultAttribute(serializer='json')
    business_card = VaultAttribute(serializer='binary')
    favorite_color = VaultAttribute(encode=_wrap, decode=_unwrap)
    non_ascii = VaultAttribute()

    email = VaultAttribute(convergent=True)
    driving_licence_number = VaultAttribute(convergent=True, unique=True)
    ip_address = VaultAttribute(convergent=True, serializer='ipaddr', type='ipaddr', unique=True)

    integer_data = VaultAttribute(type='integer', serializer='integer')
    float_data = VaultAttribute(type='float', serializer='float')
    time_data = VaultAttribute(type='datetime')

    first_name = VaultAttribute(
        encrypted_copy={
            'column': 'first_name_custom_encrypted',
            'key_column': 'encryption_key',
        }
    )
    last_name = VaultAttribute(
        encode=_wrap,
        decode=_unwrap,
        encrypted_copy={
            'column': 'last_name_custom_encrypted',
            'key': lambda person: f'people_{person.encryption_key}',
        },
    )
    age = VaultAttribute(
        type='integer',
        encrypted_copy={
            'column': 'age_custom_encrypted',
            'key_column': 'encryption_key',
            'field_json_path': '$.age',
        },
    )

    def __str__(self):
        return f"Person {self.pk} {self.name}".strip()


class PersonRecord(EncryptedModelMixin):
    """Fields shared by the eager / lazy variants below"""

    name = models.CharField(max_length=100, blank=True)
    ssn_encrypted = models.TextField(null=True, blank=True)
    email_encrypted = models.TextField(null=True, blank=True)

    ssn = VaultAttribute()
    email = VaultAttribute(convergent=True)

    class Meta:
        abstract = True


class EagerPerson(PersonRecord):
    VAULT_PERSIST_BEFORE_SAVE = True


class LazyPerson(PersonRecord):
    VAULT_LAZY_DECRYPT = True
