"""
Model mixin wiring vault attributes into the Django model lifecycle
"""
import logging
from functools import wraps
from typing import Any, Dict, List, Optional, Sequence, Tuple

from django.core import checks
from django.core.exceptions import FieldDoesNotExist, ValidationError
from django.db import models, router, transaction

from vault.attributes import AttributeRegistry
from vault.batch import BatchCipherProcessor, BatchItemResult
from vault.lifecycle import RecordLifecycle
from vault.metadata import DEFAULT_METADATA_COLUMN
from vault.query import EncryptedManager
from vault.validators import validate_vault_uniqueness

logger = logging.getLogger(__name__)


def reloads_vault_attributes(refresh_from_db):
    """Compose a model's refresh_from_db with a reload of its vault attributes"""

    @wraps(refresh_from_db)
    def wrapper(self, *args, **kwargs):
        deferred = self.get_deferred_fields()
        refresh_from_db(self, *args, **kwargs)
        fields = kwargs.get('fields', args[1] if len(args) > 1 else None)
        RecordLifecycle.reload(self, fields=fields, deferred=deferred)

    return wrapper


class EncryptedModelMixin(models.Model):
    """Base for models declaring VaultAttribute / AttributeProxy attributes

    VAULT_LAZY_DECRYPT: decrypt on first access instead of on construction
    VAULT_PERSIST_BEFORE_SAVE: encrypt before the base write and store the
        ciphertext in the same query, instead of an extra update after it
    VAULT_METADATA_COLUMN: JSON field holding the encrypted copy metadata
    """

    VAULT_LAZY_DECRYPT = False
    VAULT_PERSIST_BEFORE_SAVE = False
    VAULT_METADATA_COLUMN = DEFAULT_METADATA_COLUMN

    objects = EncryptedManager()

    class Meta:
        abstract = True

    def __init__(self, *args, **kwargs):
        self._vault_cache = {}
        self._vault_changed = set()
        self._vault_original = {}

        registry = self.get_vault_registry()
        vault_values = {
            name: kwargs.pop(name)
            for name in list(kwargs)
            if name in registry or name in registry.proxies()
        }

        super().__init__(*args, **kwargs)

        for name, value in vault_values.items():
            setattr(self, name, value)

        RecordLifecycle.load_attributes(self)

    @classmethod
    def get_vault_registry(cls) -> AttributeRegistry:
        return AttributeRegistry.for_model(cls)

    def save(self, *args, **kwargs):
        using = kwargs.get('using') or router.db_for_write(type(self), instance=self)

        # base write, ciphertext and metadata commit or roll back together
        with transaction.atomic(using=using):
            if self.VAULT_PERSIST_BEFORE_SAVE:
                changes = RecordLifecycle.encrypt_attributes(self)
                update_fields = kwargs.get('update_fields')
                if changes and update_fields is not None:
                    kwargs['update_fields'] = set(update_fields) | set(changes)
                super().save(*args, **kwargs)
            else:
                super().save(*args, **kwargs)
                RecordLifecycle.persist_attributes(self, using=using)

        RecordLifecycle.clear_changes(self)

    @reloads_vault_attributes
    def refresh_from_db(self, *args, **kwargs):
        super().refresh_from_db(*args, **kwargs)

    def validate_unique(self, exclude=None):
        errors = {}
        try:
            super().validate_unique(exclude=exclude)
        except ValidationError as e:
            errors = e.update_error_dict(errors)

        for spec in self.get_vault_registry():
            if not spec.unique or (exclude and spec.name in exclude):
                continue
            try:
                validate_vault_uniqueness(self, spec)
            except ValidationError as e:
                errors = e.update_error_dict(errors)

        if errors:
            raise ValidationError(errors)

    # Dirty tracking

    @property
    def vault_changed_attributes(self) -> List[str]:
        registry = self.get_vault_registry()
        return sorted(name for name in self._vault_changed if name in registry)

    def vault_attribute_changed(self, name: str) -> bool:
        return name in self._vault_changed

    def vault_attribute_was(self, name: str):
        """Value before the first unsaved assignment"""
        return RecordLifecycle.original_value(self, name)

    def vault_attribute_change(self, name: str) -> Optional[Tuple[Any, Any]]:
        if not self.vault_attribute_changed(name):
            return None
        return self.vault_attribute_was(name), getattr(self, name)

    def unencrypted_attributes(self) -> Dict[str, Any]:
        """Column values without ciphertext, plus the decrypted vault attributes"""
        registry = self.get_vault_registry()
        hidden = registry.encrypted_columns()
        if registry.copy_specs():
            hidden.add(self.VAULT_METADATA_COLUMN)

        attributes = {
            field.attname: getattr(self, field.attname)
            for field in self._meta.concrete_fields
            if field.attname not in hidden and field.name not in hidden
        }
        for spec in registry:
            attributes[spec.name] = getattr(self, spec.name)
        return attributes

    # Class level operations

    @classmethod
    def encrypt_vault_value(cls, attribute: str, value):
        spec = cls.get_vault_registry().get(attribute)
        return RecordLifecycle.encrypt_value(spec, spec.cast(value))

    @classmethod
    def vault_search_options(cls, **attributes) -> Dict[str, Any]:
        return RecordLifecycle.search_options(cls, attributes)

    @classmethod
    def vault_persist_all(
        cls, attribute: str, records: Sequence, plaintexts: Sequence, validate: bool = True
    ) -> List[BatchItemResult]:
        """Encrypt many records at once, convergent attributes only"""
        spec = cls.get_vault_registry().get(attribute)
        return BatchCipherProcessor(spec).encrypt(records, plaintexts, validate=validate)

    @classmethod
    def vault_load_all(cls, attribute: str, records: Sequence) -> List[Any]:
        """Decrypt many records at once, convergent attributes only"""
        spec = cls.get_vault_registry().get(attribute)
        return BatchCipherProcessor(spec).decrypt(records)

    # System checks

    @classmethod
    def check(cls, **kwargs):
        errors = super().check(**kwargs)
        if not cls._meta.abstract:
            errors.extend(cls._check_vault_attributes())
        return errors

    @classmethod
    def _has_column(cls, name: str) -> bool:
        try:
            cls._meta.get_field(name)
        except FieldDoesNotExist:
            return False
        return True

    @classmethod
    def _check_vault_attributes(cls) -> List[checks.CheckMessage]:
        errors = []
        registry = cls.get_vault_registry()

        for spec in registry:
            if not cls._has_column(spec.encrypted_column):
                errors.append(
                    checks.Error(
                        f"Vault attribute '{spec.name}' uses the missing encrypted "
                        f"column '{spec.encrypted_column}'.",
                        obj=cls,
                        id='vault.E001',
                    )
                )
            if spec.encrypted_copy and not cls._has_column(spec.encrypted_copy.column):
                errors.append(
                    checks.Error(
                        f"Vault attribute '{spec.name}' uses the missing encrypted "
                        f"copy column '{spec.encrypted_copy.column}'.",
                        obj=cls,
                        id='vault.E002',
                    )
                )

        if registry.copy_specs() and not cls._has_column(cls.VAULT_METADATA_COLUMN):
            errors.append(
                checks.Error(
                    f"Encrypted copies need the metadata column "
                    f"'{cls.VAULT_METADATA_COLUMN}'.",
                    hint='Add a JSONField(default=list, blank=True) to the model.',
                    obj=cls,
                    id='vault.E003',
                )
            )

        for name, proxy in registry.proxies().items():
            if not cls._has_column(proxy.non_encrypted_attribute):
                errors.append(
                    checks.Error(
                        f"Attribute proxy '{name}' refers to the missing field "
                        f"'{proxy.non_encrypted_attribute}'.",
                        obj=cls,
                        id='vault.E004',
                    )
                )
            if proxy.encrypted_attribute not in registry:
                errors.append(
                    checks.Error(
                        f"Attribute proxy '{name}' refers to '{proxy.encrypted_attribute}', "
                        f"which is not a vault attribute.",
                        obj=cls,
                        id='vault.E005',
                    )
                )

        return errors
