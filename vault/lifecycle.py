"""
Load / set / persist / reload orchestration for vault attributes

Every instance keeps three pieces of state:
    _vault_cache    attribute name -> decoded plaintext (absent until loaded or set)
    _vault_changed  attribute names set since the last load or save, plus the
                    metadata column when the encryption metadata list changed
    _vault_original attribute name -> value cached before its first assignment
"""
import logging
from typing import Any, Dict, Iterable, Optional

from vault.attributes import AttributeRegistry, AttributeSpec
from vault.exceptions import VaultArgumentError
from vault.metadata import EncryptionMetadataStore
from vault.transit import get_transit_client

logger = logging.getLogger(__name__)


class RecordLifecycle:
    @staticmethod
    def get_registry(instance_or_model) -> AttributeRegistry:
        model = (
            instance_or_model
            if isinstance(instance_or_model, type)
            else type(instance_or_model)
        )
        return AttributeRegistry.for_model(model)

    @staticmethod
    def get_cache(instance) -> Dict[str, Any]:
        return instance.__dict__.setdefault('_vault_cache', {})

    @staticmethod
    def get_changed(instance) -> set:
        return instance.__dict__.setdefault('_vault_changed', set())

    @staticmethod
    def get_originals(instance) -> Dict[str, Any]:
        return instance.__dict__.setdefault('_vault_original', {})

    @classmethod
    def mark_changed(cls, instance, name: str) -> None:
        cls.get_changed(instance).add(name)

    @classmethod
    def discard_change(cls, instance, name: str) -> None:
        cls.get_changed(instance).discard(name)
        cls.get_originals(instance).pop(name, None)

    @staticmethod
    def is_lazy(instance_or_model) -> bool:
        return bool(getattr(instance_or_model, 'VAULT_LAZY_DECRYPT', False))

    # Load

    @classmethod
    def load_attributes(cls, instance) -> None:
        """Decrypt every attribute unless the model decrypts lazily"""
        if cls.is_lazy(instance):
            return

        deferred = instance.get_deferred_fields()
        for spec in cls.get_registry(instance):
            # deferred ciphertext is loaded on first access instead
            if spec.encrypted_column in deferred:
                continue
            cls.load_attribute(instance, spec.name)

    @classmethod
    def load_attribute(cls, instance, name: str):
        spec = cls.get_registry(instance).get(name)
        cache = cls.get_cache(instance)
        if name in cache:
            return cache[name]

        ciphertext = getattr(instance, spec.encrypted_column)

        # reading a deferred column may have loaded the attribute already,
        # and a value set by the user is never replaced by a stale decrypt
        if name in cache:
            return cache[name]

        value = cls.decrypt_stored(spec, ciphertext)
        cache[name] = value
        return value

    @staticmethod
    def decrypt_stored(spec: AttributeSpec, ciphertext):
        if ciphertext is None or ciphertext == '':
            return None
        plaintext = get_transit_client().decrypt(
            spec.path, spec.key, ciphertext, spec.convergent
        )
        return spec.decode(plaintext)

    # Set / get

    @classmethod
    def read_attribute(cls, instance, name: str):
        cache = cls.get_cache(instance)
        if name in cache:
            return cache[name]
        return cls.load_attribute(instance, name)

    @classmethod
    def write_attribute(cls, instance, name: str, value) -> None:
        spec = cls.get_registry(instance).get(name)
        cast_value = spec.cast(value)
        cache = cls.get_cache(instance)
        if name not in cls.get_changed(instance) and name in cache:
            cls.get_originals(instance)[name] = cache[name]
        # always marked as changed: held values may be mutated in place, so
        # an assignment means "send it back" even when the value compares equal
        cls.mark_changed(instance, name)
        cache[name] = cast_value

    @classmethod
    def original_value(cls, instance, name: str):
        """Value of the attribute before its first unsaved assignment"""
        if name not in cls.get_changed(instance):
            return cls.read_attribute(instance, name)

        originals = cls.get_originals(instance)
        if name in originals:
            return originals[name]
        # assigned before it was ever loaded, the column still holds the saved value
        spec = cls.get_registry(instance).get(name)
        return cls.decrypt_stored(spec, getattr(instance, spec.encrypted_column))

    # Persist

    @staticmethod
    def encrypt_value(spec: AttributeSpec, value, key: str = None, convergent: bool = None):
        plaintext = spec.encode(value)
        return get_transit_client().encrypt(
            spec.path,
            key or spec.key,
            plaintext,
            spec.convergent if convergent is None else convergent,
        )

    @classmethod
    def encrypt_attribute(cls, instance, spec: AttributeSpec) -> Dict[str, Any]:
        value = cls.get_cache(instance).get(spec.name)
        changes = {spec.encrypted_column: cls.encrypt_value(spec, value)}

        if spec.encrypted_copy:
            copy_column = spec.encrypted_copy.column
            if value is None:
                changes[copy_column] = None
            else:
                entry = EncryptionMetadataStore.find_or_create(
                    instance, spec.encrypted_copy, primary_key=spec.key
                )
                # the copy is never convergent, whatever the attribute says
                changes[copy_column] = cls.encrypt_value(
                    spec, value, key=entry.encryption_key_name, convergent=False
                )

        return changes

    @classmethod
    def encrypt_attributes(cls, instance) -> Dict[str, Any]:
        """Encrypt changed attributes and write the ciphertext onto the instance

        Nothing is assigned until every attribute has been encrypted, so a
        service failure leaves the ciphertext columns as they were.
        """
        changed = cls.get_changed(instance)
        changes = {}

        for spec in cls.get_registry(instance):
            # only changed attributes, to keep service round trips down
            if spec.name not in changed:
                continue
            changes.update(cls.encrypt_attribute(instance, spec))

        for column, value in changes.items():
            setattr(instance, column, value)

        metadata_column = EncryptionMetadataStore.get_column(instance)
        if metadata_column in changed:
            changes[metadata_column] = getattr(instance, metadata_column)

        if changes:
            logger.debug(
                f"Encrypted {sorted(changes)} on {instance._meta.label} pk={instance.pk}"
            )
        return changes

    @classmethod
    def persist_attributes(cls, instance, using: Optional[str] = None) -> Dict[str, Any]:
        """Encrypt after the base write and store the columns in one update

        The update skips validation and signals; it runs inside the
        transaction opened by save().
        """
        changes = cls.encrypt_attributes(instance)
        if changes:
            manager = type(instance)._base_manager
            manager.using(using or instance._state.db).filter(pk=instance.pk).update(
                **changes
            )
        return changes

    @classmethod
    def clear_changes(cls, instance) -> None:
        cls.get_changed(instance).clear()
        cls.get_originals(instance).clear()

    # Reload

    @classmethod
    def reload(
        cls,
        instance,
        fields: Optional[Iterable[str]] = None,
        deferred: Iterable[str] = (),
    ) -> None:
        """Drop cached plaintext after the base record was re-read

        With `fields`, only attributes whose ciphertext column was refreshed
        are dropped; deferred-field loading goes through this path. `deferred`
        holds the columns that were deferred before the refresh.
        """
        registry = cls.get_registry(instance)
        cache = cls.get_cache(instance)
        changed = cls.get_changed(instance)
        metadata_column = EncryptionMetadataStore.get_column(instance)

        if fields is None:
            specs = list(registry)
            changed.discard(metadata_column)
        else:
            fields = set(fields)
            deferred = set(deferred)
            # loading a deferred column never replaces an unsaved value
            specs = [
                spec
                for spec in registry
                if spec.encrypted_column in fields
                and not (spec.encrypted_column in deferred and spec.name in changed)
            ]
            if metadata_column in fields and metadata_column not in deferred:
                changed.discard(metadata_column)

        for spec in specs:
            cache.pop(spec.name, None)
            cls.discard_change(instance, spec.name)

        if cls.is_lazy(instance):
            return

        deferred = instance.get_deferred_fields()
        for spec in specs:
            if spec.encrypted_column not in deferred:
                cls.load_attribute(instance, spec.name)

    # Search

    @classmethod
    def search_options(cls, model, attributes: Dict[str, Any]) -> Dict[str, Any]:
        """Rewrite {attribute: plaintext} into {encrypted_column: ciphertext}"""
        registry = cls.get_registry(model)
        options = {}
        for name, value in attributes.items():
            spec = registry.get(name)
            if not spec.convergent:
                raise VaultArgumentError('You cannot search with non-convergent fields')
            options[spec.encrypted_column] = cls.encrypt_value(spec, spec.cast(value))
        return options


__all__ = ['RecordLifecycle']
