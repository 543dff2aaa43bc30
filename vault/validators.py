from django.core.exceptions import ValidationError

from vault.attributes import AttributeSpec
from vault.lifecycle import RecordLifecycle


def validate_vault_uniqueness(instance, spec: AttributeSpec) -> None:
    """Uniqueness of a convergent attribute, checked on its ciphertext"""
    value = getattr(instance, spec.name)
    if value is None:
        return

    ciphertext = RecordLifecycle.encrypt_value(spec, value)
    queryset = type(instance)._default_manager.filter(**{spec.encrypted_column: ciphertext})
    if instance.pk is not None:
        queryset = queryset.exclude(pk=instance.pk)

    if queryset.exists():
        label = spec.name.replace('_', ' ').capitalize()
        raise ValidationError(
            {spec.name: ValidationError(f'{label} has already been taken', code='unique')}
        )
