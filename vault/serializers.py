"""
Django REST Framework support for encrypted models
"""
from rest_framework import serializers

from vault.attributes import AttributeSpec

VAULT_FIELD_CLASSES = {
    'integer': serializers.IntegerField,
    'float': serializers.FloatField,
    'boolean': serializers.BooleanField,
    'date': serializers.DateField,
    'datetime': serializers.DateTimeField,
    'timestamp': serializers.DateTimeField,
    'time': serializers.TimeField,
    'json': serializers.JSONField,
    'ipaddr': serializers.IPAddressField,
}


class EncryptedModelSerializerMixin:
    """Mixin for ModelSerializers of models using EncryptedModelMixin

    Ciphertext and metadata columns are never serialized; vault attributes are
    exposed as plaintext fields unless `Meta.fields` lists names without them.
    """

    def build_vault_field(self, spec: AttributeSpec):
        kind = str(spec.type or spec.codec.name).lower()
        field_class = VAULT_FIELD_CLASSES.get(kind, serializers.CharField)
        kwargs = {'required': False, 'allow_null': True}
        if field_class is serializers.CharField:
            kwargs['allow_blank'] = True
        return field_class(**kwargs)

    def get_fields(self):
        fields = super().get_fields()

        model = self.Meta.model
        registry = model.get_vault_registry()
        hidden = registry.encrypted_columns()
        if registry.copy_specs():
            hidden.add(model.VAULT_METADATA_COLUMN)

        for name in list(fields):
            if name in hidden:
                fields.pop(name)

        # with `Meta.exclude` (fields is None) every vault attribute is exposed
        declared = getattr(self.Meta, 'fields', None)
        for spec in registry:
            if declared not in (None, serializers.ALL_FIELDS) and spec.name not in declared:
                continue
            # explicitly declared serializer fields win
            if spec.name in self._declared_fields:
                continue
            fields[spec.name] = self.build_vault_field(spec)

        return fields
