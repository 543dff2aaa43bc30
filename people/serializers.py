from rest_framework import serializers

from people.models import Person
from vault.serializers import EncryptedModelSerializerMixin


class PersonSerializer(EncryptedModelSerializerMixin, serializers.ModelSerializer):
    class Meta:
        model = Person
        fields = [
            'id',
            'name',
            'ssn',
            'email',
            'details',
            'integer_data',
            'date_of_birth_plaintext',
        ]
        read_only_fields = ['id']
