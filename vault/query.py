"""
Equality search over convergent attributes

    Person.objects.encrypted_filter(email='jane@example.com')

is rewritten into a filter on the ciphertext column, which works because
convergent encryption gives the same ciphertext for the same plaintext.
"""
from django.db import models

from vault.lifecycle import RecordLifecycle


class EncryptedQuerySet(models.QuerySet):
    def vault_search_options(self, **attributes):
        return RecordLifecycle.search_options(self.model, attributes)

    def encrypted_filter(self, **attributes):
        return self.filter(**self.vault_search_options(**attributes))

    def encrypted_exclude(self, **attributes):
        return self.exclude(**self.vault_search_options(**attributes))

    def encrypted_get(self, **attributes):
        return self.get(**self.vault_search_options(**attributes))

    def encrypted_first(self, **attributes):
        return self.encrypted_filter(**attributes).first()


class EncryptedManager(models.Manager.from_queryset(EncryptedQuerySet)):
    pass
