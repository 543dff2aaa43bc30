"""
Encryption metadata for encrypted copies

Every record keeps an ordered list of
    {'field_path': '$.first_name_custom_encrypted', 'encryption_key_name': '...'}
in a single JSON column. The entry for a field is created the first time the
field is encrypted and reused afterwards, so the derived key is stable.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional

from vault.attributes import EncryptedCopySpec
from vault.exceptions import EncryptionKeyError

logger = logging.getLogger(__name__)

DEFAULT_METADATA_COLUMN = 'encryption_metadata'


@dataclass(frozen=True)
class EncryptionMetadataEntry:
    field_path: str
    encryption_key_name: str

    def to_dict(self) -> dict:
        return {
            'field_path': self.field_path,
            'encryption_key_name': self.encryption_key_name,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'EncryptionMetadataEntry':
        return cls(
            field_path=data['field_path'],
            encryption_key_name=data['encryption_key_name'],
        )


class EncryptionMetadataStore:
    @staticmethod
    def get_column(record) -> str:
        return getattr(record, 'VAULT_METADATA_COLUMN', DEFAULT_METADATA_COLUMN)

    @classmethod
    def entries(cls, record) -> List[EncryptionMetadataEntry]:
        raw = getattr(record, cls.get_column(record)) or []
        return [EncryptionMetadataEntry.from_dict(item) for item in raw]

    @classmethod
    def find(cls, record, field_path: str) -> Optional[EncryptionMetadataEntry]:
        for entry in cls.entries(record):
            if entry.field_path == field_path:
                return entry
        return None

    @classmethod
    def find_or_create(
        cls, record, copy_spec: EncryptedCopySpec, primary_key: str = None
    ) -> EncryptionMetadataEntry:
        entry = cls.find(record, copy_spec.field_path)
        if entry is not None:
            return entry

        key_name = copy_spec.key_source.resolve(record)
        if not key_name:
            raise EncryptionKeyError(
                f"Encryption key for {copy_spec.field_path} resolved to an empty value"
            )
        if key_name == primary_key:
            raise EncryptionKeyError(
                f"Encryption key for {copy_spec.field_path} must differ from the "
                f"attribute key"
            )

        entry = EncryptionMetadataEntry(
            field_path=copy_spec.field_path, encryption_key_name=str(key_name)
        )

        # assign a new list, the column is saved like any changed attribute
        column = cls.get_column(record)
        metadata = list(getattr(record, column) or [])
        metadata.append(entry.to_dict())
        setattr(record, column, metadata)
        record.__dict__.setdefault('_vault_changed', set()).add(column)

        logger.debug(f"Created encryption metadata for {copy_spec.field_path}")
        return entry
