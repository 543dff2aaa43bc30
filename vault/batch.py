"""
Bulk encryption and decryption of convergent attributes

Instead of one transit call per record, plaintexts are sent in chunks of
VAULT_BATCH_SIZE. Results always line up with the input: item i of the output
belongs to record i, whatever happened to the other items.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence

from django.core.exceptions import ValidationError

from vault.attributes import AttributeSpec
from vault.conf import get_vault_setting
from vault.exceptions import VaultArgumentError
from vault.lifecycle import RecordLifecycle
from vault.transit import get_transit_client

logger = logging.getLogger(__name__)

_MISSING = object()


@dataclass
class BatchItemResult:
    record: Any
    ciphertext: Optional[str] = None
    skipped: bool = False
    errors: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.skipped and not self.errors


def _chunks(items: Sequence, size: int):
    for start in range(0, len(items), size):
        yield items[start:start + size]


class BatchCipherProcessor:
    def __init__(self, spec: AttributeSpec, batch_size: int = None):
        if not spec.convergent:
            raise VaultArgumentError(
                f"Batch operations are only supported for convergent attributes, "
                f"`{spec.name}' is not convergent"
            )
        self.spec = spec
        self.batch_size = batch_size or get_vault_setting('VAULT_BATCH_SIZE')

    def _batch_call(self, operation, values: List[str]) -> List[Optional[str]]:
        results = []
        for chunk in _chunks(values, self.batch_size):
            results.extend(
                operation(self.spec.path, self.spec.key, chunk, self.spec.convergent)
            )
        return results

    def encrypt(
        self, records: Sequence, plaintexts: Sequence, validate: bool = True
    ) -> List[BatchItemResult]:
        """Encrypt plaintexts[i] onto records[i]

        None plaintexts leave their record untouched. With `validate`, a record
        failing full_clean() is restored, reported and left out of the write;
        the other records are committed.
        """
        if len(records) != len(plaintexts):
            raise VaultArgumentError(
                f"Got {len(records)} records but {len(plaintexts)} plaintexts"
            )

        spec = self.spec
        results = [BatchItemResult(record=record) for record in records]
        pending = []

        for index, (record, value) in enumerate(zip(records, plaintexts)):
            if value is None:
                results[index].skipped = True
                continue
            try:
                cast_value = spec.cast(value)
                pending.append((index, cast_value, spec.encode(cast_value)))
            except (ValueError, TypeError, ValidationError) as e:
                results[index].errors.append(str(e))

        ciphertexts = self._batch_call(
            get_transit_client().batch_encrypt, [item[2] for item in pending]
        )

        committed = []
        for (index, cast_value, _), ciphertext in zip(pending, ciphertexts):
            record = results[index].record
            cache = RecordLifecycle.get_cache(record)
            previous_ciphertext = getattr(record, spec.encrypted_column)
            previous_value = cache.get(spec.name, _MISSING)

            setattr(record, spec.encrypted_column, ciphertext)
            cache[spec.name] = cast_value

            if validate:
                try:
                    record.full_clean()
                except ValidationError as e:
                    setattr(record, spec.encrypted_column, previous_ciphertext)
                    if previous_value is _MISSING:
                        cache.pop(spec.name, None)
                    else:
                        cache[spec.name] = previous_value
                    results[index].errors.extend(e.messages)
                    continue

            # cache and column agree now, nothing left to persist on save
            RecordLifecycle.discard_change(record, spec.name)
            results[index].ciphertext = ciphertext
            committed.append(record)

        self._write(committed)

        failed = [result for result in results if result.errors]
        if failed:
            logger.warning(
                f"Batch encryption of {spec.name}: {len(failed)} of {len(results)} "
                f"records excluded"
            )
        logger.info(
            f"Batch encryption of {spec.name}: {len(committed)} records encrypted"
        )
        return results

    def _write(self, records: List) -> None:
        saved = [record for record in records if record.pk is not None]
        if not saved:
            return
        # records without a primary key get the column on their own save
        model = type(saved[0])
        model._base_manager.bulk_update(
            saved, [self.spec.encrypted_column], batch_size=self.batch_size
        )

    def decrypt(self, records: Sequence) -> List[Any]:
        """Load the attribute on every record, cached values are kept"""
        spec = self.spec
        values: List[Any] = [None] * len(records)
        pending = []

        for index, record in enumerate(records):
            cache = RecordLifecycle.get_cache(record)
            if spec.name in cache:
                values[index] = cache[spec.name]
                continue

            ciphertext = getattr(record, spec.encrypted_column)
            if ciphertext is None or ciphertext == '':
                cache[spec.name] = None
                continue
            pending.append((index, ciphertext))

        plaintexts = self._batch_call(
            get_transit_client().batch_decrypt, [item[1] for item in pending]
        )

        for (index, _), plaintext in zip(pending, plaintexts):
            value = spec.decode(plaintext)
            RecordLifecycle.get_cache(records[index])[spec.name] = value
            values[index] = value

        logger.info(f"Batch decryption of {spec.name}: {len(pending)} records decrypted")
        return values
