import logging
from typing import List, Optional

from celery import shared_task
from django.apps import apps

from vault.batch import BatchCipherProcessor
from vault.conf import get_vault_setting

logger = logging.getLogger(__name__)


@shared_task(queue='vault_backfill_q')
def backfill_vault_attribute(
    model_label: str,
    attribute: str,
    source_field: str,
    pks: Optional[List] = None,
    batch_size: Optional[int] = None,
    validate: bool = False,
):
    """
    把既有明文欄位批次加密到 vault attribute

    Args:
        model_label: 'people.Person'
        attribute: convergent vault attribute to fill
        source_field: legacy plaintext field read for each record
        pks: restrict the backfill to these primary keys
        batch_size: records per transit call (default VAULT_BATCH_SIZE)
        validate: run full_clean() on every record before writing
    """
    try:
        model = apps.get_model(model_label)
        spec = model.get_vault_registry().get(attribute)
        batch_size = batch_size or get_vault_setting('VAULT_BATCH_SIZE')
        processor = BatchCipherProcessor(spec, batch_size=batch_size)

        queryset = model._base_manager.order_by('pk')
        if pks is not None:
            queryset = queryset.filter(pk__in=pks)
        if not validate:
            # other ciphertext columns stay deferred, nothing else is decrypted
            queryset = queryset.only('pk', source_field, spec.encrypted_column)

        encrypted = 0
        failed = 0
        last_pk = None
        while True:
            chunk = queryset if last_pk is None else queryset.filter(pk__gt=last_pk)
            records = list(chunk[:batch_size])
            if not records:
                break

            plaintexts = [getattr(record, source_field) for record in records]
            results = processor.encrypt(records, plaintexts, validate=validate)
            encrypted += sum(1 for result in results if result.ok)
            failed += sum(1 for result in results if result.errors)
            last_pk = records[-1].pk

        logger.info(
            f"Backfilled {model_label}.{attribute} from {source_field}: "
            f"{encrypted} encrypted, {failed} failed"
        )
        return {'encrypted': encrypted, 'failed': failed}

    except Exception as e:
        logger.error(f"Error backfilling {model_label}.{attribute}: {e}")
        raise
