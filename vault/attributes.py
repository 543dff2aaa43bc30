"""
Attribute schema for encrypted models

Each model class owns one AttributeRegistry, built while Django creates the
class. VaultAttribute and AttributeProxy descriptors register themselves into
it through `contribute_to_class` and every read or write is dispatched through
the registry by attribute name.

Usage:
    class Person(EncryptedModelMixin, models.Model):
        email_encrypted = models.TextField(null=True, blank=True)
        email = VaultAttribute(convergent=True)
"""
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional, Union

from vault.codecs import DEFAULT_CODEC, BUILTIN_CODECS, Codec, FunctionCodec, codec_for
from vault.conf import get_vault_setting
from vault.exceptions import ValidationFailedError, VaultArgumentError
from vault.types import Caster, caster_for

logger = logging.getLogger(__name__)

DEFAULT_PATH = 'transit'

ALLOWED_OPTIONS = {
    'key',
    'path',
    'serializer',
    'encode',
    'decode',
    'encrypted_column',
    'convergent',
    'type',
    'encrypted_copy',
    'unique',
}

ALLOWED_COPY_OPTIONS = {'column', 'key', 'key_column', 'field_json_path'}


@dataclass(frozen=True)
class StaticKey:
    name: str

    def resolve(self, record) -> str:
        return self.name


@dataclass(frozen=True)
class RecordMethod:
    """Key name read from an attribute (or zero-argument method) of the record"""

    name: str

    def resolve(self, record) -> str:
        value = getattr(record, self.name)
        if callable(value):
            value = value()
        return value


@dataclass(frozen=True)
class ComputedKey:
    function: Callable[[Any], str]

    def resolve(self, record) -> str:
        return self.function(record)


KeySource = Union[StaticKey, RecordMethod, ComputedKey]


@dataclass(frozen=True)
class EncryptedCopySpec:
    column: str
    key_source: KeySource
    field_path: str

    @classmethod
    def from_options(cls, options: Dict[str, Any]) -> 'EncryptedCopySpec':
        column = options['column']
        return cls(
            column=column,
            key_source=_key_source_from_options(options),
            field_path=options.get('field_json_path') or f'$.{column}',
        )


@dataclass(frozen=True)
class AttributeSpec:
    name: str
    key: str
    path: str = DEFAULT_PATH
    codec: Codec = DEFAULT_CODEC
    encrypted_column: str = ''
    convergent: bool = False
    type: Optional[str] = None
    encrypted_copy: Optional[EncryptedCopySpec] = None
    unique: bool = False
    caster: Caster = field(default=caster_for(None), repr=False, compare=False)

    def cast(self, value):
        return self.caster(value)

    def encode(self, value) -> Optional[str]:
        return self.codec.encode(value)

    def decode(self, plaintext):
        return self.codec.decode(plaintext)

    @property
    def columns(self):
        """Storage columns holding ciphertext for this attribute"""
        columns = [self.encrypted_column]
        if self.encrypted_copy:
            columns.append(self.encrypted_copy.column)
        return columns


def _key_source_from_options(options: Dict[str, Any]) -> KeySource:
    source = options.get('key')
    if source is None:
        source = options.get('key_column')
        if isinstance(source, str):
            return RecordMethod(source)

    if isinstance(source, (StaticKey, RecordMethod, ComputedKey)):
        return source
    if isinstance(source, str):
        return StaticKey(source)
    if callable(source):
        return ComputedKey(source)

    raise ValidationFailedError(f"Cannot use `{source!r}' as an encrypted copy key")


def validate_options(options: Dict[str, Any]) -> None:
    """Raise ValidationFailedError if the declared options do not make sense"""
    unknown = set(options) - ALLOWED_OPTIONS
    if unknown:
        raise ValidationFailedError(f"Unknown vault attribute options: {sorted(unknown)}")

    if options.get('serializer') is not None:
        if options.get('encode') is not None or options.get('decode') is not None:
            raise ValidationFailedError(
                "Cannot use a custom encoder/decoder if a `serializer' is specified!"
            )

    if options.get('encode') is not None and options.get('decode') is None:
        raise ValidationFailedError(
            "Cannot specify `encode' without specifying `decode' as well!"
        )

    if options.get('decode') is not None and options.get('encode') is None:
        raise ValidationFailedError(
            "Cannot specify `decode' without specifying `encode' as well!"
        )

    copy_options = options.get('encrypted_copy')
    if copy_options is not None:
        if not isinstance(copy_options, dict):
            raise ValidationFailedError('`encrypted_copy` must be a dict')

        unknown = set(copy_options) - ALLOWED_COPY_OPTIONS
        if unknown:
            raise ValidationFailedError(
                f"Unknown encrypted_copy options: {sorted(unknown)}"
            )

        has_key = (
            copy_options.get('key') is not None
            or copy_options.get('key_column') is not None
        )
        if not copy_options.get('column') or not has_key:
            raise ValidationFailedError(
                'Cannot specify `encrypted_copy` with missing `column` or `key`'
            )

    if options.get('unique') and not options.get('convergent'):
        raise ValidationFailedError(
            'Uniqueness can only be checked on convergent attributes'
        )


def _resolve_codec(options: Dict[str, Any]) -> Codec:
    if options.get('encode') is not None:
        return FunctionCodec(options['encode'], options['decode'])

    if options.get('serializer') is not None:
        return codec_for(options['serializer'])

    type_name = options.get('type')
    if type_name is not None and str(type_name).lower() in BUILTIN_CODECS:
        return BUILTIN_CODECS[str(type_name).lower()]

    return DEFAULT_CODEC


class AttributeRegistry:
    """Name -> AttributeSpec table for one record type"""

    REGISTRY_ATTRIBUTE = '_vault_registry'

    def __init__(self, model=None, table=None, application=None, parent=None):
        self.model = model
        self._table = table
        self._application = application
        self._specs: Dict[str, AttributeSpec] = {}
        self._options: Dict[str, Dict[str, Any]] = {}
        self._proxies: Dict[str, Any] = {}

        if parent is not None:
            self._inherit(parent)

    def _inherit(self, parent: 'AttributeRegistry') -> None:
        self._proxies.update(parent.proxies())
        if parent.model is not None and parent.model._meta.abstract:
            # keys default to the concrete table, so abstract declarations are
            # registered again for every concrete model
            for name, options in parent._options.items():
                self.register(name, **options)
        else:
            self._specs.update(parent.all())
            self._options.update(parent._options)

    @classmethod
    def for_model(cls, model) -> 'AttributeRegistry':
        registry = model.__dict__.get(cls.REGISTRY_ATTRIBUTE)
        if registry is None:
            parent = getattr(model, cls.REGISTRY_ATTRIBUTE, None)
            registry = cls(model=model, parent=parent)
            setattr(model, cls.REGISTRY_ATTRIBUTE, registry)
        return registry

    @property
    def table(self) -> str:
        if self._table:
            return self._table
        if self.model is not None:
            return self.model._meta.db_table
        return ''

    @property
    def application(self) -> str:
        return self._application or get_vault_setting('VAULT_APPLICATION')

    def default_key(self, name: str) -> str:
        return f'{self.application}_{self.table}_{name}'

    def register(self, name: str, **options) -> AttributeSpec:
        validate_options(options)

        copy_options = options.get('encrypted_copy')
        spec = AttributeSpec(
            name=name,
            key=options.get('key') or self.default_key(name),
            path=options.get('path') or DEFAULT_PATH,
            codec=_resolve_codec(options),
            encrypted_column=options.get('encrypted_column') or f'{name}_encrypted',
            convergent=bool(options.get('convergent', False)),
            type=options.get('type'),
            encrypted_copy=(
                EncryptedCopySpec.from_options(copy_options) if copy_options else None
            ),
            unique=bool(options.get('unique', False)),
            caster=caster_for(options.get('type')),
        )

        if name in self._specs:
            logger.debug(f"Redefining vault attribute {self.table}.{name}")
        self._specs[name] = spec
        self._options[name] = dict(options)
        return spec

    def register_proxy(self, name: str, proxy) -> None:
        self._proxies[name] = proxy

    def get(self, name: str) -> AttributeSpec:
        try:
            return self._specs[name]
        except KeyError:
            raise VaultArgumentError(
                f"`{name}' is not a vault attribute of {self.table or 'this registry'}"
            )

    def all(self) -> Mapping[str, AttributeSpec]:
        return MappingProxyType(self._specs)

    def proxies(self) -> Mapping[str, Any]:
        return MappingProxyType(self._proxies)

    def __contains__(self, name) -> bool:
        return name in self._specs

    def __iter__(self):
        return iter(self._specs.values())

    def __len__(self) -> int:
        return len(self._specs)

    def encrypted_columns(self) -> set:
        columns = set()
        for spec in self._specs.values():
            columns.update(spec.columns)
        return columns

    def copy_specs(self):
        return [spec for spec in self._specs.values() if spec.encrypted_copy]


class VaultAttribute:
    """Model attribute read and written in plaintext, stored as ciphertext

    Options:
        key: transit key name (default `{app}_{table}_{attribute}`)
        path: transit mount path (default `transit`)
        serializer: codec name, Codec instance or Codec subclass
        encode / decode: custom function pair, instead of a serializer
        encrypted_column: ciphertext column (default `{attribute}_encrypted`)
        convergent: deterministic ciphertext, enables equality search
        type: value type used to cast user input
        encrypted_copy: {'column', 'key' | 'key_column', 'field_json_path'}
        unique: validate uniqueness over ciphertext (convergent only)
    """

    def __init__(self, **options):
        self.options = options
        self.name = None

    def contribute_to_class(self, cls, name, **kwargs):
        self.name = name
        AttributeRegistry.for_model(cls).register(name, **self.options)
        setattr(cls, name, self)

    def __get__(self, instance, owner=None):
        if instance is None:
            return self
        from vault.lifecycle import RecordLifecycle

        return RecordLifecycle.read_attribute(instance, self.name)

    def __set__(self, instance, value):
        from vault.lifecycle import RecordLifecycle

        RecordLifecycle.write_attribute(instance, self.name, value)
