"""
Codecs turn attribute values into the plaintext sent to the transit service
and back again.

A codec never sees None: both directions pass it through untouched.
"""
import base64
import ipaddress
import json
from abc import ABC, abstractmethod
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Callable, Dict, Optional, Union

from django.core.serializers.json import DjangoJSONEncoder

from vault.exceptions import ValidationFailedError


class Codec(ABC):
    name = None

    def encode(self, value: Any) -> Optional[str]:
        if value is None:
            return None
        return self.to_plaintext(value)

    def decode(self, plaintext: Optional[str]) -> Any:
        if plaintext is None:
            return None
        return self.from_plaintext(plaintext)

    @abstractmethod
    def to_plaintext(self, value: Any) -> str:
        raise NotImplementedError

    @abstractmethod
    def from_plaintext(self, plaintext: str) -> Any:
        raise NotImplementedError


class StringCodec(Codec):
    name = 'string'

    def to_plaintext(self, value):
        return str(value)

    def from_plaintext(self, plaintext):
        return plaintext


class JSONCodec(Codec):
    name = 'json'

    def to_plaintext(self, value):
        return json.dumps(value, cls=DjangoJSONEncoder, separators=(',', ':'), sort_keys=True)

    def from_plaintext(self, plaintext):
        return json.loads(plaintext)


class IntegerCodec(Codec):
    name = 'integer'

    def to_plaintext(self, value):
        return str(int(value))

    def from_plaintext(self, plaintext):
        if plaintext == '':
            return None
        return int(plaintext)


class FloatCodec(Codec):
    name = 'float'

    def to_plaintext(self, value):
        return repr(float(value))

    def from_plaintext(self, plaintext):
        if plaintext == '':
            return None
        return float(plaintext)


class DecimalCodec(Codec):
    name = 'decimal'

    def to_plaintext(self, value):
        return str(Decimal(str(value)))

    def from_plaintext(self, plaintext):
        if plaintext == '':
            return None
        return Decimal(plaintext)


class BooleanCodec(Codec):
    name = 'boolean'

    def to_plaintext(self, value):
        return 'true' if value else 'false'

    def from_plaintext(self, plaintext):
        if plaintext == '':
            return None
        return plaintext == 'true'


class DateCodec(Codec):
    name = 'date'

    def to_plaintext(self, value):
        if isinstance(value, datetime):
            value = value.date()
        return value.isoformat()

    def from_plaintext(self, plaintext):
        return date.fromisoformat(plaintext)


class DateTimeCodec(Codec):
    """ISO 8601 timestamps, offsets are kept when the value is aware"""

    name = 'datetime'

    def to_plaintext(self, value):
        return value.isoformat()

    def from_plaintext(self, plaintext):
        return datetime.fromisoformat(plaintext)


class TimeCodec(Codec):
    name = 'time'

    def to_plaintext(self, value):
        return value.isoformat()

    def from_plaintext(self, plaintext):
        return time.fromisoformat(plaintext)


class BinaryCodec(Codec):
    name = 'binary'

    def to_plaintext(self, value):
        if isinstance(value, str):
            value = value.encode()
        return base64.b64encode(bytes(value)).decode()

    def from_plaintext(self, plaintext):
        return base64.b64decode(plaintext)


class IPAddressCodec(Codec):
    name = 'ipaddr'

    def to_plaintext(self, value):
        return str(value)

    def from_plaintext(self, plaintext):
        if '/' in plaintext:
            return ipaddress.ip_network(plaintext, strict=False)
        return ipaddress.ip_address(plaintext)


class FunctionCodec(Codec):
    """Wraps a literal encode/decode pair given on the attribute declaration"""

    name = 'custom'

    def __init__(self, encode: Callable[[Any], Any], decode: Callable[[Any], Any]):
        self._encode = encode
        self._decode = decode

    # custom functions receive None as well, the pair decides what it means
    def encode(self, value):
        return self._encode(value)

    def decode(self, plaintext):
        return self._decode(plaintext)

    def to_plaintext(self, value):
        return self._encode(value)

    def from_plaintext(self, plaintext):
        return self._decode(plaintext)


BUILTIN_CODECS: Dict[str, Codec] = {
    codec.name: codec
    for codec in (
        StringCodec(),
        JSONCodec(),
        IntegerCodec(),
        FloatCodec(),
        DecimalCodec(),
        BooleanCodec(),
        DateCodec(),
        DateTimeCodec(),
        TimeCodec(),
        BinaryCodec(),
        IPAddressCodec(),
    )
}
BUILTIN_CODECS['timestamp'] = BUILTIN_CODECS['datetime']

DEFAULT_CODEC = BUILTIN_CODECS['string']


def codec_for(serializer: Union[str, Codec, type]) -> Codec:
    """Resolve a codec name, a Codec instance or a Codec subclass"""
    if isinstance(serializer, Codec):
        return serializer

    if isinstance(serializer, type) and issubclass(serializer, Codec):
        return serializer()

    codec = BUILTIN_CODECS.get(str(serializer).lower())
    if codec is None:
        raise ValidationFailedError(f"Unknown vault serializer `{serializer}'")
    return codec
