"""
Casters coerce user input before it is cached and encoded, so that
`person.integer_data = '1'` stores the integer 1.

Most of them borrow `to_python` from the matching Django model field.
"""
import ipaddress
from decimal import Decimal
from typing import Any, Callable, Dict, Optional

from django.db import models

from vault.exceptions import UnrecognizedTypeError

Caster = Callable[[Any], Any]


def _identity(value):
    return value


def _cast_decimal(value):
    if value is None or value == '':
        return None
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _cast_ip_address(value):
    if value is None or value == '':
        return None
    if isinstance(value, (ipaddress.IPv4Address, ipaddress.IPv6Address)):
        return value
    if isinstance(value, (ipaddress.IPv4Network, ipaddress.IPv6Network)):
        return value
    if '/' in str(value):
        return ipaddress.ip_network(str(value), strict=False)
    return ipaddress.ip_address(str(value))


def _cast_binary(value):
    if value is None:
        return None
    if isinstance(value, str):
        return value.encode()
    return bytes(value)


def _field_caster(field: models.Field) -> Caster:
    def cast(value):
        if value == '':
            return None
        return field.to_python(value)

    return cast


TYPE_CASTERS: Dict[str, Caster] = {
    'value': _identity,
    'json': _identity,
    'string': models.TextField().to_python,
    'integer': _field_caster(models.IntegerField()),
    'float': _field_caster(models.FloatField()),
    'boolean': _field_caster(models.BooleanField(null=True)),
    'date': _field_caster(models.DateField()),
    'datetime': _field_caster(models.DateTimeField()),
    'timestamp': _field_caster(models.DateTimeField()),
    'time': _field_caster(models.TimeField()),
    'decimal': _cast_decimal,
    'ipaddr': _cast_ip_address,
    'binary': _cast_binary,
}


def caster_for(type_name: Optional[str]) -> Caster:
    if type_name is None:
        return _identity

    caster = TYPE_CASTERS.get(str(type_name).lower())
    if caster is None:
        raise UnrecognizedTypeError(f"Unrecognized vault attribute type `{type_name}'")
    return caster
