"""Printer for values and expressions."""

from .types import Procedure


def to_string(value):
    if value is None:
        return 'nil'
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, list):
        return '(' + ' '.join(to_string(item) for item in value) + ')'
    if isinstance(value, Procedure):
        if value.name is not None:
            return '#<Function: %s>' % value.name
        return '#<Lambda>'
    return str(value)
