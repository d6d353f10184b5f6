from datetime import datetime, date
from pytz import timezone as pytz_timezone, utc
from config import Config
import locale

try:
    locale.setlocale(locale.LC_ALL, 'pt_BR.UTF-8')
except locale.Error:
    try:
        locale.setlocale(locale.LC_ALL, 'pt_BR')
    except locale.Error:
        locale.setlocale(locale.LC_ALL, '')

FUSO_IGREJA = pytz_timezone(Config.TIMEZONE)


def to_brasilia(value):
    if value is None:
        return ''
    if not isinstance(value, datetime):
        return str(value)

    if value.tzinfo is None:
        value_utc_aware = utc.localize(value)
    else:
        value_utc_aware = value.astimezone(utc)

    return value_utc_aware.astimezone(FUSO_IGREJA)


def format_datetime(value, format="%d/%m/%Y %H:%M"):
    if value is None or value == '':
        return ''
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace('Z', '+00:00'))
        except ValueError:
            return value
        if value.tzinfo is None:
            return value.strftime(format)
    if isinstance(value, date) and not isinstance(value, datetime):
        return value.strftime(format.split(' ')[0])
    if not isinstance(value, datetime):
        return str(value)
    dt_brasilia = to_brasilia(value)
    return dt_brasilia.strftime(format)


def format_currency(value, symbol='R$', decimal_places=2):
    if value is None:
        return ''
    try:
        value = float(value)
        formatted_value = locale.format_string(f"%.{decimal_places}f", value, grouping=True)
        return f"{symbol} {formatted_value}"
    except (ValueError, TypeError):
        return str(value)


def format_telefone(value):
    """Exibe um telefone brasileiro como (DD) 9XXXX-XXXX; outros formatos passam intactos."""
    if not value:
        return ''
    digitos = ''.join(c for c in str(value) if c.isdigit())
    if digitos.startswith('55') and len(digitos) in (12, 13):
        digitos = digitos[2:]
    if len(digitos) == 11:
        return f"({digitos[:2]}) {digitos[2:7]}-{digitos[7:]}"
    if len(digitos) == 10:
        return f"({digitos[:2]}) {digitos[2:6]}-{digitos[6:]}"
    return str(value)
