"""Parsing helpers for JSON request bodies and query strings.

Each ``Payload`` collects field errors and raises a single ValidationError
from ``check()``.
"""
from datetime import date
from decimal import Decimal, InvalidOperation

from flask import request

from .errors import ValidationError

_MISSING = object()


def json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError({"body": "A JSON object is required"})
    return data


class Payload:
    def __init__(self, data):
        self.data = data
        self.errors = {}

    def _raw(self, name, required):
        value = self.data.get(name, _MISSING)
        if value is _MISSING or value is None or value == "":
            if required:
                self.errors[name] = "This field is required"
            return _MISSING
        return value

    def string(self, name, required=True, max_length=None, pattern=None, default=None):
        value = self._raw(name, required)
        if value is _MISSING:
            return default
        value = str(value).strip()
        if required and not value:
            self.errors[name] = "This field is required"
            return default
        if max_length and len(value) > max_length:
            self.errors[name] = f"Must be at most {max_length} characters"
        elif pattern is not None and not pattern.match(value):
            self.errors[name] = "Invalid format"
        return value

    def money(self, name, required=True, positive=True):
        value = self._raw(name, required)
        if value is _MISSING:
            return None
        try:
            amount = Decimal(str(value))
        except (InvalidOperation, ValueError):
            self.errors[name] = "Must be a number"
            return None
        if not amount.is_finite():
            self.errors[name] = "Must be a number"
            return None
        if positive and amount <= 0:
            self.errors[name] = "Must be greater than zero"
        elif amount < 0:
            self.errors[name] = "Must not be negative"
        elif amount.as_tuple().exponent < -2:
            self.errors[name] = "At most 2 decimal places"
        return amount

    def integer(self, name, required=True, minimum=None, maximum=None, default=None):
        value = self._raw(name, required)
        if value is _MISSING:
            return default
        if isinstance(value, bool):
            self.errors[name] = "Must be an integer"
            return default
        if isinstance(value, float) and not value.is_integer():
            self.errors[name] = "Must be an integer"
            return default
        try:
            number = int(value)
        except (TypeError, ValueError):
            self.errors[name] = "Must be an integer"
            return default
        if (minimum is not None and number < minimum) or (maximum is not None and number > maximum):
            self.errors[name] = f"Must be between {minimum} and {maximum}"
        return number

    def boolean(self, name, default=False):
        value = self.data.get(name)
        if value is None:
            return default
        if isinstance(value, bool):
            return value
        return str(value).lower() in ("1", "true", "yes", "on")

    def date(self, name, required=True, default=None):
        value = self._raw(name, required)
        if value is _MISSING:
            return default
        try:
            return date.fromisoformat(str(value))
        except ValueError:
            self.errors[name] = "Must be an ISO date (YYYY-MM-DD)"
            return default

    def choice(self, name, choices, required=True, default=None):
        value = self._raw(name, required)
        if value is _MISSING:
            return default
        if value not in choices:
            self.errors[name] = f"Must be one of: {', '.join(choices)}"
            return default
        return value

    def check(self):
        if self.errors:
            raise ValidationError(self.errors)
        return self
