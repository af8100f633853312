"""Declarative field rules.

Each field knows its wire name (camelCase, as clients send it), the
column it is stored in, how to clean an incoming value and how to
render a stored value back to JSON.  ``clean`` raises
:class:`~app_engine.errors.ValidationError` with a client-facing message.
"""

import copy
import math
import re
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID

from app_engine.errors import ValidationError
from app_engine.schema.sanitize import (
    DEFAULT_ALLOWED_ATTRIBUTES,
    DEFAULT_ALLOWED_TAGS,
    sanitize_html,
    strip_tags,
)

_CAMEL_RE = re.compile(r"([a-z0-9])([A-Z])")
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def column_for(name: str) -> str:
    """``numRaters`` -> ``num_raters``; ``liveHTML`` -> ``live_html``."""
    return _CAMEL_RE.sub(r"\1_\2", name).lower()


def is_valid_id(value: Any) -> bool:
    """True when *value* is a syntactically valid record id."""
    if isinstance(value, UUID):
        return True
    if not isinstance(value, str):
        return False
    try:
        UUID(value)
    except ValueError:
        return False
    return True


class Field:
    """Base field: stores the value untouched."""

    def __init__(
        self,
        name: str,
        default: Any = None,
        *,
        column: str | None = None,
        required: bool = False,
        sensitive: bool = False,
        readonly: bool = False,
    ) -> None:
        self.name = name
        self.default = default
        self.column = column or column_for(name)
        self.required = required
        self.sensitive = sensitive
        self.readonly = readonly

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"

    def default_value(self) -> Any:
        return copy.deepcopy(self.default)

    def clean(self, value: Any) -> Any:
        return value

    def to_json(self, value: Any) -> Any:
        if isinstance(value, UUID):
            return str(value)
        return value


class Text(Field):
    """Plain text; tags are stripped and whitespace trimmed."""

    def __init__(
        self,
        name: str,
        default: str = "",
        *,
        min_chars: int = 0,
        max_chars: int | None = 500,
        strip_html: bool = True,
        **kw: Any,
    ) -> None:
        super().__init__(name, default, **kw)
        self.min_chars = min_chars
        self.max_chars = max_chars
        self.strip_html = strip_html

    def _to_str(self, value: Any) -> str:
        if value is None:
            return ""
        if isinstance(value, bool) or isinstance(value, (list, dict)):
            raise ValidationError(f"'{self.name}' must be text")
        return str(value)

    def _check_length(self, value: str) -> str:
        if self.min_chars and not value:
            raise ValidationError(f"{self.name} cannot be empty")
        if len(value) < self.min_chars:
            raise ValidationError(
                f"The character length of '{self.name}' is too short, "
                f"please keep it above {self.min_chars}"
            )
        if self.max_chars is not None and len(value) > self.max_chars:
            raise ValidationError(
                f"The character length of '{self.name}' is too long, "
                f"please keep it below {self.max_chars}"
            )
        return value

    def clean(self, value: Any) -> str:
        text = self._to_str(value)
        if self.strip_html:
            text = strip_tags(text)
        return self._check_length(text.strip())


class Html(Text):
    """Rich text checked against a tag allow-list.

    Markup that would be altered by sanitising is rejected outright
    rather than silently rewritten.
    """

    def __init__(
        self,
        name: str,
        default: str = "",
        *,
        allowed_tags: frozenset[str] = DEFAULT_ALLOWED_TAGS,
        allowed_attributes: dict[str, frozenset[str]] | None = None,
        max_chars: int | None = 10_000,
        **kw: Any,
    ) -> None:
        super().__init__(name, default, max_chars=max_chars, strip_html=False, **kw)
        self.allowed_tags = allowed_tags
        self.allowed_attributes = allowed_attributes or DEFAULT_ALLOWED_ATTRIBUTES

    def clean(self, value: Any) -> str:
        markup = self._to_str(value)
        _, changed = sanitize_html(markup, self.allowed_tags, self.allowed_attributes)
        if changed:
            raise ValidationError(f"'{self.name}' has html code that is not allowed")
        return self._check_length(markup.strip())


class Num(Field):
    def __init__(
        self,
        name: str,
        default: float = 0,
        *,
        min_value: float | None = None,
        max_value: float | None = None,
        integer: bool = False,
        **kw: Any,
    ) -> None:
        super().__init__(name, default, **kw)
        self.min_value = min_value
        self.max_value = max_value
        self.integer = integer

    def clean(self, value: Any) -> float | int:
        if isinstance(value, bool) or value is None or isinstance(value, (list, dict)):
            raise ValidationError(f"Please use a valid number for '{self.name}'")
        try:
            number = float(value)
        except (TypeError, ValueError):
            raise ValidationError(f"Please use a valid number for '{self.name}'")
        if math.isnan(number) or math.isinf(number):
            raise ValidationError(f"Please use a valid number for '{self.name}'")

        if self.min_value is not None and self.max_value is not None:
            if not self.min_value <= number <= self.max_value:
                raise ValidationError(
                    f"'{self.name}' must be a number between "
                    f"{self.min_value} and {self.max_value}"
                )
        elif self.min_value is not None and number < self.min_value:
            raise ValidationError(f"'{self.name}' must be at least {self.min_value}")
        elif self.max_value is not None and number > self.max_value:
            raise ValidationError(f"'{self.name}' must be at most {self.max_value}")

        if self.integer or number.is_integer():
            return int(round(number))
        return number


class Bool(Field):
    _TRUE = frozenset({"true", "1", "yes"})
    _FALSE = frozenset({"false", "0", "no"})

    def __init__(self, name: str, default: bool = False, **kw: Any) -> None:
        super().__init__(name, default, **kw)

    def clean(self, value: Any) -> bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in self._TRUE:
                return True
            if lowered in self._FALSE:
                return False
        raise ValidationError(f"'{self.name}' must be a boolean")


class Id(Field):
    """Reference to another record; ``None`` / ``""`` mean unset."""

    def clean(self, value: Any) -> str | None:
        if value is None or value == "":
            if self.required:
                raise ValidationError(f"{self.name} is required")
            return None
        if not is_valid_id(value):
            raise ValidationError(f"Please use a valid ID for '{self.name}'")
        return str(UUID(str(value)))


class _ListField(Field):
    def __init__(
        self,
        name: str,
        default: list | None = None,
        *,
        min_items: int = 0,
        max_items: int | None = 10_000,
        **kw: Any,
    ) -> None:
        super().__init__(name, default if default is not None else [], **kw)
        self.min_items = min_items
        self.max_items = max_items

    def clean_item(self, item: Any) -> Any:
        return item

    def clean(self, value: Any) -> list:
        if value is None:
            value = []
        if not isinstance(value, (list, tuple)):
            raise ValidationError(f"'{self.name}' must be a list")
        items = [self.clean_item(item) for item in value]
        if len(items) < self.min_items:
            noun = "item" if self.min_items == 1 else "items"
            raise ValidationError(
                f"You must select at least {self.min_items} {noun} for {self.name}"
            )
        if self.max_items is not None and len(items) > self.max_items:
            raise ValidationError(
                f"You have selected too many items for {self.name}, "
                f"please only use up to {self.max_items}"
            )
        return items

    def to_json(self, value: Any) -> Any:
        if value is None:
            return []
        return [str(v) if isinstance(v, UUID) else v for v in value]


class TextList(_ListField):
    def clean_item(self, item: Any) -> str:
        if not isinstance(item, (str, int, float)) or isinstance(item, bool):
            raise ValidationError(f"'{self.name}' must only contain text")
        return strip_tags(str(item)).strip()


class IdList(_ListField):
    def clean_item(self, item: Any) -> str:
        if not is_valid_id(item):
            raise ValidationError(f"Please use a valid ID for '{self.name}'")
        return str(UUID(str(item)))


class NumList(_ListField):
    def __init__(self, name: str, default: list | None = None, *, integer: bool = True, **kw: Any) -> None:
        super().__init__(name, default, **kw)
        self._item = Num(name, integer=integer)

    def clean_item(self, item: Any) -> float | int:
        return self._item.clean(item)


class Json(Field):
    """Free-form JSON document, optionally constrained to a list or object."""

    def __init__(self, name: str, default: Any = None, *, container: type | None = None, **kw: Any) -> None:
        super().__init__(name, default, **kw)
        self.container = container

    def clean(self, value: Any) -> Any:
        if self.container is list and not isinstance(value, list):
            raise ValidationError(f"'{self.name}' must be a list")
        if self.container is dict and not isinstance(value, dict):
            raise ValidationError(f"'{self.name}' must be an object")
        return value


class Date(Field):
    """Server-managed timestamp rendered as epoch milliseconds."""

    def __init__(self, name: str, **kw: Any) -> None:
        kw.setdefault("readonly", True)
        super().__init__(name, None, **kw)

    def to_json(self, value: Any) -> Any:
        if isinstance(value, datetime):
            if value.tzinfo is None:
                value = value.replace(tzinfo=timezone.utc)
            return (value - _EPOCH) // timedelta(milliseconds=1)
        return value
