"""
:py:mod:`nested_serde.renderer` turns attribute and identifier values read
from resources into JSON-compatible values.

Synopsis
--------

.. code-block:: python

   import datetime
   import json

   from nested_serde.renderer import ValueRenderer

   renderer = ValueRenderer(assume_naive_timezone_as=datetime.timezone.utc)
   print(json.dumps(renderer({"at": datetime.datetime(2020, 1, 1)})))

"""

import base64
import collections.abc
import datetime
import decimal
import enum
import typing
import uuid
from collections import OrderedDict

from .exceptions import ConversionError
from .types import JSONScalar, JSONValue
from .utils import Path


class TZLocalizer(typing.Protocol):
    def localize(self, dt: datetime.datetime) -> datetime.datetime:
        ...  # pragma: nocover


class ValueRenderer:
    _render_decimal_as_str: bool = True
    _assume_naive_timezone_as: typing.Optional[datetime.tzinfo] = None

    def _render_datetime(self: "ValueRenderer", path: Path, value: typing.Any) -> JSONScalar:
        _value = typing.cast(datetime.datetime, value)
        if _value.tzinfo is None:
            if self._assume_naive_timezone_as is None:
                raise ValueError(f"naive datetime {_value}")
            else:
                if hasattr(self._assume_naive_timezone_as, "localize"):
                    _value = typing.cast(TZLocalizer, self._assume_naive_timezone_as).localize(
                        _value
                    )
                else:
                    _value = _value.replace(tzinfo=self._assume_naive_timezone_as)
        return _value.astimezone(datetime.timezone.utc).isoformat()

    def _render_date(self: "ValueRenderer", path: Path, value: typing.Any) -> JSONScalar:
        return typing.cast(datetime.date, value).isoformat()

    def _render_time(self: "ValueRenderer", path: Path, value: typing.Any) -> JSONScalar:
        return typing.cast(datetime.time, value).isoformat()

    def _render_decimal(self: "ValueRenderer", path: Path, value: typing.Any) -> JSONScalar:
        _value = typing.cast(decimal.Decimal, value)
        return str(_value) if self._render_decimal_as_str else float(_value)

    def _render_bytes(self: "ValueRenderer", path: Path, value: typing.Any) -> JSONScalar:
        return base64.b64encode(typing.cast(bytes, value)).decode("ascii")

    def _render_uuid(self: "ValueRenderer", path: Path, value: typing.Any) -> JSONScalar:
        return str(value)

    def _render_enum(self: "ValueRenderer", path: Path, value: typing.Any) -> JSONValue:
        return self._render(path, typing.cast(enum.Enum, value).value)

    def _render_passthrough(self: "ValueRenderer", path: Path, value: typing.Any) -> JSONScalar:
        return typing.cast(JSONScalar, value)

    # enum comes first as str and int based enums are instances of both
    _supported_types: typing.ClassVar[typing.Dict[type, typing.Callable]] = {
        enum.Enum: _render_enum,
        datetime.datetime: _render_datetime,
        datetime.date: _render_date,
        datetime.time: _render_time,
        decimal.Decimal: _render_decimal,
        bytes: _render_bytes,
        uuid.UUID: _render_uuid,
        str: _render_passthrough,
        int: _render_passthrough,
        float: _render_passthrough,
        bool: _render_passthrough,
        None.__class__: _render_passthrough,
    }

    def _render(self, path: Path, value: typing.Any) -> JSONValue:
        # fast pass
        r = self._supported_types.get(type(value))
        if r is not None:
            return r(self, path, value)

        for type_, r in self._supported_types.items():
            if isinstance(value, type_):
                return r(self, path, value)

        if isinstance(value, collections.abc.Mapping):
            return OrderedDict(
                (str(k), self._render(path + (str(k),), v)) for k, v in value.items()
            )
        if isinstance(value, (collections.abc.Sequence, collections.abc.Set)):
            return [self._render(path + (i,), v) for i, v in enumerate(value)]

        raise TypeError(f"unsupported type {type(value).__name__}")

    def render(self, path: Path, value: typing.Any) -> JSONValue:
        """
        Renders a value into a JSON-compatible value.

        :param path: the location of the value in the document, used for error reporting.
        :param Any value: the value to render.
        :raises ConversionError: if the value (or a value inside it) is not renderable.
        """
        try:
            return self._render(path, value)
        except (TypeError, ValueError) as e:
            raise ConversionError(value, path) from e

    def __call__(self, value: typing.Any) -> JSONValue:
        return self.render((), value)

    def __init__(
        self,
        render_decimal_as_str: bool = True,
        assume_naive_timezone_as: typing.Optional[datetime.tzinfo] = None,
    ):
        self._render_decimal_as_str = render_decimal_as_str
        self._assume_naive_timezone_as = assume_naive_timezone_as
