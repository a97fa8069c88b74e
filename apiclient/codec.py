"""JSON codec used to encode request bodies and decode response bodies."""

import dataclasses
import json
import types
from typing import Any, Optional, Protocol, Union, get_args, get_origin, get_type_hints


class Codec(Protocol):
  """Serialises values to bytes and back into a requested type."""

  def decode(self, data: bytes, target: Any = None) -> Any:
    ...

  def encode(self, value: Any) -> bytes:
    ...


def _type_name(target: Any) -> str:
  return getattr(target, "__name__", None) or str(target)


def _mismatch(target: Any, value: Any) -> TypeError:
  return TypeError(f"Expected {_type_name(target)}, got {type(value).__name__}")


class JSONCodec:
  """Codec backed by the standard json module.

  Decoding parses the payload and then shapes it into the requested target.
  Dataclasses are built from JSON objects with every field shaped against its
  annotation, generic containers such as ``List[User]`` or
  ``dict[str, int]`` are shaped element by element, ``Optional``/``Union``
  targets try each member in order, and classes exposing ``from_dict`` are
  handed the parsed object.
  """

  def __init__(self, encoding: str = "utf-8"):
    self.encoding = encoding

  def decode(self, data: bytes, target: Any = None) -> Any:
    """Decode raw bytes into ``target``.

    Args:
      data: Raw response body
      target: Requested result type, None or Any for the parsed value

    Returns:
      Decoded value

    Raises:
      ValueError: If the payload is not valid JSON in the codec's encoding
      TypeError: If the parsed value does not fit the target type
    """
    if target is bytes:
      return data
    if target is str:
      return data.decode(self.encoding)

    value = json.loads(data.decode(self.encoding))
    return self.shape(value, target)

  def shape(self, value: Any, target: Any) -> Any:
    """Fit an already parsed JSON value to ``target``.

    Raises:
      TypeError: If the value does not fit the target type
    """
    if target is None or target is Any or target is object:
      return value

    origin = get_origin(target)
    if origin is Union or origin is types.UnionType:
      return self._shape_union(value, get_args(target))
    if origin is not None:
      return self._shape_generic(value, origin, get_args(target), target)

    if target is type(None):
      if value is not None:
        raise _mismatch(target, value)
      return None
    if target is float:
      if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise _mismatch(float, value)
      return float(value)
    if target is int:
      if isinstance(value, bool) or not isinstance(value, int):
        raise _mismatch(int, value)
      return value
    if target in (str, bool, dict, list):
      if not isinstance(value, target):
        raise _mismatch(target, value)
      return value
    if target is tuple:
      if not isinstance(value, list):
        raise _mismatch(target, value)
      return tuple(value)
    if dataclasses.is_dataclass(target) and isinstance(target, type):
      return self._shape_dataclass(value, target)

    from_dict = getattr(target, "from_dict", None)
    if callable(from_dict):
      return from_dict(value)
    if callable(target):
      return target(value)

    raise TypeError(f"Unsupported decode target: {target!r}")

  def _shape_union(self, value: Any, members: tuple) -> Any:
    if value is None and type(None) in members:
      return None
    for member in members:
      if member is type(None):
        continue
      try:
        return self.shape(value, member)
      except (TypeError, ValueError, KeyError):
        continue
    names = ", ".join(_type_name(m) for m in members)
    raise TypeError(f"Expected one of ({names}), got {type(value).__name__}")

  def _shape_generic(self, value: Any, origin: Any, args: tuple, target: Any) -> Any:
    if origin in (list, set, frozenset):
      if not isinstance(value, list):
        raise _mismatch(target, value)
      item_type = args[0] if args else Any
      return origin(self.shape(item, item_type) for item in value)

    if origin is tuple:
      if not isinstance(value, list):
        raise _mismatch(target, value)
      if len(args) == 2 and args[1] is Ellipsis:
        return tuple(self.shape(item, args[0]) for item in value)
      if args and len(args) != len(value):
        raise TypeError(f"Expected {len(args)} items for {target}, got {len(value)}")
      item_types = args or (Any,) * len(value)
      return tuple(self.shape(item, item_type) for item, item_type in zip(value, item_types))

    if origin is dict:
      if not isinstance(value, dict):
        raise _mismatch(target, value)
      key_type, value_type = args if args else (Any, Any)
      return {
        self.shape(key, key_type): self.shape(item, value_type)
        for key, item in value.items()
      }

    raise TypeError(f"Unsupported decode target: {target!r}")

  def _shape_dataclass(self, value: Any, target: type) -> Any:
    if not isinstance(value, dict):
      raise TypeError(f"Expected JSON object for {target.__name__}, got {type(value).__name__}")

    hints = get_type_hints(target)
    init_fields = {f.name for f in dataclasses.fields(target) if f.init}
    unknown = set(value) - init_fields
    if unknown:
      raise TypeError(f"Unexpected fields for {target.__name__}: {', '.join(sorted(unknown))}")

    kwargs = {}
    for name, item in value.items():
      try:
        kwargs[name] = self.shape(item, hints.get(name, Any))
      except TypeError as e:
        raise TypeError(f"{target.__name__}.{name}: {e}") from e
    return target(**kwargs)

  def encode(self, value: Any) -> bytes:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
      value = dataclasses.asdict(value)
    return json.dumps(value, separators=(",", ":")).encode(self.encoding)


def default_codec(codec: Optional[Codec] = None) -> Codec:
  return codec if codec is not None else JSONCodec()
