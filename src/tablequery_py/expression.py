from __future__ import annotations

import re
from typing import Any

from .codec import AttributeValue, Codec
from .errors import MalformedExpressionError

_TOKEN = re.compile(
    r"'(?P<quoted>[^']*)'"
    r"|\$(?P<name>\w+)"
    r"|(?P<name_arg>\$)"
    r"|(?P<value>\?)"
    r"|(?P<unterminated>')"
)

type _Piece = tuple[str, Any]


class Substituter:
    """Rewrites condition templates into DynamoDB expression syntax.

    Placeholders understood in a template:

    - ``?`` takes the next argument as a value and becomes ``:vN``.
    - ``$name`` becomes ``#nN`` standing for the attribute ``name``.
    - a lone ``$`` takes the next argument (a string) as an attribute name.
    - ``'text'`` quotes an attribute name inline, for reserved words like
      ``'Count'``; the quotes are dropped and the name goes behind ``#nN``.

    Names and encoded values are deduplicated for the lifetime of the
    substituter, so a repeated name or an equal value reuses its placeholder.
    """

    def __init__(self, codec: Codec[Any]) -> None:
        self._codec = codec
        self._names: dict[str, str] = {}
        self._values: dict[str, AttributeValue] = {}
        self._name_refs: dict[str, str] = {}
        self._value_refs: dict[str, str] = {}

    @property
    def names(self) -> dict[str, str]:
        return dict(self._names)

    @property
    def values(self) -> dict[str, AttributeValue]:
        return dict(self._values)

    def sub_name(self, name: str) -> str:
        ref = self._name_refs.get(name)
        if ref is None:
            ref = f"#n{len(self._names)}"
            self._names[ref] = name
            self._name_refs[name] = ref
        return ref

    def sub_value(self, av: AttributeValue) -> str:
        key = Codec.value_key(av)
        ref = self._value_refs.get(key)
        if ref is None:
            ref = f":v{len(self._values)}"
            self._values[ref] = av
            self._value_refs[key] = ref
        return ref

    def substitute(self, expr: str, *args: Any) -> str:
        pieces = self._prepare(expr, args)

        out: list[str] = []
        for kind, payload in pieces:
            if kind == "text":
                out.append(payload)
            elif kind == "name":
                out.append(self.sub_name(payload))
            else:
                out.append(self.sub_value(payload))
        return "".join(out)

    def _prepare(self, expr: str, args: tuple[Any, ...]) -> list[_Piece]:
        # Everything is validated and encoded before any placeholder is
        # allocated, so a failing template leaves the maps untouched.
        pieces: list[_Piece] = []
        remaining = list(args)
        expected = 0
        pos = 0

        for match in _TOKEN.finditer(expr):
            if match.start() > pos:
                pieces.append(("text", expr[pos : match.start()]))
            pos = match.end()

            if match.group("unterminated") is not None:
                raise MalformedExpressionError(f"unterminated quoted name in expression: {expr!r}")

            quoted = match.group("quoted")
            if quoted is not None:
                if not quoted:
                    raise MalformedExpressionError(f"empty quoted name in expression: {expr!r}")
                pieces.append(("name", quoted))
                continue

            name = match.group("name")
            if name is not None:
                pieces.append(("name", name))
                continue

            expected += 1
            if not remaining:
                continue
            arg = remaining.pop(0)

            if match.group("name_arg") is not None:
                if not isinstance(arg, str) or not arg:
                    raise MalformedExpressionError(f"name placeholder {expected} needs a non-empty string")
                pieces.append(("name", arg))
                continue

            pieces.append(("value", self._encode(arg, expected)))

        if expected != len(args):
            raise MalformedExpressionError(
                f"expression has {expected} placeholders but {len(args)} arguments were given"
            )

        if pos < len(expr):
            pieces.append(("text", expr[pos:]))
        return pieces

    def _encode(self, value: Any, position: int) -> AttributeValue:
        try:
            return self._codec.encode(value)
        except (TypeError, ValueError, ArithmeticError) as err:
            raise MalformedExpressionError(f"cannot encode value for placeholder {position}: {err}") from err
