# ─────────────────────────────────────────────────────────────────────────────
# chloe/values.py
# ─────────────────────────────────────────────────────────────────────────────
"""Valeurs typées des paramètres et leur rendu dans le format properties.

Chaque paramètre d'une requête est converti en une variante étiquetée :

* ``Text``      chaîne ou chemin, rendu tel quel ;
* ``Number``    entier ou flottant, rendu indépendamment de la locale ;
* ``Flag``      booléen, rendu ``true`` / ``false`` ;
* ``ValueList`` liste de scalaires, rendue ``{a;b;c}`` ;
* ``PairList``  liste de couples, rendue ``{(a,b);(c,d)}`` ou ``{(a-b)}``.

Le format ne prévoit aucun échappement : les caractères réservés sont refusés.
"""

from __future__ import annotations
import os
from dataclasses import dataclass
from typing import Any, Sequence, Tuple, Union

import numpy as np

from .exceptions import InvalidParameter

_LIST_RESERVED = set("{};\n\r")
_PAIR_RESERVED = _LIST_RESERVED | set(",()")

Scalar = Union[str, int, float, bool]


@dataclass(frozen=True)
class Text:
    value: str


@dataclass(frozen=True)
class Number:
    value: Union[int, float]


@dataclass(frozen=True)
class Flag:
    value: bool


@dataclass(frozen=True)
class ValueList:
    items: Tuple[Scalar, ...]


@dataclass(frozen=True)
class PairList:
    pairs: Tuple[Tuple[Scalar, Scalar], ...]
    sep: str = ","


Value = Union[Text, Number, Flag, ValueList, PairList]


def _scalar(value: Any) -> Scalar:
    """Ramène un scalaire numpy ou un chemin à un type Python natif."""
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, os.PathLike):
        return os.fspath(value)
    return value


def format_scalar(value: Scalar) -> str:
    value = _scalar(value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value)


def _checked(name: str, text: str, reserved: set) -> str:
    bad = sorted(c for c in set(text) if c in reserved)
    if bad:
        raise InvalidParameter(name, text, f"caractères réservés {bad}")
    return text


def format_value(value: Value, name: str = "value") -> str:
    """Rend une variante sous sa forme textuelle."""
    if isinstance(value, Flag):
        return "true" if value.value else "false"
    if isinstance(value, Number):
        return format_scalar(value.value)
    if isinstance(value, Text):
        return _checked(name, value.value, set("\n\r"))
    if isinstance(value, ValueList):
        items = [_checked(name, format_scalar(v), _LIST_RESERVED) for v in value.items]
        return "{" + ";".join(items) + "}"
    if isinstance(value, PairList):
        rendered = []
        for a, b in value.pairs:
            left = _checked(name, format_scalar(a), _PAIR_RESERVED)
            right = _checked(name, format_scalar(b), _PAIR_RESERVED)
            rendered.append(f"({left}{value.sep}{right})")
        return "{" + ";".join(rendered) + "}"
    raise TypeError(f"Variante de valeur inconnue: {type(value).__name__}")


def _as_sequence(value: Any) -> Sequence:
    if isinstance(value, np.ndarray):
        return value.tolist()
    if isinstance(value, (str, bytes, os.PathLike)) or not hasattr(value, "__iter__"):
        return [value]
    return list(value)


def to_value(value: Any) -> Value:
    """Convertit une valeur fournie par l'appelant en variante scalaire."""
    value = _scalar(value)
    if isinstance(value, bool):
        return Flag(value)
    if isinstance(value, (int, float)):
        return Number(value)
    if isinstance(value, str):
        return Text(value)
    raise InvalidParameter("value", value, "type scalaire non supporté")


def to_list(value: Any) -> ValueList:
    """Accepte un scalaire, une séquence ou un tableau numpy."""
    return ValueList(tuple(_scalar(v) for v in _as_sequence(value)))


def to_pairs(name: str, value: Any, sep: str = ",") -> PairList:
    pairs = []
    for item in _as_sequence(value):
        members = _as_sequence(item)
        if len(members) != 2:
            raise InvalidParameter(name, item, "un couple de deux éléments est attendu")
        pairs.append((_scalar(members[0]), _scalar(members[1])))
    return PairList(tuple(pairs), sep)
