# ─────────────────────────────────────────────────────────────────────────────
# chloe/properties.py
# ─────────────────────────────────────────────────────────────────────────────
"""Enregistrement ``key=value`` et écriture du fichier de propriétés.

Le fichier transmis au moteur Chloe est un texte UTF-8 :
* une ligne de commentaire ``#`` horodatée ;
* une ligne ``clé=valeur`` par paramètre, dans l'ordre d'émission du builder.

Fonctions publiques
-------------------
write_properties(record, properties_file=None, scratch_dir=None) → Path
    Écrit l'enregistrement (fichier temporaire si aucun chemin n'est donné).
read_properties(path) → dict
    Relit un fichier de propriétés (commentaires ignorés).
"""

from __future__ import annotations
import logging
import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple, Union

from .exceptions import PropertiesError, SerializationIOError
from .values import Value, format_value

logger = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]


class PropertiesRecord:
    """Suite ordonnée de couples (clé, valeur) sans clé dupliquée."""

    def __init__(self, entries: Optional[List[Tuple[str, Value]]] = None):
        self._entries: List[Tuple[str, Value]] = []
        for key, value in entries or []:
            self.add(key, value)

    def add(self, key: str, value: Value) -> "PropertiesRecord":
        """Ajoute une entrée ; une valeur non représentable lève InvalidParameter."""
        if key in self:
            raise PropertiesError(f"Clé dupliquée dans l'enregistrement: {key}")
        format_value(value, key)
        self._entries.append((key, value))
        return self

    def __contains__(self, key: str) -> bool:
        return any(k == key for k, _ in self._entries)

    def __iter__(self) -> Iterator[Tuple[str, Value]]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, key: str) -> str:
        for k, v in self._entries:
            if k == key:
                return format_value(v, k)
        raise KeyError(key)

    def __eq__(self, other) -> bool:
        return isinstance(other, PropertiesRecord) and self._entries == other._entries

    def keys(self) -> List[str]:
        return [k for k, _ in self._entries]

    def lines(self) -> List[str]:
        return [f"{k}={format_value(v, k)}" for k, v in self._entries]

    def text(self) -> str:
        return "\n".join(self.lines()) + "\n"

    def __repr__(self) -> str:
        return f"PropertiesRecord({self.lines()!r})"


def _header() -> str:
    return "# " + datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S %Z")


def write_properties(
        record: PropertiesRecord,
        properties_file: Optional[PathLike] = None,
        scratch_dir: Optional[PathLike] = None,
) -> Path:
    """Écrit l'enregistrement sur disque et retourne le chemin du fichier.

    Le contenu est d'abord écrit dans un fichier voisin puis renommé, de sorte
    qu'un fichier final partiellement écrit ne soit jamais visible.

    Raises:
        SerializationIOError: Si le dossier ou le fichier ne peut être écrit
    """
    content = _header() + "\n" + record.text()

    if properties_file is None:
        target_dir = Path(scratch_dir) if scratch_dir else Path(tempfile.gettempdir())
        try:
            target_dir.mkdir(parents=True, exist_ok=True)
            fd, name = tempfile.mkstemp(prefix="chloe-", suffix=".properties", dir=target_dir)
            os.close(fd)
        except OSError as e:
            logger.error("Création du fichier temporaire impossible dans %s: %s", target_dir, e)
            raise SerializationIOError(target_dir, e) from e
        path = Path(name)
    else:
        path = Path(properties_file)

    tmp_path = path.with_name(path.name + ".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(tmp_path, "w", encoding="utf-8", newline="\n") as f:
            f.write(content)
        os.replace(tmp_path, path)
    except OSError as e:
        logger.error("Échec d'écriture du fichier de propriétés %s: %s", path, e)
        if tmp_path.exists():
            tmp_path.unlink()
        raise SerializationIOError(path, e) from e

    logger.debug("Fichier de propriétés écrit: %s (%d clés)", path, len(record))
    return path


def read_properties(path: PathLike) -> Dict[str, str]:
    """Relit les lignes ``clé=valeur`` d'un fichier de propriétés."""
    result: Dict[str, str] = {}
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            key, sep, value = line.partition("=")
            if not sep:
                raise PropertiesError(f"Ligne sans '=' dans {path}: {line}")
            result[key.strip()] = value
    return result
