# ─────────────────────────────────────────────────────────────────────────────
# chloe/exceptions.py
# ─────────────────────────────────────────────────────────────────────────────
"""Hiérarchie des exceptions du binding Chloe.

Les erreurs de validation (paramètres manquants, incompatibles ou invalides)
sont levées avant toute écriture sur disque. Les autres signalent un échec
terminal de l'appel en cours : rien n'est réessayé automatiquement.
"""

from __future__ import annotations
from typing import Iterable, Optional


class ChloeError(Exception):
    """Exception de base pour toutes les erreurs du binding."""
    pass


class ParameterError(ChloeError, ValueError):
    """Requête de traitement invalide."""
    pass


class MissingParameter(ParameterError):
    def __init__(self, name: str, kind: Optional[str] = None):
        self.name = name
        self.kind = kind
        where = f" pour le traitement '{kind}'" if kind else ""
        super().__init__(f"Paramètre requis manquant{where}: {name}")


class ConflictingParameters(ParameterError):
    def __init__(self, names: Iterable[str], kind: Optional[str] = None):
        self.names = tuple(names)
        self.kind = kind
        where = f" ({kind})" if kind else ""
        super().__init__(
            f"Paramètres mutuellement exclusifs{where}: {', '.join(self.names)}"
        )


class InvalidParameter(ParameterError):
    def __init__(self, name: str, value, reason: str):
        self.name = name
        self.value = value
        super().__init__(f"Valeur invalide pour {name}={value!r}: {reason}")


class PropertiesError(ChloeError):
    """Enregistrement de propriétés mal formé (clé dupliquée, etc.)."""
    pass


class RuntimeNotFound(ChloeError):
    """Aucun runtime Java utilisable n'a été trouvé."""
    pass


class EngineArtifactNotFound(ChloeError):
    """L'archive du moteur Chloe est introuvable."""
    pass


class CatalogUnavailable(ChloeError):
    """Le catalogue des métriques est absent ou illisible."""
    pass


class SettingsLockTimeout(ChloeError):
    """Impossible d'obtenir le verrou du fichier de paramètres."""
    pass


class SerializationIOError(ChloeError, OSError):
    def __init__(self, path, cause: OSError):
        self.path = path
        self.cause = cause
        super().__init__(f"Écriture impossible du fichier de propriétés {path}: {cause}")


class EngineError(ChloeError):
    """Échec de l'exécution du moteur externe."""

    def __init__(self, message: str, path=None):
        self.path = path
        super().__init__(message)


class EngineNonZeroExit(EngineError):
    def __init__(self, code: int, path=None):
        self.code = code
        super().__init__(f"Le moteur Chloe s'est terminé avec le code {code} ({path})", path)


class EngineTimeout(EngineError):
    def __init__(self, timeout: float, path=None):
        self.timeout = timeout
        super().__init__(f"Timeout dépassé ({timeout}s) pour {path}", path)


class EngineCancelled(EngineError):
    def __init__(self, path=None):
        super().__init__(f"Exécution annulée pour {path}", path)
