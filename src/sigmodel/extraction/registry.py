"""
Model Registry.

Deduplicates named models within one extraction pass. A placeholder entry
is installed before a model's body is computed, so a recursive reference
met while computing it resolves to a reference instead of looping.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from sigmodel.errors import PendingKeyMisuse
from sigmodel.models import ParserModel, ReferenceParserModel

logger = logging.getLogger(__name__)


class EntryState(str, Enum):
    """Lifecycle of a registry entry. PENDING -> RESOLVED, never back."""

    PENDING = "pending"
    RESOLVED = "resolved"


class EntryKind(str, Enum):
    """What a registry entry holds."""

    MODEL = "model"  # Exported in deps
    TEMPLATE = "template"  # Generic body with type-parameter placeholders


@dataclass
class RegistryEntry:
    """One keyed entry.

    Attributes:
        key: Identity key
        kind: Model or template
        state: Pending or resolved
        model: The resolved model (None while pending)
    """

    key: str
    kind: EntryKind = EntryKind.MODEL
    state: EntryState = EntryState.PENDING
    model: Optional[ParserModel] = None


@dataclass
class RegistryStats:
    """Counters for one pass."""

    hits: int = 0
    misses: int = 0
    templates: int = 0

    def to_dict(self) -> dict[str, int]:
        return {"hits": self.hits, "misses": self.misses, "templates": self.templates}


class ModelRegistry:
    """Keyed store of named models for one extraction pass.

    Keys are unique; once an entry is resolved its model never changes.

    Usage:
        registry = ModelRegistry()
        ref = registry.get_or_create("Aad", lambda: extract_body(aad))
        deps = registry.deps()
    """

    def __init__(self) -> None:
        self._entries: dict[str, RegistryEntry] = {}
        self._templates: dict[str, RegistryEntry] = {}
        self.stats = RegistryStats()

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def is_pending(self, key: str) -> bool:
        """Whether an entry exists and has not resolved yet."""
        entry = self._entries.get(key)
        return entry is not None and entry.state == EntryState.PENDING

    def get_or_create(
        self,
        key: str,
        compute: Callable[[], ParserModel],
        type_arguments: Optional[list[ParserModel]] = None,
    ) -> ReferenceParserModel:
        """Get a reference to a keyed model, computing it on first use.

        The entry is PENDING while ``compute`` runs, so re-entrant calls for
        the same key return a reference immediately.

        Args:
            key: Identity key
            compute: Produces the model; called at most once per key
            type_arguments: Resolved type arguments to carry on the reference

        Returns:
            Reference to the entry
        """
        if key in self:
            self.stats.hits += 1
            return self.reference(key, type_arguments)

        self.stats.misses += 1
        self.reserve(key)
        try:
            model = compute()
        except Exception:
            self.discard_pending(key)
            raise
        self.complete(key, model)
        return self.reference(key, type_arguments)

    def reserve(self, key: str) -> None:
        """Install a PENDING entry.

        Raises:
            ValueError: If the key is already taken
        """
        if key in self._entries:
            raise ValueError(f"Registry key already taken: {key}")
        self._entries[key] = RegistryEntry(key=key)
        logger.debug(f"Reserved {key}")

    def complete(self, key: str, model: ParserModel) -> None:
        """Resolve a PENDING entry.

        Raises:
            KeyError: If the key was never reserved
            ValueError: If the entry is already resolved
        """
        entry = self._entries[key]
        if entry.state == EntryState.RESOLVED:
            raise ValueError(f"Registry entry already resolved: {key}")
        entry.model = model
        entry.state = EntryState.RESOLVED

    def discard_pending(self, key: str) -> None:
        """Remove an abandoned PENDING entry. Resolved entries are kept."""
        entry = self._entries.get(key)
        if entry is not None and entry.state == EntryState.PENDING:
            del self._entries[key]

    def resolve(self, key: str) -> ParserModel:
        """Get the resolved model of an entry.

        Raises:
            KeyError: If the key is unknown
            PendingKeyMisuse: If the entry has not resolved yet
        """
        entry = self._entries[key]
        if entry.state == EntryState.PENDING:
            raise PendingKeyMisuse(key)
        return entry.model

    def reference(self, key: str, type_arguments: Optional[list[ParserModel]] = None) -> ReferenceParserModel:
        """Reference to an entry; valid while the entry is still pending."""
        return ReferenceParserModel(type_name=key, type_arguments=type_arguments)

    def template(self, key: str, compute: Callable[[], ParserModel]) -> ParserModel:
        """Get a generic declaration body with placeholders, computing it once.

        Templates live beside the model entries under their declaration key
        and are never exported.

        Args:
            key: Declaration key, e.g. ``Wrap<T>``
            compute: Produces the template body

        Raises:
            PendingKeyMisuse: If the template is requested while being built
        """
        entry = self._templates.get(key)
        if entry is not None:
            if entry.state == EntryState.PENDING:
                raise PendingKeyMisuse(key)
            return entry.model

        self.stats.templates += 1
        entry = RegistryEntry(key=key, kind=EntryKind.TEMPLATE)
        self._templates[key] = entry
        logger.debug(f"Building template {key}")
        try:
            entry.model = compute()
        except Exception:
            del self._templates[key]
            raise
        entry.state = EntryState.RESOLVED
        return entry.model

    def keys(self) -> list[str]:
        """Model keys in insertion order."""
        return list(self._entries)

    def template_keys(self) -> list[str]:
        """Template keys in insertion order."""
        return list(self._templates)

    def deps(self) -> dict[str, ParserModel]:
        """Export resolved models in insertion order, templates excluded.

        Raises:
            PendingKeyMisuse: If any entry is still pending
        """
        exported: dict[str, ParserModel] = {}
        for key, entry in self._entries.items():
            if entry.state == EntryState.PENDING:
                raise PendingKeyMisuse(key)
            exported[key] = entry.model
        logger.debug(f"Exporting {len(exported)} models ({self.stats.to_dict()})")
        return exported
