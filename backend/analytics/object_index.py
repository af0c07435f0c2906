"""
Object index and search — pure functions only.

Objects have no stored identity. Two raw object records with the same
(type, name, group) Signature are the same logical object, wherever they
were declared. The index maps each signature to the modules that provide
it, and flattens everything into label-sorted search entries.
"""
from __future__ import annotations

from dataclasses import dataclass, field

from model import GraphObject, GraphSnapshot, ObjectRef, Signature

SEARCH_DISPLAY_LIMIT = 50

SEARCH_EMPTY      = "empty"
SEARCH_NO_MATCHES = "no_matches"
SEARCH_MATCHES    = "matches"


@dataclass(frozen=True)
class ObjectEntry:
    id: str
    signature: Signature
    label: str
    providers: tuple[str, ...]
    is_private: bool


@dataclass(frozen=True)
class SearchEntry:
    label: str
    module_path: str
    signature: Signature
    search_key: str
    is_private: bool

    def to_dict(self) -> dict:
        return {
            "label":       self.label,
            "module_path": self.module_path,
            "signature":   str(self.signature),
            "is_private":  self.is_private,
        }


@dataclass
class ObjectIndex:
    entries: list[ObjectEntry] = field(default_factory=list)
    by_signature: dict[Signature, list[ObjectEntry]] = field(default_factory=dict)
    search_entries: list[SearchEntry] = field(default_factory=list)

    def lookup(self, signature: Signature | None) -> list[ObjectEntry]:
        if signature is None:
            return []
        return self.by_signature.get(signature, [])


@dataclass
class SearchResult:
    state: str
    results: list[SearchEntry]
    total: int
    limit: int = SEARCH_DISPLAY_LIMIT

    @property
    def truncated(self) -> bool:
        return self.total > len(self.results)

    @property
    def message(self) -> str:
        if self.state == SEARCH_EMPTY:
            return "Type to search for objects."
        if self.state == SEARCH_NO_MATCHES:
            return "No matches."
        if self.truncated:
            return f"Showing first {len(self.results)} of {self.total} matches."
        return ""

    def to_dict(self) -> dict:
        return {
            "state":     self.state,
            "message":   self.message,
            "total":     self.total,
            "truncated": self.truncated,
            "results":   [r.to_dict() for r in self.results],
        }


# ── Formatting and identity ──────────────────────────────────────────────────

def format_object(obj: GraphObject | ObjectRef | None) -> str:
    """Human label, e.g. ``Service (name=X) [group=handlers]``."""
    if obj is None:
        return ""
    label = obj.type or "unknown"
    if obj.name:
        label += f" (name={obj.name})"
    if obj.group:
        label += f" [group={obj.group}]"
    return label


def label_sort_key(label: str) -> tuple[str, str]:
    # case-insensitive, ties broken by the raw label
    return (label.casefold(), label)


def signature_for_ref(ref: ObjectRef) -> Signature:
    """Signature a reference resolves to; group consumers ask for ``[]T`` but match ``T``."""
    type_ = ref.type
    if ref.group and type_.startswith("[]"):
        type_ = type_[2:]
    return Signature(type_, ref.name, ref.group)


def is_private_object(snapshot: GraphSnapshot, obj: GraphObject | None) -> bool:
    """
    Explicit ``exported`` wins. Otherwise an object is private when at least
    one constructor provides it and none of those constructors is exported.
    Objects provided only by decorators stay public.
    """
    if obj is None:
        return False
    if obj.exported is not None:
        return not obj.exported
    if not obj.provided_by:
        return False
    has_ctor = has_exported = False
    for provider_id in obj.provided_by:
        ctor = snapshot.constructors.get(provider_id)
        if ctor is not None:
            has_ctor = True
            if ctor.exported:
                has_exported = True
    return has_ctor and not has_exported


def provider_modules_for_object(snapshot: GraphSnapshot, obj: GraphObject) -> list[str]:
    """Sorted known modules of the constructors / decorators that provide *obj*."""
    modules: set[str] = set()
    for provider_id in obj.provided_by:
        provider = snapshot.constructors.get(provider_id) or snapshot.decorators.get(provider_id)
        if provider is None:
            continue
        if provider.module_path and provider.module_path in snapshot.modules:
            modules.add(provider.module_path)
    return sorted(modules)


def pick_provider_modules(entries: list[ObjectEntry]) -> list[str]:
    modules: set[str] = set()
    for entry in entries:
        modules.update(entry.providers)
    return sorted(modules)


# ── Index construction ───────────────────────────────────────────────────────

def build_object_index(snapshot: GraphSnapshot) -> ObjectIndex:
    """
    One ObjectEntry per navigable object, one SearchEntry per
    (object, provider module) pair. Objects with no resolvable provider
    module are left out entirely.
    """
    index = ObjectIndex()

    for obj in snapshot.objects.values():
        providers = provider_modules_for_object(snapshot, obj)
        if not providers:
            continue
        label = format_object(obj)
        entry = ObjectEntry(
            id=obj.id,
            signature=obj.signature,
            label=label,
            providers=tuple(providers),
            is_private=is_private_object(snapshot, obj),
        )
        index.entries.append(entry)
        index.by_signature.setdefault(entry.signature, []).append(entry)
        for module_path in providers:
            index.search_entries.append(SearchEntry(
                label=label,
                module_path=module_path,
                signature=entry.signature,
                search_key=label.lower(),
                is_private=entry.is_private,
            ))

    index.search_entries.sort(key=lambda e: (*label_sort_key(e.label), e.module_path))
    return index


def search_objects(
    entries: list[SearchEntry],
    query: str | None,
    limit: int = SEARCH_DISPLAY_LIMIT,
) -> SearchResult:
    """
    Case-insensitive substring search over precomputed search keys.

    The match count covers every entry; only the returned page is capped.
    An empty query is its own state, distinct from "no matches".
    """
    q = (query or "").strip().lower()
    if not q:
        return SearchResult(state=SEARCH_EMPTY, results=[], total=0, limit=limit)
    matches = [e for e in entries if q in e.search_key]
    if not matches:
        return SearchResult(state=SEARCH_NO_MATCHES, results=[], total=0, limit=limit)
    return SearchResult(
        state=SEARCH_MATCHES,
        results=matches[:limit],
        total=len(matches),
        limit=limit,
    )
