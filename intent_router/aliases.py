"""Route alias resolution for spoken or typed navigation targets."""

from __future__ import annotations

import difflib

# Spoken name → application route.
# Keep sorted by name for readability.
ROUTE_ALIASES: dict[str, str] = {
    "about": "/about",
    "agents": "/",
    "assistant": "/atlas",
    "atlas": "/atlas",
    "dashboard": "/",
    "governance": "/tool-governance",
    "group hub": "/group",
    "help": "/help",
    "home": "/",
    "import": "/import",
    "import agents": "/import",
    "integrations": "/integrations",
    "marketplace": "/integrations",
    "permissions": "/user-tool-permissions",
    "personal hub": "/personal",
    "privacy": "/privacy",
    "profile": "/profile",
    "settings": "/settings",
    "sonic nodes": "/",
    "terms": "/terms",
    "tool governance": "/tool-governance",
    "user permissions": "/user-tool-permissions",
}

_NORMALIZED: dict[str, str] = {}


def _normalize(s: str) -> str:
    """Strip hyphens, underscores, spaces, dots and lowercase."""
    return s.lower().replace("-", "").replace("_", "").replace(" ", "").replace(".", "")


def _build_normalized() -> None:
    _NORMALIZED.clear()
    for key in ROUTE_ALIASES:
        _NORMALIZED[_normalize(key)] = key


_build_normalized()


def resolve_route(raw: str, fuzzy: bool = True) -> tuple[str | None, str | None]:
    """Resolve a navigation target to an application route.

    Returns (path, matched_alias_key) or (None, suggestion_message).
    A target that already starts with '/' is passed through.
    """
    if not raw or not raw.strip():
        return None, None

    target = raw.strip().lower()
    if target.startswith("/"):
        return target, target

    # 1. Exact match
    if target in ROUTE_ALIASES:
        return ROUTE_ALIASES[target], target

    # 2. Normalized match
    normed = _normalize(target)
    if normed in _NORMALIZED:
        key = _NORMALIZED[normed]
        return ROUTE_ALIASES[key], key

    # 3. Alias mentioned inside a longer phrase ("my integrations list"); longest wins
    contained = [key for key in ROUTE_ALIASES if key in target]
    if contained:
        key = max(contained, key=len)
        return ROUTE_ALIASES[key], key

    if not fuzzy:
        return None, f"Unknown destination '{raw}'."

    # 4. Fuzzy match
    candidates = difflib.get_close_matches(normed, _NORMALIZED.keys(), n=2, cutoff=0.7)
    paths = {ROUTE_ALIASES[_NORMALIZED[c]] for c in candidates}
    if len(candidates) == 1 or (candidates and len(paths) == 1):
        key = _NORMALIZED[candidates[0]]
        return ROUTE_ALIASES[key], key

    if len(candidates) > 1:
        suggestions = [_NORMALIZED[c] for c in candidates]
        return None, f"Ambiguous destination '{raw}'. Did you mean: {', '.join(suggestions)}?"

    valid = ", ".join(sorted(ROUTE_ALIASES.keys()))
    return None, f"Unknown destination '{raw}'. Known places: {valid}"
