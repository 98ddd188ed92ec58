"""Tests for route alias resolution."""

from intent_router.aliases import ROUTE_ALIASES, resolve_route


def test_exact():
    assert resolve_route("settings") == ("/settings", "settings")
    assert resolve_route("  Atlas ") == ("/atlas", "atlas")


def test_path_passthrough():
    assert resolve_route("/custom/page") == ("/custom/page", "/custom/page")


def test_normalized():
    assert resolve_route("tool-governance") == ("/tool-governance", "tool governance")
    assert resolve_route("UserPermissions") == ("/user-tool-permissions", "user permissions")


def test_alias_inside_phrase_prefers_longest():
    assert resolve_route("my import agents screen") == ("/import", "import agents")
    assert resolve_route("user permissions settings") == ("/user-tool-permissions", "user permissions")


def test_fuzzy():
    path, key = resolve_route("integratons")
    assert path == "/integrations"
    assert key == "integrations"


def test_fuzzy_can_be_disabled():
    path, message = resolve_route("integratons", fuzzy=False)
    assert path is None
    assert "Unknown destination" in message


def test_unknown_lists_known_places():
    path, message = resolve_route("the moon")
    assert path is None
    assert "settings" in message


def test_empty():
    assert resolve_route("") == (None, None)
    assert resolve_route("   ") == (None, None)


def test_every_alias_resolves_to_itself():
    for key, path in ROUTE_ALIASES.items():
        assert resolve_route(key) == (path, key)
