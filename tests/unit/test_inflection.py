"""Tests for inflection helpers."""

import pytest

from schemaforge.core.inflection import (
    is_plural,
    pluralize,
    singularize,
    snake,
    studly,
    table_name_for,
)


class TestPlurality:
    """Tests for is_plural() and friends."""

    @pytest.mark.parametrize(
        "word",
        ["roles", "users", "phones", "people", "categories", "buses", "menus", "taxis", "emus", "radii"],
    )
    def test_plural_words(self, word):
        assert is_plural(word) is True

    @pytest.mark.parametrize(
        "word",
        ["role", "user", "boss", "status", "analysis", "phone", "menu", "taxi", "radius"],
    )
    def test_singular_words(self, word):
        assert is_plural(word) is False

    @pytest.mark.parametrize("word", ["Alias", "Canvas", "Gas", "Atlas", "Lens", "Bus"])
    def test_singular_words_ending_in_s(self, word):
        """Nouns that take -es in the plural are not mistaken for plurals."""
        assert is_plural(word) is False

    def test_empty_and_non_alpha(self):
        assert is_plural("") is False
        assert is_plural("roles_1") is False

    def test_singularize(self):
        assert singularize("roles") == "role"
        assert singularize("people") == "person"
        assert singularize("boss") == "boss"
        assert singularize("canvas") == "canvas"
        assert singularize("menus") == "menu"
        assert singularize("radii") == "radius"
        assert singularize("Phones") == "Phone"
        assert singularize("HomePhones") == "HomePhone"

    def test_pluralize(self):
        assert pluralize("role") == "roles"
        assert pluralize("person") == "people"
        assert pluralize("roles") == "roles"
        assert pluralize("menus") == "menus"
        assert pluralize("menu") == "menus"
        assert pluralize("alias") == "aliases"
        assert pluralize("radius") == "radii"
        assert pluralize("Person") == "People"


class TestCase:
    """Tests for identifier case conversion."""

    def test_snake(self):
        assert snake("RoleUserCustom") == "role_user_custom"
        assert snake("User") == "user"

    def test_studly(self):
        assert studly("home_phone") == "HomePhone"
        assert studly("user") == "User"

    def test_table_name_for(self):
        assert table_name_for("User") == "users"
        assert table_name_for("AssignedRole") == "assigned_roles"
        assert table_name_for("Person") == "people"
        assert table_name_for("Canvas") == "canvases"
        assert table_name_for("Menu") == "menus"
