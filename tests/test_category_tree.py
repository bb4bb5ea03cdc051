"""
Tests de las derivaciones de la jerarquía de categorías
"""
import re

import pytest

from ksp_admin.core.exceptions import ValidationError
from ksp_admin.schemas.category_schema import Category, CategoryCreate, CategoryUpdate, FilterMode
from ksp_admin.services import category_tree


def ids(categories):
    return [cat.category_id for cat in categories]


class TestDerivations:
    """Raíces, conteos y nombres de padre"""

    def test_scenario_red_cabernet(self):
        categories = [
            Category(category_id="1", name="Red", parent_id=None),
            Category(category_id="2", name="Cabernet", parent_id="1"),
        ]

        assert ids(category_tree.derive_parents(categories)) == ["1"]
        assert category_tree.derive_subcategory_counts(categories) == {"1": 1}
        assert ids(category_tree.filter_by_mode(categories, "subcategories")) == ["2"]

    def test_counts_include_parents_without_children(self, wine_categories):
        counts = category_tree.derive_subcategory_counts(wine_categories)

        assert counts == {"1": 2, "3": 0}

    def test_counts_for_every_parent(self, wine_categories):
        counts = category_tree.derive_subcategory_counts(wine_categories)

        for parent in category_tree.derive_parents(wine_categories):
            assert parent.category_id in counts

    def test_counts_ignore_dangling_parent_reference(self):
        categories = [
            Category(category_id="1", name="Red"),
            Category(category_id="9", name="Orphan", parent_id="404"),
        ]

        assert category_tree.derive_subcategory_counts(categories) == {"1": 0}

    def test_empty_list(self):
        assert category_tree.derive_parents([]) == []
        assert category_tree.derive_subcategory_counts([]) == {}
        assert category_tree.derive_parent_name_lookup([]) == {}

    def test_parent_name_lookup(self, wine_categories):
        names = category_tree.derive_parent_name_lookup(wine_categories)

        assert names["1"] == "Red"
        assert names[wine_categories[1].parent_id] == "Red"
        assert len(names) == len(wine_categories)

    def test_lookup_follows_new_snapshot(self, wine_categories):
        renamed = [cat.model_copy(update={"name": "Tinto"}) if cat.category_id == "1" else cat for cat in wine_categories]

        assert category_tree.derive_parent_name_lookup(wine_categories)["1"] == "Red"
        assert category_tree.derive_parent_name_lookup(renamed)["1"] == "Tinto"


class TestFilterByMode:
    """Proyecciones de filtrado"""

    @pytest.mark.parametrize("size", [0, 1, 4, 9])
    def test_parents_and_subcategories_partition_all(self, size):
        categories = [
            Category(category_id=str(i), name=f"c{i}", parent_id=None if i % 3 == 0 else "0")
            for i in range(size)
        ]

        parents = category_tree.filter_by_mode(categories, FilterMode.PARENTS)
        subs = category_tree.filter_by_mode(categories, FilterMode.SUBCATEGORIES)
        everything = category_tree.filter_by_mode(categories, FilterMode.ALL)

        assert len(parents) + len(subs) == len(everything) == size

    def test_does_not_mutate_source(self, wine_categories):
        before = list(wine_categories)

        result = category_tree.filter_by_mode(wine_categories, "all")
        result.pop()

        assert wine_categories == before

    def test_unknown_mode(self, wine_categories):
        with pytest.raises(ValueError):
            category_tree.filter_by_mode(wine_categories, "grandchildren")


class TestParentOptions:
    """Opciones de padre: sin autorreferencia y sin tercer nivel"""

    def test_excludes_edited_category_and_subcategories(self, wine_categories):
        options = category_tree.available_parent_options(wine_categories, exclude_id="1")

        assert ids(options) == ["3"]

    def test_never_offers_subcategories(self, wine_categories):
        for cat in wine_categories:
            options = category_tree.available_parent_options(wine_categories, exclude_id=cat.category_id)
            assert cat.category_id not in ids(options)
            assert all(option.parent_id is None for option in options)

    def test_create_mode_offers_all_parents(self, wine_categories):
        assert ids(category_tree.available_parent_options(wine_categories)) == ["1", "3"]

    def test_validate_parent_rejects_subcategory_as_parent(self, wine_categories):
        with pytest.raises(ValidationError):
            category_tree.validate_parent(wine_categories, None, "2")

    def test_validate_parent_rejects_self(self, wine_categories):
        with pytest.raises(ValidationError):
            category_tree.validate_parent(wine_categories, "3", "3")

    def test_validate_parent_rejects_parent_with_children(self, wine_categories):
        with pytest.raises(ValidationError):
            category_tree.validate_parent(wine_categories, "1", "3")

    def test_validate_parent_accepts_top_level(self, wine_categories):
        category_tree.validate_parent(wine_categories, "2", "3")
        category_tree.validate_parent(wine_categories, "1", None)

    def test_validate_parent_leaves_unknown_parent_to_backend(self, wine_categories):
        category_tree.validate_parent(wine_categories, None, "99")
        category_tree.validate_parent([], None, "1")


class TestSlug:
    """Derivación del slug"""

    def test_dessert_wine(self):
        assert category_tree.derive_slug("Dessert Wine!!") == "dessert-wine"

    def test_whitespace_runs_collapse(self):
        assert category_tree.derive_slug("Sparkling \t  Rosé") == "sparkling-ros"

    @pytest.mark.parametrize("name", ["", "Red Wine", "  Port & Sherry  ", "Ñandú 2024", "a--b", "!!!", "Vin\nde\tTable"])
    def test_idempotent_and_alphabet(self, name):
        slug = category_tree.derive_slug(name)

        assert category_tree.derive_slug(slug) == slug
        assert re.fullmatch(r"[a-z0-9-]*", slug)


class TestValidation:
    """Validación de payloads"""

    def test_create_derives_slug(self):
        clean = category_tree.validate_create(CategoryCreate(name="Dessert Wine!!"))

        assert clean.slug == "dessert-wine"
        assert clean.name == "Dessert Wine!!"

    def test_create_keeps_explicit_slug(self):
        clean = category_tree.validate_create({"name": "Red", "slug": "tintos"})

        assert clean.slug == "tintos"

    def test_create_rejects_blank_name(self):
        with pytest.raises(ValidationError):
            category_tree.validate_create(CategoryCreate(name="   "))

    def test_create_rejects_bad_slug(self):
        with pytest.raises(ValidationError):
            category_tree.validate_create(CategoryCreate(name="Red", slug="Red Wine"))

    def test_create_trims(self):
        clean = category_tree.validate_create(CategoryCreate(name="  Fortified ", description=" Port "))

        assert clean.name == "Fortified"
        assert clean.description == "Port"

    def test_update_only_keeps_set_fields(self):
        clean = category_tree.validate_update("3", CategoryUpdate(is_active=False))

        assert clean.model_dump(exclude_unset=True) == {"is_active": False}

    def test_update_rejects_blank_name(self):
        with pytest.raises(ValidationError):
            category_tree.validate_update("3", {"name": " "})

    def test_update_rejects_self_parent(self):
        with pytest.raises(ValidationError):
            category_tree.validate_update("3", {"parent_id": "3"})

    def test_update_blank_slug_derives_from_name(self):
        clean = category_tree.validate_update("3", {"name": "White Wine", "slug": ""})

        assert clean.slug == "white-wine"

    def test_update_parent_to_none_is_sent(self):
        clean = category_tree.validate_update("2", {"parent_id": None})

        assert clean.model_dump(exclude_unset=True) == {"parent_id": None}


class TestCategoryViews:
    """Tarjetas con datos derivados"""

    def test_views(self, wine_categories):
        views = {view.category.category_id: view for view in category_tree.build_category_views(wine_categories)}

        assert views["1"].subcategory_count == 2
        assert views["3"].subcategory_count == 0
        assert views["2"].parent_name == "Red"
        assert views["1"].parent_name is None

    def test_views_filtered(self, wine_categories):
        views = category_tree.build_category_views(wine_categories, FilterMode.PARENTS)

        assert [view.category.category_id for view in views] == ["1", "3"]
