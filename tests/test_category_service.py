"""
Tests del controlador de categorías y del modal de creación/edición
"""
import httpx
import pytest

from ksp_admin.core.exceptions import NetworkFailure, RemoteRejection
from ksp_admin.schemas.category_schema import Category, CategoryCreate
from ksp_admin.services.category_service import CategoryController, CategoryForm, FormMode
from ksp_admin.services.notification_service import ToastLevel
from ksp_admin.services.remote_store import RemoteStore


def levels(toasts):
    return [toast.level for toast in toasts.items]


class TestCategoryForm:
    """Máquina de estados del modal"""

    def test_create_mode_derives_slug(self):
        form = CategoryForm()
        form.open_create()

        form.set_name("Dessert Wine!!")

        assert form.mode is FormMode.CREATE
        assert form.slug == "dessert-wine"

    def test_manual_slug_stops_derivation(self):
        form = CategoryForm()
        form.open_create()
        form.set_slug("sweet")

        form.set_name("Dessert Wine")

        assert form.slug == "sweet"

    def test_edit_mode_keeps_existing_slug(self, wine_categories):
        form = CategoryForm()
        form.open_edit(wine_categories[0])

        form.set_name("Red Wines")

        assert form.mode is FormMode.EDIT
        assert form.editing_id == "1"
        assert form.slug_manually_edited is True
        assert form.slug == "red"

    def test_parent_options_exclude_edited(self, wine_categories):
        form = CategoryForm()
        form.open_edit(wine_categories[2])

        options = form.parent_options(wine_categories)

        assert [cat.category_id for cat in options] == ["1"]

    def test_cancel_closes(self):
        form = CategoryForm()
        form.open_create()
        form.set_name("Rosé")

        form.cancel()

        assert form.mode is FormMode.CLOSED
        assert form.name == ""


@pytest.mark.asyncio
class TestCategoryController:
    """Operaciones del controlador contra un backend simulado"""

    async def test_load(self, category_store, toasts):
        controller = CategoryController(category_store, toasts)

        result = await controller.load()

        assert result.success
        assert controller.loaded
        assert controller.subcategory_counts() == {"1": 2, "3": 0}
        assert controller.parent_names()["1"] == "Red"
        assert toasts.items == []

    async def test_load_failure_keeps_previous_list(self, category_store, toasts):
        controller = CategoryController(category_store, toasts)
        await controller.load()
        category_store.list_categories.side_effect = NetworkFailure()

        result = await controller.load()

        assert not result.success
        assert len(controller.categories) == 4
        assert levels(toasts) == [ToastLevel.ERROR]

    async def test_create_sends_derived_slug(self, category_store, toasts):
        category_store.create_category.return_value = Category(category_id="5", name="Dessert Wine!!", slug="dessert-wine")
        controller = CategoryController(category_store, toasts)
        await controller.load()

        result = await controller.create({"name": "Dessert Wine!!"})

        assert result.success
        sent = category_store.create_category.await_args.args[0]
        assert isinstance(sent, CategoryCreate)
        assert sent.slug == "dessert-wine"
        assert levels(toasts) == [ToastLevel.SUCCESS]

    async def test_create_empty_name_never_reaches_network(self, category_store, toasts):
        controller = CategoryController(category_store, toasts)

        result = await controller.create({"name": "  "})

        assert not result.success
        assert result.error == "Name is required"
        category_store.create_category.assert_not_awaited()
        assert levels(toasts) == [ToastLevel.ERROR]

    async def test_create_under_subcategory_rejected(self, category_store, toasts):
        controller = CategoryController(category_store, toasts)
        await controller.load()

        result = await controller.create({"name": "Reserva", "parent_id": "2"})

        assert not result.success
        category_store.create_category.assert_not_awaited()

    async def test_create_with_parent_before_first_load(self, category_store, toasts):
        category_store.list_categories.return_value = []
        category_store.create_category.return_value = Category(category_id="5", name="Cabernet", slug="cabernet", parent_id="1")
        controller = CategoryController(category_store, toasts)

        result = await controller.create({"name": "Cabernet", "parent_id": "1"})

        assert result.success
        assert category_store.create_category.await_args.args[0].parent_id == "1"
        assert levels(toasts) == [ToastLevel.SUCCESS]

    async def test_create_loads_snapshot_before_validating_parent(self, category_store, toasts):
        controller = CategoryController(category_store, toasts)

        result = await controller.create({"name": "Reserva", "parent_id": "2"})

        assert result.error == "Subcategories cannot have children"
        assert controller.loaded
        category_store.create_category.assert_not_awaited()

    async def test_malformed_envelope_stays_inside_controller(self, toasts):
        def backend(request):
            return httpx.Response(200, json={"success": False, "message": {"code": 1}})
        store = RemoteStore(base_url="http://backend.test", transport=httpx.MockTransport(backend))
        controller = CategoryController(store, toasts)

        result = await controller.load()

        assert not result.success
        assert [toast.message for toast in toasts.items] == ["Malformed response from server"]

    async def test_remote_rejection_message_verbatim(self, category_store, toasts):
        category_store.create_category.side_effect = RemoteRejection("Slug already exists")
        controller = CategoryController(category_store, toasts)

        result = await controller.create({"name": "Red"})

        assert result.error == "Slug already exists"
        assert [toast.message for toast in toasts.items] == ["Slug already exists"]

    async def test_update_without_data_merges_locally(self, category_store, toasts):
        category_store.update_category.return_value = None
        category_store.list_categories.side_effect = [
            list(category_store.list_categories.return_value),
            NetworkFailure(),
        ]
        controller = CategoryController(category_store, toasts)
        await controller.load()

        result = await controller.update("3", {"name": "White Wines"})

        assert result.success
        assert controller.get("3").name == "White Wines"
        assert levels(toasts) == [ToastLevel.SUCCESS]

    async def test_delete_failure_is_not_validated_locally(self, category_store, toasts):
        category_store.delete_category.side_effect = RemoteRejection("Category has subcategories")
        controller = CategoryController(category_store, toasts)
        await controller.load()

        result = await controller.delete("1")

        category_store.delete_category.assert_awaited_once_with("1")
        assert result.error == "Category has subcategories"
        assert controller.get("1") is not None
        assert levels(toasts) == [ToastLevel.ERROR]

    async def test_delete_success(self, category_store, toasts):
        controller = CategoryController(category_store, toasts)
        await controller.load()
        category_store.list_categories.return_value = [
            cat for cat in category_store.list_categories.return_value if cat.category_id != "3"
        ]

        result = await controller.delete("3")

        assert result.success
        assert controller.get("3") is None
        assert controller.subcategory_counts() == {"1": 2}
        assert levels(toasts) == [ToastLevel.SUCCESS]

    async def test_submit_success_closes_form(self, category_store, toasts):
        category_store.create_category.return_value = Category(category_id="5", name="Rosé", slug="ros")
        controller = CategoryController(category_store, toasts)
        form = CategoryForm()
        form.open_create()
        form.set_name("Rosé")

        result = await controller.submit(form)

        assert result.success
        assert form.mode is FormMode.CLOSED

    async def test_submit_failure_keeps_form_open(self, category_store, toasts, wine_categories):
        category_store.update_category.side_effect = RemoteRejection("Slug already exists")
        controller = CategoryController(category_store, toasts)
        await controller.load()
        form = CategoryForm()
        form.open_edit(wine_categories[1])
        form.set_name("Cabernet Sauvignon")
        form.set_slug("merlot")

        result = await controller.submit(form)

        assert not result.success
        assert form.mode is FormMode.EDIT
        assert form.error == "Slug already exists"
        assert form.name == "Cabernet Sauvignon"
        assert form.slug == "merlot"
        assert form.saving is False
        assert levels(toasts) == [ToastLevel.ERROR]

    async def test_submit_closed_form(self, category_store, toasts):
        controller = CategoryController(category_store, toasts)

        result = await controller.submit(CategoryForm())

        assert not result.success
