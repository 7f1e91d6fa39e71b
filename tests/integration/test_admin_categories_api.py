"""Integration tests for admin category management."""

import pytest
from services.store_service.models import Category
from tests.conftest import auth_headers
from tests.factories import CategoryFactory, ProductFactory

ADMIN = auth_headers(1, role="admin")


@pytest.mark.asyncio
@pytest.mark.integration
async def test_create_category(client, db_session):
    response = await client.post(
        "/admin/store/categories",
        json={"name": "Goggles", "slug": "goggles", "sort_order": 2},
        headers=ADMIN,
    )

    assert response.status_code == 201
    data = response.json()
    assert data["slug"] == "goggles"
    assert data["sort_order"] == 2
    assert data["is_active"] is True


@pytest.mark.asyncio
@pytest.mark.integration
async def test_create_category_requires_admin(client, db_session):
    response = await client.post(
        "/admin/store/categories",
        json={"name": "Goggles", "slug": "goggles"},
        headers=auth_headers(7),
    )

    assert response.status_code == 403
    assert response.json()["error"] == "Admin privileges required"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_duplicate_slug_returns_400(client, db_session):
    db_session.add(CategoryFactory.create(slug="caps"))
    await db_session.commit()

    response = await client.post(
        "/admin/store/categories",
        json={"name": "More caps", "slug": "caps"},
        headers=ADMIN,
    )

    assert response.status_code == 400
    assert response.json()["details"] == {"slug": "caps"}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_update_category_partial_fields(client, db_session):
    category = CategoryFactory.create(name="Old")
    db_session.add(category)
    await db_session.commit()

    response = await client.patch(
        f"/admin/store/categories/{category.id}",
        json={"name": "New", "is_active": False},
        headers=ADMIN,
    )

    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "New"
    assert data["is_active"] is False
    assert data["slug"] == category.slug


@pytest.mark.asyncio
@pytest.mark.integration
async def test_category_cannot_be_its_own_parent(client, db_session):
    category = CategoryFactory.create()
    db_session.add(category)
    await db_session.commit()

    response = await client.patch(
        f"/admin/store/categories/{category.id}",
        json={"parent_id": category.id},
        headers=ADMIN,
    )

    assert response.status_code == 400


@pytest.mark.asyncio
@pytest.mark.integration
async def test_category_cannot_move_under_its_descendant(client, db_session):
    top = CategoryFactory.create(name="Top")
    db_session.add(top)
    await db_session.flush()
    middle = CategoryFactory.create(name="Middle", parent_id=top.id)
    db_session.add(middle)
    await db_session.flush()
    leaf = CategoryFactory.create(name="Leaf", parent_id=middle.id)
    db_session.add(leaf)
    await db_session.commit()

    response = await client.patch(
        f"/admin/store/categories/{top.id}",
        json={"parent_id": leaf.id},
        headers=ADMIN,
    )

    assert response.status_code == 400
    assert response.json()["details"] == {"parentId": leaf.id}
    await db_session.refresh(top)
    assert top.parent_id is None


@pytest.mark.asyncio
@pytest.mark.integration
async def test_category_can_move_under_a_sibling_branch(client, db_session):
    first = CategoryFactory.create(name="First")
    second = CategoryFactory.create(name="Second")
    db_session.add_all([first, second])
    await db_session.commit()

    response = await client.patch(
        f"/admin/store/categories/{first.id}",
        json={"parent_id": second.id},
        headers=ADMIN,
    )

    assert response.status_code == 200
    assert response.json()["parent_id"] == second.id


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_list_includes_inactive(client, db_session):
    db_session.add_all(
        [
            CategoryFactory.create(name="A", is_active=True),
            CategoryFactory.create(name="B", is_active=False),
        ]
    )
    await db_session.commit()

    response = await client.get("/admin/store/categories", headers=ADMIN)

    assert [c["name"] for c in response.json()] == ["A", "B"]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_delete_unused_category(client, db_session):
    category = CategoryFactory.create()
    db_session.add(category)
    await db_session.commit()
    category_id = category.id

    response = await client.delete(
        f"/admin/store/categories/{category_id}", headers=ADMIN
    )

    assert response.status_code == 204
    db_session.expunge_all()
    assert await db_session.get(Category, category_id) is None


@pytest.mark.asyncio
@pytest.mark.integration
async def test_delete_category_with_products_returns_400(client, db_session):
    category = CategoryFactory.create()
    db_session.add(category)
    await db_session.flush()
    db_session.add(ProductFactory.create(category_id=category.id))
    await db_session.commit()

    response = await client.delete(
        f"/admin/store/categories/{category.id}", headers=ADMIN
    )

    assert response.status_code == 400
    assert response.json()["details"]["products"] == 1


@pytest.mark.asyncio
@pytest.mark.integration
async def test_get_missing_category_returns_404(client, db_session):
    response = await client.get("/admin/store/categories/999", headers=ADMIN)

    assert response.status_code == 404
