import uuid
import pytest
from httpx import ASGITransport, AsyncClient
from app.dependencies import get_catalog_repository
from app.main import app


@pytest.fixture
async def client(repo):
    app.dependency_overrides[get_catalog_repository] = lambda: repo
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


async def post_category(client, name, parent_id=None):
    response = await client.post("/api/v1/categories", json={"name": name, "parent_id": parent_id})
    assert response.status_code == 201, response.text
    return response.json()


async def test_category_lifecycle(client):
    engine = await post_category(client, "Engine Parts")
    pistons = await post_category(client, "Pistons", engine["id"])

    response = await client.post("/api/v1/products", json={"name": "P1", "category_ids": [pistons["id"]]})
    assert response.status_code == 201
    product = response.json()
    assert product["category_id"] == pistons["id"]

    tree = (await client.get("/api/v1/categories/tree")).json()["categories"]
    assert tree[0]["subtree_product_count"] == 1
    assert tree[0]["children"][0]["direct_product_count"] == 1

    path = (await client.get(f"/api/v1/categories/{pistons['id']}/path")).json()["path"]
    assert [node["id"] for node in path] == [engine["id"], pistons["id"]]

    response = await client.delete(f"/api/v1/categories/{pistons['id']}")
    assert response.status_code == 409
    assert response.json()["type"] == "HasProducts"

    response = await client.delete(f"/api/v1/products/{product['id']}/categories/{pistons['id']}")
    assert response.json()["category_ids"] == []

    response = await client.delete(f"/api/v1/categories/{pistons['id']}")
    assert response.json() == {"success": True, "message": "Category deleted successfully"}


async def test_error_mapping(client):
    await post_category(client, "Engine Parts")

    response = await client.post("/api/v1/categories", json={"name": "engine parts"})
    assert response.status_code == 409
    body = response.json()
    assert body["success"] is False
    assert body["type"] == "DuplicateSiblingName"

    response = await client.post("/api/v1/categories", json={"name": "  "})
    assert response.status_code == 400

    response = await client.get(f"/api/v1/categories/{uuid.uuid4()}")
    assert response.status_code == 404
    assert response.json()["type"] == "CategoryNotFound"


async def test_move_rejects_circular_reference(client):
    a = await post_category(client, "A")
    b = await post_category(client, "B", a["id"])

    response = await client.post(f"/api/v1/categories/{a['id']}/move", json={"new_parent_id": b["id"]})

    assert response.status_code == 400
    assert response.json()["type"] == "CircularReference"


async def test_listing_and_roots(client):
    a = await post_category(client, "A")
    await post_category(client, "B", a["id"])

    roots = (await client.get("/api/v1/categories", params={"parent": "null"})).json()
    assert roots["count"] == 1

    children = (await client.get("/api/v1/categories", params={"parent": a["id"]})).json()
    assert [c["name"] for c in children["categories"]] == ["B"]

    response = await client.get("/api/v1/categories", params={"parent": "bogus"})
    assert response.status_code == 400

    with_stats = (await client.get("/api/v1/categories/roots", params={"include_stats": True})).json()
    assert with_stats["categories"][0]["child_count"] == 1
    plain = (await client.get("/api/v1/categories/roots")).json()
    assert "child_count" not in plain["categories"][0]


async def test_recompute_endpoint(client, repo):
    category = repo.add_category("Pistons")
    repo.add_product("P1", [category])

    response = await client.post("/api/v1/maintenance/recompute-counts")

    assert response.status_code == 200
    assert response.json() == {"total_categories": 1, "updated": 1, "failed": 0}
    assert category.direct_product_count == 1
