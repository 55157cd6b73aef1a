import uuid

import pytest

from mobile_post_office.config.settings import Settings, get_settings

BASE = "/api/mobileposts"


async def create_via_api(client, payload) -> int:
    response = await client.post(BASE, json=payload)
    assert response.status_code == 201, response.text
    return response.json()["result"]["id"]


@pytest.mark.asyncio
class TestEnvelope:

    async def test_success_envelope(self, client, sample_post_data):
        post_id = await create_via_api(client, sample_post_data)

        response = await client.get(f"{BASE}/{post_id}")

        body = response.json()
        assert response.status_code == 200
        assert body["header"] == {"success": True, "message": "record found"}
        assert body["result"]["id"] == post_id
        assert "meta" not in body

    async def test_error_envelope(self, client):
        response = await client.get(f"{BASE}/424242")

        assert response.status_code == 404
        assert response.json() == {
            "header": {"success": False, "err_code": "0201", "err_msg": "record not found for id 424242"},
            "result": None,
        }

    async def test_request_id_header(self, client):
        rid = str(uuid.uuid4())
        response = await client.get(BASE, headers={"X-Request-ID": rid})
        assert response.headers["X-Request-ID"] == rid


@pytest.mark.asyncio
class TestList:

    async def test_central_in_traditional_chinese(self, client, sample_post_data):
        """
        Behavior:
                - Seed one post (districtEN=Central, districtTC=中環) and list it with lang=tc.

        Importance:
                - End-to-end path: query parsing, filtering on any variant, projection and meta.
        """
        await create_via_api(client, sample_post_data)

        response = await client.get(BASE, params={"district": "Central", "lang": "tc", "page": 1, "limit": 1})

        body = response.json()
        assert response.status_code == 200
        assert body["header"]["message"] == "1 records retrieved"
        assert len(body["result"]) == 1
        assert body["result"][0]["district"] == "中環"
        assert body["meta"] == {"page": 1, "limit": 1, "total": 1, "totalPages": 1, "lang": "tc"}

    async def test_lang_all_shape(self, client, sample_post_data):
        await create_via_api(client, sample_post_data)

        row = (await client.get(BASE, params={"lang": "all"})).json()["result"][0]

        assert row["districtEN"] == "Central"
        assert row["districtSC"] == "中环"
        assert row["district"] == "Central"
        assert row["latitude"] == "22.281900"

    async def test_query_aliases(self, client, sample_post_data):
        await create_via_api(client, sample_post_data)

        params = {"dayOfWeek": 2, "openAt": "10:00", "mobileCode": "MO1", "sortBy": "name", "sortDir": "desc"}
        body = (await client.get(BASE, params=params)).json()

        assert body["meta"]["total"] == 1

    async def test_empty_open_at_is_ignored(self, client, sample_post_data):
        await create_via_api(client, sample_post_data)

        response = await client.get(BASE, params={"openAt": ""})

        assert response.status_code == 200
        assert response.json()["meta"]["total"] == 1

    @pytest.mark.parametrize("params, code", [
        ({"lang": "fr"}, "0105"),
        ({"lang": "EN"}, "0105"),
        ({"openAt": "7pm"}, "0104"),
        ({"limit": 1000}, "0103"),
        ({"page": "first"}, "0103"),
        ({"dayOfWeek": 9}, "0103"),
        ({"sortBy": "colour"}, "0103"),
    ])
    async def test_invalid_parameters(self, client, params, code):
        response = await client.get(BASE, params=params)

        assert response.status_code == 400
        assert response.json()["header"]["err_code"] == code


@pytest.mark.asyncio
class TestGet:

    async def test_bad_lang(self, client, created_post):
        response = await client.get(f"{BASE}/{created_post.id}", params={"lang": "xx"})

        assert response.status_code == 400
        assert response.json()["header"] == {
            "success": False, "err_code": "0105", "err_msg": "lang must be one of: en, tc, sc, all",
        }

    async def test_non_numeric_id(self, client):
        response = await client.get(f"{BASE}/abc")

        assert response.status_code == 400
        assert response.json()["header"]["err_code"] == "0103"


@pytest.mark.asyncio
class TestWrite:

    async def test_create_returns_id(self, client, sample_post_data):
        response = await client.post(BASE, json=sample_post_data)

        assert response.status_code == 201
        assert response.json()["header"] == {"success": True, "message": "created"}
        assert isinstance(response.json()["result"]["id"], int)

    async def test_create_duplicate(self, client, sample_post_data):
        await create_via_api(client, sample_post_data)

        response = await client.post(BASE, json=sample_post_data)

        assert response.status_code == 409
        assert response.json()["header"]["err_code"] == "0301"

    async def test_create_missing_district(self, client):
        response = await client.post(BASE, json={"nameEN": "Lonely"})

        assert response.status_code == 400
        assert response.json()["header"]["err_code"] == "0101"

    async def test_create_bad_latitude(self, client, sample_post_data):
        response = await client.post(BASE, json={**sample_post_data, "latitude": "999"})

        assert response.status_code == 400
        assert response.json()["header"]["err_code"] == "0106"

    async def test_create_unknown_field(self, client, sample_post_data):
        response = await client.post(BASE, json={**sample_post_data, "colour": "red"})

        assert response.status_code == 400
        assert response.json()["header"]["err_code"] == "0103"

    async def test_update(self, client, sample_post_data):
        post_id = await create_via_api(client, sample_post_data)

        response = await client.put(f"{BASE}/{post_id}", json={"openHour": "08:45"})

        assert response.status_code == 200
        assert response.json() == {"header": {"success": True, "message": "updated"}, "result": {"id": post_id}}
        row = (await client.get(f"{BASE}/{post_id}")).json()["result"]
        assert row["openHour"] == "08:45"

    async def test_update_empty_body(self, client, sample_post_data):
        post_id = await create_via_api(client, sample_post_data)

        response = await client.put(f"{BASE}/{post_id}", json={})

        assert response.status_code == 400
        assert response.json()["header"]["err_code"] == "0102"

    async def test_update_missing(self, client):
        response = await client.put(f"{BASE}/999", json={"seq": 2})
        assert response.status_code == 404

    async def test_delete(self, client, sample_post_data):
        post_id = await create_via_api(client, sample_post_data)

        response = await client.delete(f"{BASE}/{post_id}")
        assert response.json() == {"header": {"success": True, "message": "deleted"}, "result": None}

        again = await client.delete(f"{BASE}/{post_id}")
        assert again.status_code == 404
        assert again.json()["header"]["err_code"] == "0201"


@pytest.mark.asyncio
class TestApiKey:

    @pytest.fixture
    def protected_app(self, app):
        app.dependency_overrides[get_settings] = lambda: Settings(API_KEY="s3cret")
        return app

    async def test_missing_key(self, protected_app, client):
        response = await client.get(BASE)

        assert response.status_code == 401
        assert response.json()["header"]["err_code"] == "0501"

    async def test_wrong_key(self, protected_app, client):
        response = await client.get(BASE, headers={"X-API-Key": "guess"})
        assert response.status_code == 401

    async def test_valid_key(self, protected_app, client):
        response = await client.get(BASE, headers={"X-API-Key": "s3cret"})
        assert response.status_code == 200


@pytest.mark.asyncio
async def test_unknown_route_is_enveloped(client):
    response = await client.get("/api/nothing-here")

    assert response.status_code == 404
    assert response.json()["header"]["success"] is False
    assert response.json()["header"]["err_code"] == "0201"
