"""
Department API endpoint tests using pytest-asyncio and httpx.AsyncClient.
"""

import pytest

PREFIX = "/api/v1/department"


def new_user(**overrides):
    data = {
        "name": "Neha",
        "email": "neha@example.com",
        "phone": "9000000099",
        "password": "s3cret",
        "role": "BDE",
        "superior_id": "u-y",
    }
    data.update(overrides)
    return data


@pytest.mark.asyncio
async def test_list_users_rows(test_client):
    response = await test_client.get(f"{PREFIX}/users")

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 7
    rows = {row["key"]: row for row in data["items"]}
    assert rows["u-a"]["superior_name"] == "Xavier"
    assert rows["u-e"]["superior_name"] == "Arjun"
    assert rows["u-v"]["superior_name"] == "-"
    assert rows["u-t"]["role"] == "TL"
    assert rows["u-z"]["is_active"] is False
    assert [row["s_no"] for row in data["items"]] == [1, 2, 3, 4, 5, 6, 7]


@pytest.mark.asyncio
async def test_list_users_search_keeps_serial_numbers(test_client):
    response = await test_client.get(f"{PREFIX}/users", params={"search": "AR"})

    data = response.json()
    assert [(row["s_no"], row["user_name"]) for row in data["items"]] == [(5, "Arjun"), (7, "Tarun")]
    assert data["total"] == 2


@pytest.mark.asyncio
async def test_list_users_pagination(test_client):
    response = await test_client.get(f"{PREFIX}/users", params={"skip": 5, "limit": 5})

    data = response.json()
    assert data["total"] == 7
    assert [row["s_no"] for row in data["items"]] == [6, 7]


@pytest.mark.asyncio
async def test_get_user(test_client):
    response = await test_client.get(f"{PREFIX}/users/u-a")

    assert response.status_code == 200
    assert response.json()["superior_id"] == "u-x"
    assert "password" not in response.json()


@pytest.mark.asyncio
async def test_get_unknown_user_returns_404(test_client):
    response = await test_client.get(f"{PREFIX}/users/missing")

    assert response.status_code == 404
    assert response.json()["error"]["message"] == "User not found"


@pytest.mark.asyncio
async def test_create_user(test_client, directory_api):
    response = await test_client.post(f"{PREFIX}/users", json=new_user())

    assert response.status_code == 201
    created = response.json()
    assert created["role"] == "BDE"
    assert created["superior_id"] == "u-y"
    assert directory_api.count("create") == 1

    listing = await test_client.get(f"{PREFIX}/users")
    assert listing.json()["total"] == 8


@pytest.mark.asyncio
async def test_create_user_validation_error(test_client, directory_api):
    response = await test_client.post(f"{PREFIX}/users", json=new_user(email="neha@"))

    assert response.status_code == 422
    error = response.json()["error"]
    assert error["message"] == "Please enter a valid email address"
    assert error["details"] == {"field": "email"}
    assert directory_api.count("create") == 0


@pytest.mark.asyncio
async def test_remote_failure_maps_to_502(test_client, directory_api):
    directory_api.fail_next = "Email already registered"

    response = await test_client.post(f"{PREFIX}/users", json=new_user())

    assert response.status_code == 502
    assert response.json()["error"]["message"] == "Email already registered"


@pytest.mark.asyncio
async def test_update_user(test_client, directory_api):
    body = new_user(name="Arjun K", email="arjun@example.com", password="", superior_id="u-y")
    response = await test_client.put(f"{PREFIX}/users/u-a", json=body)

    assert response.status_code == 200
    assert response.json()["name"] == "Arjun K"
    assert response.json()["superior_id"] == "u-y"
    assert "password" not in directory_api.calls[-2][2]


@pytest.mark.asyncio
async def test_set_user_active(test_client, directory_api):
    response = await test_client.patch(f"{PREFIX}/users/u-x/active", json={"is_active": False})

    assert response.status_code == 200
    assert response.json()["is_active"] is False

    candidates = await test_client.get(f"{PREFIX}/roles/BDE/superior-candidates")
    assert [o["value"] for o in candidates.json()] == ["u-y"]


@pytest.mark.asyncio
async def test_delete_user_with_reassignment(test_client, directory_api):
    response = await test_client.request(
        "DELETE", f"{PREFIX}/users/u-x", json={"reassign_to_id": "u-y"}
    )

    assert response.status_code == 204
    assert directory_api.count("delete") == 1

    rows = (await test_client.get(f"{PREFIX}/users")).json()["items"]
    arjun = next(row for row in rows if row["key"] == "u-a")
    assert arjun["superior_name"] == "-"


@pytest.mark.asyncio
async def test_delete_without_reassignment_returns_409(test_client, directory_api):
    response = await test_client.request("DELETE", f"{PREFIX}/users/u-x", json={})

    assert response.status_code == 409
    assert directory_api.count("delete") == 0


@pytest.mark.asyncio
async def test_employees_excludes_target(test_client):
    response = await test_client.get(f"{PREFIX}/employees", params={"exclude": "u-x"})

    assert response.status_code == 200
    values = [o["value"] for o in response.json()]
    assert "u-x" not in values
    assert "u-z" not in values
    assert "u-y" in values


@pytest.mark.asyncio
async def test_role_chain(test_client):
    response = await test_client.get(f"{PREFIX}/role-chain")

    entries = response.json()
    assert entries[0]["role"] == "Employee"
    assert entries[-1] == {
        "role": "Vertical",
        "label": "Vertical",
        "field_code": "Vertical",
        "superior_role": None,
        "superior_field": None,
        "assign_label": "",
    }
    tl = next(entry for entry in entries if entry["role"] == "TL")
    assert tl["label"] == "Team Leader"
    assert tl["superior_field"] == "assignedAGM"


@pytest.mark.asyncio
async def test_superior_candidates_unknown_role(test_client):
    response = await test_client.get(f"{PREFIX}/roles/Intern/superior-candidates")

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_update_without_superior_keeps_assignment(test_client, directory_api):
    body = {"name": "Arjun", "email": "arjun@example.com", "phone": "9000000005"}

    response = await test_client.put(f"{PREFIX}/users/u-a", json=body)

    assert response.status_code == 200
    assert response.json()["superior_id"] == "u-x"
    assert "assignedSRBDE" not in directory_api.calls[-2][2]


@pytest.mark.asyncio
async def test_delete_unknown_user_returns_409(test_client, directory_api):
    response = await test_client.request(
        "DELETE", f"{PREFIX}/users/missing", json={"reassign_to_id": "u-y"}
    )

    assert response.status_code == 409
    assert directory_api.count("delete") == 0


@pytest.mark.asyncio
async def test_delete_retry_reuses_client_request_id(test_client, directory_api):
    directory_api.fail_next = "Lead transfer failed"
    body = {"reassign_to_id": "u-y", "request_id": "confirm-1"}

    first = await test_client.request("DELETE", f"{PREFIX}/users/u-x", json=body)
    second = await test_client.request("DELETE", f"{PREFIX}/users/u-x", json=body)

    assert first.status_code == 502
    assert second.status_code == 204
    keys = [call[3] for call in directory_api.calls if call[0] == "delete"]
    assert keys == ["confirm-1", "confirm-1"]
