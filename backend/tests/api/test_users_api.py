import pytest

USER = {"X-User-Id": "viewer", "X-User-Name": "Vee"}
MOVIE = {"id": "tt0113277", "title": "Heat", "thumbnail": "heat.png", "year": "1995"}


@pytest.mark.asyncio
async def test_profile_provisioned_and_hides_internal_fields(api_client):
	resp = await api_client.get("/users/profile", headers=USER)
	assert resp.status_code == 200
	body = resp.json()
	assert body["id"] == "viewer"
	assert body["username"] == "Vee"
	assert body["preferences"] == {"notifications": True, "theme": "light"}
	assert "photoURL" in body
	for hidden in ("passwordHash", "badges", "activityStats", "lastLogin"):
		assert hidden not in body


@pytest.mark.asyncio
async def test_profile_update_keeps_unset_values(api_client):
	resp = await api_client.put(
		"/users/profile",
		json={"bio": "Film nerd", "socialLinks": {"twitter": "@vee"}, "preferences": {"theme": "dark"}},
		headers=USER,
	)
	assert resp.status_code == 200
	resp = await api_client.put(
		"/users/profile",
		json={"username": "", "socialLinks": {"twitter": "", "website": "https://vee.test"}, "preferences": {"notifications": False}},
		headers=USER,
	)
	body = resp.json()
	assert body["username"] == "Vee"
	assert body["bio"] == "Film nerd"
	assert body["socialLinks"]["twitter"] == "@vee"
	assert body["socialLinks"]["website"] == "https://vee.test"
	assert body["preferences"] == {"notifications": False, "theme": "dark"}


@pytest.mark.asyncio
async def test_personal_watchlist(api_client):
	resp = await api_client.post("/users/watchlist", json={"movie": MOVIE}, headers=USER)
	assert resp.status_code == 200
	assert resp.json()[0]["votes"] == ["viewer"]

	resp = await api_client.post("/users/watchlist", json={"movie": MOVIE}, headers=USER)
	assert resp.status_code == 400
	assert resp.json()["message"] == "Movie already in watchlist"

	resp = await api_client.post("/users/watchlist/tt0113277/vote", headers=USER)
	assert resp.json()[0]["votes"] == []

	resp = await api_client.post("/users/watchlist/tt9999999/vote", headers=USER)
	assert resp.status_code == 404

	resp = await api_client.post("/users/watchlist/tt0113277/select", headers=USER)
	assert resp.json() == []

	resp = await api_client.delete("/users/watchlist/tt0113277", headers=USER)
	assert resp.status_code == 200
	assert resp.json() == []
