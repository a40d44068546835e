import pytest

USER = {"X-User-Id": "quizzer", "X-User-Name": "Quinn"}
QUESTION = {
	"question": "Which year was Heat released?",
	"options": ["1993", "1995", "1997", "1999"],
	"correctAnswer": "1995",
	"category": "Crime",
}


@pytest.mark.asyncio
async def test_list_is_public(api_client):
	resp = await api_client.get("/trivia")
	assert resp.status_code == 200
	assert resp.json() == []


@pytest.mark.asyncio
async def test_create_and_answer(api_client):
	resp = await api_client.post("/trivia", json=QUESTION, headers=USER)
	assert resp.status_code == 201
	created = resp.json()
	assert created["category"] == "Crime"
	assert created["createdBy"] == {"id": "quizzer", "username": "Quinn"}

	resp = await api_client.post(f"/trivia/{created['id']}/answer", json={"answer": "1995"}, headers=USER)
	assert resp.json() == {"isCorrect": True, "points": 1}

	resp = await api_client.post(f"/trivia/{created['id']}/answer", json={"answer": "1993"}, headers=USER)
	body = resp.json()
	assert body["isCorrect"] is True
	assert body["message"] == "You have already answered this question."

	resp = await api_client.get("/trivia/answered", headers=USER)
	assert resp.json() == {"answeredTriviaIds": [created["id"]]}


@pytest.mark.asyncio
async def test_create_validation(api_client):
	resp = await api_client.post("/trivia", json={**QUESTION, "options": ["1995", "1996"]}, headers=USER)
	assert resp.status_code == 400
	assert resp.json()["message"] == "Options must be an array of 4 items"

	resp = await api_client.post("/trivia", json={"question": "?"}, headers=USER)
	assert resp.status_code == 422


@pytest.mark.asyncio
async def test_answer_errors(api_client):
	resp = await api_client.post("/trivia/missing/answer", json={}, headers=USER)
	assert resp.status_code == 400
	assert resp.json()["message"] == "Answer is required"

	resp = await api_client.post("/trivia/missing/answer", json={"answer": "1995"}, headers=USER)
	assert resp.status_code == 404
