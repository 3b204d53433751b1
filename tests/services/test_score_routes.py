"""Score Routes — idempotent upsert keyed by the client id, delete without cascade.

Invariants:
    - Upserting the same id twice leaves exactly one score holding the second payload
    - POST answers 200 with the submitted payload, extra fields included
    - ENFORCE_SCORE_REFERENCES rejects dangling references and out-of-range values
"""

import pytest


def _payload(seed, score_id="S1", value=8, **extra):
    innovation = seed["criteria"][0]
    return {
        "id": score_id,
        "projectId": seed["projects"][0]["id"],
        "judgeId": seed["judges"][0]["id"],
        "criteria": {innovation["id"]: value},
        **extra,
    }


async def _scores(client) -> list[dict]:
    return (await client.get("/api/v1/data")).json()["scores"]


async def test_upsert_twice_keeps_one_score_with_last_value(client, seed):
    first = await client.post("/api/v1/scores", json=_payload(seed, value=8))
    second = await client.post("/api/v1/scores", json=_payload(seed, value=5))

    assert first.status_code == 200
    assert second.status_code == 200
    scores = await _scores(client)
    assert len(scores) == 1
    assert scores[0]["id"] == "S1"
    assert list(scores[0]["criteria"].values()) == [5]


async def test_upsert_returns_submitted_payload(client, seed):
    payload = _payload(seed, feedback="Great demo", value=9)

    res = await client.post("/api/v1/scores", json=payload)

    assert res.status_code == 200
    assert res.json() == payload


async def test_upsert_keeps_extra_client_fields(client, seed):
    payload = {**_payload(seed), "value": 8, "round": "final"}

    await client.post("/api/v1/scores", json=payload)

    stored = (await _scores(client))[0]
    assert stored["value"] == 8
    assert stored["round"] == "final"
    assert stored["projectId"] == payload["projectId"]


async def test_upsert_replaces_every_field(client, seed):
    await client.post(
        "/api/v1/scores", json=_payload(seed, feedback="first", note="old"),
    )
    await client.post("/api/v1/scores", json=_payload(seed, value=3))

    stored = (await _scores(client))[0]
    assert stored["feedback"] is None
    assert "note" not in stored


async def test_upsert_accepts_unknown_references_by_default(client):
    res = await client.post("/api/v1/scores", json={
        "id": "orphan", "projectId": "p-404", "judgeId": "j-404", "criteria": {},
    })

    assert res.status_code == 200
    assert [s["id"] for s in await _scores(client)] == ["orphan"]


async def test_upsert_rejects_negative_values(client, seed):
    res = await client.post("/api/v1/scores", json=_payload(seed, value=-1))

    assert res.status_code == 400


async def test_upsert_requires_id(client, seed):
    payload = _payload(seed)
    del payload["id"]

    res = await client.post("/api/v1/scores", json=payload)

    assert res.status_code == 400


async def test_delete_score(client, seed):
    await client.post("/api/v1/scores", json=_payload(seed))

    res = await client.delete("/api/v1/scores/S1")

    assert res.status_code == 200
    assert res.json() == {"success": True}
    assert await _scores(client) == []


async def test_delete_missing_score_returns_404(client):
    res = await client.delete("/api/v1/scores/never-existed")

    assert res.status_code == 404
    assert res.json()["error"]["message"] == "Score not found"


# ─── ENFORCE_SCORE_REFERENCES ─────────────────────────────────────

async def _seed_strict(client) -> dict:
    project = (await client.post(
        "/api/v1/projects", json={"name": "Alpha", "track": "ai"},
    )).json()
    judge = (await client.post(
        "/api/v1/judges", json={"name": "Jane", "tracks": ["ai"]},
    )).json()
    criterion = (await client.post(
        "/api/v1/criteria", json={"name": "Innovation", "maxScore": 5},
    )).json()
    return {"projects": [project], "judges": [judge], "criteria": [criterion]}


async def test_strict_accepts_valid_score(strict_client):
    seed = await _seed_strict(strict_client)

    res = await strict_client.post("/api/v1/scores", json=_payload(seed, value=5))

    assert res.status_code == 200


@pytest.mark.parametrize("field", ["projectId", "judgeId"])
async def test_strict_rejects_dangling_reference(strict_client, field):
    seed = await _seed_strict(strict_client)
    payload = _payload(seed, value=1)
    payload[field] = "00000000-0000-0000-0000-000000000000"

    res = await strict_client.post("/api/v1/scores", json=payload)

    assert res.status_code == 400
    assert field in res.json()["error"]["message"]


async def test_strict_rejects_malformed_reference(strict_client):
    seed = await _seed_strict(strict_client)
    payload = {**_payload(seed, value=1), "projectId": "not-a-uuid"}

    res = await strict_client.post("/api/v1/scores", json=payload)

    assert res.status_code == 400


async def test_strict_rejects_unknown_criterion(strict_client):
    seed = await _seed_strict(strict_client)
    payload = {**_payload(seed), "criteria": {"made-up": 1}}

    res = await strict_client.post("/api/v1/scores", json=payload)

    assert res.status_code == 400


async def test_strict_rejects_value_above_max_score(strict_client):
    seed = await _seed_strict(strict_client)

    res = await strict_client.post("/api/v1/scores", json=_payload(seed, value=6))

    assert res.status_code == 400
    assert "maxScore" in res.json()["error"]["message"]
    assert await _scores(strict_client) == []
