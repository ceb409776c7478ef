from datetime import timedelta

from eventvote.db_models import Vote, utcnow


def _vote_body(company, voting_session, device_id="device-1", **votes):
    answers = {"host": "A", "singers": ["S1"]}
    answers.update(votes)
    return {
        "companyId": company["id"],
        "votingSessionId": voting_session["id"],
        "votes": answers,
        "deviceId": device_id,
    }


def test_get_company(client, company):
    r = client.get(f"/api/company/{company['id']}")
    assert r.status_code == 200
    assert r.json() == {"id": company["id"], "name": "Acme"}


def test_get_unknown_company_is_404(client):
    r = client.get("/api/company/nope")
    assert r.status_code == 404
    assert r.json() == {"message": "Company not found"}


def test_voting_inactive_when_no_session(client, company):
    r = client.get(f"/api/voting/{company['id']}")
    assert r.status_code == 200
    assert r.json() == {"active": False}


def test_voting_summary_counts(client, company, voting_session):
    assert client.post("/api/vote", json=_vote_body(company, voting_session)).status_code == 200

    r = client.get(f"/api/voting/{company['id']}")
    body = r.json()
    assert body["active"] is True
    assert body["id"] == voting_session["id"]
    assert [s["id"] for s in body["sections"]] == ["host", "singers", "comment"]
    assert body["totalVotes"] == 1
    assert body["companyVotes"] == 1
    assert body["companyName"] == "Acme"


def test_voting_summary_reports_device_eligibility(client, company, voting_session):
    client.post("/api/vote", json=_vote_body(company, voting_session))
    r = client.get(f"/api/voting/{company['id']}", params={"deviceId": "device-1"})
    body = r.json()
    assert body["canVote"] is False
    assert 179 <= body["timeLeft"] <= 180

    r = client.get(f"/api/voting/{company['id']}", params={"deviceId": "device-2"})
    assert r.json()["canVote"] is True


def test_submit_vote_success(client, company, voting_session, db_session):
    r = client.post("/api/vote", json=_vote_body(company, voting_session, comment="  great!  "))
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["message"] == "Vote submitted successfully"
    assert body["canVoteAgainAt"].endswith("Z")

    stored = db_session.query(Vote).one()
    assert stored.answers == {"host": "A", "singers": ["S1"], "comment": "great!"}
    assert stored.device_id == "device-1"
    assert stored.company_id == company["id"]
    assert stored.ip_address == "testclient"


def test_submit_vote_unknown_company(client, voting_session):
    body = {"companyId": "missing", "votingSessionId": voting_session["id"], "votes": {}, "deviceId": "d"}
    r = client.post("/api/vote", json=body)
    assert r.status_code == 404


def test_submit_vote_inactive_session(client, company, voting_session, admin_headers):
    client.patch(f"/api/admin/voting/{voting_session['id']}/toggle", headers=admin_headers)
    r = client.post("/api/vote", json=_vote_body(company, voting_session))
    assert r.status_code == 400
    assert r.json()["message"] == "Invalid or expired voting session"


def test_submit_vote_requires_device_id(client, company, voting_session):
    r = client.post("/api/vote", json=_vote_body(company, voting_session, device_id="  "))
    assert r.status_code == 400
    assert r.json()["message"] == "Device ID is required"


def test_submit_vote_rejects_missing_required_section(client, company, voting_session):
    body = _vote_body(company, voting_session)
    del body["votes"]["host"]
    r = client.post("/api/vote", json=body)
    assert r.status_code == 400
    assert "Host" in r.json()["message"]


def test_submit_vote_rejects_too_many_selections(client, company, voting_session):
    r = client.post("/api/vote", json=_vote_body(company, voting_session, singers=["S1", "S2", "S3"]))
    assert r.status_code == 400
    assert "Singers" in r.json()["message"]


def test_submit_vote_rejects_non_string_answers(client, company, voting_session):
    r = client.post("/api/vote", json=_vote_body(company, voting_session, host=5))
    assert r.status_code == 400
    assert "Host" in r.json()["message"]

    r = client.post("/api/vote", json=_vote_body(company, voting_session, singers=["S1", 2]))
    assert r.status_code == 400
    assert "Singers" in r.json()["message"]


def test_submit_vote_drops_unknown_answer_keys_of_any_type(client, company, voting_session, db_session):
    r = client.post("/api/vote", json=_vote_body(company, voting_session, extra=5, other={"a": 1}))
    assert r.status_code == 200

    stored = db_session.query(Vote).one()
    assert stored.answers == {"host": "A", "singers": ["S1"]}


def test_second_vote_from_same_device_is_throttled(client, company, voting_session):
    assert client.post("/api/vote", json=_vote_body(company, voting_session)).status_code == 200

    r = client.post("/api/vote", json=_vote_body(company, voting_session))
    assert r.status_code == 429
    body = r.json()
    assert 179 <= body["timeLeft"] <= 180
    assert int(r.headers["Retry-After"]) == body["timeLeft"] * 60

    other = client.post("/api/vote", json=_vote_body(company, voting_session, device_id="device-2"))
    assert other.status_code == 200


def test_device_can_vote_again_after_window(client, company, voting_session, db_session):
    old = utcnow() - timedelta(hours=3, seconds=1)
    db_session.add(
        Vote(
            voting_session_id=voting_session["id"],
            company_id=company["id"],
            answers={"host": "B", "singers": ["S2"]},
            timestamp=old,
            device_id="device-1",
        )
    )
    db_session.commit()
    r = client.post("/api/vote", json=_vote_body(company, voting_session))
    assert r.status_code == 200


def test_non_json_body_rejected(client):
    r = client.post("/api/vote", content=b"votes=1", headers={"content-type": "application/x-www-form-urlencoded"})
    assert r.status_code == 415


def test_results_scenario(client, company, voting_session):
    client.post("/api/vote", json=_vote_body(company, voting_session, device_id="d1"))
    client.post(
        "/api/vote",
        json=_vote_body(company, voting_session, device_id="d2", host="B", singers=["S1", "S3"], comment="great!"),
    )

    r = client.get(f"/api/results/{voting_session['id']}")
    assert r.status_code == 200
    body = r.json()
    assert body["totalVotes"] == 2
    assert body["title"] == "NYE Party"
    assert body["active"] is True
    results = body["results"]
    assert [(o["name"], o["votes"]) for o in results["host"]["options"]] == [("A", 1), ("B", 1)]
    assert results["host"]["options"][0]["imageUrl"] == "https://img.example/a.png"
    assert [(o["name"], o["votes"]) for o in results["singers"]["options"]] == [("S1", 2), ("S3", 1), ("S2", 0)]
    assert [x["response"] for x in results["comment"]["responses"]] == ["great!"]


def test_results_scoped_to_company(client, admin_headers, company, voting_session):
    other = client.post("/api/admin/create-company", json={"name": "Globex"}, headers=admin_headers).json()["company"]
    client.post("/api/vote", json=_vote_body(company, voting_session, device_id="d1"))
    client.post("/api/vote", json=_vote_body(other, voting_session, device_id="d2", host="B"))

    r = client.get(f"/api/results/{voting_session['id']}/company/{other['id']}")
    body = r.json()
    assert body["company"] == "Globex"
    assert body["totalVotes"] == 1
    assert [(o["name"], o["votes"]) for o in body["results"]["host"]["options"]] == [("B", 1), ("A", 0)]


def test_results_unknown_session_is_404(client):
    assert client.get("/api/results/missing").status_code == 404


def test_results_unknown_company_is_404(client, voting_session):
    assert client.get(f"/api/results/{voting_session['id']}/company/missing").status_code == 404
