"""
Tests for poll authoring and listing endpoints.
"""

from pointpoll.models import Choice, Vote
from pointpoll.services import vote_service


class TestCreatePoll:
    def test_create_poll(self, client, auth_headers, user):
        response = client.post(
            "/api/v1/polls",
            json={"title": "  Offsite  ", "description": "Pick a place", "choices": ["Beach", " ", "Mountains", "City"]},
            headers=auth_headers,
        )

        assert response.status_code == 201
        data = response.json()
        assert data["title"] == "Offsite"
        assert data["user_id"] == user.id
        assert [(c["position"], c["choice_text"]) for c in data["choices"]] == [
            (0, "Beach"),
            (1, "Mountains"),
            (2, "City"),
        ]

    def test_needs_two_choices(self, client, auth_headers):
        response = client.post(
            "/api/v1/polls",
            json={"title": "Lonely", "choices": ["Only one", "   "]},
            headers=auth_headers,
        )

        assert response.status_code == 422
        assert "at least 2 choices" in response.json()["detail"][0]["msg"]

    def test_needs_title(self, client, auth_headers):
        response = client.post(
            "/api/v1/polls",
            json={"title": "   ", "choices": ["A", "B"]},
            headers=auth_headers,
        )

        assert response.status_code == 422

    def test_requires_auth(self, client):
        response = client.post("/api/v1/polls", json={"title": "x", "choices": ["A", "B"]})

        assert response.status_code in (401, 403)

    def test_invalid_token(self, client):
        response = client.get("/api/v1/polls", headers={"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == 401


class TestGetPoll:
    def test_get_poll(self, client, poll, auth_headers):
        response = client.get(f"/api/v1/polls/{poll.id}", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["title"] == "Team lunch"
        assert len(response.json()["choices"]) == 3

    def test_missing_poll(self, client, auth_headers):
        assert client.get("/api/v1/polls/missing", headers=auth_headers).status_code == 404


class TestUpdatePoll:
    def test_owner_can_edit_title_and_choice_text(self, client, poll, choice_ids, auth_headers):
        response = client.patch(
            f"/api/v1/polls/{poll.id}",
            json={"title": "Team dinner", "description": "", "choices": {choice_ids[1]: "Ramen"}},
            headers=auth_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["title"] == "Team dinner"
        assert data["description"] is None
        assert [c["choice_text"] for c in data["choices"]] == ["Pizza", "Ramen", "Tacos"]

    def test_other_users_cannot_edit(self, client, poll, make_user, headers_for):
        response = client.patch(
            f"/api/v1/polls/{poll.id}",
            json={"title": "Hijacked"},
            headers=headers_for(make_user()),
        )

        assert response.status_code == 403

    def test_unknown_choice_id(self, client, poll, auth_headers):
        response = client.patch(
            f"/api/v1/polls/{poll.id}",
            json={"choices": {"nope": "Ramen"}},
            headers=auth_headers,
        )

        assert response.status_code == 400


class TestDeletePoll:
    def test_delete_cascades_choices_and_votes(self, client, db, poll, choice_ids, user, auth_headers):
        vote_service.submit_allocation(db, poll.id, user.id, {choice_ids[0]: 100})

        response = client.delete(f"/api/v1/polls/{poll.id}", headers=auth_headers)

        assert response.status_code == 204
        db.expire_all()
        assert db.query(Choice).filter(Choice.poll_id == poll.id).count() == 0
        assert db.query(Vote).filter(Vote.poll_id == poll.id).count() == 0
        assert client.get(f"/api/v1/polls/{poll.id}", headers=auth_headers).status_code == 404

    def test_other_users_cannot_delete(self, client, poll, make_user, headers_for):
        response = client.delete(f"/api/v1/polls/{poll.id}", headers=headers_for(make_user()))

        assert response.status_code == 403


class TestListPolls:
    def test_search_filter_and_trending(self, client, db, user, make_user, headers_for, auth_headers):
        from pointpoll.services import poll_service

        alice = make_user(full_name="Alice Author")
        lunch = poll_service.create_poll(db, alice, "Lunch spot", "Food for Friday", ["Pizza", "Sushi"])
        retro = poll_service.create_poll(db, alice, "Retro format", None, ["Sailboat", "Starfish"])
        offsite = poll_service.create_poll(db, user, "Offsite", "Where to go", ["Beach", "Hills"])

        # retro gets more vote rows than lunch
        vote_service.submit_allocation(db, retro.id, user.id, {c.id: 50 for c in retro.choices})
        vote_service.submit_allocation(db, lunch.id, make_user().id, {lunch.choices[0].id: 100})

        everything = client.get("/api/v1/polls", headers=auth_headers).json()
        assert everything["total"] == 3

        trending = client.get("/api/v1/polls?sort=trending", headers=auth_headers).json()
        assert [p["id"] for p in trending["polls"]][:2] == [retro.id, lunch.id]
        assert trending["polls"][0]["vote_count"] == 2

        voted = client.get("/api/v1/polls?filter=voted", headers=auth_headers).json()
        assert [p["id"] for p in voted["polls"]] == [retro.id]
        assert voted["polls"][0]["has_voted"] is True

        not_voted = client.get("/api/v1/polls?filter=not-voted", headers=auth_headers).json()
        assert {p["id"] for p in not_voted["polls"]} == {lunch.id, offsite.id}

        by_text = client.get("/api/v1/polls?q=friday", headers=auth_headers).json()
        assert [p["id"] for p in by_text["polls"]] == [lunch.id]

        by_owner = client.get("/api/v1/polls?q=alice", headers=auth_headers).json()
        assert {p["id"] for p in by_owner["polls"]} == {lunch.id, retro.id}
        assert by_owner["polls"][0]["owner_name"] == "Alice Author"

    def test_pagination(self, client, db, user, auth_headers):
        from pointpoll.services import poll_service

        for i in range(5):
            poll_service.create_poll(db, user, f"Poll {i}", None, ["A", "B"])

        data = client.get("/api/v1/polls?page=2&limit=2", headers=auth_headers).json()

        assert data["total"] == 5
        assert data["page"] == 2
        assert data["pages"] == 3
        assert len(data["polls"]) == 2

    def test_my_polls(self, client, db, poll, make_user, auth_headers):
        from pointpoll.services import poll_service

        poll_service.create_poll(db, make_user(), "Not mine", None, ["A", "B"])

        data = client.get("/api/v1/polls/mine", headers=auth_headers).json()

        assert [p["id"] for p in data] == [poll.id]
