def _ids(payload):
    return [item["id"] for item in payload["list"]]


class TestTeamLifecycle:
    def test_only_admin_creates_teams(self, client, make_user):
        _, headers = make_user("nobody")
        assert client.post("/api/teams", json={"name": "t"}, headers=headers).status_code == 403

    def test_duplicate_team_name_conflicts(self, client, admin):
        assert client.post("/api/teams", json={"name": "alpha"}, headers=admin).status_code == 200
        assert client.post("/api/teams", json={"name": "alpha"}, headers=admin).status_code == 409

    def test_leader_updates_team_and_blank_name_is_ignored(self, client, make_user, make_team):
        lead_id, lead = make_user("lead")
        team_id = make_team("orig", leader_id=lead_id)

        r = client.put(f"/api/teams/{team_id}", json={"name": "  ", "desc": "new desc"}, headers=lead)
        assert r.status_code == 200
        assert r.json()["name"] == "orig"
        assert r.json()["desc"] == "new desc"

    def test_member_cannot_update_team(self, client, make_user, make_team):
        member_id, member = make_user("member")
        team_id = make_team("locked", member_ids=[member_id])
        assert client.put(f"/api/teams/{team_id}", json={"name": "x"}, headers=member).status_code == 403

    def test_outsider_gets_forbidden_missing_gets_not_found(self, client, make_user, make_team):
        _, outsider = make_user("outsider")
        team_id = make_team("closed")
        assert client.get(f"/api/teams/{team_id}", headers=outsider).status_code == 403
        assert client.get("/api/teams/4242", headers=outsider).status_code == 404


class TestLeadership:
    def test_leader_must_be_a_member(self, client, admin, make_user, make_team):
        user_id, _ = make_user("stranger")
        team_id = make_team("club")
        r = client.patch(
            f"/api/teams/{team_id}",
            json=[{"op": "replace", "path": "/leader", "value": {"id": user_id}}],
            headers=admin,
        )
        assert r.status_code == 400

    def test_leader_can_be_cleared(self, client, admin, make_user, make_team):
        lead_id, _ = make_user("boss")
        team_id = make_team("firm", leader_id=lead_id)
        r = client.patch(
            f"/api/teams/{team_id}",
            json=[{"op": "replace", "path": "/leader", "value": None}],
            headers=admin,
        )
        assert r.status_code == 200
        assert r.json()["leader"] is None

    def test_bad_patch_path_is_rejected(self, client, admin, make_team):
        team_id = make_team("strict")
        r = client.patch(
            f"/api/teams/{team_id}",
            json=[{"op": "replace", "path": "/name", "value": "x"}],
            headers=admin,
        )
        assert r.status_code == 400

    def test_leader_exit_clears_leadership(self, client, admin, make_user, make_team):
        lead_id, lead = make_user("quitter")
        team_id = make_team("band", leader_id=lead_id)

        assert client.delete(f"/api/me/teams/{team_id}", headers=lead).status_code == 200
        assert client.get(f"/api/teams/{team_id}", headers=admin).json()["leader"] is None


class TestMembership:
    def test_leader_recruits_visible_and_unaffiliated_users(self, client, make_user, make_team):
        lead_id, lead = make_user("recruiter")
        free_id, _ = make_user("free")
        team_id = make_team("growing", leader_id=lead_id)

        r = client.post(f"/api/teams/{team_id}/users", json={"user_id": free_id}, headers=lead)
        assert r.status_code == 200
        members = client.get(f"/api/teams/{team_id}/users", headers=lead).json()
        assert {u["id"] for u in members["list"]} == {lead_id, free_id}

    def test_leader_cannot_recruit_other_teams_members(self, client, make_user, make_team):
        lead_id, lead = make_user("poacher")
        taken_id, _ = make_user("taken")
        team_id = make_team("mine", leader_id=lead_id)
        make_team("theirs", member_ids=[taken_id])

        r = client.post(f"/api/teams/{team_id}/users", json={"user_id": taken_id}, headers=lead)
        assert r.status_code == 403

    def test_member_cannot_add_members(self, client, make_user, make_team):
        member_id, member = make_user("helper")
        free_id, _ = make_user("other")
        team_id = make_team("flat", member_ids=[member_id])
        r = client.post(f"/api/teams/{team_id}/users", json={"user_id": free_id}, headers=member)
        assert r.status_code == 403

    def test_adding_twice_is_idempotent(self, client, admin, make_user, make_team):
        user_id, _ = make_user("twice")
        team_id = make_team("repeat", member_ids=[user_id])
        r = client.post(f"/api/teams/{team_id}/users", json={"user_id": user_id}, headers=admin)
        assert r.status_code == 200
        assert client.get(f"/api/teams/{team_id}/users", headers=admin).json()["total"] == 1

    def test_removing_non_member_is_not_found(self, client, admin, make_user, make_team):
        user_id, _ = make_user("absent")
        team_id = make_team("empty")
        assert client.delete(f"/api/teams/{team_id}/users/{user_id}", headers=admin).status_code == 404


class TestTeamListing:
    def test_listing_is_scoped_and_filters_leading(self, client, admin, make_user, make_team):
        lead_id, lead = make_user("multi")
        led = make_team("led", leader_id=lead_id)
        joined = make_team("joined", member_ids=[lead_id])
        make_team("foreign")

        assert sorted(_ids(client.get("/api/teams", headers=lead).json())) == sorted([led, joined])
        assert _ids(client.get("/api/me/teams", params={"leading": "true"}, headers=lead).json()) == [led]
        assert _ids(client.get("/api/me/teams", params={"leading": "false"}, headers=lead).json()) == [joined]
        assert client.get("/api/teams", headers=admin).json()["total"] == 3

    def test_name_filter(self, client, admin, make_team):
        make_team("red-one")
        make_team("red-two")
        make_team("green")
        body = client.get("/api/teams", params={"name": "red"}, headers=admin).json()
        assert body["total"] == 2

    def test_paged_member_and_project_listings(self, client, admin, make_user, make_team):
        user_id, _ = make_user("paged")
        team_id = make_team("pages", member_ids=[user_id])
        client.post(f"/api/teams/{team_id}/projects", json={"name": "p"}, headers=admin)

        users = client.get(f"/api/teams/{team_id}/users", params={"page": 1, "page_size": 5}, headers=admin)
        assert users.status_code == 200
        assert _ids(users.json()) == [user_id]
        projects = client.get(f"/api/teams/{team_id}/projects", params={"page": 1}, headers=admin)
        assert projects.status_code == 200
        assert projects.json()["total"] == 1

    def test_name_filter_is_literal(self, client, admin, make_team):
        make_team("a_c")
        make_team("abc")
        body = client.get("/api/teams", params={"name": "a_c"}, headers=admin).json()
        assert [t["name"] for t in body["list"]] == ["a_c"]
        body = client.get("/api/teams", params={"name": "%"}, headers=admin).json()
        assert body["total"] == 0


class TestLeaderPatchAtomicity:
    def test_failing_operation_rolls_back_earlier_ones(self, client, admin, make_user, make_team):
        a_id, _ = make_user("first-lead")
        b_id, _ = make_user("second")
        stranger_id, _ = make_user("stranger2")
        team_id = make_team("steady", leader_id=a_id, member_ids=[b_id])

        r = client.patch(
            f"/api/teams/{team_id}",
            json=[
                {"op": "replace", "path": "/leader", "value": {"id": b_id}},
                {"op": "replace", "path": "/leader", "value": {"id": stranger_id}},
            ],
            headers=admin,
        )
        assert r.status_code == 400
        assert client.get(f"/api/teams/{team_id}", headers=admin).json()["leader"]["id"] == a_id

    def test_last_operation_wins(self, client, admin, make_user, make_team):
        a_id, _ = make_user("x-lead")
        b_id, _ = make_user("y-lead")
        team_id = make_team("swap", member_ids=[a_id, b_id])

        r = client.patch(
            f"/api/teams/{team_id}",
            json=[
                {"op": "replace", "path": "/leader", "value": {"id": a_id}},
                {"op": "replace", "path": "/leader", "value": {"id": b_id}},
            ],
            headers=admin,
        )
        assert r.status_code == 200
        assert r.json()["leader"]["id"] == b_id

    def test_unchanged_update_writes_no_audit(self, client, admin, make_team):
        team_id = make_team("quiet")
        r = client.put(f"/api/teams/{team_id}", json={"name": "quiet"}, headers=admin)
        assert r.status_code == 200
        body = client.get("/api/audits", params={"keyword": "updated team"}, headers=admin).json()
        assert body["total"] == 0
