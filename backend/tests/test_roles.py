class TestRoles:
    def _role_id(self, client, headers, name):
        roles = client.get("/api/roles", headers=headers).json()["list"]
        return next(r["id"] for r in roles if r["name"] == name)

    def test_system_roles_are_seeded(self, client, admin):
        body = client.get("/api/roles", headers=admin).json()
        kinds = {r["name"]: r["type"] for r in body["list"]}
        assert kinds == {"admin": "System", "team leader": "System", "normal user": "System"}

    def test_create_assign_and_delete_custom_role(self, client, admin, make_user):
        user_id, _ = make_user("u1")
        r = client.post("/api/roles", json={"name": "R1", "desc": "reviewers"}, headers=admin)
        assert r.status_code == 200
        assert r.json()["type"] == "Custom"
        role_id = r.json()["id"]

        r = client.post(f"/api/users/{user_id}/roles", json={"role_id": role_id}, headers=admin)
        assert "R1" in [x["name"] for x in r.json()["roles"]]

        assert client.delete(f"/api/roles/{role_id}", headers=admin).status_code == 200
        user = client.get(f"/api/users/{user_id}", headers=admin)
        assert user.status_code == 200
        assert "R1" not in [x["name"] for x in user.json()["roles"]]

    def test_revoke_custom_role(self, client, admin, make_user):
        user_id, _ = make_user("u2")
        role_id = client.post("/api/roles", json={"name": "ops"}, headers=admin).json()["id"]
        client.post(f"/api/users/{user_id}/roles", json={"role_id": role_id}, headers=admin)

        assert client.delete(f"/api/users/{user_id}/roles/{role_id}", headers=admin).status_code == 200
        roles = client.get(f"/api/users/{user_id}", headers=admin).json()["roles"]
        assert [x["name"] for x in roles] == ["normal user"]

    def test_system_roles_are_immutable(self, client, admin, make_user):
        user_id, _ = make_user("u3")
        for name in ("admin", "team leader", "normal user"):
            role_id = self._role_id(client, admin, name)
            assert client.delete(f"/api/roles/{role_id}", headers=admin).status_code == 400
            r = client.post(f"/api/users/{user_id}/roles", json={"role_id": role_id}, headers=admin)
            assert r.status_code == 400

    def test_duplicate_role_name_conflicts(self, client, admin):
        assert client.post("/api/roles", json={"name": "admin"}, headers=admin).status_code == 409

    def test_non_admin_cannot_manage_roles(self, client, make_user):
        _, headers = make_user("u4")
        assert client.get("/api/roles", headers=headers).status_code == 200
        assert client.post("/api/roles", json={"name": "x"}, headers=headers).status_code == 403

    def test_team_leader_role_follows_leadership(self, client, admin, make_user, make_team):
        lead_id, _ = make_user("captain")
        team_id = make_team("ship", leader_id=lead_id)

        roles = client.get(f"/api/users/{lead_id}", headers=admin).json()["roles"]
        assert "team leader" in [x["name"] for x in roles]

        client.delete(f"/api/teams/{team_id}/users/{lead_id}", headers=admin)
        roles = client.get(f"/api/users/{lead_id}", headers=admin).json()["roles"]
        assert "team leader" not in [x["name"] for x in roles]

    def test_revoking_unheld_role_is_not_found(self, client, admin, make_user):
        user_id, _ = make_user("u5")
        role_id = client.post("/api/roles", json={"name": "unused"}, headers=admin).json()["id"]

        r = client.delete(f"/api/users/{user_id}/roles/{role_id}", headers=admin)
        assert r.status_code == 404
        body = client.get("/api/audits", params={"keyword": "revoked role"}, headers=admin).json()
        assert body["total"] == 0

    def test_assigning_held_role_is_recorded_once(self, client, admin, make_user):
        user_id, _ = make_user("u6")
        role_id = client.post("/api/roles", json={"name": "twice"}, headers=admin).json()["id"]
        for _ in range(2):
            r = client.post(f"/api/users/{user_id}/roles", json={"role_id": role_id}, headers=admin)
            assert r.status_code == 200

        body = client.get("/api/audits", params={"keyword": "assigned role 'twice'"}, headers=admin).json()
        assert body["total"] == 1
