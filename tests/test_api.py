from conftest import ADMIN, MINTER, OUTSIDER


def test_index(client):
    assert client.get("/api/v1/").json() == {"status": "API is running"}
    assert client.get("/api/v1/readiness").json()["database"] == "online"


def test_routes_require_caller_identity(client, auth):
    assert client.get("/api/v1/tokens/info").status_code == 401
    assert client.get("/api/v1/tokens/info", headers={"Authorization": "Bearer garbage"}).status_code == 401
    assert client.get("/api/v1/tokens/info", headers=auth(OUTSIDER)).status_code == 200


def test_role_management(client, auth):
    root = auth("root")

    resp = client.post("/api/v1/roles/CONTROL/members", json={"principal": "alice"}, headers=root)
    assert resp.status_code == 201

    resp = client.get("/api/v1/roles/CONTROL/members/alice", headers=root)
    assert resp.json()["has_role"] is True

    resp = client.post("/api/v1/roles/CONTROL/members", json={"principal": "bob"}, headers=auth("bob"))
    assert resp.status_code == 403
    assert resp.json()["kind"] == "Unauthorized"

    assert client.get("/api/v1/roles/AUDITOR", headers=root).status_code == 404

    resp = client.delete("/api/v1/roles/CONTROL/members/alice", headers=root)
    assert resp.json()["has_role"] is False
    assert client.get("/api/v1/roles/CONTROL", headers=root).json()["members"] == []


def test_registry_endpoints(api_setup, auth):
    client = api_setup
    admin = auth(ADMIN)

    resp = client.get("/api/v1/registry/supply-chain-entities/entity-b", headers=auth("entity-b"))
    assert resp.status_code == 200
    assert resp.json()["tier"] == "tier 4"

    resp = client.put(
        "/api/v1/registry/supply-chain-entities/newcomer",
        json={"role": "delivery"},
        headers=auth(OUTSIDER),
    )
    assert resp.status_code == 403

    resp = client.post("/api/v1/registry/gse-acknowledgement", headers=auth("entity-b"))
    assert resp.json()["gse_acknowledged"] is True

    resp = client.post(
        "/api/v1/registry/supply-chain-entities/entity-b/transactions",
        json={"token_id": 9},
        headers=admin,
    )
    assert resp.status_code == 201
    transaction_id = resp.json()["transaction_id"]

    resp = client.get("/api/v1/registry/supply-chain-entities/entity-b/transactions", headers=admin)
    assert resp.json() == [transaction_id]
    assert client.get(f"/api/v1/registry/transactions/{transaction_id}", headers=admin).json()["token_id"] == 9

    assert client.delete("/api/v1/registry/supply-chain-entities/entity-b", headers=admin).status_code == 200
    resp = client.get("/api/v1/registry/supply-chain-entities/entity-b", headers=admin)
    assert resp.status_code == 404
    assert resp.json() == {"kind": "NotFound", "detail": "Entity does not exist"}
    assert client.delete("/api/v1/registry/supply-chain-entities/entity-b", headers=admin).status_code == 200


def test_control_workflow_over_http(api_setup, auth):
    client = api_setup
    controller = auth("controller-a")
    controlled = auth("entity-b")

    resp = client.post("/api/v1/controls/", json={"controlled_entity": "entity-b"}, headers=controller)
    assert resp.status_code == 201
    control_id = resp.json()["id"]
    assert control_id == 1

    resp = client.post(
        f"/api/v1/controls/{control_id}/findings",
        json={"gse_ok": True, "findings": ["everything ok"]},
        headers=controller,
    )
    assert resp.json()["state"] == "findings_reported"

    resp = client.post(
        f"/api/v1/controls/{control_id}/acknowledgement",
        json={"acknowledgement_code": 1},
        headers=controller,
    )
    assert resp.status_code == 403
    assert resp.json()["detail"] == "Only controlled entity can acknowledge"

    resp = client.post(
        f"/api/v1/controls/{control_id}/acknowledgement",
        json={"acknowledgement_code": 1},
        headers=controlled,
    )
    assert resp.json()["state"] == "finished"

    resp = client.post(
        f"/api/v1/controls/{control_id}/findings",
        json={"gse_ok": True, "findings": []},
        headers=controller,
    )
    assert resp.status_code == 409
    assert resp.json()["kind"] == "InvalidState"

    resp = client.get(f"/api/v1/registry/controls/{control_id}", headers=controlled)
    assert resp.json()["status"] == "ok"

    resp = client.get("/api/v1/events/", params={"name": "ControlCreated"}, headers=controlled)
    assert resp.json()[0]["payload"] == {"id": 1, "controlled": "entity-b", "controller": "controller-a"}


def test_start_control_on_unregistered_principal(api_setup, auth):
    resp = api_setup.post(
        "/api/v1/controls/", json={"controlled_entity": OUTSIDER}, headers=auth("controller-a"))
    assert resp.status_code == 422
    assert resp.json()["kind"] == "InvalidTarget"


def test_token_flow_over_http(api_setup, auth):
    client = api_setup
    minter = auth(MINTER)

    for owner in ("entity-e", "entity-f"):
        client.post("/api/v1/registry/gse-acknowledgement", headers=auth(owner))
        resp = client.post(
            "/api/v1/tokens/", json={"to_principal": owner, "source_token_ids": []}, headers=minter)
        assert resp.status_code == 201

    resp = client.post(
        "/api/v1/tokens/", json={"to_principal": "entity-g", "source_token_ids": [1, 2]}, headers=minter)
    assert resp.json()["token_id"] == 3

    assert client.get("/api/v1/tokens/3/metadata", headers=minter).json()["source_token_ids"] == [1, 2]
    assert client.get("/api/v1/tokens/3/owner", headers=minter).json()["owner"] == "entity-g"

    resp = client.post(
        "/api/v1/tokens/1/transfer",
        json={"from_principal": "entity-e", "to_principal": "entity-f"},
        headers=auth("entity-e"),
    )
    assert resp.status_code == 409
    assert resp.json()["detail"] == "Token must be active to be transferrable"

    resp = client.get("/api/v1/registry/supply-chain-entities/entity-g/transactions", headers=minter)
    assert len(resp.json()) == 1

    resp = client.get("/api/v1/events/", params={"name": "NonGSETransaction"}, headers=minter)
    assert [e["payload"] for e in resp.json()] == [{"token_id": 3, "to": "entity-g"}]

    provenance = client.get("/api/v1/tokens/3/provenance", headers=minter).json()
    assert [t["token_id"] for t in provenance["ancestors"]] == [1, 2]

    assert client.get("/api/v1/tokens/owners/entity-g/balance", headers=minter).json()["balance"] == 1
    assert client.get("/api/v1/tokens/info", headers=minter).json()["total_minted"] == 3


def test_mint_without_minter_role(api_setup, auth):
    resp = api_setup.post(
        "/api/v1/tokens/", json={"to_principal": "entity-e", "source_token_ids": []}, headers=auth("entity-e"))
    assert resp.status_code == 403
    assert resp.json()["detail"] == "Not the valid role to create tokens"
