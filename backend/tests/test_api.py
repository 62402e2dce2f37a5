"""
PetNest Backend — API Endpoint Tests
======================================

What:  End-to-end HTTP tests through the FastAPI app (middleware, auth
       dependencies, exception handlers, routes, services, database).

What we test:
    ✅ Status codes for each error class (400/401/403/404/422)
    ✅ Error body shape: error, message, request_id
    ✅ Full apply → decide → cancel round over HTTP
    ✅ Pet listing query parameters and X-Total-Count header
"""

import uuid

import pytest

from petnest.models.adoption import Adoption
from petnest.models.enums import AdoptionStatus, PetStatus


def application_body(pet_id, agree=True) -> dict:
    return {
        "pet": str(pet_id),
        "applicant_info": {
            "living_situation": "Apartment",
            "reason_for_adoption": "Companionship",
            "agree_to_terms": agree,
        },
    }


class TestHealthAndMiddleware:

    @pytest.mark.asyncio
    async def test_health(self, test_client):
        response = await test_client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"

    @pytest.mark.asyncio
    async def test_request_id_echoed(self, test_client):
        response = await test_client.get("/api/pets", headers={"X-Request-ID": "abc123"})
        assert response.headers["X-Request-ID"] == "abc123"


class TestAuthEndpoints:

    @pytest.mark.asyncio
    async def test_register_login_me(self, test_client):
        register = await test_client.post(
            "/api/auth/register",
            json={"name": "Dana", "email": "dana@example.com", "password": "secret123"},
        )
        assert register.status_code == 201
        assert register.json()["user"]["role"] == "user"

        login = await test_client.post(
            "/api/auth/login",
            json={"email": "dana@example.com", "password": "secret123"},
        )
        assert login.status_code == 200
        token = login.json()["access_token"]

        me = await test_client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.json()["email"] == "dana@example.com"
        assert "password_hash" not in me.json()

    @pytest.mark.asyncio
    async def test_bad_login(self, test_client, applicant):
        response = await test_client.post(
            "/api/auth/login",
            json={"email": "alice@example.com", "password": "wrong-password"},
        )
        assert response.status_code == 401
        assert response.json()["error"] == "authentication_error"

    @pytest.mark.asyncio
    async def test_missing_token(self, test_client):
        response = await test_client.get("/api/auth/me")
        assert response.status_code == 401
        body = response.json()
        assert body["message"] == "No token, authorization denied"
        assert "request_id" in body

    @pytest.mark.asyncio
    async def test_invalid_token(self, test_client):
        response = await test_client.get(
            "/api/auth/me", headers={"Authorization": "Bearer not.a.token"}
        )
        assert response.status_code == 401


class TestPetEndpoints:

    @pytest.mark.asyncio
    async def test_list_with_filters(self, test_client, admin, make_pet):
        await make_pet(admin, name="Rex", type="Dog")
        await make_pet(admin, name="Tom", type="Cat")

        response = await test_client.get("/api/pets", params={"type": "Cat", "limit": 5})
        assert response.status_code == 200
        body = response.json()
        assert [p["name"] for p in body["pets"]] == ["Tom"]
        assert response.headers["X-Total-Count"] == "1"
        assert body["pets"][0]["posted_by"]["name"] == "Shelter Admin"

    @pytest.mark.asyncio
    async def test_limit_capped(self, test_client):
        response = await test_client.get("/api/pets", params={"limit": 500})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_get_missing_pet(self, test_client):
        response = await test_client.get(f"/api/pets/{uuid.uuid4()}")
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    @pytest.mark.asyncio
    async def test_create_requires_admin(self, test_client, applicant, admin, auth_headers):
        body = {
            "name": "Pip",
            "type": "Bird",
            "age": 1,
            "gender": "Male",
            "size": "Small",
            "description": "Sings in the morning",
        }
        forbidden = await test_client.post("/api/pets", json=body, headers=auth_headers(applicant))
        assert forbidden.status_code == 403
        assert forbidden.json()["error"] == "forbidden"

        created = await test_client.post("/api/pets", json=body, headers=auth_headers(admin))
        assert created.status_code == 201
        assert created.json()["status"] == "Available"

    @pytest.mark.asyncio
    async def test_generic_update_cannot_change_status(
        self, test_client, admin, make_pet, auth_headers
    ):
        pet = await make_pet(admin)
        response = await test_client.put(
            f"/api/pets/{pet.id}", json={"status": "Adopted"}, headers=auth_headers(admin)
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_manual_status(self, test_client, admin, make_pet, auth_headers):
        pet = await make_pet(admin)
        response = await test_client.put(
            f"/api/pets/{pet.id}/status",
            json={"status": "Not Available"},
            headers=auth_headers(admin),
        )
        assert response.status_code == 200
        assert response.json()["status"] == "Not Available"


class TestAdoptionEndpoints:

    @pytest.mark.asyncio
    async def test_full_round(
        self, test_client, admin, applicant, other_applicant, make_pet, auth_headers
    ):
        pet = await make_pet(admin)

        created = await test_client.post(
            "/api/adoptions", json=application_body(pet.id), headers=auth_headers(applicant)
        )
        assert created.status_code == 201
        adoption = created.json()
        assert adoption["status"] == "Pending"
        assert adoption["pet"]["status"] == "Pending"
        assert adoption["applicant"]["email"] == "alice@example.com"

        refused = await test_client.post(
            "/api/adoptions",
            json=application_body(pet.id),
            headers=auth_headers(other_applicant),
        )
        assert refused.status_code == 400
        assert refused.json()["error"] == "invalid_state"

        decided = await test_client.put(
            f"/api/adoptions/{adoption['id']}/status",
            json={"status": "Approved", "notes": "Welcome home"},
            headers=auth_headers(admin),
        )
        assert decided.status_code == 200
        assert decided.json()["status"] == "Approved"
        assert decided.json()["reviewed_by"] == str(admin.id)

        pet_view = await test_client.get(f"/api/pets/{pet.id}")
        assert pet_view.json()["status"] == PetStatus.ADOPTED.value
        assert pet_view.json()["adopted_by"] == str(applicant.id)

        cancel = await test_client.put(
            f"/api/adoptions/{adoption['id']}/cancel", headers=auth_headers(applicant)
        )
        assert cancel.status_code == 400

    @pytest.mark.asyncio
    async def test_duplicate_application(
        self, test_client, db_session, admin, applicant, make_pet, auth_headers
    ):
        pet = await make_pet(admin)
        # An active application left over against a pet that is Available again
        db_session.add(
            Adoption(
                pet_id=pet.id,
                applicant_id=applicant.id,
                status=AdoptionStatus.PENDING.value,
                applicant_info={"agree_to_terms": True},
                contact_info={},
            )
        )
        await db_session.commit()

        response = await test_client.post(
            "/api/adoptions", json=application_body(pet.id), headers=auth_headers(applicant)
        )
        assert response.status_code == 400
        assert response.json()["error"] == "duplicate_application"

    @pytest.mark.asyncio
    async def test_terms_required(self, test_client, admin, applicant, make_pet, auth_headers):
        pet = await make_pet(admin)
        response = await test_client.post(
            "/api/adoptions",
            json=application_body(pet.id, agree=False),
            headers=auth_headers(applicant),
        )
        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_unauthenticated_apply(self, test_client, admin, make_pet):
        pet = await make_pet(admin)
        response = await test_client.post("/api/adoptions", json=application_body(pet.id))
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_admin_cannot_apply(self, test_client, admin, make_pet, auth_headers):
        pet = await make_pet(admin)
        response = await test_client.post(
            "/api/adoptions", json=application_body(pet.id), headers=auth_headers(admin)
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_user_cannot_decide(
        self, test_client, admin, applicant, make_pet, auth_headers
    ):
        pet = await make_pet(admin)
        created = await test_client.post(
            "/api/adoptions", json=application_body(pet.id), headers=auth_headers(applicant)
        )
        response = await test_client.put(
            f"/api/adoptions/{created.json()['id']}/status",
            json={"status": "Approved"},
            headers=auth_headers(applicant),
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_cancel_someone_elses(
        self, test_client, admin, applicant, other_applicant, make_pet, auth_headers
    ):
        pet = await make_pet(admin)
        created = await test_client.post(
            "/api/adoptions", json=application_body(pet.id), headers=auth_headers(applicant)
        )
        response = await test_client.put(
            f"/api/adoptions/{created.json()['id']}/cancel",
            headers=auth_headers(other_applicant),
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_cancel_frees_pet_and_lists(
        self, test_client, admin, applicant, make_pet, auth_headers
    ):
        pet = await make_pet(admin)
        created = await test_client.post(
            "/api/adoptions", json=application_body(pet.id), headers=auth_headers(applicant)
        )
        cancelled = await test_client.put(
            f"/api/adoptions/{created.json()['id']}/cancel", headers=auth_headers(applicant)
        )
        assert cancelled.status_code == 200
        assert cancelled.json()["status"] == "Cancelled"
        assert cancelled.json()["pet"]["status"] == "Available"

        mine = await test_client.get("/api/adoptions", headers=auth_headers(applicant))
        assert [a["status"] for a in mine.json()] == ["Cancelled"]

        admin_view = await test_client.get(
            "/api/adoptions/admin",
            params={"status": "Cancelled", "pet": str(pet.id)},
            headers=auth_headers(admin),
        )
        assert admin_view.status_code == 200
        assert len(admin_view.json()) == 1

    @pytest.mark.asyncio
    async def test_unknown_adoption(self, test_client, admin, auth_headers):
        response = await test_client.put(
            f"/api/adoptions/{uuid.uuid4()}/status",
            json={"status": "Rejected"},
            headers=auth_headers(admin),
        )
        assert response.status_code == 404
