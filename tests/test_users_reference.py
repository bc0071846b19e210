"""User management and command/unit reference data"""
import pytest

from maintdesk.models.user import UserRole
from maintdesk.schemas.reference import CreateCommandRequest, CreateUnitRequest
from maintdesk.schemas.user import CreateUserRequest, UpdateUserRequest
from maintdesk.services.auth_service import AuthService
from maintdesk.services.reference_service import ReferenceService
from maintdesk.services.user_service import UserService
from maintdesk.utils.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError

from tests.conftest import auth_headers, principal_of


def new_user_request(**overrides) -> CreateUserRequest:
    payload = {
        "username": "dana",
        "password": "hunter22",
        "role": UserRole.TECHNICIAN,
        "command": "South",
        "unit": "Charlie",
    }
    payload.update(overrides)
    return CreateUserRequest(**payload)


# ==================== USERS ====================

class TestUserService:

    def test_create_user(self, db, admin):
        user = UserService.create_user(db, principal_of(admin), new_user_request(username="  dana "))
        assert user.username == "dana"
        assert user.password_hash != "hunter22"
        assert AuthService.verify_password("hunter22", user.password_hash)

    def test_password_not_stripped(self, db, admin):
        user = UserService.create_user(db, principal_of(admin), new_user_request(password=" pad me "))
        assert AuthService.verify_password(" pad me ", user.password_hash)

    def test_duplicate_username(self, db, admin):
        UserService.create_user(db, principal_of(admin), new_user_request())
        with pytest.raises(ConflictError):
            UserService.create_user(db, principal_of(admin), new_user_request())

    def test_technician_cannot_manage_users(self, db, technician):
        with pytest.raises(ForbiddenError):
            UserService.create_user(db, principal_of(technician), new_user_request())

    def test_update_role_and_scope(self, db, admin):
        user = UserService.create_user(db, principal_of(admin), new_user_request())
        updated = UserService.update_user(
            db, principal_of(admin), user.id, UpdateUserRequest(role=UserRole.VIEWER, unit="Delta")
        )
        assert updated.role == UserRole.VIEWER
        assert updated.unit == "Delta"
        assert updated.command == "South"

    def test_deactivated_user_hidden(self, db, admin):
        user = UserService.create_user(db, principal_of(admin), new_user_request())
        UserService.deactivate_user(db, principal_of(admin), user.id)

        usernames = [u.username for u in UserService.list_users(db, principal_of(admin))]
        assert "dana" not in usernames
        with pytest.raises(NotFoundError):
            UserService.deactivate_user(db, principal_of(admin), user.id)

    def test_last_admin_kept(self, db, admin):
        with pytest.raises(ValidationError):
            UserService.deactivate_user(db, principal_of(admin), admin.id)
        with pytest.raises(ValidationError):
            UserService.update_user(db, principal_of(admin), admin.id, UpdateUserRequest(role=UserRole.VIEWER))


class TestUserRoutes:

    def test_create_and_list(self, client, admin):
        headers = auth_headers(admin)
        response = client.post("/api/users", json={
            "username": "dana", "password": "hunter22", "role": "viewer",
            "command": "South", "unit": "Charlie",
        }, headers=headers)
        assert response.status_code == 201
        assert "password_hash" not in response.json()["data"]

        listed = client.get("/api/users", headers=headers).json()
        assert {u["username"] for u in listed["data"]} == {"admin", "dana"}
        assert listed["meta"]["total"] == 2

    def test_role_change_applies_to_existing_token(self, client, admin, technician):
        token_headers = auth_headers(technician)
        client.put(f"/api/users/{technician.id}", json={"role": "viewer"}, headers=auth_headers(admin))

        response = client.post(
            "/api/tickets", json={"priority": "normal", "description": "Door is jammed"}, headers=token_headers
        )
        assert response.status_code == 403

    def test_deactivated_token_rejected(self, client, admin, technician):
        token_headers = auth_headers(technician)
        client.delete(f"/api/users/{technician.id}", headers=auth_headers(admin))

        assert client.get("/api/auth/me", headers=token_headers).status_code == 401


# ==================== COMMANDS & UNITS ====================

class TestReferenceService:

    def test_create_and_list(self, db, admin):
        principal = principal_of(admin)
        north = ReferenceService.create_command(db, principal, CreateCommandRequest(name="North"))
        ReferenceService.create_command(db, principal, CreateCommandRequest(name="Central"))
        ReferenceService.create_unit(db, principal, north.id, CreateUnitRequest(name="Alpha"))

        assert [c.name for c in ReferenceService.list_commands(db)] == ["Central", "North"]
        units = ReferenceService.list_units(db, north.id)
        assert [u.name for u in units] == ["Alpha"]
        assert units[0].command_name == "North"

    def test_duplicate_command(self, db, admin):
        principal = principal_of(admin)
        ReferenceService.create_command(db, principal, CreateCommandRequest(name="North"))
        with pytest.raises(ConflictError):
            ReferenceService.create_command(db, principal, CreateCommandRequest(name="North"))

    def test_same_unit_name_in_different_commands(self, db, admin):
        principal = principal_of(admin)
        north = ReferenceService.create_command(db, principal, CreateCommandRequest(name="North"))
        south = ReferenceService.create_command(db, principal, CreateCommandRequest(name="South"))

        ReferenceService.create_unit(db, principal, north.id, CreateUnitRequest(name="Alpha"))
        ReferenceService.create_unit(db, principal, south.id, CreateUnitRequest(name="Alpha"))
        with pytest.raises(ConflictError):
            ReferenceService.create_unit(db, principal, north.id, CreateUnitRequest(name="Alpha"))

    def test_unit_under_inactive_command(self, db, admin):
        principal = principal_of(admin)
        north = ReferenceService.create_command(db, principal, CreateCommandRequest(name="North"))
        ReferenceService.deactivate_command(db, principal, north.id)

        with pytest.raises(NotFoundError):
            ReferenceService.create_unit(db, principal, north.id, CreateUnitRequest(name="Alpha"))
        assert ReferenceService.list_commands(db) == []

    def test_deactivate_unit(self, db, admin):
        principal = principal_of(admin)
        north = ReferenceService.create_command(db, principal, CreateCommandRequest(name="North"))
        alpha = ReferenceService.create_unit(db, principal, north.id, CreateUnitRequest(name="Alpha"))

        ReferenceService.deactivate_unit(db, principal, north.id, alpha.id)
        assert ReferenceService.list_units(db, north.id) == []

    def test_viewer_cannot_create(self, db, viewer):
        with pytest.raises(ForbiddenError):
            ReferenceService.create_command(db, principal_of(viewer), CreateCommandRequest(name="North"))


class TestReferenceRoutes:

    def test_any_role_lists_commands(self, client, admin, viewer):
        client.post("/api/commands", json={"name": "North"}, headers=auth_headers(admin))

        response = client.get("/api/commands", headers=auth_headers(viewer))
        assert response.status_code == 200
        assert [c["name"] for c in response.json()["data"]] == ["North"]

    def test_units_route(self, client, admin):
        headers = auth_headers(admin)
        command_id = client.post("/api/commands", json={"name": "North"}, headers=headers).json()["data"]["id"]

        response = client.post(f"/api/commands/{command_id}/units", json={"name": "Alpha"}, headers=headers)
        assert response.status_code == 201
        assert response.json()["data"]["command_name"] == "North"

        units = client.get(f"/api/commands/{command_id}/units", headers=headers).json()["data"]
        assert [u["name"] for u in units] == ["Alpha"]

    def test_duplicate_command_conflict(self, client, admin):
        headers = auth_headers(admin)
        client.post("/api/commands", json={"name": "North"}, headers=headers)
        response = client.post("/api/commands", json={"name": "North"}, headers=headers)
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "CONFLICT"
