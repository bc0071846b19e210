"""Role hierarchy and permission matrix"""
import pytest

from maintdesk.models.user import UserRole
from maintdesk.services.rbac_service import Permission, RBACService
from maintdesk.utils.exceptions import ForbiddenError


class TestRoleHierarchy:

    def test_rank_order(self):
        assert RBACService.role_rank(UserRole.VIEWER) < RBACService.role_rank(UserRole.TECHNICIAN)
        assert RBACService.role_rank(UserRole.TECHNICIAN) < RBACService.role_rank(UserRole.ADMIN)

    def test_unknown_role_ranks_below_viewer(self):
        assert RBACService.role_rank("superuser") == 0
        assert RBACService.role_rank(None) == 0
        assert not RBACService.has_minimum_role("superuser", UserRole.VIEWER)

    def test_role_strings_accepted(self):
        assert RBACService.has_minimum_role("admin", "technician")
        assert not RBACService.has_minimum_role("viewer", "technician")

    @pytest.mark.parametrize("actual", list(UserRole))
    def test_minimum_role_matches_rank(self, actual):
        for required in UserRole:
            expected = RBACService.role_rank(actual) >= RBACService.role_rank(required)
            assert RBACService.has_minimum_role(actual, required) is expected

    def test_require_role_raises(self):
        with pytest.raises(ForbiddenError):
            RBACService.require_role(UserRole.VIEWER, UserRole.TECHNICIAN)
        assert RBACService.require_role(UserRole.ADMIN, UserRole.TECHNICIAN)


class TestPermissions:

    def test_viewer_can_only_view(self):
        assert RBACService.has_permission(UserRole.VIEWER, Permission.TICKET_VIEW)
        assert not RBACService.has_permission(UserRole.VIEWER, Permission.TICKET_CREATE)
        assert not RBACService.has_permission(UserRole.VIEWER, Permission.TICKET_COMMENT)

    def test_technician_creates_but_does_not_delete(self):
        assert RBACService.has_permission(UserRole.TECHNICIAN, Permission.TICKET_CREATE)
        assert RBACService.has_permission(UserRole.TECHNICIAN, Permission.TICKET_UPDATE)
        assert not RBACService.has_permission(UserRole.TECHNICIAN, Permission.TICKET_DELETE)
        assert not RBACService.has_permission(UserRole.TECHNICIAN, Permission.TICKET_IMPORT)

    def test_admin_has_everything(self):
        for permission in Permission:
            assert RBACService.has_permission(UserRole.ADMIN, permission)

    def test_require_permission_raises_forbidden(self):
        with pytest.raises(ForbiddenError) as exc_info:
            RBACService.require_permission(UserRole.TECHNICIAN, Permission.USERS_MANAGE)
        assert exc_info.value.status_code == 403
