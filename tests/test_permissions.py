"""
Permission table tests: role → fixed capability set.
"""

import pytest

from app.core.errors import ValidationError
from app.core.permissions import (
    FULL_PERMISSIONS,
    ROLE_PERMISSIONS,
    VIEW_ONLY,
    Role,
    parse_role,
    permissions_for,
)


class TestPermissionTable:
    """Exact role → capability mapping"""

    def test_every_role_is_mapped(self):
        assert set(ROLE_PERMISSIONS) == set(Role)

    @pytest.mark.parametrize("role", list(Role))
    def test_every_role_can_view(self, role):
        assert permissions_for(role).can_view is True

    def test_owner_has_everything(self):
        assert permissions_for(Role.OWNER) == FULL_PERMISSIONS
        assert FULL_PERMISSIONS.can_manage_roles is True

    @pytest.mark.parametrize("role", [Role.BRIDE, Role.GROOM, Role.PLANNER])
    def test_couple_and_planner_cannot_manage_roles(self, role):
        p = permissions_for(role)
        assert (p.can_edit_timeline, p.can_edit_guests, p.can_edit_shop, p.can_invite_others) == (
            True,
            True,
            True,
            True,
        )
        assert p.can_manage_roles is False

    @pytest.mark.parametrize("role", [Role.MAID_OF_HONOR, Role.BEST_MAN])
    def test_wedding_party_edits_timeline_only(self, role):
        p = permissions_for(role)
        assert p.can_edit_timeline is True
        assert not any([p.can_edit_guests, p.can_edit_shop, p.can_invite_others, p.can_manage_roles])

    def test_parent_edits_guests_only(self):
        p = permissions_for(Role.PARENT)
        assert p.can_edit_guests is True
        assert not any([p.can_edit_timeline, p.can_edit_shop, p.can_invite_others, p.can_manage_roles])

    @pytest.mark.parametrize("role", [Role.SIBLING, Role.FRIEND, Role.OTHER])
    def test_view_only_roles(self, role):
        assert permissions_for(role) == VIEW_ONLY


class TestParseRole:
    def test_accepts_display_names(self):
        assert parse_role("Maid of Honor") is Role.MAID_OF_HONOR
        assert permissions_for("Planner") == permissions_for(Role.PLANNER)

    @pytest.mark.parametrize("value", ["planner", "Admin", "", None])
    def test_rejects_unknown_roles(self, value):
        with pytest.raises(ValidationError):
            parse_role(value)

    def test_permission_set_is_immutable(self):
        with pytest.raises(Exception):
            VIEW_ONLY.can_manage_roles = True
