"""
Tests for role mapping parsing and member role resolution.

Covers the operator-supplied `old:new,old:remove` syntax and how snapshot
roles are resolved when some of them were deleted during maintenance.
"""

import pytest

from src.core.errors import ErrorCode, MaintenanceError
from src.services.maintenance.constants import REMAP_REMOVE, REMAP_REPLACE, RoleRemap
from src.services.maintenance.disable_ops import resolve_member_roles
from src.services.maintenance.engine import parse_role_mapping


# =============================================================================
# parse_role_mapping() Tests
# =============================================================================

class TestParseRoleMapping:
    """Tests for parse_role_mapping function."""

    def test_empty_input(self):
        assert parse_role_mapping(None) == {}
        assert parse_role_mapping("") == {}
        assert parse_role_mapping("   ") == {}

    def test_replace_and_remove(self):
        mapping = parse_role_mapping("111:222, 333:remove")

        assert mapping == {
            111: RoleRemap(REMAP_REPLACE, 222),
            333: RoleRemap(REMAP_REMOVE),
        }

    def test_remove_is_case_insensitive(self):
        assert parse_role_mapping("111:REMOVE") == {111: RoleRemap(REMAP_REMOVE)}

    def test_role_mentions_are_accepted(self):
        assert parse_role_mapping("<@&111>:<@&222>") == {111: RoleRemap(REMAP_REPLACE, 222)}

    def test_trailing_comma_is_ignored(self):
        assert parse_role_mapping("111:222,") == {111: RoleRemap(REMAP_REPLACE, 222)}

    @pytest.mark.parametrize("text", [
        "111",
        "111:222:333",
        "abc:222",
        "111:keep",
        "111:222,111:333",
    ])
    def test_invalid_input(self, text):
        with pytest.raises(MaintenanceError) as exc:
            parse_role_mapping(text)
        assert exc.value.code == ErrorCode.INVALID_ROLE_MAPPING


# =============================================================================
# resolve_member_roles() Tests
# =============================================================================

class TestResolveMemberRoles:
    """Tests for resolve_member_roles function."""

    def test_existing_roles_are_kept_in_order(self):
        resolved, subs, notes = resolve_member_roles(1, [3, 2, 1], {1, 2, 3}, {})

        assert resolved == [3, 2, 1]
        assert subs == {}
        assert notes == []

    def test_missing_role_is_replaced(self):
        resolved, subs, notes = resolve_member_roles(
            1, [10, 20], {20, 30}, {10: RoleRemap(REMAP_REPLACE, 30)}
        )

        assert resolved == [30, 20]
        assert subs == {10: 30}
        assert "replaced missing role 10 with 30" in notes[0]

    def test_missing_role_is_removed(self):
        resolved, subs, notes = resolve_member_roles(1, [10, 20], {20}, {10: RoleRemap(REMAP_REMOVE)})

        assert resolved == [20]
        assert subs == {}
        assert "removed missing role 10" in notes[0]

    def test_missing_replacement_drops_role(self):
        resolved, _, notes = resolve_member_roles(1, [10], set(), {10: RoleRemap(REMAP_REPLACE, 30)})

        assert resolved == []
        assert "does not exist" in notes[0]

    def test_unmapped_missing_role_is_dropped(self):
        resolved, _, notes = resolve_member_roles(1, [10, 20], {20}, {})

        assert resolved == [20]
        assert "role 10 no longer exists" in notes[0]

    def test_substitute_already_held_is_not_duplicated(self):
        resolved, _, _ = resolve_member_roles(1, [10, 30], {30}, {10: RoleRemap(REMAP_REPLACE, 30)})
        assert resolved == [30]

    def test_mapping_for_existing_role_is_ignored(self):
        resolved, subs, _ = resolve_member_roles(1, [10], {10, 30}, {10: RoleRemap(REMAP_REPLACE, 30)})

        assert resolved == [10]
        assert subs == {}
