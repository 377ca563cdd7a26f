"""
LockBot - Maintenance Engine Tests
==================================

Enable/disable cycles against an in-memory guild.
"""

from datetime import timedelta
from types import SimpleNamespace

import pytest

from src.core.constants import VIEW_CHANNEL
from src.core.errors import ErrorCode, MaintenanceError
from src.core.state.models import OverwriteState, utcnow
from src.services.maintenance.constants import REMAP_REMOVE, REMAP_REPLACE, RoleRemap

from tests.conftest import GUILD_ID, SEND_MESSAGES, FakeGuildPlatform, PlatformError


# =============================================================================
# Full Cycle
# =============================================================================

class TestEnable:
    """Tests for MaintenanceEngine.enable."""

    @pytest.mark.asyncio
    async def test_creates_roles_and_channel(self, engine, platform, guild):
        state = await engine.enable(platform)

        temp = platform.role_named("Maintenance")
        bypass = platform.role_named("Maintenance Bypass")
        channel = platform.channel_named("maintenance")

        assert state.enabled is True
        assert state.maintenance_temp_role_id == temp.id
        assert state.maintenance_bypass_role_id == bypass.id
        assert state.maintenance_channel_id == channel.id
        assert state.should_delete_temp_role is True
        assert state.should_delete_bypass_role is True
        assert state.should_delete_maintenance_channel is True

        assert temp.permissions == 0
        assert bypass.permissions & VIEW_CHANNEL
        assert platform.slowmode[channel.id] == 10
        for role_id in (platform.default_role_id, temp.id, bypass.id):
            assert (channel.id, role_id) in platform.access

    @pytest.mark.asyncio
    async def test_locks_regular_members_only(self, engine, platform, guild):
        state = await engine.enable(platform)
        temp_id = state.maintenance_temp_role_id

        assert platform.members[guild["alice"]].role_ids == [temp_id]
        assert platform.members[guild["bob"]].role_ids == [temp_id]
        assert platform.members[guild["admin"]].role_ids == [guild["admin_role"]]
        assert platform.members[guild["bot"]].role_ids == [guild["beta"]]

        assert set(state.member_role_snapshots) == {guild["alice"], guild["bob"]}
        assert state.member_role_snapshots[guild["alice"]].roles == [guild["alpha"], guild["beta"]]
        assert state.member_role_snapshots[guild["bob"]].roles == [guild["beta"]]

    @pytest.mark.asyncio
    async def test_hides_channels_and_records_prior_state(self, engine, platform, guild):
        state = await engine.enable(platform)
        everyone = platform.default_role_id
        bypass_id = state.maintenance_bypass_role_id

        assert state.channel_permission_snapshots == {
            guild["general"]: OverwriteState.NEUTRAL,
            guild["staff"]: OverwriteState.DENY,
        }
        for channel_id in (guild["general"], guild["staff"]):
            assert platform.overwrites[(channel_id, everyone)] == OverwriteState.DENY
            assert platform.overwrites[(channel_id, bypass_id)] == OverwriteState.ALLOW

        alpha = state.role_channel_snapshots[guild["alpha"]]
        assert alpha.name == "Alpha"
        assert alpha.channels == {
            guild["general"]: OverwriteState.NEUTRAL,
            guild["staff"]: OverwriteState.ALLOW,
        }
        assert state.role_channel_snapshots[bypass_id].channels[guild["staff"]] == OverwriteState.NEUTRAL

    @pytest.mark.asyncio
    async def test_removes_guild_level_view(self, engine, platform, guild):
        state = await engine.enable(platform)

        assert state.everyone_view_permission == OverwriteState.ALLOW
        assert platform.roles[platform.default_role_id].permissions == SEND_MESSAGES

    @pytest.mark.asyncio
    async def test_guild_without_view_keeps_permissions(self, engine):
        platform = FakeGuildPlatform(default_permissions=SEND_MESSAGES)
        platform.add_member("alice")

        state = await engine.enable(platform)
        assert state.everyone_view_permission == OverwriteState.DENY
        assert platform.roles[platform.default_role_id].permissions == SEND_MESSAGES

        await engine.disable(platform)
        assert platform.roles[platform.default_role_id].permissions == SEND_MESSAGES

    @pytest.mark.asyncio
    async def test_second_enable_is_noop(self, engine, platform, guild):
        first = await engine.enable(platform)
        role_count = len(platform.roles)

        second = await engine.enable(platform)

        assert len(platform.roles) == role_count
        assert second.member_role_snapshots[guild["alice"]].roles == [guild["alpha"], guild["beta"]]
        assert second.channel_permission_snapshots == first.channel_permission_snapshots

    @pytest.mark.asyncio
    async def test_records_timeout(self, engine, platform, guild):
        deadline = utcnow() + timedelta(minutes=30)
        state = await engine.enable(platform, timeout_at=deadline, timeout_set_by=42)

        assert state.timeout_at == deadline
        assert state.timeout_set_by == 42

        state = await engine.disable(platform)
        assert state.timeout_at is None
        assert state.timeout_set_by is None

    @pytest.mark.asyncio
    async def test_state_is_persisted(self, engine, store, platform, guild):
        await engine.enable(platform)
        stored = await store.get(GUILD_ID)

        assert stored.enabled is True
        assert set(stored.member_role_snapshots) == {guild["alice"], guild["bob"]}
        assert any("Maintenance enabled" in line for line in stored.logs)


class TestDisable:
    """Tests for MaintenanceEngine.disable."""

    @pytest.mark.asyncio
    async def test_full_cycle_restores_guild(self, engine, platform, guild):
        before_overwrites = dict(platform.overwrites)
        before_roles = {mid: list(m.role_ids) for mid, m in platform.members.items()}
        before_perms = platform.roles[platform.default_role_id].permissions

        await engine.enable(platform)
        state = await engine.disable(platform)

        assert {mid: m.role_ids for mid, m in platform.members.items()} == before_roles
        assert platform.overwrites == before_overwrites
        assert platform.roles[platform.default_role_id].permissions == before_perms
        assert platform.role_named("Maintenance") is None
        assert platform.role_named("Maintenance Bypass") is None
        assert platform.channel_named("maintenance") is None

        assert state.enabled is False
        assert state.member_role_snapshots == {}
        assert state.channel_permission_snapshots == {}
        assert state.role_channel_snapshots == {}
        assert state.everyone_view_permission is None
        assert state.maintenance_temp_role_id is None
        assert state.maintenance_bypass_role_id is None
        assert state.maintenance_channel_id is None

    @pytest.mark.asyncio
    async def test_disable_when_disabled_is_noop(self, engine, platform, guild):
        state = await engine.disable(platform)
        assert state.enabled is False
        assert state.logs == []

    @pytest.mark.asyncio
    async def test_drops_roles_gained_during_window(self, engine, platform, guild):
        await engine.enable(platform)
        gamma = platform.add_role("Gamma")
        platform.members[guild["alice"]].role_ids.append(gamma)

        await engine.disable(platform)
        assert platform.members[guild["alice"]].role_ids == [guild["alpha"], guild["beta"]]

    @pytest.mark.asyncio
    async def test_strips_temp_role_from_new_members(self, engine, platform, guild):
        state = await engine.enable(platform)
        carol = platform.add_member("carol", [state.maintenance_temp_role_id])

        await engine.disable(platform)
        assert platform.members[carol].role_ids == []

    @pytest.mark.asyncio
    async def test_member_who_left_is_skipped(self, engine, platform, guild):
        await engine.enable(platform)
        del platform.members[guild["bob"]]

        state = await engine.disable(platform)
        assert platform.members[guild["alice"]].role_ids == [guild["alpha"], guild["beta"]]
        assert any(f"Member {guild['bob']} left during maintenance" in line for line in state.logs)

    @pytest.mark.asyncio
    async def test_deleted_channel_is_skipped(self, engine, platform, guild):
        await engine.enable(platform)
        del platform.channels[guild["general"]]

        state = await engine.disable(platform)
        assert state.enabled is False
        assert platform.overwrites[(guild["staff"], platform.default_role_id)] == OverwriteState.DENY
        assert any(f"Channel {guild['general']} no longer exists" in line for line in state.logs)

    @pytest.mark.asyncio
    async def test_reused_channel_is_released_not_deleted(self, engine, platform, guild):
        existing = platform.add_channel("maintenance")
        platform.overwrites[(existing, platform.default_role_id)] = OverwriteState.DENY

        state = await engine.enable(platform)
        assert state.maintenance_channel_id == existing
        assert state.should_delete_maintenance_channel is False
        assert state.channel_permission_snapshots[existing] == OverwriteState.DENY
        assert platform.overwrites[(existing, platform.default_role_id)] == OverwriteState.ALLOW

        state = await engine.disable(platform)
        assert existing in platform.channels
        assert state.maintenance_channel_id == existing
        assert platform.overwrites[(existing, platform.default_role_id)] == OverwriteState.DENY
        assert platform.slowmode[existing] == 0
        assert not any(key[0] == existing and key[1] != platform.default_role_id for key in platform.overwrites)

    @pytest.mark.asyncio
    async def test_existing_bypass_role_is_kept(self, engine, platform, guild):
        bypass = platform.add_role("Maintenance Bypass", VIEW_CHANNEL)
        dave = platform.add_member("dave", [bypass])

        state = await engine.enable(platform)
        assert state.maintenance_bypass_role_id == bypass
        assert state.should_delete_bypass_role is False
        assert dave not in state.member_role_snapshots
        assert platform.members[dave].role_ids == [bypass]

        await engine.disable(platform)
        assert bypass in platform.roles
        assert not any(key[1] == bypass for key in platform.overwrites)

    @pytest.mark.asyncio
    async def test_existing_temp_role_is_reset_and_kept(self, engine, platform, guild):
        temp = platform.add_role("Maintenance", VIEW_CHANNEL)

        state = await engine.enable(platform)
        assert state.maintenance_temp_role_id == temp
        assert state.should_delete_temp_role is False
        assert platform.roles[temp].permissions == 0

        await engine.disable(platform)
        assert temp in platform.roles


# =============================================================================
# Role Substitution
# =============================================================================

class TestRoleSubstitution:
    """Snapshot roles deleted during the window."""

    @pytest.mark.asyncio
    async def test_replace_mapping_substitutes_role_and_overwrites(self, engine, platform, guild):
        await engine.enable(platform)
        platform.remove_role(guild["alpha"])
        gamma = platform.add_role("Gamma")

        state = await engine.disable(platform, {guild["alpha"]: RoleRemap(REMAP_REPLACE, gamma)})

        assert platform.members[guild["alice"]].role_ids == [gamma, guild["beta"]]
        assert platform.overwrites[(guild["staff"], gamma)] == OverwriteState.ALLOW
        assert (guild["general"], gamma) not in platform.overwrites
        assert any("replaced missing role" in line for line in state.logs)

    @pytest.mark.asyncio
    async def test_remove_mapping_drops_role(self, engine, platform, guild):
        await engine.enable(platform)
        platform.remove_role(guild["alpha"])

        state = await engine.disable(platform, {guild["alpha"]: RoleRemap(REMAP_REMOVE)})

        assert platform.members[guild["alice"]].role_ids == [guild["beta"]]
        assert any("removed missing role" in line for line in state.logs)

    @pytest.mark.asyncio
    async def test_unmapped_missing_role_is_dropped(self, engine, platform, guild):
        await engine.enable(platform)
        platform.remove_role(guild["alpha"])

        state = await engine.disable(platform)

        assert platform.members[guild["alice"]].role_ids == [guild["beta"]]
        assert any(f"role {guild['alpha']} no longer exists" in line for line in state.logs)

    @pytest.mark.asyncio
    async def test_find_missing_roles_reports_names(self, engine, platform, guild):
        assert await engine.find_missing_roles(platform) == {}

        await engine.enable(platform)
        platform.remove_role(guild["alpha"])

        assert await engine.find_missing_roles(platform) == {guild["alpha"]: "Alpha"}


# =============================================================================
# Failure Tolerance
# =============================================================================

class TestFailures:
    """Per-entity failures are logged and skipped; listing failures abort."""

    @pytest.mark.asyncio
    async def test_member_lock_failure_is_skipped(self, engine, platform, guild):
        platform.fail.add(("set_member_roles", guild["bob"]))

        state = await engine.enable(platform)

        assert state.enabled is True
        assert guild["bob"] not in state.member_role_snapshots
        assert platform.members[guild["bob"]].role_ids == [guild["beta"]]
        assert platform.members[guild["alice"]].role_ids == [state.maintenance_temp_role_id]
        assert any("Member Lock failed" in line for line in state.logs)

    @pytest.mark.asyncio
    async def test_channel_lock_failure_is_skipped(self, engine, platform, guild):
        platform.fail.add(("set_view_overwrite", guild["general"]))

        state = await engine.enable(platform)

        assert guild["general"] not in state.channel_permission_snapshots
        assert state.channel_permission_snapshots[guild["staff"]] == OverwriteState.DENY
        assert any("Channel Lock failed" in line for line in state.logs)

    @pytest.mark.asyncio
    async def test_member_restore_failure_is_logged(self, engine, platform, guild):
        await engine.enable(platform)
        platform.fail.add(("set_member_roles", guild["bob"]))

        state = await engine.disable(platform)

        assert state.enabled is False
        assert platform.members[guild["alice"]].role_ids == [guild["alpha"], guild["beta"]]
        assert any("Member Restore failed" in line for line in state.logs)

    @pytest.mark.asyncio
    async def test_listing_failure_aborts_without_persisting(self, engine, store, platform, guild):
        platform.fail.add(("fetch_members", 0))

        with pytest.raises(PlatformError):
            await engine.enable(platform)

        stored = await store.get(GUILD_ID)
        assert stored.enabled is False
        assert stored.member_role_snapshots == {}


# =============================================================================
# Announcements
# =============================================================================

class TestAnnouncements:
    """Tests for MaintenanceEngine.send_announcement."""

    @pytest.mark.asyncio
    async def test_rejects_when_disabled(self, engine, platform, guild):
        with pytest.raises(MaintenanceError) as exc:
            await engine.send_announcement(platform, author_id=1, content="Back soon")
        assert exc.value.code == ErrorCode.MAINTENANCE_NOT_ENABLED

    @pytest.mark.asyncio
    async def test_rejects_empty_and_too_long(self, engine, platform, guild):
        await engine.enable(platform)

        with pytest.raises(MaintenanceError) as exc:
            await engine.send_announcement(platform, content="   ")
        assert exc.value.code == ErrorCode.EMPTY_ANNOUNCEMENT

        with pytest.raises(MaintenanceError) as exc:
            await engine.send_announcement(platform, content="x" * 4001)
        assert exc.value.code == ErrorCode.ANNOUNCEMENT_TOO_LONG

        assert platform.sent == []

    @pytest.mark.asyncio
    async def test_posts_and_records_last_announcement(self, engine, platform, guild):
        enabled = await engine.enable(platform)

        state = await engine.send_announcement(platform, author_id=42, content="  Back soon  ")

        assert platform.sent[-1]["channel_id"] == enabled.maintenance_channel_id
        assert platform.sent[-1]["content"] == "Back soon"
        assert state.last_announcement.content == "Back soon"
        assert state.last_announcement.author_id == 42

    @pytest.mark.asyncio
    async def test_embed_title_and_description_are_recorded(self, engine, platform, guild):
        await engine.enable(platform)
        embed = SimpleNamespace(title="Maintenance Update", description="DB migration")

        state = await engine.send_announcement(platform, author_id=7, embed=embed)

        assert platform.sent[-1]["embed"] is embed
        assert state.last_announcement.title == "Maintenance Update"
        assert state.last_announcement.content == "DB migration"

    @pytest.mark.asyncio
    async def test_recreates_deleted_channel(self, engine, platform, guild):
        existing = platform.add_channel("maintenance")
        await engine.enable(platform)
        del platform.channels[existing]

        state = await engine.send_announcement(platform, content="Still working")

        assert state.maintenance_channel_id != existing
        assert state.maintenance_channel_id in platform.channels
        assert state.should_delete_maintenance_channel is True
        assert platform.sent[-1]["channel_id"] == state.maintenance_channel_id

    @pytest.mark.asyncio
    async def test_non_text_channel_is_rejected(self, engine, store, platform, guild):
        state = await engine.enable(platform)
        platform.channels[state.maintenance_channel_id].is_text = False

        with pytest.raises(MaintenanceError) as exc:
            await engine.send_announcement(platform, content="hello")
        assert exc.value.code == ErrorCode.MAINTENANCE_CHANNEL_INVALID
        assert (await store.get(GUILD_ID)).last_announcement is None

    @pytest.mark.asyncio
    async def test_send_failure_is_not_recorded(self, engine, store, platform, guild):
        state = await engine.enable(platform)
        platform.fail.add(("send_message", state.maintenance_channel_id))

        with pytest.raises(PlatformError):
            await engine.send_announcement(platform, content="hello")
        assert (await store.get(GUILD_ID)).last_announcement is None


# =============================================================================
# Mid-Window Changes
# =============================================================================

class TestMidWindow:
    """Channels created and deleted while maintenance is on."""

    @pytest.mark.asyncio
    async def test_new_channel_is_locked_and_restored(self, engine, platform, guild):
        await engine.enable(platform)
        new = platform.add_channel("new-channel")

        state = await engine.apply_restrictions_to_channel(platform, new)
        assert platform.overwrites[(new, platform.default_role_id)] == OverwriteState.DENY
        assert state.channel_permission_snapshots[new] == OverwriteState.NEUTRAL
        assert state.role_channel_snapshots[guild["alpha"]].channels[new] == OverwriteState.NEUTRAL

        await engine.disable(platform)
        assert (new, platform.default_role_id) not in platform.overwrites

    @pytest.mark.asyncio
    async def test_new_channel_ignored_when_disabled(self, engine, platform, guild):
        new = platform.add_channel("new-channel")

        state = await engine.apply_restrictions_to_channel(platform, new)

        assert state.channel_permission_snapshots == {}
        assert (new, platform.default_role_id) not in platform.overwrites

    @pytest.mark.asyncio
    async def test_threads_are_not_locked(self, engine, platform, guild):
        await engine.enable(platform)
        thread = platform.add_channel("thread", is_thread=True)

        state = await engine.apply_restrictions_to_channel(platform, thread)
        assert thread not in state.channel_permission_snapshots

    @pytest.mark.asyncio
    async def test_ensure_channel_recreates_missing(self, engine, platform, guild):
        enabled = await engine.enable(platform)
        del platform.channels[enabled.maintenance_channel_id]

        state = await engine.ensure_maintenance_channel(platform)

        assert state.maintenance_channel_id != enabled.maintenance_channel_id
        assert platform.channels[state.maintenance_channel_id].name == "maintenance"
        assert any("Maintenance channel restored" in line for line in state.logs)

    @pytest.mark.asyncio
    async def test_ensure_channel_leaves_existing(self, engine, platform, guild):
        enabled = await engine.enable(platform)

        state = await engine.ensure_maintenance_channel(platform)
        assert state.maintenance_channel_id == enabled.maintenance_channel_id
