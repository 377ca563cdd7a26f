"""
LockBot - Maintenance Service Tests
===================================

Service-level flows: confirmations, announcements, auto-disable and
guild lifecycle events, against an in-memory guild.
"""

import asyncio
from datetime import timedelta
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest
import pytest_asyncio

from src.core.errors import ErrorCode, MaintenanceError
from src.core.state.models import utcnow
from src.services.maintenance import MaintenanceService
from src.services.pending_actions import ActionType

from tests.conftest import GUILD_ID


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def discord_guild():
    return SimpleNamespace(id=GUILD_ID, name="Test Guild")


@pytest.fixture
def bot(discord_guild):
    return SimpleNamespace(
        guilds=[discord_guild],
        get_guild=lambda guild_id: discord_guild if guild_id == GUILD_ID else None,
    )


@pytest_asyncio.fixture
async def make_service(bot, test_config, platform):
    services = []

    def _make():
        service = MaintenanceService(bot, test_config, platform_factory=lambda guild: platform)
        services.append(service)
        return service

    yield _make
    for service in services:
        service.shutdown()
    await asyncio.sleep(0)


@pytest.fixture
def service(make_service):
    return make_service()


def _titles(platform):
    return [m["embed"].title for m in platform.sent if m["embed"] is not None]


async def _wait_until_disabled(service, timeout: float = 2.0) -> bool:
    deadline = asyncio.get_running_loop().time() + timeout
    while asyncio.get_running_loop().time() < deadline:
        if not (await service.store.get(GUILD_ID)).enabled:
            return True
        await asyncio.sleep(0.02)
    return False


# =============================================================================
# Transitions
# =============================================================================

class TestTransitions:
    """Tests for perform_enable, perform_disable and confirm."""

    @pytest.mark.asyncio
    async def test_enable_announces_and_caches(self, service, platform, guild, discord_guild):
        reply = await service.perform_enable(discord_guild, requested_by=7)

        assert "Locked 2 members" in reply
        assert "Auto-disable" not in reply
        assert _titles(platform) == ["Maintenance Mode Enabled"]
        assert service.enabled_guilds() == 1
        assert (await service.get_state(GUILD_ID)).last_announcement.author_id == 7
        assert service.scheduler.is_armed(GUILD_ID) is False

    @pytest.mark.asyncio
    async def test_enable_with_duration_arms_timer(self, service, platform, guild, discord_guild):
        reply = await service.perform_enable(discord_guild, requested_by=7, duration_minutes=30)

        state = await service.get_state(GUILD_ID)
        assert state.timeout_set_by == 7
        assert "Auto-disable scheduled" in reply
        assert service.scheduler.is_armed(GUILD_ID) is True

    @pytest.mark.asyncio
    async def test_enable_survives_announcement_failure(self, service, platform, guild, discord_guild):
        platform.fail.add(("create_text_channel", 0))

        reply = await service.perform_enable(discord_guild, requested_by=7)

        assert reply.startswith("Maintenance mode enabled")
        assert (await service.get_state(GUILD_ID)).enabled is True
        assert platform.sent == []

    @pytest.mark.asyncio
    async def test_disable_skips_announcement_for_deleted_channel(self, service, platform, guild, discord_guild):
        await service.perform_enable(discord_guild, requested_by=7)

        reply = await service.perform_disable(discord_guild, requested_by=7)

        assert reply == "Maintenance mode disabled. Restored up to 2 members."
        assert _titles(platform) == ["Maintenance Mode Enabled"]
        assert service.enabled_guilds() == 0

    @pytest.mark.asyncio
    async def test_disable_announces_in_kept_channel(self, service, platform, guild, discord_guild):
        kept = platform.add_channel("maintenance")
        await service.perform_enable(discord_guild, requested_by=7)

        await service.perform_disable(discord_guild, requested_by=7)

        assert _titles(platform) == ["Maintenance Mode Enabled", "Maintenance Complete"]
        assert platform.sent[-1]["channel_id"] == kept

    @pytest.mark.asyncio
    async def test_disable_before_deadline_restores_everyone(self, service, platform, guild, discord_guild):
        carol = platform.add_member("carol", [guild["alpha"]])
        members = [guild["alice"], guild["bob"], carol]
        before = {mid: list(platform.members[mid].role_ids) for mid in members}

        started = utcnow()
        await service.perform_enable(discord_guild, requested_by=7, duration_minutes=5)

        state = await service.get_state(GUILD_ID)
        assert sorted(state.member_role_snapshots) == sorted(members)
        assert started + timedelta(minutes=5) <= state.timeout_at <= utcnow() + timedelta(minutes=5)
        assert service.scheduler.is_armed(GUILD_ID) is True

        await service.perform_disable(discord_guild, requested_by=7)

        assert service.scheduler.is_armed(GUILD_ID) is False
        assert {mid: platform.members[mid].role_ids for mid in members} == before
        assert (await service.get_state(GUILD_ID)).timeout_at is None

    @pytest.mark.asyncio
    async def test_confirm_dispatches_by_type(self, service, platform, guild, discord_guild):
        enable = service.request_enable(discord_guild, 7, duration_minutes=None)
        assert enable.type == ActionType.ENABLE
        await service.confirm(discord_guild, enable)
        assert (await service.get_state(GUILD_ID)).enabled is True

        disable = service.request_disable(discord_guild, 7, f"{guild['alpha']}:remove")
        assert disable.type == ActionType.DISABLE
        await service.confirm(discord_guild, disable)
        assert (await service.get_state(GUILD_ID)).enabled is False

    @pytest.mark.asyncio
    async def test_request_disable_rejects_bad_mapping(self, service, discord_guild):
        with pytest.raises(MaintenanceError) as exc:
            service.request_disable(discord_guild, 7, "not-a-mapping")

        assert exc.value.code == ErrorCode.INVALID_ROLE_MAPPING
        assert len(service.registry) == 0


# =============================================================================
# Updates
# =============================================================================

class TestPostUpdate:
    """Tests for post_update."""

    @pytest.mark.asyncio
    async def test_rejected_when_disabled(self, service, platform, guild, discord_guild):
        with pytest.raises(MaintenanceError) as exc:
            await service.post_update(discord_guild, 7, "Hello")

        assert exc.value.code == ErrorCode.MAINTENANCE_NOT_ENABLED
        assert platform.sent == []

    @pytest.mark.asyncio
    async def test_validates_content(self, service, platform, guild, discord_guild):
        await service.perform_enable(discord_guild, requested_by=7)

        with pytest.raises(MaintenanceError) as exc:
            await service.post_update(discord_guild, 7, "   ")
        assert exc.value.code == ErrorCode.EMPTY_ANNOUNCEMENT

        with pytest.raises(MaintenanceError) as exc:
            await service.post_update(discord_guild, 7, "x" * 4001)
        assert exc.value.code == ErrorCode.ANNOUNCEMENT_TOO_LONG

    @pytest.mark.asyncio
    async def test_posts_update_embed(self, service, platform, guild, discord_guild):
        await service.perform_enable(discord_guild, requested_by=7)

        state = await service.post_update(discord_guild, 9, "Database migration at 50%")

        embed = platform.sent[-1]["embed"]
        assert embed.title == "Maintenance Update"
        assert embed.description == "Database migration at 50%"
        assert state.last_announcement.title == "Maintenance Update"
        assert state.last_announcement.author_id == 9


# =============================================================================
# Auto-Disable
# =============================================================================

class TestAutoDisable:
    """Tests for handle_auto_disable and restart recovery."""

    @pytest.mark.asyncio
    async def test_announces_then_disables(self, service, platform, guild, discord_guild):
        await service.perform_enable(discord_guild, requested_by=7)

        await service.handle_auto_disable(GUILD_ID)

        assert _titles(platform) == ["Maintenance Mode Enabled", "Maintenance Window Complete"]
        assert (await service.get_state(GUILD_ID)).enabled is False

    @pytest.mark.asyncio
    async def test_unknown_guild_is_ignored(self, service):
        await service.handle_auto_disable(424242)

    @pytest.mark.asyncio
    async def test_deadline_passed_while_offline(self, make_service, platform, guild, discord_guild):
        first = make_service()
        await first.perform_enable(discord_guild, requested_by=7, duration_minutes=30)
        first.shutdown()

        async def expire(state):
            state.timeout_at = utcnow()
            return state

        await first.store.update(GUILD_ID, expire)

        restarted = make_service()
        await restarted.on_ready()

        assert await _wait_until_disabled(restarted)
        assert platform.members[guild["alice"]].role_ids == [guild["alpha"], guild["beta"]]

    @pytest.mark.asyncio
    async def test_startup_survives_failing_guild(self, service, bot, platform, guild):
        broken = SimpleNamespace(id=2000, name="Broken Guild")
        bot.guilds.insert(0, broken)
        restore = service.ensure_guild
        restored = []

        async def ensure_guild(g):
            if g is broken:
                raise RuntimeError("unreadable guild")
            await restore(g)
            restored.append(g.id)

        service.ensure_guild = ensure_guild
        await service.on_ready()

        assert restored == [GUILD_ID]

    @pytest.mark.asyncio
    async def test_restart_rearms_pending_deadline(self, make_service, platform, guild, discord_guild):
        first = make_service()
        await first.perform_enable(discord_guild, requested_by=7, duration_minutes=30)
        first.shutdown()

        restarted = make_service()
        await restarted.on_ready()

        assert restarted.scheduler.is_armed(GUILD_ID) is True
        assert restarted.enabled_guilds() == 1


# =============================================================================
# Guild Events
# =============================================================================

class TestGuildEvents:
    """Tests for the event handlers the event cogs forward to."""

    @pytest.mark.asyncio
    async def test_guild_remove_forgets_everything(self, service, platform, guild, discord_guild):
        await service.perform_enable(discord_guild, requested_by=7, duration_minutes=30)
        service.request_enable(discord_guild, 7)

        await service.on_guild_remove(discord_guild)

        assert service.cached_guilds == 0
        assert len(service.registry) == 0
        assert service.scheduler.is_armed(GUILD_ID) is False
        assert await service.store.all_states() == {}

    @pytest.mark.asyncio
    async def test_channel_created_mid_window_is_locked(self, service, platform, guild, discord_guild):
        await service.perform_enable(discord_guild, requested_by=7)
        new = platform.add_channel("new-channel")

        await service.on_channel_create(SimpleNamespace(id=new, guild=discord_guild))

        assert new in (await service.get_state(GUILD_ID)).channel_permission_snapshots

    @pytest.mark.asyncio
    async def test_channel_created_when_disabled_is_ignored(self, service, platform, guild, discord_guild):
        new = platform.add_channel("new-channel")

        await service.on_channel_create(SimpleNamespace(id=new, guild=discord_guild))

        assert platform.overwrites.get((new, platform.default_role_id)) is None

    @pytest.mark.asyncio
    async def test_member_join_during_maintenance(self, service, platform, guild, discord_guild):
        await service.perform_enable(discord_guild, requested_by=7)
        state = await service.get_state(GUILD_ID)

        temp_role = MagicMock()
        channel = MagicMock(spec=discord.TextChannel)
        channel.send = AsyncMock()
        member_guild = MagicMock()
        member_guild.id = GUILD_ID
        member_guild.name = "Test Guild"
        member_guild.get_role.return_value = temp_role
        member_guild.get_channel.return_value = channel
        member = MagicMock()
        member.guild = member_guild
        member.mention = "<@55>"
        member.add_roles = AsyncMock()

        await service.on_member_join(member)

        member_guild.get_role.assert_called_once_with(state.maintenance_temp_role_id)
        member.add_roles.assert_awaited_once()
        assert member.add_roles.call_args[0][0] is temp_role
        member_guild.get_channel.assert_called_once_with(state.maintenance_channel_id)
        assert channel.send.call_args[1]["embed"].title == "Server Under Maintenance"

    @pytest.mark.asyncio
    async def test_member_join_outside_maintenance(self, service):
        channel = MagicMock(spec=discord.TextChannel)
        channel.id = 77
        channel.send = AsyncMock()
        member_guild = MagicMock()
        member_guild.id = GUILD_ID
        member_guild.name = "Test Guild"
        member_guild.system_channel = channel
        member_guild.get_channel.return_value = channel
        member = MagicMock()
        member.guild = member_guild
        member.mention = "<@55>"
        member.add_roles = AsyncMock()

        await service.on_member_join(member)

        member.add_roles.assert_not_awaited()
        member_guild.get_channel.assert_called_once_with(77)
        assert channel.send.call_args[1]["embed"].title == "Welcome!"
