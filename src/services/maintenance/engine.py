"""
LockBot - Maintenance Engine
============================

State transitions for server-wide maintenance mode.

DESIGN:
    Every transition runs inside StateStore.update(), so the whole
    read-snapshot-mutate-persist cycle for a guild is serialized with every
    other transition in the process. State is written once, at the end of
    the cycle: a state on disk with enabled=True always carries the full set
    of snapshots that produced it.

    Failures on individual members, channels or roles are logged (tree log
    and the guild's state log) and skipped. Only failures that make the
    whole transition meaningless (cannot list roles, members or channels)
    propagate, and in that case nothing is persisted.

    Flow on enable:
        roles -> maintenance channel -> members -> @everyone view -> channels
    Flow on disable:
        members -> temp role cleanup -> @everyone view -> channels
        -> maintenance channel -> roles
"""

import re
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Set, Tuple

from src.core.constants import (
    DEFAULT_BYPASS_ROLE_NAME,
    DEFAULT_MAINTENANCE_CHANNEL_NAME,
    DEFAULT_TEMP_ROLE_NAME,
    MAINTENANCE_CHANNEL_TOPIC,
    MAINTENANCE_SLOWMODE_SECONDS,
    MAX_ANNOUNCEMENT_LENGTH,
    VIEW_CHANNEL,
)
from src.core.errors import ErrorCode, MaintenanceError
from src.core.logger import logger
from src.core.state.models import (
    Announcement,
    GuildState,
    MemberRoleSnapshot,
    OverwriteState,
    RoleChannelSnapshot,
    utcnow,
)
from src.core.state.store import StateStore

from .constants import (
    REASON_DISABLE,
    REASON_ENABLE,
    REASON_NEW_CHANNEL,
    REASON_RECREATE,
    REMAP_REMOVE,
    REMAP_REPLACE,
    RoleRemap,
    TransitionResult,
)
from .disable_ops import (
    release_maintenance_channel,
    restore_all_members,
    restore_all_overwrites,
    strip_temp_role,
)
from .enable_ops import (
    configure_channel,
    ensure_channel,
    ensure_role,
    is_lockable,
    lock_all_channels,
    lock_all_members,
    lock_channel,
)
from .helpers import log_op_failure, unique
from .platform import ChannelInfo, GuildPlatform, RoleInfo


# =============================================================================
# Role Mapping Parsing
# =============================================================================

_ROLE_REF = re.compile(r"^(?:<@&)?(\d{1,20})>?$")


def _parse_role_ref(text: str, raw: str) -> int:
    match = _ROLE_REF.match(text.strip())
    if not match:
        raise MaintenanceError(ErrorCode.INVALID_ROLE_MAPPING, f"Not a role id: `{raw}`")
    return int(match.group(1))


def parse_role_mapping(text: Optional[str]) -> Dict[int, RoleRemap]:
    """
    Parse an operator role mapping like `111:222,333:remove`.

    Role mentions (`<@&111>`) are accepted wherever an id is.

    Raises:
        MaintenanceError: INVALID_ROLE_MAPPING on malformed input.
    """
    mapping: Dict[int, RoleRemap] = {}
    if not text or not text.strip():
        return mapping

    for raw in text.split(","):
        entry = raw.strip()
        if not entry:
            continue
        if entry.count(":") != 1:
            raise MaintenanceError(ErrorCode.INVALID_ROLE_MAPPING, f"Expected `old:new` or `old:remove`, got `{entry}`")

        old_text, new_text = entry.split(":")
        old_id = _parse_role_ref(old_text, entry)

        if old_id in mapping:
            raise MaintenanceError(ErrorCode.INVALID_ROLE_MAPPING, f"Role {old_id} is mapped twice")

        if new_text.strip().lower() == REMAP_REMOVE:
            mapping[old_id] = RoleRemap(action=REMAP_REMOVE)
        else:
            mapping[old_id] = RoleRemap(action=REMAP_REPLACE, target_role_id=_parse_role_ref(new_text, entry))

    return mapping


# =============================================================================
# Maintenance Engine
# =============================================================================

class MaintenanceEngine:
    """
    Applies and reverses maintenance mode for one guild at a time.

    Attributes:
        store: Persistent state store; every transition goes through update().
        channel_name: Name of the maintenance channel.
        temp_role_name: Name of the zero-permission holding role.
        bypass_role_name: Name of the role that keeps full access.
        slowmode_seconds: Slow-mode delay in the maintenance channel.
    """

    def __init__(
        self,
        store: StateStore,
        channel_name: str = DEFAULT_MAINTENANCE_CHANNEL_NAME,
        temp_role_name: str = DEFAULT_TEMP_ROLE_NAME,
        bypass_role_name: str = DEFAULT_BYPASS_ROLE_NAME,
        slowmode_seconds: int = MAINTENANCE_SLOWMODE_SECONDS,
    ) -> None:
        self.store = store
        self.channel_name = channel_name
        self.temp_role_name = temp_role_name
        self.bypass_role_name = bypass_role_name
        self.slowmode_seconds = slowmode_seconds

    # =========================================================================
    # Enable
    # =========================================================================

    async def enable(
        self,
        platform: GuildPlatform,
        timeout_at: Optional[datetime] = None,
        timeout_set_by: Optional[int] = None,
    ) -> GuildState:
        """
        Put the guild into maintenance mode.

        No-op (returns the stored state) when maintenance is already on.

        Args:
            platform: Platform bound to the guild.
            timeout_at: When to disable automatically, if at all.
            timeout_set_by: Operator who set the deadline.

        Returns:
            The persisted state, enabled, with every snapshot populated.
        """

        async def _apply(state: GuildState) -> GuildState:
            if state.enabled:
                logger.info("Maintenance Already Enabled", [
                    ("Guild", f"{platform.guild_name} ({platform.guild_id})"),
                ])
                return state
            return await self._enable(platform, state, timeout_at, timeout_set_by)

        return await self.store.update(platform.guild_id, _apply)

    async def _enable(
        self,
        platform: GuildPlatform,
        state: GuildState,
        timeout_at: Optional[datetime],
        timeout_set_by: Optional[int],
    ) -> GuildState:
        default_role_id = platform.default_role_id
        roles: Dict[int, RoleInfo] = {r.id: r for r in await platform.fetch_roles()}
        default_role = roles.get(default_role_id)
        default_perms = default_role.permissions if default_role else 0

        # Start from a clean slate; a crash mid-enable never persisted anything
        state.clear_snapshots()
        members_result = TransitionResult()
        channels_result = TransitionResult()

        # ---------------------------------------------------------------------
        # 1. Temp and bypass roles
        # ---------------------------------------------------------------------

        temp_role, temp_created, error = await ensure_role(
            platform, roles, state.maintenance_temp_role_id, self.temp_role_name,
            permissions=0, reason=REASON_ENABLE, reset_permissions=True,
        )
        self._note(state, error)
        state.should_delete_temp_role = self._should_delete(
            temp_role, temp_created, state.maintenance_temp_role_id, state.should_delete_temp_role
        )
        state.maintenance_temp_role_id = temp_role.id if temp_role else None

        bypass_role, bypass_created, error = await ensure_role(
            platform, roles, state.maintenance_bypass_role_id, self.bypass_role_name,
            permissions=default_perms | VIEW_CHANNEL, reason=REASON_ENABLE,
        )
        self._note(state, error)
        state.should_delete_bypass_role = self._should_delete(
            bypass_role, bypass_created, state.maintenance_bypass_role_id, state.should_delete_bypass_role
        )
        state.maintenance_bypass_role_id = bypass_role.id if bypass_role else None

        temp_role_id = state.maintenance_temp_role_id
        bypass_role_id = state.maintenance_bypass_role_id

        # ---------------------------------------------------------------------
        # 2. Maintenance channel
        # ---------------------------------------------------------------------

        channel, channel_created, error = await ensure_channel(
            platform, state.maintenance_channel_id, self.channel_name, REASON_ENABLE
        )
        self._note(state, error)

        if channel is not None:
            if channel_created:
                state.should_delete_maintenance_channel = True
            else:
                if channel.id != state.maintenance_channel_id:
                    state.should_delete_maintenance_channel = False
                try:
                    state.channel_permission_snapshots[channel.id] = await platform.get_view_overwrite(
                        channel.id, default_role_id
                    )
                except Exception as e:
                    self._note(state, log_op_failure(e, "Overwrite Snapshot", f"#{channel.name}"))
            state.maintenance_channel_id = channel.id

            access_roles = [r for r in (default_role_id, temp_role_id, bypass_role_id) if r]
            for error in await configure_channel(
                platform, channel, access_roles, self.slowmode_seconds, REASON_ENABLE
            ):
                self._note(state, error)
        else:
            state.maintenance_channel_id = None
            state.should_delete_maintenance_channel = False

        # ---------------------------------------------------------------------
        # 3. Members
        # ---------------------------------------------------------------------

        all_members = await platform.fetch_members()
        members = [
            m for m in all_members
            if not m.bot and not m.is_admin and not (bypass_role_id and bypass_role_id in m.role_ids)
        ]
        members_result.skipped_count = len(all_members) - len(members)

        for member, (success, error, snapshot_roles) in await lock_all_members(
            platform, members, default_role_id, temp_role_id, REASON_ENABLE
        ):
            members_result.record(success, error)
            if success and snapshot_roles is not None:
                state.member_role_snapshots[member.id] = MemberRoleSnapshot(roles=snapshot_roles)
            else:
                self._note(state, error)

        # ---------------------------------------------------------------------
        # 4. @everyone guild-level view permission
        # ---------------------------------------------------------------------

        state.everyone_view_permission = (
            OverwriteState.ALLOW if default_perms & VIEW_CHANNEL else OverwriteState.DENY
        )
        if default_perms & VIEW_CHANNEL:
            try:
                await platform.set_role_permissions(
                    default_role_id, default_perms & ~VIEW_CHANNEL, REASON_ENABLE
                )
            except Exception as e:
                self._note(state, log_op_failure(e, "Everyone View Permission", "@everyone"))

        # ---------------------------------------------------------------------
        # 5. Channels
        # ---------------------------------------------------------------------

        tracked_role_ids = self._tracked_role_ids(state)
        role_snapshots: Dict[int, RoleChannelSnapshot] = {
            rid: RoleChannelSnapshot(name=roles[rid].name if rid in roles else "")
            for rid in tracked_role_ids
        }

        channels = [
            c for c in await platform.fetch_channels()
            if is_lockable(c, state.maintenance_channel_id)
        ]

        for channel_info, (success, error, prior, role_states) in await lock_all_channels(
            platform, channels, default_role_id, tracked_role_ids, bypass_role_id, REASON_ENABLE
        ):
            channels_result.record(success, None if success else error)
            if success and prior is not None:
                state.channel_permission_snapshots[channel_info.id] = prior
                for role_id, role_state in role_states.items():
                    role_snapshots[role_id].channels[channel_info.id] = role_state
            self._note(state, error)

        state.role_channel_snapshots = role_snapshots

        # ---------------------------------------------------------------------
        # Finalize
        # ---------------------------------------------------------------------

        state.enabled = True
        state.timeout_at = timeout_at
        state.timeout_set_by = timeout_set_by if timeout_at else None
        state.add_log(
            f"Maintenance enabled: {members_result.success_count} members locked, "
            f"{channels_result.success_count} channels locked, "
            f"{members_result.failed_count + channels_result.failed_count} failures"
        )

        logger.tree("Maintenance Enabled", [
            ("Guild", f"{platform.guild_name} ({platform.guild_id})"),
            ("Members Locked", str(members_result.success_count)),
            ("Member Failures", str(members_result.failed_count)),
            ("Channels Locked", str(channels_result.success_count)),
            ("Channel Failures", str(channels_result.failed_count)),
            ("Maintenance Channel", str(state.maintenance_channel_id)),
            ("Auto-Disable", timeout_at.isoformat() if timeout_at else "Not scheduled"),
        ], emoji="🔧")

        return state

    # =========================================================================
    # Disable
    # =========================================================================

    async def disable(
        self,
        platform: GuildPlatform,
        role_mapping: Optional[Mapping[int, RoleRemap]] = None,
    ) -> GuildState:
        """
        Take the guild out of maintenance mode and restore every snapshot.

        No-op when maintenance is already off.

        Args:
            platform: Platform bound to the guild.
            role_mapping: For snapshot roles deleted during the window,
                which role replaces them (or that they are dropped).

        Returns:
            The persisted state, disabled, with snapshots cleared.
        """
        mapping = dict(role_mapping or {})

        async def _apply(state: GuildState) -> GuildState:
            if not state.enabled:
                logger.info("Maintenance Already Disabled", [
                    ("Guild", f"{platform.guild_name} ({platform.guild_id})"),
                ])
                return state
            return await self._disable(platform, state, mapping)

        return await self.store.update(platform.guild_id, _apply)

    async def _disable(
        self,
        platform: GuildPlatform,
        state: GuildState,
        role_mapping: Mapping[int, RoleRemap],
    ) -> GuildState:
        default_role_id = platform.default_role_id
        roles: Dict[int, RoleInfo] = {r.id: r for r in await platform.fetch_roles()}
        existing_role_ids: Set[int] = set(roles)
        temp_role_id = state.maintenance_temp_role_id
        bypass_role_id = state.maintenance_bypass_role_id
        maintenance_channel_id = state.maintenance_channel_id

        members_result = TransitionResult()
        channels_result = TransitionResult()
        substitutions: Dict[int, int] = {}
        restored_ids: Set[int] = set()

        # ---------------------------------------------------------------------
        # 1. Members
        # ---------------------------------------------------------------------

        for member_id, (success, error, notes, subs, left) in await restore_all_members(
            platform, state.member_role_snapshots, existing_role_ids, role_mapping, REASON_DISABLE,
        ):
            for note in notes:
                self._note(state, note)
            substitutions.update(subs)

            if left:
                members_result.skipped_count += 1
                self._note(state, f"Member {member_id} left during maintenance, skipped")
                continue

            members_result.record(success, error)
            if success:
                restored_ids.add(member_id)
            else:
                self._note(state, error)

        # ---------------------------------------------------------------------
        # 2. Temp role leftovers
        # ---------------------------------------------------------------------

        if temp_role_id and temp_role_id in existing_role_ids:
            for error in await strip_temp_role(platform, temp_role_id, restored_ids, REASON_DISABLE):
                self._note(state, error)

        # ---------------------------------------------------------------------
        # 3. @everyone guild-level view permission
        # ---------------------------------------------------------------------

        default_role = roles.get(default_role_id)
        if state.everyone_view_permission == OverwriteState.ALLOW and default_role:
            if not default_role.permissions & VIEW_CHANNEL:
                try:
                    await platform.set_role_permissions(
                        default_role_id, default_role.permissions | VIEW_CHANNEL, REASON_DISABLE
                    )
                except Exception as e:
                    self._note(state, log_op_failure(e, "Everyone View Permission", "@everyone"))

        # ---------------------------------------------------------------------
        # 4. Channel overwrites
        # ---------------------------------------------------------------------

        live_channel_ids = {c.id for c in await platform.fetch_channels()}
        restores: List[Tuple[int, int, OverwriteState]] = []

        for channel_id, prior in state.channel_permission_snapshots.items():
            if channel_id == maintenance_channel_id:
                continue  # Handled with the channel itself
            if channel_id not in live_channel_ids:
                channels_result.skipped_count += 1
                self._note(state, f"Channel {channel_id} no longer exists, skipped")
                continue
            restores.append((channel_id, default_role_id, prior))

        for old_role_id, new_role_id in substitutions.items():
            snapshot = state.role_channel_snapshots.get(old_role_id)
            if not snapshot:
                continue
            for channel_id, role_state in snapshot.channels.items():
                # Neutral would wipe the substitute's own overwrite
                if role_state != OverwriteState.NEUTRAL and channel_id in live_channel_ids:
                    restores.append((channel_id, new_role_id, role_state))

        keep_bypass = bypass_role_id in existing_role_ids and not state.should_delete_bypass_role
        if keep_bypass and bypass_role_id in state.role_channel_snapshots:
            for channel_id, role_state in state.role_channel_snapshots[bypass_role_id].channels.items():
                if channel_id in live_channel_ids and channel_id != maintenance_channel_id:
                    restores.append((channel_id, bypass_role_id, role_state))

        for success, error in await restore_all_overwrites(platform, restores, REASON_DISABLE):
            channels_result.record(success, error)
            self._note(state, error)

        # ---------------------------------------------------------------------
        # 5. Maintenance channel
        # ---------------------------------------------------------------------

        if maintenance_channel_id and maintenance_channel_id in live_channel_ids:
            if state.should_delete_maintenance_channel:
                try:
                    await platform.delete_channel(maintenance_channel_id, REASON_DISABLE)
                    state.maintenance_channel_id = None
                    state.should_delete_maintenance_channel = False
                except Exception as e:
                    self._note(state, log_op_failure(e, "Channel Delete", f"channel ({maintenance_channel_id})"))
            else:
                channel = await self._safe_get_channel(platform, maintenance_channel_id)
                if channel is not None:
                    for error in await release_maintenance_channel(
                        platform, channel, default_role_id,
                        state.channel_permission_snapshots.get(maintenance_channel_id),
                        temp_role_id, bypass_role_id, REASON_DISABLE,
                    ):
                        self._note(state, error)
        elif maintenance_channel_id:
            state.maintenance_channel_id = None
            state.should_delete_maintenance_channel = False

        # ---------------------------------------------------------------------
        # 6. Roles created by maintenance
        # ---------------------------------------------------------------------

        if temp_role_id and state.should_delete_temp_role:
            if await self._delete_role(platform, state, temp_role_id, existing_role_ids):
                state.maintenance_temp_role_id = None
                state.should_delete_temp_role = False

        if bypass_role_id and state.should_delete_bypass_role:
            if await self._delete_role(platform, state, bypass_role_id, existing_role_ids):
                state.maintenance_bypass_role_id = None
                state.should_delete_bypass_role = False

        # ---------------------------------------------------------------------
        # Finalize
        # ---------------------------------------------------------------------

        state.enabled = False
        state.clear_snapshots()
        state.add_log(
            f"Maintenance disabled: {members_result.success_count} members restored, "
            f"{members_result.skipped_count} skipped, "
            f"{members_result.failed_count + channels_result.failed_count} failures"
        )

        logger.tree("Maintenance Disabled", [
            ("Guild", f"{platform.guild_name} ({platform.guild_id})"),
            ("Members Restored", str(members_result.success_count)),
            ("Members Skipped", str(members_result.skipped_count)),
            ("Member Failures", str(members_result.failed_count)),
            ("Overwrites Restored", str(channels_result.success_count)),
            ("Overwrite Failures", str(channels_result.failed_count)),
            ("Roles Substituted", str(len(substitutions))),
        ], emoji="✅")

        return state

    # =========================================================================
    # Announcements
    # =========================================================================

    async def send_announcement(
        self,
        platform: GuildPlatform,
        author_id: Optional[int] = None,
        content: Optional[str] = None,
        embed: Any = None,
        view: Any = None,
    ) -> GuildState:
        """
        Post to the maintenance channel and remember it as the last update.

        Args:
            platform: Platform bound to the guild.
            author_id: Who posted it.
            content: Plain message text.
            embed: Embed object with `title`/`description` attributes.
            view: Components to attach.

        Raises:
            MaintenanceError: EMPTY_ANNOUNCEMENT, ANNOUNCEMENT_TOO_LONG,
                MAINTENANCE_NOT_ENABLED or MAINTENANCE_CHANNEL_INVALID.
        """
        content = content.strip() if content else None
        if not content and embed is None:
            raise MaintenanceError(ErrorCode.EMPTY_ANNOUNCEMENT)
        if content and len(content) > MAX_ANNOUNCEMENT_LENGTH:
            raise MaintenanceError(ErrorCode.ANNOUNCEMENT_TOO_LONG)

        async def _apply(state: GuildState) -> GuildState:
            if not state.enabled:
                raise MaintenanceError(ErrorCode.MAINTENANCE_NOT_ENABLED)

            channel, created = await self._resolve_channel(platform, state, REASON_RECREATE)
            if not channel.is_text:
                raise MaintenanceError(ErrorCode.MAINTENANCE_CHANNEL_INVALID)

            await platform.send_message(channel.id, content=content, embed=embed, view=view)

            state.maintenance_channel_id = channel.id
            state.should_delete_maintenance_channel = state.should_delete_maintenance_channel or created
            state.last_announcement = Announcement(
                content=content or getattr(embed, "description", None),
                title=getattr(embed, "title", None) if embed is not None else None,
                timestamp=utcnow(),
                author_id=author_id,
            )
            return state

        return await self.store.update(platform.guild_id, _apply)

    # =========================================================================
    # Mid-Window Maintenance
    # =========================================================================

    async def apply_restrictions_to_channel(self, platform: GuildPlatform, channel_id: int) -> GuildState:
        """
        Lock a channel created while maintenance is on.

        Records its prior overwrites like enable() does, so disable()
        restores it along with everything else.
        """

        async def _apply(state: GuildState) -> GuildState:
            if not state.enabled or channel_id in state.channel_permission_snapshots:
                return state

            channel = await self._safe_get_channel(platform, channel_id)
            if channel is None or not is_lockable(channel, state.maintenance_channel_id):
                return state

            tracked_role_ids = self._tracked_role_ids(state)
            success, error, prior, role_states = await lock_channel(
                platform, channel, platform.default_role_id, tracked_role_ids,
                state.maintenance_bypass_role_id, REASON_NEW_CHANNEL,
            )
            self._note(state, error)

            if success and prior is not None:
                state.channel_permission_snapshots[channel.id] = prior
                for role_id, role_state in role_states.items():
                    snapshot = state.role_channel_snapshots.setdefault(role_id, RoleChannelSnapshot())
                    snapshot.channels[channel.id] = role_state
                state.add_log(f"Locked new channel #{channel.name} ({channel.id})")
                logger.tree("New Channel Locked", [
                    ("Guild", f"{platform.guild_name} ({platform.guild_id})"),
                    ("Channel", f"#{channel.name} ({channel.id})"),
                    ("Prior", prior.value),
                ], emoji="🔒")
            return state

        return await self.store.update(platform.guild_id, _apply)

    async def ensure_maintenance_channel(self, platform: GuildPlatform) -> GuildState:
        """Recreate the maintenance channel of an enabled guild if it is gone."""

        async def _apply(state: GuildState) -> GuildState:
            if not state.enabled:
                return state

            existing = await self._safe_get_channel(platform, state.maintenance_channel_id)
            if existing is not None:
                return state

            channel, created = await self._resolve_channel(platform, state, REASON_RECREATE)
            state.maintenance_channel_id = channel.id
            state.should_delete_maintenance_channel = state.should_delete_maintenance_channel or created
            state.add_log(f"Maintenance channel restored: #{channel.name} ({channel.id})")

            logger.tree("Maintenance Channel Restored", [
                ("Guild", f"{platform.guild_name} ({platform.guild_id})"),
                ("Channel", f"#{channel.name} ({channel.id})"),
                ("Created", "yes" if created else "no"),
            ], emoji="🛠️")
            return state

        return await self.store.update(platform.guild_id, _apply)

    async def find_missing_roles(self, platform: GuildPlatform) -> Dict[int, str]:
        """
        Snapshot roles that no longer exist in the guild.

        Returns:
            Role id -> last known name, for building a role mapping.
        """
        state = await self.store.get(platform.guild_id)
        if not state.enabled:
            return {}

        existing = {r.id for r in await platform.fetch_roles()}
        missing: Dict[int, str] = {}
        for role_id in state.snapshot_role_ids():
            if role_id not in existing:
                snapshot = state.role_channel_snapshots.get(role_id)
                missing[role_id] = snapshot.name if snapshot and snapshot.name else "Unknown"
        return missing

    # =========================================================================
    # Internals
    # =========================================================================

    @staticmethod
    def _should_delete(
        role: Optional[RoleInfo],
        created: bool,
        stored_id: Optional[int],
        stored_flag: bool,
    ) -> bool:
        """Created now, or reused by stored id from a cycle that created it."""
        if created:
            return True
        return role is not None and role.id == stored_id and stored_flag

    @staticmethod
    def _note(state: GuildState, message: Optional[str]) -> None:
        if message:
            state.add_log(message)

    @staticmethod
    def _tracked_role_ids(state: GuildState) -> List[int]:
        ids = state.snapshot_role_ids()
        if state.maintenance_bypass_role_id:
            ids.append(state.maintenance_bypass_role_id)
        return unique(ids)

    @staticmethod
    async def _safe_get_channel(platform: GuildPlatform, channel_id: Optional[int]) -> Optional[ChannelInfo]:
        if not channel_id:
            return None
        try:
            return await platform.get_channel(channel_id)
        except Exception as e:
            log_op_failure(e, "Channel Lookup", f"channel ({channel_id})")
            return None

    async def _resolve_channel(
        self,
        platform: GuildPlatform,
        state: GuildState,
        reason: str,
    ) -> Tuple[ChannelInfo, bool]:
        """Stored channel, else one by name, else a new configured one. Raises on failure."""
        channel = await self._safe_get_channel(platform, state.maintenance_channel_id)
        if channel is not None:
            return channel, False

        for candidate in await platform.fetch_channels():
            if candidate.name == self.channel_name and candidate.is_text and not candidate.is_thread:
                return candidate, False

        channel = await platform.create_text_channel(self.channel_name, MAINTENANCE_CHANNEL_TOPIC, reason)
        access_roles = [
            r for r in (platform.default_role_id, state.maintenance_temp_role_id, state.maintenance_bypass_role_id)
            if r
        ]
        for error in await configure_channel(platform, channel, access_roles, self.slowmode_seconds, reason):
            self._note(state, error)
        return channel, True

    async def _delete_role(
        self,
        platform: GuildPlatform,
        state: GuildState,
        role_id: int,
        existing_role_ids: Set[int],
    ) -> bool:
        """Delete a role LockBot created. True when it is gone afterwards."""
        if role_id not in existing_role_ids:
            return True
        try:
            await platform.delete_role(role_id, REASON_DISABLE)
            return True
        except Exception as e:
            self._note(state, log_op_failure(e, "Role Delete", f"role ({role_id})"))
            return False


__all__ = ["MaintenanceEngine", "parse_role_mapping"]
