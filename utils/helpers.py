"""
Helper functions for RagaBot
Status rotation, voice-state housekeeping and skip voting shared by commands and buttons
"""
import asyncio
import logging
from typing import List, NamedTuple, Optional

import discord

from config.settings import PREFIX

logger = logging.getLogger('bot')

# Global bot instance reference (set by the main bot)
_bot_instance = None


def set_bot_instance(bot):
    global _bot_instance
    _bot_instance = bot


def get_server_count():
    if _bot_instance:
        return len(_bot_instance.guilds)
    return 0


def get_status_messages():
    """Rotating presence lines, refreshed each cycle"""
    playing = 0
    registry = getattr(_bot_instance, 'registry', None)
    if registry is not None:
        playing = sum(1 for session in registry.sessions() if session.queue.now_playing is not None)
    return [
        f"{PREFIX}help",
        f"{get_server_count()} servers",
        f"music in {playing} servers",
    ]


async def update_bot_status(interval: float = 60):
    """Rotate the bot presence every `interval` seconds"""
    if not _bot_instance:
        return

    await _bot_instance.wait_until_ready()

    activity_types = [
        discord.ActivityType.listening,
        discord.ActivityType.watching,
        discord.ActivityType.playing,
    ]
    current_index = 0

    while not _bot_instance.is_closed():
        status_messages = get_status_messages()
        status_text = status_messages[current_index % len(status_messages)]
        activity_type = activity_types[current_index % len(activity_types)]
        current_index += 1
        try:
            await _bot_instance.change_presence(activity=discord.Activity(type=activity_type, name=status_text))
        except (discord.HTTPException, ConnectionError) as e:
            logger.warning(f"⚠️ Error updating bot status: {e}")
        await asyncio.sleep(interval)


def listeners(channel) -> List[discord.Member]:
    """Human members in a voice channel"""
    if channel is None:
        return []
    return [member for member in channel.members if not member.bot]


async def on_voice_state_update_handler(member, before, after):
    """Drop the guild session when the bot is kicked out of voice, or leave when left alone"""
    if not _bot_instance:
        return
    registry = getattr(_bot_instance, 'registry', None)
    if registry is None:
        return

    guild_id = member.guild.id

    if member.id == _bot_instance.user.id:
        if before.channel is not None and after.channel is None:
            logger.info(f"🔌 Disconnected from voice in guild {guild_id}, dropping session")
            session = registry.get(guild_id)
            if session is not None:
                # The voice client is already gone; don't try to disconnect it again
                session.controller.voice = None
                await registry.destroy(guild_id)
        return

    session = registry.get(guild_id)
    if session is None or not session.controller.is_connected:
        return
    channel = session.controller.voice.channel
    if before.channel == channel and after.channel != channel and not listeners(channel):
        logger.info(f"👋 Left alone in guild {guild_id}, leaving voice")
        await registry.destroy(guild_id)


class SkipOutcome(NamedTuple):
    status: str  # 'skipped', 'voted', 'already_voted' or 'idle'
    track: Optional[object] = None
    votes: int = 0
    required: int = 0


def can_force_skip(member: discord.Member, track) -> bool:
    """Requester and server managers skip without a vote"""
    if track is not None and track.requested_by == member.id:
        return True
    return member.guild_permissions.manage_guild


async def request_skip(session, member: discord.Member) -> SkipOutcome:
    """Skip the current track outright, or count a vote toward skipping it"""
    queue, controller = session.queue, session.controller
    current = queue.now_playing
    if current is None:
        return SkipOutcome('idle')

    channel = controller.voice.channel if controller.is_connected else None
    required = queue.required_skip_votes(len(listeners(channel)))

    if not can_force_skip(member, current):
        if member.id in queue.skip_votes:
            return SkipOutcome('already_voted', current, len(queue.skip_votes), required)
        votes = queue.register_skip_vote(member.id)
        if votes < required:
            return SkipOutcome('voted', current, votes, required)

    skipped = await controller.skip()
    return SkipOutcome('skipped', skipped, required=required)
