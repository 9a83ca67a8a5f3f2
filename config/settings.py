"""
Configuration settings for RagaBot
Contains all constants, environment variables, and configuration options
"""
import os
import shutil

import discord
from dotenv import load_dotenv

# Load environment variables (token.env for local runs, .env as a fallback)
load_dotenv('token.env')
load_dotenv()

# Bot configuration
VERSION = '2.0.0'
PREFIX = '!'
MAX_PREFIX_LENGTH = 5
TOKEN = os.getenv('TOKEN') or os.getenv('DISCORD_TOKEN')
LANGUAGE = os.getenv('BOT_LANGUAGE', 'en')

# Optional third-party credentials
SPOTIFY_CLIENT_ID = os.getenv('SPOTIFY_CLIENT_ID')
SPOTIFY_CLIENT_SECRET = os.getenv('SPOTIFY_CLIENT_SECRET')

# Optional self-hosted audio proxy, handed to yt-dlp
AUDIO_PROXY_HOST = os.getenv('AUDIO_PROXY_HOST')
AUDIO_PROXY_PORT = os.getenv('AUDIO_PROXY_PORT', '8080')
AUDIO_PROXY_USER = os.getenv('AUDIO_PROXY_USER')
AUDIO_PROXY_PASSWORD = os.getenv('AUDIO_PROXY_PASSWORD')

# Deployment
HEALTH_PORT = int(os.getenv('PORT', '3000'))
DATABASE_PATH = os.getenv('DATABASE_PATH', 'data/ragabot.db')
LOG_DIR = os.getenv('LOG_DIR', 'logs')

# Queue configuration
MAX_QUEUE_SIZE = 500
DEFAULT_VOLUME = 50
HISTORY_LIMIT = 20
IDLE_TIMEOUT = 300              # 5 minutes empty and inactive
REAPER_INTERVAL = 60            # idle sweep period in seconds
QUEUE_PAGE_SIZE = 10
VOLUME_STEP = 10                # per press of the volume buttons

# Stream resolution
RESOLVE_ATTEMPTS = 3
RESOLVE_BACKOFF_BASE = 1.0      # seconds, doubled per attempt
MIN_CANDIDATE_DURATION = 30     # shorter search hits are ads/shorts
SEARCH_RESULT_LIMIT = 5
SEARCH_PICK_LIMIT = 10         # entries offered by the search menu
PLAYLIST_LIMIT = 50
AUTOPLAY_MAX_ATTEMPTS = 3

# Cache configuration
SETTINGS_CACHE_TTL = 600        # 10 minutes
SEARCH_CACHE_TTL = 1800         # 30 minutes
SEARCH_CACHE_SIZE = 1000

USER_AGENTS = [
    'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36',
    'Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36',
    'Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36',
]


def get_ffmpeg_executable():
    """Try to use local FFmpeg first, then system FFmpeg"""
    local_ffmpeg = os.path.join(os.path.dirname(__file__), '..', 'ffmpeg', 'ffmpeg.exe')
    if os.path.exists(local_ffmpeg):
        return local_ffmpeg

    return shutil.which('ffmpeg') or 'ffmpeg'


FFMPEG_EXECUTABLE = get_ffmpeg_executable()

# FFmpeg options (reconnect on dropped streams)
FFMPEG_OPTIONS = {
    'before_options': '-reconnect 1 -reconnect_streamed 1 -reconnect_delay_max 5',
    'options': '-vn',
}


def get_audio_proxy():
    """Build the proxy URL for yt-dlp, or None when no proxy is configured"""
    if not AUDIO_PROXY_HOST:
        return None
    if AUDIO_PROXY_USER:
        credentials = f"{AUDIO_PROXY_USER}:{AUDIO_PROXY_PASSWORD or ''}@"
    else:
        credentials = ''
    return f"http://{credentials}{AUDIO_PROXY_HOST}:{AUDIO_PROXY_PORT}"


# yt-dlp options shared by every extractor
YDL_OPTIONS = {
    'format': 'bestaudio[ext=m4a]/bestaudio/best',
    'noplaylist': True,
    'nocheckcertificate': True,
    'ignoreerrors': False,
    'logtostderr': False,
    'quiet': True,
    'no_warnings': True,
    'default_search': 'ytsearch',
    'source_address': '0.0.0.0',
    'socket_timeout': 15,
    'retries': 1,
    'skip_unavailable_fragments': True,
    'force_ipv4': True,
    'geo_bypass': True,
}

if get_audio_proxy():
    YDL_OPTIONS['proxy'] = get_audio_proxy()

# Second extractor pass: alternate player clients, no shared cache
YDL_FALLBACK_OPTIONS = {
    **YDL_OPTIONS,
    'cachedir': False,
    'extractor_args': {'youtube': {'player_client': ['android', 'ios']}},
}

# Prefix aliases (case-insensitive), alias -> command
COMMAND_ALIASES = {
    'p': 'play',
    'find': 'search', 'sr': 'search',
    's': 'skip', 'sk': 'skip', 'next': 'skip',
    'q': 'queue', 'qu': 'queue', 'list': 'queue',
    'v': 'volume', 'vol': 'volume',
    'l': 'loop', 'repeat': 'loop',
    'stp': 'stop', 'halt': 'stop', 'disconnect': 'stop', 'dc': 'stop',
    'np': 'nowplaying', 'current': 'nowplaying', 'playing': 'nowplaying',
    'mix': 'shuffle',
    'empty': 'clear',
    'prev': 'previous', 'back': 'previous',
    'ap': 'autoplay',
    'prefix': 'setprefix', 'changeprefix': 'setprefix',
    'h': 'help', 'commands': 'help', 'cmd': 'help',
    'st': 'status', 'stat': 'status', 'ping': 'status',
}


def resolve_alias(name: str) -> str:
    """Map a typed command name to its canonical command"""
    lowered = name.lower()
    return COMMAND_ALIASES.get(lowered, lowered)


def aliases_for(command: str) -> list:
    """All aliases registered for a canonical command"""
    return [alias for alias, target in COMMAND_ALIASES.items() if target == command]


def get_bot_intents():
    """Get required Discord intents"""
    intents = discord.Intents.default()
    intents.message_content = True
    intents.voice_states = True
    return intents
