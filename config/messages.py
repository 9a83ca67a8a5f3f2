"""
User-facing messages for RagaBot
English and Hindi strings, selected by BOT_LANGUAGE
"""
from config.settings import LANGUAGE

MESSAGES = {
    'en': {
        'NO_VOICE_CHANNEL': '❌ You need to join a voice channel first!',
        'BOT_NO_PERMISSION': "❌ I don't have permission to join this voice channel!",
        'VOICE_CONNECT_FAILED': '❌ Could not connect to the voice channel, please try again!',
        'NO_SONG_PLAYING': '❌ No song is currently playing!',
        'QUEUE_EMPTY': '❌ Queue is empty!',
        'QUEUE_FULL': '❌ Queue is full! (max {capacity} songs)',
        'SONG_ADDED': '✅ Song added to queue:',
        'PLAYLIST_ADDED': '✅ Added {count} songs from playlist:',
        'NOW_PLAYING': '🎵 Now playing:',
        'SONG_SKIPPED': '⏭️ Skipped song:',
        'SKIP_VOTE': '🗳️ Skip vote added, currently **{votes}/{required}**',
        'SKIP_ALREADY_VOTED': 'You have already voted to skip this song.',
        'MUSIC_STOPPED': '⏹️ Music stopped!',
        'MUSIC_PAUSED': '⏸️ Music paused!',
        'MUSIC_RESUMED': '▶️ Music resumed!',
        'NOT_PAUSED': '❌ Music is not paused!',
        'VOLUME_SET': '🔊 Volume set to:',
        'VOLUME_CURRENT': '🔊 Current volume:',
        'VOLUME_RANGE': '🔊 Volume must be between 0 and 100',
        'PREFIX_CHANGED': '✅ Server prefix changed to:',
        'PREFIX_INVALID': '❌ Prefix must be 1 to {length} characters without spaces!',
        'AUTOPLAY_ON': '🤖 Autoplay enabled!',
        'AUTOPLAY_OFF': '🤖 Autoplay disabled!',
        'LOOP_ON': '🔂 Loop mode enabled!',
        'LOOP_OFF': '➡️ Loop mode disabled!',
        'QUEUE_CLEARED': '🗑️ Queue cleared!',
        'QUEUE_SHUFFLED': '🔀 Queue shuffled!',
        'QUEUE_FINISHED': '📭 Queue finished!',
        'NO_PREVIOUS': '❌ No previous song in history!',
        'NO_RESULTS': '❌ No results found!',
        'JOINED': '✅ Joined',
        'LEFT': '👋 Left the voice channel!',
        'NOT_CONNECTED': '❌ Not connected to any voice channel!',
        'ERROR_OCCURRED': '❌ An error occurred, please try again later!',
        'LOADING': '⏳ Loading...',
        'RESOLVE_BLOCKED': '🚫 YouTube blocked the stream for **{title}**, skipping.',
        'RESOLVE_NO_STREAM': '❌ No playable stream found for **{title}**, skipping.',
        'RESOLVE_GENERIC': '⚠️ Could not play **{title}**, skipping.',
        'SEARCH_TITLE': '🔍 Search results for: {query}',
        'SEARCH_PROMPT': 'Pick a song from the menu below:',
        'SEARCH_PLACEHOLDER': 'Choose a song...',
        'SEARCH_NOT_YOURS': '❌ Only the person who searched can pick a song!',
        'SEARCH_PICKED': '✅ Picked:',
        'SEARCH_EXPIRED': '⌛ Search expired, run it again to pick a song.',
    },
    'hi': {
        'NO_VOICE_CHANNEL': '❌ पहले किसी voice channel में join करें!',
        'BOT_NO_PERMISSION': '❌ मुझे इस voice channel में join करने की permission नहीं है!',
        'VOICE_CONNECT_FAILED': '❌ Voice channel से connect नहीं हो पाया, फिर से try करें!',
        'NO_SONG_PLAYING': '❌ कोई गाना play नहीं हो रहा है!',
        'QUEUE_EMPTY': '❌ Queue empty है!',
        'QUEUE_FULL': '❌ Queue full है! (max {capacity} गाने)',
        'SONG_ADDED': '✅ गाना queue में add हो गया:',
        'PLAYLIST_ADDED': '✅ Playlist से {count} गाने add हो गए:',
        'NOW_PLAYING': '🎵 अब play हो रहा है:',
        'SONG_SKIPPED': '⏭️ गाना skip कर दिया:',
        'SKIP_VOTE': '🗳️ Skip vote add हो गया, अभी **{votes}/{required}**',
        'SKIP_ALREADY_VOTED': 'आप पहले ही skip vote दे चुके हैं।',
        'MUSIC_STOPPED': '⏹️ Music stop कर दिया!',
        'MUSIC_PAUSED': '⏸️ Music pause कर दिया!',
        'MUSIC_RESUMED': '▶️ Music resume कर दिया!',
        'NOT_PAUSED': '❌ Music pause नहीं है!',
        'VOLUME_SET': '🔊 Volume set कर दिया:',
        'VOLUME_CURRENT': '🔊 अभी का volume:',
        'VOLUME_RANGE': '🔊 Volume 0 से 100 के बीच होना चाहिए',
        'PREFIX_CHANGED': '✅ Server prefix change हो गया:',
        'PREFIX_INVALID': '❌ Prefix 1 से {length} characters का होना चाहिए, बिना space के!',
        'AUTOPLAY_ON': '🤖 Autoplay on कर दिया!',
        'AUTOPLAY_OFF': '🤖 Autoplay off कर दिया!',
        'LOOP_ON': '🔂 Loop mode on कर दिया!',
        'LOOP_OFF': '➡️ Loop mode off कर दिया!',
        'QUEUE_CLEARED': '🗑️ Queue clear कर दी!',
        'QUEUE_SHUFFLED': '🔀 Queue shuffle कर दी!',
        'QUEUE_FINISHED': '📭 Queue खत्म हो गई!',
        'NO_PREVIOUS': '❌ History में कोई पिछला गाना नहीं है!',
        'NO_RESULTS': '❌ कोई result नहीं मिला!',
        'JOINED': '✅ Join कर लिया',
        'LEFT': '👋 Voice channel छोड़ दिया!',
        'NOT_CONNECTED': '❌ किसी voice channel से connected नहीं हूँ!',
        'ERROR_OCCURRED': '❌ कोई error आई है, कृपया बाद में try करें!',
        'LOADING': '⏳ Loading...',
        'RESOLVE_BLOCKED': '🚫 YouTube ने **{title}** का stream block कर दिया, skip कर रहे हैं।',
        'RESOLVE_NO_STREAM': '❌ **{title}** का कोई playable stream नहीं मिला, skip कर रहे हैं।',
        'RESOLVE_GENERIC': '⚠️ **{title}** play नहीं हो पाया, skip कर रहे हैं।',
        'SEARCH_TITLE': '🔍 Search results: {query}',
        'SEARCH_PROMPT': 'नीचे dropdown से अपना गाना choose करें:',
        'SEARCH_PLACEHOLDER': 'अपना गाना choose करें...',
        'SEARCH_NOT_YOURS': '❌ सिर्फ search करने वाला ही गाना choose कर सकता है!',
        'SEARCH_PICKED': '✅ Choose किया:',
        'SEARCH_EXPIRED': '⌛ Search expire हो गया, फिर से search करें।',
    },
}


def get_message(key: str, language: str = None, **kwargs) -> str:
    """Look up a message, falling back to English for unknown languages or keys"""
    table = MESSAGES.get(language or LANGUAGE, MESSAGES['en'])
    text = table.get(key) or MESSAGES['en'].get(key, key)
    return text.format(**kwargs) if kwargs else text
