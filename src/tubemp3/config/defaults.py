"""
Default configuration values for tubemp3.

Note: Per-user overrides are resolved in config/loader.py, which supports
environment variables, project config and user config.
"""

# Watch-page request headers. The upstream server varies the page layout by
# client signature, so these mimic a desktop browser.
USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
ACCEPT_LANGUAGE = "en-US,en;q=0.9"
ACCEPT = (
    "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,"
    "image/webp,image/apng,*/*;q=0.8"
)

# Timeouts (seconds)
HTTP_TIMEOUT = 30.0
TOOL_CHECK_TIMEOUT = 5

# Local transcode output parameters
MP3_BITRATE = "128k"
MP3_SAMPLE_RATE = 44100

# Delegated downloader: VBR quality 0 is the best yt-dlp offers
DELEGATED_AUDIO_QUALITY = "0"

# Chunk size for streaming direct audio downloads
DOWNLOAD_CHUNK_SIZE = 64 * 1024

# Seconds to wait for the output reader once a timed-out process is killed
READER_JOIN_TIMEOUT = 2

# Site-name suffix removed from <title> tag text
TITLE_SUFFIX = " - YouTube"
