"""Centralized constants for NoteBridge."""

# Tags every note carries, whatever the AI providers return
BASELINE_TAGS = ("telegram-bot", "auto-generated")

# Keyword -> tag mapping for the local tag heuristic (checked in order)
KEYWORD_TAGS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("youtube", "video"), "video"),
    (("article", "blog"), "article"),
    (("github", "repository"), "development"),
    (("twitter", "tweet"), "social-media"),
)

# Note assembly
TITLE_MAX_WORDS = 6
PLACEHOLDER_TITLE = "Auto-generated Note"
TITLE_BOILERPLATE_PREFIXES = ("Summary of content from", "Title:")

# Summaries
SUMMARY_MAX_WORDS = 300
MIN_TAGS = 3
MAX_TAGS = 7

# Discord
MAX_DISCORD_MESSAGE_LENGTH = 2000

# Fetchers
MAX_ARTICLE_CHARS = 20_000
MAX_README_CHARS = 8_000
