"""Prompts for the AI-backed pipeline stages."""

from notebridge.constants import MAX_TAGS, MIN_TAGS, SUMMARY_MAX_WORDS

SYSTEM_PROMPT = "You are a helpful assistant that provides concise and accurate responses."

SUMMARY_PROMPT = """Please create a concise summary of the following content from {source_url}.
Focus on the main points and key information.
Keep the summary under {max_words} words.

Content:
{content}"""

TAGS_PROMPT = """Generate {min_tags}-{max_tags} relevant tags for the following content.
Tags should be lowercase, single words or hyphenated phrases.
Return only the tags separated by commas, no additional text.

Content:
{content}"""


def build_summary_prompt(content: str, source_url: str) -> str:
    return SUMMARY_PROMPT.format(
        source_url=source_url or "an unknown source",
        max_words=SUMMARY_MAX_WORDS,
        content=content,
    )


def build_tags_prompt(content: str) -> str:
    return TAGS_PROMPT.format(min_tags=MIN_TAGS, max_tags=MAX_TAGS, content=content)
