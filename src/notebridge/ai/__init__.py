"""AI capabilities (summarization, tag generation) with provider fallback."""
