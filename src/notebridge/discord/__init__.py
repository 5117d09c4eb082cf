"""Discord chat transport."""
