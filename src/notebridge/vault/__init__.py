"""Note persistence into an Obsidian vault."""
