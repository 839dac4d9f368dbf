"""StoryFlam CLI subcommands."""
