"""API routers for the StoryGen debug console."""
