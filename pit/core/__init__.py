"""Parser, cache, workspace and orchestration engine."""
