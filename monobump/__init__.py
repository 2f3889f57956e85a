"""Version bumping for multi-package workspaces."""
