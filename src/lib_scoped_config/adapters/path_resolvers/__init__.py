"""Platform path resolution."""
