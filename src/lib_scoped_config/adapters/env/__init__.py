"""Environment variable adapter."""
