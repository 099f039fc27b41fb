"""Server project package."""
