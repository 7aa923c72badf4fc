"""Steam store API package."""
