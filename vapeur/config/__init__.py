"""Configuration and folder registry package."""
