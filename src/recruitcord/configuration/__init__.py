"""Configuration loading: YAML application settings and storage selection."""
