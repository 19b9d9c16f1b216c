"""YouTube Data API access: service factory, typed gateway, time helpers."""
