from .settings import QueueIndexerSettings, get_cached_settings, load_settings, reset_settings_cache

__all__ = ["QueueIndexerSettings", "get_cached_settings", "load_settings", "reset_settings_cache"]
