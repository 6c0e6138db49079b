from supabase import create_client, Client
from navstation.config import Settings, settings as default_settings


class SupabaseClient:
    _client: Client = None

    @classmethod
    def get_client(cls, settings: Settings = None) -> Client:
        """Shared client; uses the service_role key when configured so writes bypass RLS."""
        if cls._client is None:
            settings = settings or default_settings
            if not settings.supabase_url:
                raise RuntimeError("SUPABASE_URL is not configured")
            key = settings.supabase_service_role_key or settings.supabase_key
            cls._client = create_client(settings.supabase_url, key)
        return cls._client


def get_supabase(settings: Settings = None) -> Client:
    return SupabaseClient.get_client(settings)
