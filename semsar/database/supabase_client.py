from supabase import create_client, Client
from semsar.config import settings


class SupabaseClient:
    _client: Client = None

    @classmethod
    def get_client(cls) -> Client:
        """Shared anon-key client; only used to resolve bearer tokens."""
        if cls._client is None:
            cls._client = create_client(settings.supabase_url, settings.supabase_key)
        return cls._client

    @classmethod
    def get_user_client(cls, access_token: str) -> Client:
        """Client that forwards the caller's JWT, so RLS policies see auth.uid().

        Each one owns an HTTP connection pool; release it with close_user_client.
        """
        client = create_client(settings.supabase_url, settings.supabase_key)
        client.postgrest.auth(access_token)
        return client

    @classmethod
    def close_user_client(cls, client: Client):
        client.postgrest.session.close()

    @classmethod
    def reset_client(cls):
        cls._client = None


def get_supabase() -> Client:
    return SupabaseClient.get_client()
