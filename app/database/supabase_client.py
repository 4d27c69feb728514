from supabase import acreate_client, AsyncClient
from supabase.lib.client_options import AsyncClientOptions
from app.config.settings import settings


class SupabaseClient:
    _client: AsyncClient = None

    @classmethod
    async def get_client(cls) -> AsyncClient:
        if cls._client is None:
            cls._client = await acreate_client(settings.supabase_url, settings.supabase_key)
        return cls._client

    @classmethod
    async def new_session_client(cls) -> AsyncClient:
        """Fresh client whose auth state belongs to a single request. Callers must close it."""
        return await acreate_client(
            settings.supabase_url,
            settings.supabase_key,
            options=AsyncClientOptions(auto_refresh_token=False, persist_session=False),
        )

    @staticmethod
    async def close_session_client(client: AsyncClient) -> None:
        try:
            await client.postgrest.aclose()
        finally:
            await client.auth.close()


async def get_supabase() -> AsyncClient:
    return await SupabaseClient.get_client()
