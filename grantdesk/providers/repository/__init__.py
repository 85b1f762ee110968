"""Grant repository implementations.

- SupabaseRepository - remote store, Supabase REST (PostgREST) over httpx
- InMemoryRepository - process-local store; the fallback for failed remote
  writes and the only store when no remote is configured
"""

from grantdesk.providers.repository.memory_repository import InMemoryRepository
from grantdesk.providers.repository.supabase_repository import SupabaseRepository

__all__ = ["InMemoryRepository", "SupabaseRepository"]
