"""Supabase-backed key-value backend."""

from dataclasses import dataclass

from supabase import Client

from calorie_tracker.services.storage import KeyValueBackend, StorageError


@dataclass
class SupabaseKeyValueBackend(KeyValueBackend):
    """Stores keys as rows of a ``(key, value)`` table."""

    client: Client
    table: str = "kv_store"

    def get(self, key: str) -> str | None:
        try:
            response = (
                self.client.table(self.table)
                .select("value")
                .eq("key", key)
                .limit(1)
                .execute()
            )
        except Exception as exc:
            raise StorageError(f"Failed to read {key} from Supabase") from exc
        if not response.data:
            return None
        return response.data[0].get("value")

    def set(self, key: str, value: str) -> None:
        try:
            self.client.table(self.table).upsert(
                {"key": key, "value": value}
            ).execute()
        except Exception as exc:
            raise StorageError(f"Failed to write {key} to Supabase") from exc

    def delete(self, key: str) -> None:
        try:
            self.client.table(self.table).delete().eq("key", key).execute()
        except Exception as exc:
            raise StorageError(f"Failed to delete {key} from Supabase") from exc

    def keys(self) -> list[str]:
        try:
            response = self.client.table(self.table).select("key").execute()
        except Exception as exc:
            raise StorageError("Failed to list keys from Supabase") from exc
        return [str(row["key"]) for row in response.data or []]
