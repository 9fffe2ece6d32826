"""
Server catalog.

The catalog is the static list of regional rooms endpoints from the settings.
It is validated once at startup and owns one JoinCipher per distinct key/IV, so
callers receive the cipher handle with the entry instead of consulting a global
cache.
"""

from dataclasses import dataclass

from roomlink.config.app_settings import AppSettings, GameServerSettings
from roomlink.directory.errors import ConfigurationError
from roomlink.util.join_cipher import JoinCipher
from roomlink.util.logging_helper import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ServerCatalogEntry:
    """One selectable server and its join protocol parameters."""

    id: str
    label: str
    rooms_api_domain: str
    server_type: int
    aes_key: str
    aes_iv: str


class ServerCatalog:
    """
    Non-empty, read-only collection of ServerCatalogEntry.

    Construction fails with ConfigurationError for an empty list or duplicate
    ids, which is why the application builds it during startup.
    """

    def __init__(self, entries: list[ServerCatalogEntry]):
        if not entries:
            raise ConfigurationError("Game server catalog is empty.")

        seen: set[str] = set()
        for entry in entries:
            if entry.id in seen:
                raise ConfigurationError(f"Duplicate game server id '{entry.id}'.")
            seen.add(entry.id)

        self._entries = tuple(entries)
        self._by_id = {entry.id: entry for entry in entries}
        # (key, iv) -> cipher, built eagerly so a bad key fails at startup
        self._ciphers: dict[tuple[str, str], JoinCipher] = {}
        for entry in entries:
            pair = (entry.aes_key, entry.aes_iv)
            if pair not in self._ciphers:
                self._ciphers[pair] = JoinCipher(entry.aes_key, entry.aes_iv)

        logger.info(
            "Server catalog loaded: %d server(s), default '%s'",
            len(self._entries),
            self._entries[0].id,
        )

    @classmethod
    def from_settings(cls, settings: AppSettings) -> "ServerCatalog":
        return cls([_entry_from_settings(server, settings) for server in settings.game_servers])

    @property
    def entries(self) -> tuple[ServerCatalogEntry, ...]:
        return self._entries

    @property
    def default(self) -> ServerCatalogEntry:
        return self._entries[0]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries)

    def resolve(self, server_id: str | None) -> ServerCatalogEntry:
        """
        Exact-match lookup that never fails.

        None, a blank string, or an unknown id all resolve to the first entry.
        """
        normalized = server_id.strip() if isinstance(server_id, str) else ""
        if not normalized:
            return self.default
        return self._by_id.get(normalized, self.default)

    def cipher_for(self, entry: ServerCatalogEntry) -> JoinCipher:
        """Return the cipher handle for an entry's key/IV."""
        pair = (entry.aes_key, entry.aes_iv)
        cipher = self._ciphers.get(pair)
        if cipher is None:
            # Entry built outside this catalog; remember it like the others
            cipher = JoinCipher(entry.aes_key, entry.aes_iv)
            self._ciphers[pair] = cipher
        return cipher


def _entry_from_settings(server: GameServerSettings, settings: AppSettings) -> ServerCatalogEntry:
    return ServerCatalogEntry(
        id=server.id,
        label=server.label,
        rooms_api_domain=server.rooms_api_domain,
        server_type=server.server_type,
        aes_key=server.aes_key or settings.join_direct.aes_key,
        aes_iv=server.aes_iv or settings.join_direct.aes_iv,
    )
