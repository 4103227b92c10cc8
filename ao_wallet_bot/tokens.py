"""Token registry: aliases, process ids and decimal precision."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from ao_wallet_bot.config import Settings

# AO process ids and wallet addresses are 43-char base64url strings.
PROCESS_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{43}$")

DEFAULT_TOKENS: Dict[str, Dict[str, object]] = {
    "AO": {
        "processId": "0syT13r0s0tgPmIed95bJnuSqaD29HQNN8D3ElLSrsc",
        "decimals": 12,
    },
    "ARIO": {
        "processId": "qNvAoz0TgcH7DMg8BCVn8jF32QH5L6T29VjHxhHqqGE",
        "decimals": 6,
    },
    "WAR": {
        "processId": "xU9zFkq3X2ZQ6olwNVvr1vUWIjc3kXTWr7xKQD6dh10",
        "decimals": 12,
    },
    "USDA": {
        "processId": "FBt9A5GA_KXMMSxA2DJ0xZbAq8sLLU2ak-YJe9fDfm0",
        "decimals": 12,
    },
}


@dataclass(frozen=True)
class TokenDescriptor:
    """A token the bot knows how to move and display."""

    alias: str
    process_id: str
    decimals: int
    known: bool = True


def shorten_id(value: str, head: int = 6, tail: int = 4) -> str:
    """Return ``abcdef…wxyz`` for long identifiers."""
    if len(value) <= head + tail + 1:
        return value
    return f"{value[:head]}…{value[-tail:]}"


def looks_like_process_id(value: str) -> bool:
    return bool(PROCESS_ID_PATTERN.match(value or ""))


class TokenRegistry:
    """Immutable alias <-> process id <-> decimals lookup."""

    def __init__(self, tokens: Iterable[TokenDescriptor], native_alias: str = "AO") -> None:
        self._by_alias: Dict[str, TokenDescriptor] = {}
        self._by_process: Dict[str, TokenDescriptor] = {}
        for token in tokens:
            if token.decimals < 0:
                raise ValueError(f"Token {token.alias} has negative decimals")
            self._by_alias[token.alias.upper()] = token
            self._by_process[token.process_id] = token
        if native_alias.upper() not in self._by_alias:
            raise ValueError(f"Native token {native_alias!r} missing from registry")
        self.native_alias = native_alias.upper()

    @property
    def native(self) -> TokenDescriptor:
        return self._by_alias[self.native_alias]

    def __iter__(self):
        return iter(self._by_alias.values())

    def __len__(self) -> int:
        return len(self._by_alias)

    def get(self, alias_or_id: str) -> Optional[TokenDescriptor]:
        """Return a registered token by alias (any case) or process id."""
        if not alias_or_id:
            return None
        key = alias_or_id.strip()
        return self._by_alias.get(key.upper()) or self._by_process.get(key)

    def resolve(self, alias_or_id: Optional[str]) -> Optional[TokenDescriptor]:
        """Resolve an alias or process id, defaulting to the native token.

        Unregistered strings shaped like a process id resolve to an ad-hoc
        descriptor with 0 decimals; anything else is not found.
        """
        if alias_or_id is None or not alias_or_id.strip():
            return self.native
        token = self.get(alias_or_id)
        if token:
            return token
        candidate = alias_or_id.strip()
        if looks_like_process_id(candidate):
            return TokenDescriptor(
                alias=shorten_id(candidate),
                process_id=candidate,
                decimals=0,
                known=False,
            )
        return None

    def decimals_of(self, alias_or_id: str) -> int:
        """Return the token's precision, or 0 when the identifier is unknown."""
        token = self.get(alias_or_id)
        return token.decimals if token else 0

    def reverse_alias(self, process_id: str) -> str:
        """Return the alias for ``process_id`` or a shortened id for display."""
        token = self._by_process.get(process_id)
        return token.alias if token else shorten_id(process_id)

    def tracked(self, selection: Sequence[str] = ()) -> List[TokenDescriptor]:
        """Return tokens for aggregate balance queries.

        An empty selection means every registered token. Entries that do not
        resolve are skipped.
        """
        if not selection:
            return list(self._by_alias.values())
        tokens: List[TokenDescriptor] = []
        seen: set[str] = set()
        for entry in selection:
            token = self.resolve(entry)
            if token and token.process_id not in seen:
                tokens.append(token)
                seen.add(token.process_id)
        return tokens


def load_token_table(path: Optional[Path] = None) -> Dict[str, Dict[str, object]]:
    """Load the token table from JSON file or fall back to defaults."""
    if path is None:
        return {alias: dict(entry) for alias, entry in DEFAULT_TOKENS.items()}

    if not path.exists():
        raise FileNotFoundError(f"Token configuration not found: {path}")

    with path.open("r", encoding="utf-8") as handle:
        data = json.load(handle)

    table: Dict[str, Dict[str, object]] = {}
    for alias, entry in data.items():
        table[alias.upper()] = {
            "processId": entry["processId"],
            "decimals": int(entry.get("decimals", 0)),
        }
    return table


def build_registry(settings: Settings) -> TokenRegistry:
    """Build the registry from the token table plus AO/ARIO settings overrides."""
    table = load_token_table(settings.tokens_json)
    table["AO"] = {
        "processId": settings.ao_native_token_process_id,
        "decimals": settings.ao_native_token_decimals,
    }
    table["ARIO"] = {
        "processId": settings.ao_ario_token_process_id,
        "decimals": settings.ao_ario_token_decimals,
    }
    tokens = [
        TokenDescriptor(
            alias=alias,
            process_id=str(entry["processId"]),
            decimals=int(entry["decimals"]),
        )
        for alias, entry in table.items()
    ]
    return TokenRegistry(tokens, native_alias="AO")


__all__ = [
    "DEFAULT_TOKENS",
    "TokenDescriptor",
    "TokenRegistry",
    "build_registry",
    "load_token_table",
    "looks_like_process_id",
    "shorten_id",
]
