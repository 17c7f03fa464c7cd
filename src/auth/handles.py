from __future__ import annotations

import secrets

from src.auth.store import IdentityStore

ADJECTIVES = ("Cool", "Smart", "Funny", "Creative", "Brave", "Quick", "Silent", "Bold")
NOUNS = ("Tiger", "Eagle", "Wolf", "Fox", "Lion", "Bear", "Hawk", "Shark")
MAX_SUGGESTION_ATTEMPTS = 10


def random_handle() -> str:
    return f"{secrets.choice(ADJECTIVES)}{secrets.choice(NOUNS)}{secrets.randbelow(1000)}"


async def suggest_handle(store: IdentityStore) -> str | None:
    """Return an unused adjective+noun+number handle, or None if every attempt collided."""
    for _ in range(MAX_SUGGESTION_ATTEMPTS):
        candidate = random_handle()
        if await store.unique_handle_check(candidate, None):
            return candidate
    return None
