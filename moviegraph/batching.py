# /moviegraph/batching.py

from typing import Callable, Hashable, List, Mapping, Sequence, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


def resolve_batch(
    keys: Sequence[K],
    fetch: Callable[[List[K]], Mapping[K, V]],
    default: Callable[[], V],
) -> List[V]:
    """
    Resolves one value per parent key with a single call to `fetch`.

    `fetch` receives the distinct keys (first-seen order) and returns a mapping
    from key to value; keys it leaves out get `default()`. The result is aligned
    with `keys`, duplicates included. An empty `keys` never calls `fetch`.
    """
    if not keys:
        return []
    found = fetch(list(dict.fromkeys(keys)))
    return [found[key] if key in found else default() for key in keys]


def resolve_related(
    keys: Sequence[K],
    fetch: Callable[[List[K]], Mapping[K, List[V]]],
) -> List[List[V]]:
    """One-to-many variant: parents with nothing related resolve to []."""
    return resolve_batch(keys, fetch, list)
