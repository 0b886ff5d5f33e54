import hashlib

ADJECTIVES = (
    "Secret",
    "Mysterious",
    "Starry",
    "Velvet",
    "Midnight",
    "Golden",
    "Wandering",
    "Quiet",
    "Blushing",
    "Electric",
    "Dreamy",
    "Curious",
)

NOUNS = (
    "Cupid",
    "Comet",
    "Rose",
    "Fox",
    "Owl",
    "Poet",
    "Lantern",
    "Sparrow",
    "Tulip",
    "Nebula",
    "Otter",
    "Muse",
)


def make_alias(scope_id: str, identity: str) -> str:
    """Deterministic pseudonym for one participant inside one thread."""
    digest = hashlib.sha256(f"{scope_id}|{identity}".encode("utf-8")).hexdigest()
    adjective = ADJECTIVES[int(digest[0:8], 16) % len(ADJECTIVES)]
    noun = NOUNS[int(digest[8:16], 16) % len(NOUNS)]
    tag = int(digest[16:20], 16) % 100
    return f"{adjective} {noun} {tag:02d}"


def make_unique_alias(scope_id: str, identity: str, taken) -> str:
    """Alias for `identity` in `scope_id` that is not already in `taken`, re-salting on collision."""
    alias = make_alias(scope_id, identity)
    salt = 1
    while alias in taken:
        alias = make_alias(f"{scope_id}#{salt}", identity)
        salt += 1
    return alias


def make_pair_aliases(scope_id: str, user_a: str, user_b: str) -> tuple[str, str]:
    alias_a = make_alias(scope_id, user_a)
    return alias_a, make_unique_alias(scope_id, user_b, {alias_a})
