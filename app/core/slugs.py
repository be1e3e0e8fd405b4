"""CoinGecko collection ID -> OpenSea slug resolution.

The two providers name collections differently and OpenSea has no lookup
by CoinGecko ID. Resolution uses a curated table of verified pairs first,
then a fixed chain of naming heuristics. Resolution never fails: an unknown
ID always yields some slug, which may simply not exist on OpenSea.
"""

from __future__ import annotations

import re
from typing import Dict, Iterable, Mapping, Optional, Tuple

# Verified CoinGecko ID -> OpenSea slug pairs
CURATED_SLUGS: Dict[str, str] = {
    "cryptopunks": "cryptopunks",
    "infinex-patrons": "infinex-patrons",
    "boredapeyachtclub": "boredapeyachtclub",
    "pudgy-penguins": "pudgypenguins",
    "autoglyphs": "autoglyphs",
    "mutant-ape-yacht-club": "mutant-ape-yacht-club",
    "chromie-squiggle-by-snowfro": "chromie-squiggle-by-snowfro",
    "milady-maker": "milady",
    "mad-lads": "mad-lads-on-polygon",
    "doodles-official": "doodles-official",
    "fidenza-by-tyler-hobbs": "fidenza-by-tyler-hobbs",
    "creepz-genesis": "genesis-creepz",
    "azuki": "azuki",
    "lilpudgys": "lilpudgys",
    "mocaverse": "mocaverse",
    "bitcoin-puppets": "bitcoin-puppet",
    "nodemonkes": "nodemonkes",
    "quantum-cats": "quantum-cats-nfts",
    "veefriends": "veefriends",
    "meebits": "meebits",
    "runestone": "runestone-37",
    "the-band-bears": "the-band-bears",
    "onchainmonkey-ocm-genesis": "onchainmonkey",
    "ringers-by-dmitri-cherniak": "ringers-by-dmitri-cherniak",
    "claynosaurz": "claynosaurz-sol",
    "the-captainz": "memelandcaptainz",
    "otherdeed-expanded": "otherdeed-expanded",
    "synclub-s-snbnb-early-adopters": "synclub-s-snbnb-early-adopters-1",
    "otherdeed-for-otherside": "otherdeed",
    "ordinal-maxi-biz-omb": "ordinal-maxi-biz-7",
    "bitmap": "bitmap",
    "lifinity-flares": "lifinity-flares",
    "solana-monkey-business": "solana-monkey-business",
    "kanpai-pandas": "kanpai-pandas",
    "onchainmonkey": "onchainmonkey",
    "degen-fat-cats": "degenfatcats",
    "mfers": "mfers",
    "parallel-avatars": "parallel-avatars",
    "redacted-remilio-babies": "remilio-babies",
    "sappy-seals": "sappy-seals",
    "ggsg-galactic-geckos": "galactic-gecko-space-garage",
    "degods": "degods-solana",
    "wealthy-hypio-babies": "hypio",
    "terraforms-by-mathcastles": "terraforms",
    "tomorrowland-a-letter-from-the-universe": "the-symbol-sol",
    "bitcoin-frogs": "bitcoin-frogs-nft",
    "bad-kids": "bad-kids-alley-official",
    "cyberkongz": "cyberkongz-vx",
}

# OpenSea slug -> CoinGecko ID, only for pairs that have been checked by hand
CURATED_REVERSE: Dict[str, str] = {
    "boredapeyachtclub": "bored-ape-yacht-club",
    "pudgypenguins": "pudgy-penguins",
    "milady": "milady-maker",
    "genesis-creepz": "creepz-genesis",
    "memelandcaptainz": "the-captainz",
    "otherdeed": "otherdeed-for-otherside",
}

CREATOR_SUFFIX = re.compile(r"-by-[a-zA-Z0-9-]+")
HYPHENLESS_TOKENS: Tuple[str, ...] = ("lil", "ape", "punk")
HYPHENLESS_BRANDS: Tuple[str, ...] = ("azuki", "doodles", "meebits", "moonbirds", "pudgy", "nounsdao")
MAX_HYPHENLESS_SEGMENTS = 3
UNKNOWN_SLUG = "unknown"


def _dehyphenate(value: str) -> str:
    return value.replace("-", "")


class SlugResolver:
    """Maps CoinGecko collection IDs to OpenSea slugs.

    Precedence, first match wins:
        1. curated table
        2. drop any ``-by-<creator>`` suffix, then on the remainder:
        3. contains "lil", "ape" or "punk" -> hyphens removed
        4. contains a known brand -> hyphens removed
        5. starts with "the-" or contains "-the-" -> kept as is
        6. three or fewer hyphen-separated words -> hyphens removed
        7. anything longer -> kept as is

    An ID matching several rules takes the first one, even when a later rule
    would give the real slug (e.g. both "ape" and "the-").
    """

    def __init__(
        self,
        overrides: Optional[Mapping[str, str]] = None,
        reverse: Optional[Mapping[str, str]] = None,
        brands: Iterable[str] = HYPHENLESS_BRANDS,
    ) -> None:
        self._overrides: Dict[str, str] = dict(CURATED_SLUGS if overrides is None else overrides)
        self._reverse: Dict[str, str] = dict(CURATED_REVERSE if reverse is None else reverse)
        self._brands: Tuple[str, ...] = tuple(brands)

    def resolve(self, collection_id: str) -> str:
        mapped = self._overrides.get(collection_id)
        if mapped:
            return mapped

        slug = self._apply_rules(collection_id)
        if slug:
            return slug
        # Rules can erase everything (e.g. "-" or "-by-x"); fall back to the raw ID
        return collection_id or UNKNOWN_SLUG

    def _apply_rules(self, collection_id: str) -> str:
        stripped = CREATOR_SUFFIX.sub("", collection_id)

        if any(token in stripped for token in HYPHENLESS_TOKENS):
            return _dehyphenate(stripped)

        if any(brand in stripped for brand in self._brands):
            return _dehyphenate(stripped)

        if stripped.startswith("the-") or "-the-" in stripped:
            return stripped

        if len(stripped.split("-")) <= MAX_HYPHENLESS_SEGMENTS:
            return _dehyphenate(stripped)

        return stripped

    def reverse(self, slug: str) -> Optional[str]:
        """Return the CoinGecko ID for a curated slug, ``None`` when unknown."""
        return self._reverse.get(slug)

    @property
    def known_mappings(self) -> Dict[str, str]:
        return dict(self._overrides)


default_resolver = SlugResolver()


def to_slug(collection_id: str) -> str:
    """Resolve a CoinGecko collection ID with the default resolver."""
    return default_resolver.resolve(collection_id)


def from_slug(slug: str) -> Optional[str]:
    """Reverse-resolve an OpenSea slug with the default resolver."""
    return default_resolver.reverse(slug)
