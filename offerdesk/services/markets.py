"""Market resolution: shop host -> presentment currency and country.

Resolution order:
1. Exact host match (case-insensitive) in the configured market table
2. Top-level-domain heuristic (.jp -> JPY/JP; .co.uk/.uk/.com -> GBP/GB)
3. Base market from settings
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass


@dataclass(frozen=True)
class Market:
    currency: str
    country: str


# Suffix -> (currency, country). Checked in order.
_TLD_MARKETS: tuple[tuple[str, Market], ...] = (
    (".jp", Market(currency="JPY", country="JP")),
    (".co.uk", Market(currency="GBP", country="GB")),
    (".uk", Market(currency="GBP", country="GB")),
    (".com", Market(currency="GBP", country="GB")),
)


def _normalize_host(host: str) -> str:
    h = (host or "").strip().lower()
    if "://" in h:
        h = h.split("://", 1)[1]
    return h.split("/", 1)[0].split(":", 1)[0]


def resolve_market(
    host: str,
    table: Iterable[Mapping[str, str]] = (),
    *,
    base: Market = Market(currency="GBP", country="GB"),
) -> Market:
    """Resolve the presentment market for a shop host.

    Args:
        host: Shop domain, e.g. "shop.example.jp".
        table: Entries of {"host", "currency", "country"}.
        base: Market used when nothing else matches.

    Returns:
        The resolved Market.
    """
    h = _normalize_host(host)
    for entry in table:
        if _normalize_host(entry.get("host", "")) == h and h:
            return Market(
                currency=str(entry["currency"]).upper(),
                country=str(entry["country"]).upper(),
            )
    for suffix, market in _TLD_MARKETS:
        if h.endswith(suffix):
            return market
    return base
