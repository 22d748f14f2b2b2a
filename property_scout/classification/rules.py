"""
Declarative keyword rules for property classification.

Each rule table is an ordered list of ``KeywordRule`` entries. A rule matches
when any of its patterns is found in the text, none of its anti-patterns is,
none of its title anti-patterns is found in the title, and no label listed in
``unless`` has already matched earlier in the same table. Tables are
evaluated by ``match_labels`` and ``first_label``; nothing else in the
package inspects keywords directly.
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from property_scout.models import Listing, ListingType


@dataclass(frozen=True)
class KeywordRule:
    """One labelled keyword rule.

    Attributes:
        label: Label produced when the rule matches
        patterns: Regexes, any of which must match the text
        anti_patterns: Regexes that veto the rule when found in the text
        title_anti_patterns: Regexes that veto the rule when found in the title
        unless: Labels that veto the rule when matched earlier in the table
    """
    label: str
    patterns: Tuple[str, ...]
    anti_patterns: Tuple[str, ...] = ()
    title_anti_patterns: Tuple[str, ...] = ()
    unless: Tuple[str, ...] = ()

    def matches(self, text: str, title: str = "", matched: Sequence[str] = ()) -> bool:
        if any(label in matched for label in self.unless):
            return False
        if not any(re.search(p, text, re.IGNORECASE) for p in self.patterns):
            return False
        if any(re.search(p, text, re.IGNORECASE) for p in self.anti_patterns):
            return False
        if title and any(re.search(p, title, re.IGNORECASE) for p in self.title_anti_patterns):
            return False
        return True


def match_labels(rules: Sequence[KeywordRule], text: str, title: str = "") -> List[str]:
    """Return the labels of every matching rule, in table order."""
    matched: List[str] = []
    for rule in rules:
        if rule.matches(text or "", title or "", matched):
            matched.append(rule.label)
    return matched


def first_label(rules: Sequence[KeywordRule], text: str, title: str = "") -> Optional[str]:
    """Return the label of the first matching rule, or None."""
    labels = match_labels(rules, text, title)
    return labels[0] if labels else None


# Property type wanted by a query, highest priority first.
QUERY_PROPERTY_TYPE_RULES = [
    KeywordRule(
        "room",
        (r"\brooms?\b", r"\bquartos?\b"),
        anti_patterns=(r"\bapartments?\b", r"\bapartamentos?\b", r"\bflats?\b", r"\bhouses?\b",
                       r"\bmoradias?\b", r"\bvillas?\b", r"\bt[0-5]\b", r"\bquarto de banho\b"),
    ),
    KeywordRule(
        "apartment",
        (r"\bapartments?\b", r"\bapartamentos?\b", r"\bapt\b", r"\bflats?\b", r"\bt[0-5]\b"),
        anti_patterns=(r"\bhouses?\b", r"\bmoradias?\b", r"\bvillas?\b"),
    ),
    KeywordRule("house", (r"\bhouses?\b", r"\bvillas?\b", r"\bcasas?\b", r"\bmoradias?\b", r"\bvivendas?\b")),
    KeywordRule("land", (r"\bland\b", r"\bplots?\b", r"\bterrain\b", r"\bterrenos?\b", r"\blotes?\b")),
    KeywordRule("commercial", (r"\bcommercial\b", r"\bshop\b", r"\boffice\b", r"\bwarehouse\b", r"\bloja\b")),
    KeywordRule("mobile-home", (r"\bmobile ?home\b", r"\bcaravan\b", r"\bcaravana\b")),
]

RENT_KEYWORDS = (
    r"\bfor rent\b", r"\bto rent\b", r"\brent(al|als|ing)?\b", r"\barrendar\b", r"\balugar\b",
    r"\baluguer\b", r"\barrendamento\b", r"por m[êe]s", r"per month", r"/m[êe]s", r"/month",
    r"/mo\b", r"\bmensal\b", r"\bmonthly\b",
)

SALE_KEYWORDS = (
    r"\bfor sale\b", r"\bsale\b", r"\bto buy\b", r"\bbuy(ing)?\b", r"\bpurchase\b", r"\bcomprar?\b",
    r"\bvenda\b", r"\bvender\b",
)

# Sale/rent intent, rent first: "buy-to-rent" style mixes lean to rent.
LISTING_INTENT_RULES = [
    KeywordRule(ListingType.RENT.value, RENT_KEYWORDS),
    KeywordRule(ListingType.SALE.value, SALE_KEYWORDS),
]

# Property type of a listing, judged from title plus description.
LISTING_PROPERTY_TYPE_RULES = [
    KeywordRule(
        "room",
        (r"\bquartos?\b", r"\broom\b", r"single room"),
        anti_patterns=(r"\bquarto de banho\b",),
        title_anti_patterns=(r"apartamento", r"moradia", r"\bt[1-4]\b"),
    ),
    KeywordRule(
        "apartment",
        (r"apartamento", r"apartment", r"\bflat\b", r"\bt[0-4]\b"),
        title_anti_patterns=(r"moradia", r"\bhouse\b", r"\bvilla\b"),
        unless=("room",),
    ),
    KeywordRule(
        "house",
        (r"moradia", r"\bhouse\b", r"\bvilla\b", r"vivenda", r"\bquinta\b"),
        unless=("apartment",),
    ),
    KeywordRule("land", (r"terreno", r"\bland\b", r"\blote\b", r"\bplot\b", r"r[úu]stic")),
    KeywordRule("commercial", (r"comercial", r"\bloja\b", r"armaz[ée]m", r"pavilh", r"escrit[óo]rio", r"\boffice\b")),
    KeywordRule("mobile-home", (r"mobil ?home", r"caravana", r"rulote")),
]

# Land sub-intent of a query.
LAND_INTENT_RULES = [
    KeywordRule(
        "construction",
        (r"\bconstruction\b", r"\bbuild(ing)?\b", r"\burban\b", r"\bconstruir\b", r"constru[çc][ãa]o", r"\burbano\b"),
    ),
    KeywordRule(
        "farming",
        (r"\bfarm(ing|land)?\b", r"agricultur", r"agr[íi]cola", r"\brustic\b", r"r[úu]stico", r"\bcultivat"),
    ),
]

# Legal class of a land listing.
LAND_CLASS_RULES = [
    KeywordRule(
        "urban",
        (r"\burbano\b", r"urbaniz[áa]vel", r"constru[çc][ãa]o", r"lote de", r"para construir",
         r"viabilidade", r"projeto aprovado", r"alvar[áa]"),
    ),
    KeywordRule("rural", (r"r[úu]stic[oa]", r"agr[íi]cola", r"agricultural", r"\brural\b")),
]

VISUAL_FEATURE_RULES = [
    KeywordRule("sea/ocean view", (r"sea\s*view", r"vista\s*(?:para o\s*)?mar", r"\bocean", r"oceano", r"frente\s*mar", r"\bbeach", r"\bpraia")),
    KeywordRule("swimming pool", (r"\bpool", r"piscina", r"swimming")),
    KeywordRule("garden", (r"garden", r"jardim", r"quintal")),
    KeywordRule("forest/trees", (r"forest", r"floresta", r"\btrees", r"[áa]rvores", r"bosque", r"arborizad")),
    KeywordRule("mountain view", (r"mountain", r"montanha", r"\bserra\b", r"\bmonte\b")),
    KeywordRule("river/riverside", (r"\briver", r"\brio\b", r"ribeira")),
    KeywordRule("terrace/balcony", (r"terrace", r"terra[çc]o", r"varanda", r"balcony")),
    KeywordRule("rural setting", (r"\brural\b", r"countryside", r"\bcampo\b", r"isolated", r"isolado")),
    KeywordRule("modern style", (r"\bmodern", r"moderno", r"contemporary", r"contempor[âa]neo")),
]


def listing_text(listing: Listing) -> str:
    """Title and description of a listing, lower-cased."""
    return f"{listing.title} {listing.description or ''}".lower()


def detect_listing_type(listing: Listing) -> Optional[ListingType]:
    """
    Decide whether a listing is for sale or for rent.

    A source-provided flag always wins. Otherwise rent keywords, or a low
    price without sale wording, mean rent; sale keywords or a high price mean
    sale. Returns None when neither applies.
    """
    if listing.listing_type is not None:
        return listing.listing_type

    labels = match_labels(LISTING_INTENT_RULES, listing_text(listing))
    has_rent = ListingType.RENT.value in labels
    has_sale = ListingType.SALE.value in labels
    low_price = 0 < listing.price_eur < 5000
    high_price = listing.price_eur >= 30000

    if has_rent or (low_price and not has_sale and not high_price):
        return ListingType.RENT
    if has_sale or high_price:
        return ListingType.SALE
    return None


def detect_property_type(listing: Listing) -> Optional[str]:
    """Property type label for a listing, falling back to the source-provided one."""
    label = first_label(LISTING_PROPERTY_TYPE_RULES, listing_text(listing), listing.title.lower())
    return label or listing.property_type
