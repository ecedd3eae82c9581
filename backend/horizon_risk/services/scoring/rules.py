"""
Moderation rule tables.

Vocabularies are plain data grouped into named families. Changing what the
moderation engine looks for means editing this module and bumping
``RULES_VERSION``; the scoring code does not change.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

RULES_VERSION = "2025.06.1"


@dataclass(frozen=True)
class RuleFamily:
    """A named pattern. Matching is case-insensitive."""

    name: str
    pattern: re.Pattern[str]

    def find_all(self, text: str) -> list[str]:
        return [match.group(0).strip() for match in self.pattern.finditer(text)]

    def count(self, text: str) -> int:
        return sum(1 for _ in self.pattern.finditer(text))

    def matches(self, text: str) -> bool:
        return self.pattern.search(text) is not None


@dataclass(frozen=True)
class RuleSet:
    """Families screened together by one sub-check."""

    name: str
    families: tuple[RuleFamily, ...]

    def count(self, text: str) -> int:
        """Total number of matches across all families."""
        return sum(family.count(text) for family in self.families)

    def matched_phrases(self, text: str) -> tuple[str, ...]:
        """Distinct matched phrases, in first-seen order."""
        seen: dict[str, None] = {}
        for family in self.families:
            for phrase in family.find_all(text):
                seen.setdefault(phrase, None)
        return tuple(seen)

    def matched_families(self, text: str) -> tuple[str, ...]:
        return tuple(family.name for family in self.families if family.matches(text))

    def any_match(self, text: str) -> bool:
        return any(family.matches(text) for family in self.families)


def _terms(name: str, *terms: str) -> RuleFamily:
    alternation = "|".join(re.escape(term) for term in terms)
    return RuleFamily(name, re.compile(rf"\b(?:{alternation})\b", re.IGNORECASE))


def _regex(name: str, pattern: str) -> RuleFamily:
    return RuleFamily(name, re.compile(pattern, re.IGNORECASE))


LUXURY = RuleSet(
    "luxury",
    (
        _terms(
            "luxury_vocabulary",
            "luxury", "luxurious", "deluxe", "premium", "high-end", "designer", "brand new",
        ),
        _terms(
            "premium_brands",
            "mercedes", "bmw", "ferrari", "lamborghini", "rolex", "gucci", "prada",
            "louis vuitton",
        ),
        _terms(
            "high_value_assets",
            "mansion", "villa", "penthouse", "yacht", "private jet", "first class",
        ),
        _terms("jewellery", "diamond", "gold", "platinum", "jewelry", "jewellery"),
        _terms("leisure_travel", "vacation", "holiday", "resort", "cruise", "spa"),
        _terms("latest_model", "latest", "newest", "top of the line", "state of the art"),
        # Stated prices of 1,000 or more, e.g. "costs $45,000"
        _regex(
            "price_mentions",
            r"\b(?:worth|costs?|costing|priced at|price of)\s+"
            r"(?:over\s+|about\s+|around\s+)?\$\s?\d{1,3}(?:,\d{3})+",
        ),
    ),
)

INAPPROPRIATE = RuleSet(
    "inappropriate",
    (
        _terms("scam_vocabulary", "scam", "fraud", "fake", "hoax", "pyramid", "ponzi"),
        _terms(
            "controlled_substances",
            "drugs", "alcohol", "cigarettes", "tobacco", "gambling",
        ),
        _terms("weapons", "weapons", "guns", "ammunition", "explosives"),
        _terms("hate_speech", "hate", "racist", "sexist", "discriminate"),
        _terms("adult_content", "xxx", "porn", "adult", "escort"),
    ),
)

SUSPICIOUS_FINANCIAL = RuleSet(
    "fraud",
    (
        _terms(
            "quick_money",
            "quick money", "fast cash", "guaranteed returns", "double your money",
        ),
        _terms(
            "investment_pitch",
            "investment opportunity", "forex", "crypto", "bitcoin",
        ),
        _terms("wire_transfer", "wire transfer", "western union", "moneygram"),
        _regex(
            "urgent_money",
            r"\b(?:urgent|emergency|immediately|asap)\s+.{0,20}?(?:money|funds|cash)",
        ),
        _regex("large_dollar_amount", r"\$\s*\d{5,}"),
        _regex("large_currency_amount", r"\b\d{6,}\s*(?:dollars|usd|euros|pounds)\b"),
    ),
)

URGENCY = _terms(
    "urgency", "urgent", "emergency", "immediately", "asap", "deadline", "critical"
)


@dataclass(frozen=True)
class NeedTypeRules:
    """Vocabulary expected (and distrusted) for a declared need."""

    legitimate: RuleSet
    suspicious: RuleSet


NEED_TYPE_RULES: dict[str, NeedTypeRules] = {
    "medical": NeedTypeRules(
        legitimate=RuleSet(
            "medical_legitimate",
            (
                _terms(
                    "care_facilities",
                    "hospital", "clinic", "medical center", "healthcare",
                ),
                _terms(
                    "procedures",
                    "surgery", "operation", "treatment", "therapy", "medication",
                ),
                _terms("conditions", "cancer", "diabetes", "heart", "kidney", "liver"),
                _terms("clinicians", "doctor", "physician", "surgeon", "specialist"),
                _terms("clinical_terms", "diagnosis", "prognosis", "condition", "disease"),
            ),
        ),
        suspicious=RuleSet(
            "medical_suspicious",
            (
                _terms(
                    "miracle_claims",
                    "miracle cure", "guaranteed healing", "100% success",
                ),
                _terms(
                    "unproven_treatment",
                    "alternative medicine", "experimental", "untested",
                ),
                _terms("offshore_treatment", "overseas treatment", "foreign doctor"),
            ),
        ),
    ),
    "education": NeedTypeRules(
        legitimate=RuleSet(
            "education_legitimate",
            (
                _terms(
                    "institutions",
                    "university", "college", "school", "institute", "academy",
                ),
                _terms("costs", "tuition", "fees", "books", "supplies", "dormitory"),
                _terms(
                    "credentials",
                    "scholarship", "student", "degree", "diploma", "certificate",
                ),
                _terms("calendar", "semester", "term", "academic year", "course"),
            ),
        ),
        suspicious=RuleSet(
            "education_suspicious",
            (
                _terms(
                    "shortcut_admission",
                    "online degree", "fast track", "guaranteed admission",
                ),
                _terms("bought_credentials", "pay for grades", "buy diploma"),
            ),
        ),
    ),
}

TRANSPARENCY = RuleSet(
    "transparency",
    (
        _terms("proof", "receipt", "invoice", "documentation", "proof", "evidence"),
        _terms("itemization", "breakdown", "itemized", "detailed", "specific"),
        _terms("accountability", "accountability", "transparent", "track", "monitor"),
    ),
)

FAITH = RuleSet(
    "faith",
    (
        _terms(
            "devotion",
            "god", "lord", "jesus", "christ", "faith", "prayer", "blessing",
        ),
        _terms("scripture", "bible", "scripture", "verse", "psalm", "proverbs"),
        _terms("congregation", "church", "ministry", "congregation", "fellowship"),
    ),
)

COMMUNITY = RuleSet(
    "community",
    (
        _terms("kinship", "community", "family", "neighbor", "support", "help"),
        _terms("locality", "local", "hometown", "village", "region"),
        _terms("solidarity", "together", "unity", "collective", "shared"),
    ),
)

# Trust indicator categories and the points each matched family earns
TRUST_INDICATORS: tuple[tuple[RuleSet, float], ...] = (
    (TRANSPARENCY, 5.0),
    (FAITH, 3.0),
    (COMMUNITY, 4.0),
)
