"""
UK household budget benchmarks (monthly averages, GBP).

Derived from the ONS Family Spending 2023 tables and MoneyHelper household cost
guidance, rounded to the nearest 5 pounds and uplifted for 2025 prices. The table
is static so comparisons run without network access.
"""
import re
from decimal import ROUND_HALF_UP, Decimal

from rapidfuzz import fuzz, process

HOUSING = "Housing"
GROCERIES = "Groceries"
TRANSPORTATION = "Transportation"
UTILITIES = "Utilities"
INSURANCE = "Insurance"
HEALTH_FITNESS = "Health & Fitness"
EDUCATION_CHILDCARE = "Education & Childcare"
ENTERTAINMENT_LEISURE = "Entertainment & Leisure"
DINING_OUT = "Dining Out & Takeaways"
SAVINGS_INVESTMENTS = "Savings & Investments"

CANONICAL_CATEGORIES = (
    HOUSING,
    GROCERIES,
    TRANSPORTATION,
    UTILITIES,
    INSURANCE,
    HEALTH_FITNESS,
    EDUCATION_CHILDCARE,
    ENTERTAINMENT_LEISURE,
    DINING_OUT,
    SAVINGS_INVESTMENTS,
)

# category -> household size -> average monthly spend
UK_BENCHMARKS: dict[str, dict[int, Decimal]] = {
    HOUSING: {2: Decimal(1050), 3: Decimal(1225), 4: Decimal(1380), 5: Decimal(1510)},
    GROCERIES: {2: Decimal(420), 3: Decimal(535), 4: Decimal(640), 5: Decimal(720)},
    TRANSPORTATION: {2: Decimal(320), 3: Decimal(395), 4: Decimal(460), 5: Decimal(505)},
    UTILITIES: {2: Decimal(220), 3: Decimal(255), 4: Decimal(290), 5: Decimal(320)},
    INSURANCE: {2: Decimal(135), 3: Decimal(155), 4: Decimal(175), 5: Decimal(190)},
    HEALTH_FITNESS: {2: Decimal(110), 3: Decimal(135), 4: Decimal(160), 5: Decimal(185)},
    EDUCATION_CHILDCARE: {2: Decimal(90), 3: Decimal(220), 4: Decimal(360), 5: Decimal(415)},
    ENTERTAINMENT_LEISURE: {2: Decimal(190), 3: Decimal(230), 4: Decimal(270), 5: Decimal(310)},
    DINING_OUT: {2: Decimal(165), 3: Decimal(205), 4: Decimal(245), 5: Decimal(280)},
    SAVINGS_INVESTMENTS: {2: Decimal(300), 3: Decimal(360), 4: Decimal(420), 5: Decimal(470)},
}

CATEGORY_ALIASES: dict[str, str] = {
    "housing": HOUSING,
    "rent": HOUSING,
    "mortgage": HOUSING,
    "groceries": GROCERIES,
    "food": GROCERIES,
    "supermarket": GROCERIES,
    "transportation": TRANSPORTATION,
    "transport": TRANSPORTATION,
    "travel": TRANSPORTATION,
    "fuel": TRANSPORTATION,
    "utilities": UTILITIES,
    "energy": UTILITIES,
    "gas": UTILITIES,
    "electricity": UTILITIES,
    "water": UTILITIES,
    "insurance": INSURANCE,
    "car insurance": INSURANCE,
    "home insurance": INSURANCE,
    "health": HEALTH_FITNESS,
    "healthcare": HEALTH_FITNESS,
    "fitness": HEALTH_FITNESS,
    "medical": HEALTH_FITNESS,
    "childcare": EDUCATION_CHILDCARE,
    "education": EDUCATION_CHILDCARE,
    "school": EDUCATION_CHILDCARE,
    "entertainment": ENTERTAINMENT_LEISURE,
    "leisure": ENTERTAINMENT_LEISURE,
    "recreation": ENTERTAINMENT_LEISURE,
    "dining": DINING_OUT,
    "restaurants": DINING_OUT,
    "takeaway": DINING_OUT,
    "eating": DINING_OUT,
    "savings": SAVINGS_INVESTMENTS,
    "investments": SAVINGS_INVESTMENTS,
    "retirement": SAVINGS_INVESTMENTS,
}

FUZZY_THRESHOLD = 80.0

# Longest aliases first so "car insurance" is tried before "insurance".
_ALIAS_PATTERNS = [
    (re.compile(rf"\b{re.escape(alias)}\b"), canonical)
    for alias, canonical in sorted(CATEGORY_ALIASES.items(), key=lambda item: -len(item[0]))
]


def normalize_category(label: str | None) -> str | None:
    """Map a free-text category onto the benchmark taxonomy, or ``None``."""
    if not label:
        return None
    key = " ".join(label.strip().lower().split())
    if not key:
        return None

    if key in CATEGORY_ALIASES:
        return CATEGORY_ALIASES[key]
    for canonical in CANONICAL_CATEGORIES:
        if key == canonical.lower():
            return canonical

    for pattern, canonical in _ALIAS_PATTERNS:
        if pattern.search(key):
            return canonical

    match = process.extractOne(
        key,
        list(CATEGORY_ALIASES),
        scorer=fuzz.token_sort_ratio,
        score_cutoff=FUZZY_THRESHOLD,
    )
    if match:
        return CATEGORY_ALIASES[match[0]]
    return None


def benchmark_for(category: str | None, household_size: int) -> Decimal | None:
    """
    Monthly benchmark for ``category`` at ``household_size``.

    Sizes outside the table borrow the closest size, scaled proportionally and
    rounded to a whole pound.
    """
    if household_size <= 0:
        return None
    canonical = normalize_category(category)
    if canonical is None:
        return None

    by_size = UK_BENCHMARKS[canonical]
    if household_size in by_size:
        return by_size[household_size]

    closest = min(by_size, key=lambda size: (abs(size - household_size), size))
    scaled = by_size[closest] * household_size / closest
    return scaled.quantize(Decimal(1), rounding=ROUND_HALF_UP)
