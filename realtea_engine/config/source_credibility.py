"""Source credibility priors for fact-check weighting.

Priors are the starting weight of a cited domain before the source trust
ledger has any verification history for it. The ledger scales the prior by
the domain's observed reliability.

Source hierarchy (from most to least credible):
1. Wire services (Reuters, AP, AFP): 0.9
2. Official government / intergovernmental (.gov, .int): 0.85
3. Educational/research (.edu, journals): 0.85
4. Major news outlets (BBC, NYT): 0.8-0.85
5. Non-profit organizations (.org): 0.7
6. Unknown domains: 0.7 (moderate)
7. Social media: 0.3
"""

from typing import Dict

SOURCE_BASELINES: Dict[str, float] = {
    # Wire services
    "reuters.com": 0.9,
    "apnews.com": 0.9,
    "afp.com": 0.9,
    "tass.com": 0.75,  # State-affiliated, lower than independent
    "xinhua.net": 0.7,  # State-affiliated

    # Major news outlets
    "bbc.com": 0.85,
    "bbc.co.uk": 0.85,
    "nytimes.com": 0.85,
    "washingtonpost.com": 0.85,
    "theguardian.com": 0.82,
    "economist.com": 0.85,
    "ft.com": 0.85,
    "wsj.com": 0.85,
    "bloomberg.com": 0.85,
    "aljazeera.com": 0.8,
    "cnn.com": 0.75,
    "foxnews.com": 0.7,

    # Science and health
    "nasa.gov": 0.9,
    "who.int": 0.9,
    "nature.com": 0.9,
    "science.org": 0.9,
    "thelancet.com": 0.9,

    # Known lower-credibility sources
    "rt.com": 0.4,
    "sputniknews.com": 0.4,
    "breitbart.com": 0.5,
    "infowars.com": 0.2,

    # Social media platforms (user-generated content)
    "twitter.com": 0.3,
    "x.com": 0.3,
    "reddit.com": 0.3,
    "facebook.com": 0.3,
    "telegram.org": 0.3,
}

# TLD-based priors for domains missing from SOURCE_BASELINES
DOMAIN_PATTERN_DEFAULTS: Dict[str, float] = {
    ".gov": 0.85,
    ".mil": 0.85,
    ".edu": 0.85,
    ".int": 0.85,
    ".org": 0.7,
}

# Prior for a domain with no baseline and no matching pattern
DEFAULT_SOURCE_WEIGHT: float = 0.7

# A domain whose ledger weight reaches this is "high trust"
HIGH_TRUST_THRESHOLD: float = 0.85

# Flat bonus (0-1 scale) when more than HIGH_TRUST_BONUS_MIN_DOMAINS
# distinct high-trust domains are cited
HIGH_TRUST_BONUS: float = 0.05
HIGH_TRUST_BONUS_MIN_DOMAINS: int = 2

# Ledger deltas applied to every cited domain after a fact-check
CORROBORATION_DELTA: float = 1.0
CONTRADICTION_DELTA: float = -2.0
# Credibility (0-100) below which a checked event counts as a contradiction
CONTRADICTION_CREDIBILITY: float = 40.0

# Fact-check scoring
SOURCE_COUNT_SATURATION: int = 5
RECENCY_STALE_DAYS: int = 7
RECENCY_STALE_WEIGHT: float = 0.9
UNDATED_RECENCY_DAYS: int = 999
MAX_CITATIONS_FOR_REASONER: int = 10
