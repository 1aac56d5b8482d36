"""Trusted source registry seed data and rule tables for claim triage.

Sources are grouped by category (most to least authoritative on ties):
1. Official government portals and ministries
2. International organizations (IMF, World Bank)
3. Regulators (central bank, free zones, virtual-asset regulator)
4. Reputable media

Rule tables drive the rules checker: each domain lists the keywords that
trigger it and the source categories that should verify it.
"""

from typing import Any, Dict, List

# Seed registry used when no persisted registry exists
DEFAULT_SOURCES: List[Dict[str, Any]] = [
    # Official
    {"name": "UAE Government Portal", "category": "official",
     "base_url": "https://u.ae", "trust_level": 5},
    {"name": "Ministry of Economy", "category": "official",
     "base_url": "https://www.moec.gov.ae", "trust_level": 5},
    {"name": "Federal Competitiveness and Statistics Centre", "category": "official",
     "base_url": "https://fcsc.gov.ae", "trust_level": 5},
    {"name": "Federal Authority for Identity and Citizenship", "category": "official",
     "base_url": "https://icp.gov.ae", "trust_level": 5},

    # International organizations
    {"name": "International Monetary Fund", "category": "international-org",
     "base_url": "https://www.imf.org", "trust_level": 5},
    {"name": "World Bank", "category": "international-org",
     "base_url": "https://data.worldbank.org", "trust_level": 4},

    # Regulators
    {"name": "Federal Tax Authority", "category": "regulator",
     "base_url": "https://tax.gov.ae", "trust_level": 5},
    {"name": "Central Bank of the UAE", "category": "regulator",
     "base_url": "https://www.centralbank.ae", "trust_level": 5},
    {"name": "Abu Dhabi Global Market", "category": "regulator",
     "base_url": "https://www.adgm.com", "trust_level": 4},
    {"name": "Dubai International Financial Centre", "category": "regulator",
     "base_url": "https://www.difc.ae", "trust_level": 4},
    {"name": "Virtual Assets Regulatory Authority", "category": "regulator",
     "base_url": "https://www.vara.ae", "trust_level": 4},

    # Reputable media
    {"name": "Reuters", "category": "reputable-media",
     "base_url": "https://www.reuters.com", "trust_level": 3},
    {"name": "WAM Emirates News Agency", "category": "reputable-media",
     "base_url": "https://www.wam.ae", "trust_level": 3},
]

# Regulatory domain: tax / legal / visa claims go to regulators and officials
REGULATORY_KEYWORDS: List[str] = [
    "tax", "vat", "excise", "zakat",
    "legal", "law", "decree", "regulation", "regulatory", "licence", "license",
    "visa", "residency", "golden visa", "work permit", "emirates id",
]
REGULATORY_CATEGORIES: List[str] = ["regulator", "official"]

# Economic statistics go to official statistics and international orgs
ECONOMIC_KEYWORDS: List[str] = [
    "gdp", "inflation", "population", "unemployment", "trade", "fdi",
    "export", "import", "growth", "per capita", "debt", "reserves",
]
ECONOMIC_CATEGORIES: List[str] = ["official", "international-org"]

# Locator segments that mark a claim as high priority for the judge
PRIORITY_LOCATOR_KEYWORDS: List[str] = ["tax", "legal", "visa"]

# Pages audited by the weekly fact-check, in order
PRIORITY_PAGES: List[str] = ["economy", "legal", "politics"]
