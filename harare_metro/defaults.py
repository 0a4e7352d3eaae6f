"""Built-in catalogue used when the config store has no value for a key."""

from __future__ import annotations

from typing import Any


def _source(id: str, name: str, url: str, category: str, priority: int) -> dict[str, Any]:
    return {"id": id, "name": name, "url": url, "category": category, "enabled": True, "priority": priority}


RSS_SOURCES: list[dict[str, Any]] = [
    _source("herald-zimbabwe", "Herald Zimbabwe", "https://www.herald.co.zw/feed/", "general", 5),
    _source("newsday-zimbabwe", "NewsDay Zimbabwe", "https://www.newsday.co.zw/feed/", "general", 5),
    _source("chronicle-zimbabwe", "Chronicle Zimbabwe", "https://www.chronicle.co.zw/feed/", "general", 5),
    _source("zbc-news", "ZBC News", "https://www.zbc.co.zw/feed/", "news", 4),
    _source("business-weekly", "Business Weekly", "https://businessweekly.co.zw/feed/", "business", 4),
    _source("techzim", "Techzim", "https://www.techzim.co.zw/feed/", "technology", 4),
    _source("the-standard", "The Standard", "https://www.thestandard.co.zw/feed/", "general", 4),
    _source("zimlive", "ZimLive", "https://www.zimlive.com/feed/", "general", 4),
    _source("new-zimbabwe", "New Zimbabwe", "https://www.newzimbabwe.com/feed/", "general", 4),
    _source("the-independent", "The Independent", "https://www.theindependent.co.zw/feed/", "general", 4),
    _source("sunday-mail", "Sunday Mail", "https://www.sundaymail.co.zw/feed/", "general", 3),
    _source("263chat", "263Chat", "https://263chat.com/feed/", "general", 4),
    _source("daily-news", "Daily News", "https://www.dailynews.co.zw/feed/", "general", 4),
    _source("zimeye", "ZimEye", "https://zimeye.net/feed/", "general", 3),
    _source("pindula-news", "Pindula News", "https://news.pindula.co.zw/feed/", "general", 3),
    _source("zimbabwe-situation", "Zimbabwe Situation", "https://zimbabwesituation.com/feed/", "general", 3),
    _source("nehanda-radio", "Nehanda Radio", "https://nehandaradio.com/feed/", "general", 3),
    _source("open-news-zimbabwe", "Open News Zimbabwe", "https://opennews.co.zw/feed/", "general", 3),
    _source("financial-gazette", "Financial Gazette", "https://fingaz.co.zw/feed/", "business", 4),
    _source("manica-post", "Manica Post", "https://manicapost.co.zw/feed/", "general", 3),
    _source("southern-eye", "Southern Eye", "https://southerneye.co.zw/feed/", "general", 3),
]

CATEGORIES: list[dict[str, str]] = [
    {"id": "general", "name": "General", "emoji": "📰"},
    {"id": "politics", "name": "Politics", "emoji": "🏛️"},
    {"id": "economy", "name": "Economy", "emoji": "💰"},
    {"id": "business", "name": "Business", "emoji": "🏢"},
    {"id": "sports", "name": "Sports", "emoji": "⚽"},
    {"id": "harare", "name": "Harare", "emoji": "🏙️"},
    {"id": "agriculture", "name": "Agriculture", "emoji": "🌾"},
    {"id": "technology", "name": "Technology", "emoji": "💻"},
    {"id": "health", "name": "Health", "emoji": "🏥"},
    {"id": "education", "name": "Education", "emoji": "🎓"},
    {"id": "entertainment", "name": "Entertainment", "emoji": "🎭"},
    {"id": "environment", "name": "Environment", "emoji": "🌍"},
    {"id": "crime", "name": "Crime", "emoji": "🚔"},
    {"id": "international", "name": "International", "emoji": "🌐"},
    {"id": "lifestyle", "name": "Lifestyle", "emoji": "💫"},
    {"id": "finance", "name": "Finance", "emoji": "💳"},
]

CATEGORY_KEYWORDS: dict[str, list[str]] = {
    "politics": [
        "parliament", "government", "election", "party", "minister", "president", "policy",
        "zanu", "mdc", "opposition", "mnangagwa", "chamisa", "cabinet", "senate", "mp",
        "constituency", "voter", "ballot", "democracy", "governance", "corruption",
        "sanctions", "diplomatic", "ambassador",
    ],
    "economy": [
        "economy", "economic", "inflation", "currency", "budget", "finance", "bank",
        "investment", "gdp", "trade", "bond", "rtgs", "usd", "forex", "revenue",
        "tax", "fiscal", "monetary", "debt", "loan", "imf", "world bank", "stock exchange",
        "zse", "commodity", "export", "import", "manufacturing",
    ],
    "business": [
        "business", "company", "entrepreneur", "startup", "market", "industry",
        "corporate", "commerce", "mining", "tobacco", "retail", "wholesale",
        "sme", "tender", "procurement", "partnership", "merger", "acquisition",
        "ceo", "director", "shareholder", "profit", "revenue", "growth",
    ],
    "sports": [
        "sport", "football", "soccer", "cricket", "rugby", "warriors", "dynamos",
        "caps united", "highlanders", "afcon", "fifa", "world cup", "olympics",
        "athletics", "boxing", "tennis", "golf", "swimming", "basketball",
        "volleyball", "netball", "hockey", "cycling", "marathon",
    ],
    "harare": [
        "harare", "capital", "city council", "mayor", "cbd", "avondale", "borrowdale",
        "chitungwiza", "municipality", "ward", "councillor", "rates", "water", "sewer",
        "traffic", "kombi", "transport", "housing", "residential", "suburbs",
    ],
    "agriculture": [
        "agriculture", "farming", "tobacco", "maize", "cotton", "wheat", "soya",
        "irrigation", "crop", "harvest", "season", "drought", "rainfall",
        "fertilizer", "seed", "land reform", "farmer", "commercial", "communal",
    ],
    "technology": [
        "technology", "tech", "digital", "internet", "mobile", "app", "software",
        "innovation", "startup", "fintech", "blockchain", "ai", "data",
        "cybersecurity", "telecoms", "econet", "netone", "telecel",
    ],
    "health": [
        "health", "hospital", "medical", "doctor", "patient", "medicine", "treatment",
        "disease", "covid", "vaccination", "clinic", "healthcare", "pharmacy",
        "outbreak", "epidemic", "maternal", "child health", "malaria", "hiv", "aids",
    ],
    "education": [
        "education", "school", "student", "teacher", "university", "college",
        "examination", "zimsec", "results", "fees", "scholarship", "learning",
        "curriculum", "graduation", "degree", "diploma", "research",
    ],
    "entertainment": [
        "entertainment", "music", "artist", "movie", "film", "celebrity", "culture",
        "festival", "concert", "award", "album", "song", "dance", "theatre",
        "comedy", "fashion", "beauty", "lifestyle",
    ],
    "environment": [
        "environment", "climate", "weather", "conservation", "wildlife", "forest",
        "pollution", "green", "renewable", "solar", "clean", "nature",
        "endangered", "national park", "tourism", "safari",
    ],
    "crime": [
        "crime", "police", "arrest", "court", "trial", "judge", "sentence", "prison",
        "theft", "robbery", "murder", "investigation", "security", "violence",
        "corruption", "fraud", "smuggling", "drugs",
    ],
    "international": [
        "international", "world", "global", "foreign", "embassy", "visa", "travel",
        "tourism", "export", "import", "trade", "relations", "diplomatic",
        "african union", "sadc", "united nations", "brexit", "china", "uk", "usa",
    ],
    "lifestyle": [
        "lifestyle", "fashion", "food", "recipe", "home", "family", "relationship",
        "wedding", "travel", "vacation", "hobby", "fitness", "diet", "beauty",
    ],
    "finance": [
        "finance", "financial", "money", "cash", "loan", "credit", "savings",
        "insurance", "pension", "investment", "portfolio", "shares", "dividend",
        "interest", "mortgage", "banking", "microfinance",
    ],
}

PRIORITY_KEYWORDS: list[str] = [
    "harare", "zimbabwe", "zim", "bulawayo", "mutare", "gweru", "kwekwe",
    "parliament", "government", "mnangagwa", "zanu-pf", "mdc", "chamisa",
    "economy", "inflation", "currency", "bond", "rtgs", "usd",
    "mining", "tobacco", "agriculture", "maize", "cotton",
    "warriors", "dynamos", "caps united", "highlanders",
]

# Matched as exact host or parent domain, so "wp.com" also covers "i0.wp.com"
TRUSTED_IMAGE_DOMAINS: list[str] = [
    # Zimbabwe news sites
    "herald.co.zw", "heraldonline.co.zw", "newsday.co.zw", "chronicle.co.zw",
    "techzim.co.zw", "t3n9sm.c2.acecdn.net", "zbc.co.zw", "businessweekly.co.zw",
    "thestandard.co.zw", "zimlive.com", "newzimbabwe.com", "theindependent.co.zw",
    "sundaymail.co.zw", "263chat.com", "dailynews.co.zw", "zimeye.net",
    "pindula.co.zw", "zimbabwesituation.com", "nehandaradio.com", "opennews.co.zw",
    "fingaz.co.zw", "manicapost.co.zw", "southerneye.co.zw",
    # CMS and CDNs
    "wp.com", "wordpress.com", "cloudinary.com", "imgur.com", "gravatar.com",
    "amazonaws.com", "cloudfront.net", "unsplash.com", "pexels.com",
    "googleusercontent.com", "drive.google.com",
    # Social
    "fbcdn.net", "twimg.com", "instagram.com",
    # Agencies and regional outlets
    "ap.org", "apnews.com", "reuters.com", "bbci.co.uk", "bbc.co.uk", "cnn.com",
    "africanews.com", "mg.co.za", "news24.com", "timeslive.co.za", "iol.co.za", "citizen.co.za",
    "photobucket.com", "flickr.com", "staticflickr.com", "wikimedia.org",
]

SITE: dict[str, Any] = {
    "siteName": "Harare Metro",
    "maxArticles": 20000,
    "itemsPerSource": 100,
    "refreshIntervalMinutes": 60,
    "minLimit": 100,
    "maxLimit": 1000,
}

DEFAULT_CATALOG: dict[str, Any] = {
    "rss_sources": RSS_SOURCES,
    "categories": CATEGORIES,
    "category_keywords": CATEGORY_KEYWORDS,
    "priority_keywords": PRIORITY_KEYWORDS,
    "trusted_image_domains": TRUSTED_IMAGE_DOMAINS,
    "site": SITE,
}
