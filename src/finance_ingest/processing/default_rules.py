"""Packaged default classification rules.

This data only seeds RuleSet.default(); classifiers never read it directly.
The structure matches the rules YAML accepted by load_rule_set().
"""

from typing import Any

DEFAULT_RULES_VERSION = "2025.3"

DEFAULT_RULE_DATA: dict[str, Any] = {
    "version": DEFAULT_RULES_VERSION,
    "rules": [
        {
            "category": "Food & Grocery",
            "keywords": ["grocery", "groceries", "instant delivery", "quick commerce"],
            "merchants": ["ZEPTO", "BLINKIT", "SWIGGY INSTAMART", "INSTAMART", "MK RETAIL", "MKRETAILCO", "BIGBASKET"],
            "patterns": [r"zepto", r"blinkit", r"instamart", r"mk\s?retail", r"big\s?basket"],
            "base_confidence": 0.9,
            "subcategories": ["Groceries", "Quick Commerce"],
        },
        {
            "category": "Food Delivery",
            "keywords": ["food delivery", "delivery", "order"],
            "merchants": ["SWIGGY", "ZOMATO", "UBER EATS", "DELIVEROO", "JUST EAT"],
            "patterns": [r"swiggy", r"zomato", r"uber.*eats", r"deliveroo", r"just.*eat"],
            "base_confidence": 0.85,
            "subcategories": ["Takeaway"],
        },
        {
            "category": "Food & Dining",
            "keywords": ["grocery", "food", "market", "supermarket", "organic", "deli", "bakery", "butcher"],
            "merchants": [
                "TESCO", "SAINSBURYS", "ASDA", "MORRISONS", "WAITROSE", "LIDL", "ALDI",
                "MARKS & SPENCER", "WHOLE FOODS", "TRADER JOES", "KROGER", "WALMART",
            ],
            "patterns": [
                r"tesco.*stores?", r"sainsbury'?s", r"asda.*store", r"morrisons", r"waitrose",
                r"marks.*spencer", r"m&s", r"co.op", r"iceland.*foods?", r"big.*bazaar",
                r"reliance.*fresh", r"more.*megastore",
            ],
            "base_confidence": 0.9,
            "subcategories": ["Groceries", "Supermarket"],
            "amount_range": {"min": 5, "max": 200, "region": "UK"},
        },
        {
            "category": "Food & Dining",
            "keywords": ["restaurant", "cafe", "coffee", "pizza", "burger", "chinese", "indian", "takeaway", "delivery"],
            "merchants": [
                "MCDONALDS", "KFC", "SUBWAY", "STARBUCKS", "COSTA", "GREGGS", "NANDOS",
                "DOMINOS", "PIZZA HUT",
            ],
            "patterns": [
                r"mcdonald'?s", r"burger.*king", r"\bkfc\b", r"subway", r"starbucks", r"costa.*coffee",
                r"greggs", r"nando'?s", r"pizza.*hut", r"domino'?s", r"food.*panda",
            ],
            "base_confidence": 0.85,
            "subcategories": ["Restaurants", "Fast Food", "Coffee", "Takeaway"],
        },
        {
            "category": "Pet Care",
            "keywords": ["pet", "vet", "grooming", "dog", "cat food"],
            "merchants": ["SUPERTAILS", "PAWSOME", "HEADS UP FOR TAILS", "PETS AT HOME"],
            "patterns": [r"supertails", r"pawsome", r"pets\s?at\s?home", r"\bvet(erinary)?\b"],
            "base_confidence": 0.85,
            "subcategories": ["Pet Supplies", "Vet"],
        },
        {
            "category": "Housing",
            "keywords": ["rent", "landlord", "maintenance", "society"],
            "merchants": [],
            "patterns": [r"\brent\b", r"house\s?rent", r"\blandlord\b"],
            "base_confidence": 0.85,
            "subcategories": ["Rent", "Maintenance"],
        },
        {
            "category": "Transportation",
            "keywords": ["transport", "bus", "train", "taxi", "uber", "lyft", "petrol", "diesel", "fuel", "parking"],
            "merchants": ["TFL", "UBER", "LYFT", "SHELL", "TEXACO", "OLA CABS", "RAPIDO", "YULU"],
            "patterns": [
                r"tfl.*travel", r"transport.*london", r"national.*express", r"virgin.*trains", r"uber(?!.*eats)",
                r"lyft", r"shell", r"bp.*petrol", r"\besso\b", r"texaco", r"parking", r"congestion.*charge",
                r"oyster", r"ola.*cabs", r"rapido", r"yulu", r"indian.*oil", r"bharat.*petroleum",
            ],
            "base_confidence": 0.85,
            "subcategories": ["Public Transport", "Fuel", "Taxi", "Parking", "Bike Rental"],
            "amount_range": {"min": 2, "max": 100, "region": "UK"},
        },
        {
            "category": "Shopping",
            "keywords": ["clothing", "fashion", "shoes", "electronics", "amazon", "shopping", "retail"],
            "merchants": ["AMAZON", "ARGOS", "JOHN LEWIS", "CURRYS", "H&M", "ZARA", "PRIMARK", "UNIQLO", "FLIPKART", "MYNTRA"],
            "patterns": [
                r"amazon", r"argos", r"john.*lewis", r"currys", r"h&m", r"zara", r"primark",
                r"next.*retail", r"uniqlo", r"flipkart", r"myntra", r"ajio", r"nykaa", r"ebay",
            ],
            "base_confidence": 0.8,
            "subcategories": ["Clothing", "Electronics", "Online Shopping"],
        },
        {
            "category": "Subscriptions",
            "keywords": ["subscription", "recharge", "membership", "renewal"],
            "merchants": ["SPOTIFY", "NETFLIX", "MYJIO", "AMAZON PRIME", "YOUTUBE PREMIUM"],
            "patterns": [r"spotify", r"netflix", r"myjio", r"amazon.*prime", r"youtube.*premium"],
            "base_confidence": 0.9,
            "subcategories": ["Streaming", "Mobile"],
        },
        {
            "category": "Bills & Utilities",
            "keywords": ["electric", "gas", "water", "internet", "mobile", "phone", "council tax", "mortgage"],
            "merchants": ["EDF", "BRITISH GAS", "THAMES WATER", "VIRGIN MEDIA", "VODAFONE"],
            "patterns": [
                r"british.*gas", r"edf.*energy", r"thames.*water", r"council.*tax", r"virgin.*media",
                r"bt.*group", r"vodafone", r"o2.*uk", r"ee.*limited", r"sky.*uk", r"reliance.*jio",
                r"airtel", r"bsnl", r"tata.*power", r"adani.*power",
            ],
            "base_confidence": 0.9,
            "subcategories": ["Electricity", "Gas", "Water", "Internet", "Mobile", "Council Tax"],
        },
        {
            "category": "Entertainment",
            "keywords": ["cinema", "theatre", "gym", "streaming", "concert", "tickets"],
            "merchants": ["DISNEY+", "ODEON", "CINEWORLD", "BOOKMYSHOW", "PVR"],
            "patterns": [
                r"disney.*plus", r"apple.*music", r"odeon.*cinemas", r"cineworld", r"vue.*cinemas",
                r"\bgym\b", r"fitness", r"pure.*gym", r"virgin.*active", r"hotstar", r"zee5",
                r"sony.*liv", r"jio.*cinema", r"bookmyshow",
            ],
            "base_confidence": 0.85,
            "subcategories": ["Streaming", "Cinema", "Gym", "Events"],
        },
        {
            "category": "Healthcare",
            "keywords": ["pharmacy", "doctor", "hospital", "medical", "dental", "health", "prescription", "medicine"],
            "merchants": ["BOOTS", "SUPERDRUG", "BUPA", "APOLLO", "FORTIS", "MAX HEALTHCARE", "PHARMEASY", "NETMEDS"],
            "patterns": [
                r"boots.*pharmacy", r"superdrug", r"\bnhs\b", r"bupa", r"private.*healthcare", r"dental",
                r"apollo", r"fortis.*healthcare", r"max.*healthcare", r"medplus", r"pharmacy", r"chemist",
                r"medicine",
            ],
            "base_confidence": 0.8,
            "subcategories": ["Pharmacy", "Medical", "Dental", "Insurance"],
        },
        {
            "category": "Bills & Utilities",
            "keywords": ["tv licence", "bbc", "council tax"],
            "merchants": ["TV LICENSING", "BBC"],
            "patterns": [r"tv.*licen[cs]", r"bbc.*tv", r"council.*tax"],
            "base_confidence": 0.95,
            "subcategories": ["TV Licence", "Council Tax"],
            "region": "UK",
            "amount_range": {"min": 10, "max": 200},
        },
        {
            "category": "Entertainment",
            "keywords": ["pub", "bar", "social", "drinks", "wetherspoon"],
            "merchants": ["WETHERSPOON", "GREENE KING", "PUNCH TAVERNS"],
            "patterns": [r"wetherspoon", r"greene.*king", r"punch.*taverns", r"\bpub\b", r"\bbar\b", r"social.*club"],
            "base_confidence": 0.8,
            "subcategories": ["Pub & Drinks", "Social"],
            "region": "UK",
            "amount_range": {"min": 5, "max": 80},
        },
        {
            "category": "UPI Transfer",
            "keywords": ["upi", "transfer"],
            "merchants": [],
            "patterns": [r"\bupi\b"],
            "base_confidence": 0.6,
            "subcategories": [],
        },
    ],
    "subcategory_keywords": {
        "Groceries": ["grocery", "supermarket", "food shopping"],
        "Quick Commerce": ["zepto", "blinkit", "instamart"],
        "Fast Food": ["mcdonald", "kfc", "burger", "quick"],
        "Coffee": ["coffee", "starbucks", "costa", "cafe"],
        "Takeaway": ["takeaway", "delivery", "uber eats", "deliveroo", "swiggy", "zomato"],
        "Public Transport": ["tfl", "bus", "train", "tube", "metro"],
        "Fuel": ["petrol", "diesel", "fuel", "shell", "bp"],
        "Taxi": ["uber", "lyft", "taxi", "cab", "rapido"],
        "Bike Rental": ["yulu"],
        "Electronics": ["electronics", "computer", "phone", "tech"],
        "Clothing": ["clothing", "fashion", "shoes", "wear"],
        "Streaming": ["netflix", "spotify", "prime", "disney"],
        "Mobile": ["myjio", "jio", "airtel", "recharge", "vodafone"],
        "Cinema": ["cinema", "movie", "film", "odeon"],
        "Pharmacy": ["pharmacy", "boots", "medicine", "prescription"],
        "Pet Supplies": ["supertails", "pawsome", "pet food"],
        "Rent": ["rent"],
    },
    "known_merchants": {
        "ZEPTO": "Zepto",
        "INSTAMART": "Swiggy Instamart",
        "SWIGGY": "Swiggy",
        "BLINKIT": "Blinkit",
        "SUPERTAILS": "Supertails",
        "MKRETAILCO": "MK Retail",
        "MK RETAIL": "MK Retail",
        "YULU": "Yulu",
        "SPOTIFY": "Spotify",
        "NETFLIX": "Netflix",
        "ZOMATO": "Zomato",
        "MYJIO": "Jio",
        "TESCO": "Tesco",
        "SAINSBURY": "Sainsbury's",
        "ASDA": "Asda",
        "MORRISONS": "Morrisons",
        "WAITROSE": "Waitrose",
        "M&S": "Marks & Spencer",
        "JOHN LEWIS": "John Lewis",
        "ARGOS": "Argos",
        "BOOTS": "Boots",
        "WHSMITH": "WHSmith",
        "COSTA": "Costa Coffee",
        "STARBUCKS": "Starbucks",
        "GREGGS": "Greggs",
        "MCDONALDS": "McDonald's",
        "SUBWAY": "Subway",
        "KFC": "KFC",
        "NANDOS": "Nando's",
        "AMAZON": "Amazon",
        "PAYPAL": "PayPal",
        "UBER EATS": "Uber Eats",
        "UBER": "Uber",
        "TFL": "TfL",
    },
}
