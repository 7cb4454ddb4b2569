import re

PAYMENT_CATEGORIES = {
    "cash": "Cash",
    "credit": "Credit Card",
    "apple_pay": "Apple Pay",
    "google_pay": "Google Pay",
    "contactless": "Contactless",
    "access": "Access",
    "chargeback": "Chargeback",
    "other": "Other",
}

# Categories counted towards the digital-payment KPI
DIGITAL_CATEGORIES = frozenset({"credit", "apple_pay", "google_pay", "contactless"})

PLATFORMS = {
    "cantaloupe": "Cantaloupe",
    "nayax": "Nayax",
    "payrange": "PayRange",
    "custom": "Custom",
}

# Cantaloupe "Sales Rollup" export, all 21 columns
CANTALOUPE_HEADERS = [
    "Customer",
    "Region",
    "Location",
    "Location Type",
    "Serial #",
    "Asset #",
    "Make",
    "Model",
    "City",
    "State",
    "Product Type",
    "Trans Type Name",
    "Tran Count",
    "Vend Count",
    "Amount",
    "Currency Code",
    "Two-Tier Pricing (Included in Net Revenue)",
    "Loyalty Discount",
    "Campaign Name",
    "Purchase Discount",
    "Free Product Discount",
]

PRODUCT_TYPES = {
    "vending": "Vending",
    "soft drink": "Soft Drink",
    "snack": "Snack",
    "water": "Water",
    "coffee": "Coffee",
    "- not assigned -": "- Not Assigned -",
}

# Ordered: the first rule that matches decides the category
_PAYMENT_RULES = [
    ("cash", lambda v: re.fullmatch(r"cash", v, re.I)),
    ("apple_pay", lambda v: re.search(r"apple\s*pay", v, re.I)),
    ("google_pay", lambda v: re.search(r"google\s*pay", v, re.I)),
    ("contactless", lambda v: re.search(r"contactless", v, re.I)
        and not re.search(r"apple|google", v, re.I)),
    ("chargeback", lambda v: re.search(r"chargeback", v, re.I)),
    ("access", lambda v: re.fullmatch(r"access", v, re.I)),
    ("credit", lambda v: re.match(r"credit", v, re.I)),
]


def normalize_payment_category(trans_type_name: str | None) -> str:
    """Map a free-text "Trans Type Name" onto a PAYMENT_CATEGORIES key."""
    value = (trans_type_name or "").strip()
    for category, rule in _PAYMENT_RULES:
        if rule(value):
            return category
    return "other"


def normalize_product_type(product_type: str | None) -> str:
    value = (product_type or "").strip()
    return PRODUCT_TYPES.get(value.lower(), value or "Other")
