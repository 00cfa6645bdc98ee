"""Constants for Gmail Subscription Finder."""

from decimal import Decimal

# --- Scan window ---
DEFAULT_LOOKBACK_MONTHS = 12
MIN_LOOKBACK_MONTHS = 1
MAX_LOOKBACK_MONTHS = 36

# --- Limits ---
MAX_RANKED_SENDERS = 30  # senders passed on to the AI step
MAX_BODY_FETCHES = 15
RECENT_EMAILS_LIMIT = 10  # timeline entries kept per sender
BODY_EXCERPT_LIMIT = 500
BODY_TEXT_LIMIT = 2000
PROCESSOR_SERVICE_NAME_LIMIT = 50
DIGEST_SNIPPET_LIMIT = 120
AMOUNT_CEILING = Decimal("100000")  # anything at or above is an order/ID number

# --- Thresholds ---
CANCELLATION_SIGNAL_THRESHOLD = 0.80
BODY_FETCH_BILLING_THRESHOLD = 0.7
BILLING_REINFORCED_SCORE = 0.9  # subject and snippet both carry billing keywords
REFUND_OVERRIDE_THRESHOLD = 0.8
WEAK_SIGNAL_THRESHOLD = 0.4
AGREEMENT_MIN_CONFIDENCE = 0.8
AGREEMENT_BOOST = 0.1
DISAGREEMENT_CONFIDENCE = 0.5
LOCAL_UNKNOWN_CONFIDENCE = 0.7
LIFECYCLE_DEFERRED_CONFIDENCE = 0.5
LIFECYCLE_CANCEL_MIN_CONFIDENCE = 0.85
LIFECYCLE_CHARGE_CONFIDENCE = 0.90
STATUS_CHANGE_TRUST_THRESHOLD = 0.85
AUTO_SELECT_MIN_CONFIDENCE = 0.7
DEFAULT_AI_CONFIDENCE = 0.5

# --- Billing keywords (phrase, weight) ---
BILLING_KEYWORDS = (
    ("receipt", 1.0),
    ("invoice", 1.0),
    ("payment confirmation", 1.0),
    ("payment received", 0.9),
    ("your payment", 0.9),
    ("billing statement", 0.9),
    ("monthly charge", 0.9),
    ("annual charge", 0.9),
    ("charged", 0.8),
    ("amount due", 0.8),
    ("recurring payment", 0.8),
    ("subscription", 0.7),
    ("renewal", 0.7),
    ("renewed", 0.7),
    ("auto-pay", 0.7),
    ("autopay", 0.7),
    ("direct debit", 0.7),
    ("your plan", 0.6),
    ("membership", 0.6),
    ("recurring", 0.5),
)

# --- Charge type clusters (phrase, weight) ---
RECURRING_SIGNALS = (
    ("subscription", 0.9),
    ("renewal", 0.9),
    ("renewed", 0.9),
    ("monthly charge", 0.9),
    ("annual charge", 0.9),
    ("recurring", 0.8),
    ("auto-pay", 0.8),
    ("autopay", 0.8),
    ("billing period", 0.8),
    ("next billing", 0.8),
    ("monthly plan", 0.8),
    ("annual plan", 0.8),
    ("yearly plan", 0.8),
    ("membership", 0.7),
    ("direct debit", 0.7),
    ("your plan", 0.6),
)

USAGE_SIGNALS = (
    ("top up", 0.9),
    ("top-up", 0.9),
    ("topup", 0.9),
    ("pay as you go", 0.8),
    ("pay-as-you-go", 0.8),
    ("added funds", 0.8),
    ("api usage", 0.8),
    ("credits", 0.8),
    ("tokens", 0.8),
    ("prepaid", 0.8),
    ("metered", 0.7),
    ("usage", 0.6),
    ("balance", 0.5),
)

ADDON_SIGNALS = (
    ("add-on", 0.8),
    ("addon", 0.8),
    ("add on", 0.8),
    ("single purchase", 0.8),
    ("lifetime", 0.8),
    ("one-time", 0.7),
    ("one time", 0.7),
    ("upgrade", 0.6),
    ("license", 0.6),
    ("purchased", 0.5),
)

REFUND_SIGNALS = (
    ("refund", 0.95),
    ("refunded", 0.95),
    ("reversal", 0.9),
    ("chargeback", 0.9),
    ("cancelled charge", 0.85),
    ("credit applied", 0.8),
    ("money back", 0.8),
    ("returned", 0.6),
)

ANTI_SIGNALS = (
    "marketing",
    "newsletter",
    "promo",
    "promotion",
    "free trial",
    "trial",
    "shipping",
    "shipped",
    "delivery",
    "tracking number",
)

# --- Cancellation phrases (phrase, weight) ---
CANCELLATION_SIGNALS = (
    ("your subscription has been canceled", 0.99),
    ("your subscription has been cancelled", 0.99),
    ("subscription canceled", 0.97),
    ("subscription cancelled", 0.97),
    ("subscription has been canceled", 0.97),
    ("subscription has been cancelled", 0.97),
    ("cancellation confirmed", 0.97),
    ("cancellation confirmation", 0.97),
    ("membership canceled", 0.95),
    ("membership cancelled", 0.95),
    ("subscription ended", 0.95),
    ("your plan has been canceled", 0.95),
    ("your plan has been cancelled", 0.95),
    ("we've canceled your", 0.95),
    ("we've cancelled your", 0.95),
    ("has been canceled", 0.95),
    ("has been cancelled", 0.95),
    ("you have canceled", 0.93),
    ("you have cancelled", 0.93),
    ("account closed", 0.90),
    ("subscription has expired", 0.90),
    ("subscription expired", 0.90),
    ("successfully unsubscribed", 0.88),
    ("plan expired", 0.88),
    ("service terminated", 0.88),
    ("unsubscribed", 0.85),
    ("your account has been deactivated", 0.85),
)

CANCELLATION_FALSE_POSITIVES = (
    "cancel anytime",
    "cancel any time",
    "cancel at any time",
    "cancel your subscription anytime",
    "you can cancel",
    "easy to cancel",
    "free to cancel",
    "how to cancel",
    "how do i cancel",
    "cancellation policy",
    "cancel before",
    "cancel within",
    "no cancellation fee",
    "risk-free cancellation",
)

# --- Payment processors ---
PROCESSOR_DOMAINS = {
    "stripe.com": "Stripe",
    "paddle.com": "Paddle",
    "paypal.com": "PayPal",
    "gumroad.com": "Gumroad",
    "fastspring.com": "FastSpring",
    "chargebee.com": "Chargebee",
    "recurly.com": "Recurly",
    "braintreegateway.com": "Braintree",
    "braintreepayments.com": "Braintree",
    "2checkout.com": "2Checkout",
    "lemonsqueezy.com": "Lemon Squeezy",
}

# --- Currencies ---
CURRENCY_SYMBOLS = {
    "R$": "BRL",
    "A$": "AUD",
    "C$": "CAD",
    "$": "USD",
    "€": "EUR",
    "£": "GBP",
    "¥": "JPY",
    "₹": "INR",
    "₽": "RUB",
    "₴": "UAH",
    "zł": "PLN",
}

ISO_CURRENCY_CODES = (
    "USD", "EUR", "GBP", "CAD", "AUD", "JPY", "INR", "UAH",
    "PLN", "BRL", "RUB", "CHF", "SEK", "NOK", "DKK", "NZD",
)

# --- Name normalization ---
LEGAL_SUFFIXES = (
    "inc.", "inc", "llc", "ltd.", "ltd", "corp.", "corp",
    "co.", "co", "pbc", "gmbh", "s.a.", "pty", "limited",
)
