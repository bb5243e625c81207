CURRENCY_SYMBOLS = {
    "IDR": "Rp",
    "USD": "$",
    "SGD": "S$",
    "BRL": "R$",
}

CURRENCY_NAMES = {
    "IDR": "Indonesian Rupiah",
    "USD": "US Dollar",
    "SGD": "Singapore Dollar",
    "BRL": "Brazilian Real",
}

SUPPORTED_CURRENCIES = tuple(CURRENCY_SYMBOLS)
DEFAULT_CURRENCY = "IDR"

def get_currency_symbol(currency_code: str | None) -> str:
    """Returns the symbol for a currency code, or the code itself when unknown."""
    code = currency_code or DEFAULT_CURRENCY
    return CURRENCY_SYMBOLS.get(code, code)

def get_currency_name(currency_code: str) -> str:
    return CURRENCY_NAMES.get(currency_code, currency_code)

def is_supported_currency(currency_code: str) -> bool:
    return currency_code in CURRENCY_SYMBOLS

def format_money(amount: int, currency_code: str | None = None) -> str:
    """Formats an integer amount as ``"<symbol> 1,234,567"``.

    Amounts are shown as stored: no minor-unit scaling for any currency.
    """
    return f"{get_currency_symbol(currency_code)} {int(amount):,}"
