"""
Currency conversion for Direct Hire salaries.

Salaries are entered in the jobsite currency and stored in USD. Rates are
USD per one unit of the currency. Every ISO code without a known rate falls
back to 1 so conversion never fails; ``load_live_rates`` may refresh the
table once per process from a public rates endpoint.
"""

import logging
from typing import Dict, Optional

import httpx

logger = logging.getLogger(__name__)

ISO_CURRENCY_CODES = tuple(
    sorted(
        {
            "USD", "EUR", "JPY", "GBP", "AUD", "CAD", "CHF", "CNY", "HKD", "NZD", "SEK",
            "KRW", "SGD", "NOK", "MXN", "INR", "RUB", "ZAR", "TRY", "BRL", "TWD", "DKK",
            "PLN", "THB", "IDR", "HUF", "CZK", "ILS", "CLP", "PHP", "AED", "COP", "SAR",
            "MYR", "RON", "ARS", "PEN", "EGP", "PKR", "BDT", "VND", "NGN", "KES", "GHS",
            "UAH", "MAD", "QAR", "KWD", "BHD", "OMR", "JOD", "LBP", "DZD", "TND", "IQD",
            "IRR", "AZN", "GEL", "AMD", "BYN", "KZT", "UZS", "TJS", "TMT", "AFN", "BBD",
            "BMD", "BSD", "BZD", "BWP", "BND", "BAM", "BGN", "BIF", "BOB", "BTN", "CRC",
            "CUP", "CVE", "CDF", "DJF", "DOP", "ERN", "ETB", "FJD", "FKP", "GIP", "GTQ",
            "GYD", "HNL", "HTG", "ISK", "JMD", "KGS", "KHR", "KMF", "KYD", "LAK", "LKR",
            "LRD", "LSL", "LYD", "MDL", "MKD", "MMK", "MNT", "MOP", "MUR", "MVR", "MWK",
            "MZN", "NAD", "NPR", "PAB", "PGK", "PYG", "RSD", "RWF", "SBD", "SCR", "SDG",
            "SHP", "SLL", "SOS", "SRD", "SSP", "STD", "SVC", "SYP", "SZL", "TOP", "TTD",
            "TZS", "UGX", "UYU", "VED", "VES", "VUV", "WST", "XAF", "XCD", "XOF", "XPF",
            "YER", "ZMW", "ZWL",
        }
    )
)

# USD per unit for common currencies
BASE_RATES: Dict[str, float] = {
    "USD": 1,
    "PHP": 0.018,
    "EUR": 1.09,
    "GBP": 1.27,
    "JPY": 0.0067,
    "AUD": 0.66,
    "CAD": 0.74,
    "SGD": 0.74,
    "HKD": 0.13,
    "KRW": 0.00076,
    "INR": 0.012,
    "CNY": 0.14,
    "TWD": 0.031,
    "THB": 0.027,
    "MYR": 0.21,
    "IDR": 0.000061,
    "VND": 0.000039,
    "AED": 0.2723,
    "SAR": 0.2667,
    "QAR": 0.2747,
    "KWD": 3.25,
    "BHD": 2.65,
    "OMR": 2.60,
    "NOK": 0.093,
    "SEK": 0.093,
    "DKK": 0.145,
    "PLN": 0.25,
    "MXN": 0.055,
    "BRL": 0.18,
    "ZAR": 0.055,
    "TRY": 0.030,
    "RON": 0.22,
    "HUF": 0.0028,
    "CZK": 0.044,
    "ILS": 0.26,
    "ARS": 0.0011,
    "COP": 0.00026,
    "CLP": 0.0011,
    "PEN": 0.27,
    "EGP": 0.020,
    "PKR": 0.0036,
    "BDT": 0.0086,
    "NGN": 0.00075,
    "KES": 0.007,
    "GHS": 0.083,
    "MAD": 0.10,
    "UAH": 0.025,
    "RSD": 0.0092,
    "UYU": 0.025,
}

CURRENCY_RATES: Dict[str, float] = {code: BASE_RATES.get(code, 1) for code in ISO_CURRENCY_CODES}

_rates_loaded = False


def _rate(currency: Optional[str]) -> float:
    code = (currency or "USD").upper()
    return CURRENCY_RATES.get(code) or 1


def convert_to_usd(amount: float, currency: Optional[str]) -> float:
    """
    Convert an amount in ``currency`` to USD.

    Examples:
        >>> convert_to_usd(1000, "PHP")
        18.0
        >>> convert_to_usd(100, "XYZ")
        100
    """
    return amount * _rate(currency)


def convert_from_usd(usd_amount: float, target_currency: Optional[str]) -> float:
    """Convert a USD amount into ``target_currency``."""
    return usd_amount / _rate(target_currency)


def format_currency(amount: float, currency: Optional[str] = "USD") -> str:
    """
    Format an amount for display with two decimals.

    Examples:
        >>> format_currency(1234.5, "USD")
        '$1,234.50'
        >>> format_currency(1234.5, "PHP")
        'PHP 1,234.50'
    """
    code = (currency or "USD").upper()
    if code == "USD":
        return f"${amount:,.2f}"
    return f"{code} {amount:,.2f}"


def get_usd_equivalent(amount: float, currency: Optional[str]) -> str:
    """USD equivalent of an amount, formatted for display."""
    if (currency or "USD").upper() == "USD":
        return format_currency(amount, "USD")
    return format_currency(convert_to_usd(amount, currency), "USD")


def load_live_rates(
    url: str,
    timeout: Optional[float] = 10.0,
    client: Optional[httpx.Client] = None,
    force: bool = False,
) -> bool:
    """
    Refresh ``CURRENCY_RATES`` from a units-per-USD rates endpoint, once per process.

    The endpoint returns ``{"rates": {"PHP": 55.6, ...}}``; each rate is
    inverted to USD per unit. Codes missing from the response keep their base
    rate. Failures are logged and leave the table untouched.

    Args:
        url: Rates endpoint URL
        timeout: Request timeout in seconds (None disables it)
        client: Optional httpx client to use instead of a fresh one
        force: Refresh even if rates were already loaded, starting again
            from the base table

    Returns:
        True if live rates were merged, False otherwise
    """
    global _rates_loaded
    if _rates_loaded and not force:
        return False

    try:
        if client is not None:
            response = client.get(url)
        else:
            with httpx.Client(timeout=timeout) as fresh_client:
                response = fresh_client.get(url)
        response.raise_for_status()
        payload = response.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.warning(f"Could not load live currency rates from {url}: {e}")
        return False
    finally:
        _rates_loaded = True

    rates = payload.get("rates") if isinstance(payload, dict) else None
    if not isinstance(rates, dict):
        logger.warning(f"Live currency rates response from {url} has no rates table")
        return False

    if force:
        reset_rates()
        _rates_loaded = True

    for code in CURRENCY_RATES:
        api_rate = rates.get(code)
        if isinstance(api_rate, (int, float)) and api_rate > 0:
            CURRENCY_RATES[code] = 1 / api_rate
        elif code in BASE_RATES:
            CURRENCY_RATES[code] = BASE_RATES[code]

    logger.info(f"Loaded live currency rates for {len(rates)} currencies")
    return True


def reset_rates() -> None:
    """Restore the base rate table and allow another live refresh."""
    global _rates_loaded
    _rates_loaded = False
    CURRENCY_RATES.clear()
    CURRENCY_RATES.update({code: BASE_RATES.get(code, 1) for code in ISO_CURRENCY_CODES})
