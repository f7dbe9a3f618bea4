# Amount in words, South Asian scale (Crore / Lakh / Thousand), Taka + Poisha.

import math

from .money import to_number

UNITS = ["", "One", "Two", "Three", "Four", "Five", "Six", "Seven", "Eight", "Nine",
         "Ten", "Eleven", "Twelve", "Thirteen", "Fourteen", "Fifteen", "Sixteen",
         "Seventeen", "Eighteen", "Nineteen"]
TENS  = ["", "Ten", "Twenty", "Thirty", "Forty", "Fifty", "Sixty", "Seventy", "Eighty", "Ninety"]

CRORE, LAKH, THOUSAND = 10_000_000, 100_000, 1_000


def _two(x):
    return UNITS[x] if x < 20 else TENS[x // 10] + ((" " + UNITS[x % 10]) if x % 10 else "")


def _three(x):
    h, r = divmod(x, 100)
    if h and r:
        return UNITS[h] + " Hundred " + _two(r)
    return UNITS[h] + " Hundred" if h else _two(r)


def num_words(n):
    """Non-negative integer -> words. 0 -> 'Zero', 1234567 -> 'Twelve Lakh Thirty Four Thousand ...'."""
    n = int(n)
    if n == 0:
        return "Zero"
    parts = []
    cr, n = divmod(n, CRORE)
    la, n = divmod(n, LAKH)
    th, n = divmod(n, THOUSAND)
    if cr: parts.append(num_words(cr) + " Crore")
    if la: parts.append(_three(la) + " Lakh")
    if th: parts.append(_three(th) + " Thousand")
    if n:  parts.append(_three(n))
    return " ".join(" ".join(parts).split())


def split_amount(amount):
    """-> (whole, poisha). Poisha rounds half-up; 100 poisha carries into the whole part."""
    amount = abs(to_number(amount))
    whole = math.floor(amount)
    minor = math.floor((amount - whole) * 100 + 0.5)
    if minor >= 100:
        whole, minor = whole + 1, minor - 100
    return int(whole), int(minor)


def amount_in_words(amount):
    """12.5 -> 'Twelve Taka and Fifty Poisha Only'. Negative amounts are prefixed 'Minus'."""
    value = to_number(amount)
    whole, minor = split_amount(value)
    words = num_words(whole) + " Taka"
    if minor > 0:
        words += " and " + _two(minor) + " Poisha"
    words += " Only"
    if value < 0 and (whole or minor):
        words = "Minus " + words
    return words
