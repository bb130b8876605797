from decimal import Decimal

def format_indian_currency(amount: Decimal) -> str:
    """Format an amount with Indian digit grouping, e.g. 1234567.5 -> '₹ 12,34,567.50'."""
    if amount is None:
        return "₹ 0.00"
    amount = Decimal(amount)
    sign = "-" if amount < 0 else ""
    amount_str = f"{abs(amount):.2f}"
    integer_part, decimal_part = amount_str.split(".")

    if len(integer_part) <= 3:
        return f"₹ {sign}{integer_part}.{decimal_part}"

    last_three = integer_part[-3:]
    remaining = integer_part[:-3]

    formatted_remaining = ""
    while len(remaining) > 2:
        formatted_remaining = "," + remaining[-2:] + formatted_remaining
        remaining = remaining[:-2]

    formatted_remaining = remaining + formatted_remaining

    return f"₹ {sign}{formatted_remaining},{last_three}.{decimal_part}"


def format_receipt_number(year: int, sequence: int) -> str:
    return f"RCP-{year}-{sequence:04d}"


def parse_receipt_number(receipt_number: str):
    """Return (year, sequence) for an 'RCP-YYYY-NNNN' number, or None if it does not match."""
    parts = receipt_number.split("-") if receipt_number else []
    if len(parts) != 3 or parts[0] != "RCP" or len(parts[1]) != 4 or not parts[1].isdigit() or not parts[2].isdigit():
        return None
    return int(parts[1]), int(parts[2])
