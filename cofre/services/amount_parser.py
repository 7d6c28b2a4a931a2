import re
from typing import Optional


class AmountParser:
    """
    Parser for the amount formats people type in chat messages.

    Supports:
    - Currency prefixes: R$ 50, $50
    - Suffixes: k (thousand), m/mi (million)
    - Comma decimals: 12,50 = 12.5 and 1.234,56 = 1234.56
    - Dot decimals: 12.50 and 1,234.56
    - Dot as thousand separator: 52.500 = 52500
    - Leading minus sign: -50 = -50.0
    """

    MULTIPLIERS = {
        "k": 1_000,
        "m": 1_000_000,
        "mi": 1_000_000,
    }

    # Uses negative lookbehind to avoid matching numbers within words like "pix2"
    AMOUNT_PATTERN = re.compile(
        r"""
        (?P<sign>(?<![\w-])-)?                 # Optional minus sign, not inside a word
        (?:(?:R\$|\$)\s*)?                      # Optional currency prefix
        (?<![a-zA-Z\d])                         # Not preceded by a letter or digit
        (?P<number>
            \d{1,3}(?:[.,]\d{3})+(?:[.,]\d{1,2})?  # Numbers with thousand separators
            |
            \d+(?:[.,]\d+)?                        # Simple numbers with optional decimal
        )
        \s?
        (?P<suffix>k|mi|m)?
        (?![a-zA-Z])                            # Not followed by a letter
        """,
        re.VERBOSE | re.IGNORECASE,
    )

    @classmethod
    def parse(cls, text: str) -> Optional[float]:
        """
        Parse an amount string and return the numeric value.

        Args:
            text: String containing an amount (e.g., "50", "R$ 12,50", "1.5k")

        Returns:
            Float value of the amount, or None if parsing fails
        """
        if not text:
            return None

        match = cls.AMOUNT_PATTERN.search(text.strip())
        if not match:
            return None

        number = cls._parse_number(match.group("number"))
        if number is None:
            return None

        suffix = match.group("suffix")
        if suffix:
            number *= cls.MULTIPLIERS.get(suffix.lower(), 1)
        if match.group("sign"):
            number = -number

        return float(number)

    @classmethod
    def _parse_number(cls, number_str: str) -> Optional[float]:
        """
        Normalize separators and convert to float.

        The last separator followed by one or two digits is the decimal mark;
        any other separator groups thousands.
        """
        if not number_str:
            return None

        dots = number_str.count(".")
        commas = number_str.count(",")

        if dots and commas:
            # Whichever comes last is the decimal mark
            if number_str.rfind(",") > number_str.rfind("."):
                normalized = number_str.replace(".", "").replace(",", ".")
            else:
                normalized = number_str.replace(",", "")
        elif dots > 1:
            normalized = number_str.replace(".", "")
        elif commas > 1:
            normalized = number_str.replace(",", "")
        elif dots == 1:
            integer, fraction = number_str.split(".")
            if len(fraction) == 3 and len(integer) <= 3:
                # 52.500 reads as fifty-two thousand five hundred
                normalized = integer + fraction
            else:
                normalized = number_str
        elif commas == 1:
            integer, fraction = number_str.split(",")
            if len(fraction) == 3:
                normalized = integer + fraction
            else:
                normalized = f"{integer}.{fraction}"
        else:
            normalized = number_str

        try:
            return float(normalized)
        except ValueError:
            return None

    @classmethod
    def find_amount_in_text(cls, text: str) -> Optional[tuple[float, str]]:
        """
        Find and parse the first amount in a text string.

        Returns:
            Tuple of (parsed_amount, matched_string) or None if no amount found
        """
        match = cls.AMOUNT_PATTERN.search(text)
        if not match:
            return None

        matched_text = match.group(0)
        amount = cls.parse(matched_text)
        if amount is not None:
            return (amount, matched_text.strip())

        return None

    @classmethod
    def find_all_amounts(cls, text: str) -> list[tuple[float, str, int, int]]:
        """
        Find all amounts in a text string.

        Returns:
            List of tuples: (parsed_amount, matched_string, start_pos, end_pos)
        """
        results = []
        for match in cls.AMOUNT_PATTERN.finditer(text):
            matched_text = match.group(0)
            amount = cls.parse(matched_text)
            if amount is not None:
                results.append(
                    (amount, matched_text.strip(), match.start(), match.end())
                )
        return results
