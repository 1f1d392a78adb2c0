"""
UK self-assessment rate tables.

Every computation takes a TaxRates instance instead of reading constants, so
a different year or a different Class 4 variant is a different table.
"""

from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Dict, Optional

from taxtrack.config import settings


@dataclass(frozen=True)
class TaxRates:
    """Thresholds and rates for one tax year."""
    tax_year_start: int

    # Income tax
    personal_allowance: Decimal = Decimal("12570")
    basic_rate_limit: Decimal = Decimal("50270")
    higher_rate_limit: Decimal = Decimal("125140")
    basic_rate: Decimal = Decimal("0.20")
    higher_rate: Decimal = Decimal("0.40")
    additional_rate: Decimal = Decimal("0.45")

    # Class 4 NI
    class4_lower_limit: Decimal = Decimal("12570")
    class4_upper_limit: Decimal = Decimal("50270")
    class4_main_rate: Decimal = Decimal("0.06")
    class4_upper_rate: Decimal = Decimal("0.02")

    # Class 2 NI
    class2_weekly_rate: Decimal = Decimal("3.45")
    class2_small_profits_threshold: Decimal = Decimal("6725")

    # VAT registration
    vat_threshold: Decimal = Decimal("90000")
    vat_approaching: Decimal = Decimal("75000")
    vat_danger: Decimal = Decimal("85000")

    # Mileage allowance (cars and vans)
    mileage_rate: Decimal = Decimal("0.45")
    mileage_reduced_rate: Decimal = Decimal("0.25")
    mileage_rate_limit: Decimal = Decimal("10000")

    @property
    def class2_annual(self) -> Decimal:
        return self.class2_weekly_rate * 52


RATES_2024_25 = TaxRates(tax_year_start=2024)

# Same bands with the 9% main Class 4 rate still used by some reports
RATES_2024_25_CLASS4_9 = replace(RATES_2024_25, class4_main_rate=Decimal("0.09"))

RATE_TABLES: Dict[int, TaxRates] = {
    2024: RATES_2024_25,
}


def get_rates(tax_year_start: Optional[int] = None) -> TaxRates:
    """
    Rate table for a tax year, falling back to the latest one.
    A configured class 4 main rate overrides the table.
    """
    if tax_year_start in RATE_TABLES:
        rates = RATE_TABLES[tax_year_start]
    else:
        rates = RATE_TABLES[max(RATE_TABLES)]
        if tax_year_start is not None:
            rates = replace(rates, tax_year_start=tax_year_start)

    if settings.class4_main_rate is not None:
        rates = replace(rates, class4_main_rate=settings.class4_main_rate)
    return rates
