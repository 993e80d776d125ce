"""Référentiels utilisés par les formulaires de vins et de paramètres."""

from __future__ import annotations

from typing import Dict, List, Optional


# ---------------------------------------------------------------------------
# Taxonomie des catégories proposées dans le formulaire d'ajout.
# ---------------------------------------------------------------------------

WINE_CATEGORIES: List[dict[str, object]] = [
    {
        "name": "Wine",
        "subcategories": ("Red", "White", "Rosé", "Orange", "Sparkling", "Dessert", "Fortified"),
    },
    {
        "name": "Spirits",
        "subcategories": ("Whisky", "Rum", "Cognac", "Armagnac", "Gin", "Vodka", "Tequila"),
    },
    {
        "name": "Beer",
        "subcategories": ("Lager", "IPA", "Stout", "Sour"),
    },
    {
        "name": "Sake",
        "subcategories": ("Junmai", "Ginjo", "Daiginjo"),
    },
]

WINE_TYPES: tuple[str, ...] = ("Red", "White", "Rosé", "Sparkling", "Dessert", "Fortified")

BOTTLE_SIZES: tuple[str, ...] = ("37.5cl", "50cl", "75cl", "150cl", "300cl")

CURRENCIES: Dict[str, str] = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "CHF": "CHF",
    "SEK": "kr",
    "NOK": "kr",
    "DKK": "kr",
    "CAD": "$",
    "AUD": "$",
    "JPY": "¥",
}

CSV_EXPORT_HEADER: tuple[str, ...] = (
    "Name",
    "Producer",
    "Vintage",
    "Grape",
    "Country",
    "Region",
    "Quantity",
    "Price",
    "Location",
    "Rating",
    "Notes",
)


def currency_symbol(code: Optional[str]) -> str:
    """Return the symbol displayed next to prices for a currency code."""

    return CURRENCIES.get((code or "").upper(), code or "")
