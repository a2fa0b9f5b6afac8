"""Editable static menu catalog and booking kind configuration."""

from __future__ import annotations

# Rule specs: "unbounded", "single", "exclusive", or ("max", N). A category may
# list ("max", N) together with "exclusive".
MENU_CATEGORIES: dict[str, dict[str, object]] = {
    "bevande": {"name": "Bevande", "position": 1, "rules": ["exclusive"]},
    "antipasti": {"name": "Antipasti", "position": 2, "rules": [("max", 3), "exclusive"]},
    "fritti": {"name": "Fritti", "position": 3, "rules": [("max", 3)]},
    "primi": {"name": "Primi Piatti", "position": 4, "rules": ["single"]},
    "secondi": {"name": "Secondi Piatti", "position": 5, "rules": [("max", 3)]},
    "dolci": {"name": "Dolci", "position": 6, "rules": ["unbounded"]},
}

MENU_ITEMS: dict[str, dict[str, str | None]] = {
    "caraffe_drink": {"category": "bevande", "name": "Caraffe / Drink", "price": "5.00", "group": "caraffe"},
    "caraffe_premium": {
        "category": "bevande",
        "name": "Caraffe / Drink Premium",
        "price": "7.00",
        "group": "caraffe",
    },
    "caffe": {"category": "bevande", "name": "Caffè", "price": "1.50", "group": None},
    "amaro": {"category": "bevande", "name": "Amaro", "price": "3.00", "group": None},
    "pizza_margherita": {"category": "antipasti", "name": "Pizza Margherita", "price": "3.00", "group": "pizza"},
    "pizza_rossa": {"category": "antipasti", "name": "Pizza rossa", "price": "2.50", "group": "pizza"},
    "focaccia_rosmarino": {
        "category": "antipasti",
        "name": "Focaccia Rosmarino",
        "price": "2.50",
        "group": "pizza",
    },
    "farinata": {"category": "antipasti", "name": "Farinata", "price": "2.50", "group": None},
    "panelle": {"category": "antipasti", "name": "Panelle", "price": "2.50", "group": None},
    "camembert": {"category": "antipasti", "name": "Camembert", "price": "3.50", "group": None},
    "vol_au_vent": {"category": "antipasti", "name": "Vol-au-vent", "price": "3.00", "group": None},
    "tagliere_salumi": {"category": "antipasti", "name": "Tagliere di salumi", "price": "4.50", "group": None},
    "olive_ascolana": {"category": "fritti", "name": "Olive Ascolana", "price": "2.50", "group": None},
    "anelli_cipolla": {"category": "fritti", "name": "Anelli di Cipolla", "price": "2.00", "group": None},
    "patatine_fritte": {"category": "fritti", "name": "Patatine fritte", "price": "2.00", "group": None},
    "scamorzine": {"category": "fritti", "name": "Scamorzine", "price": "2.50", "group": None},
    "crocchette": {"category": "fritti", "name": "Crocchette di patate", "price": "2.00", "group": None},
    "cannelloni": {"category": "primi", "name": "Cannelloni Ricotta e Spinaci", "price": "6.00", "group": None},
    "lasagne_ragu": {"category": "primi", "name": "Lasagne Ragù", "price": "6.50", "group": None},
    "pasta_pomodoro": {"category": "primi", "name": "Pasta al pomodoro", "price": "5.00", "group": None},
    "risotto_funghi": {"category": "primi", "name": "Risotto ai funghi", "price": "6.50", "group": None},
    "polpette_vegane": {
        "category": "secondi",
        "name": "Polpette vegane di Lenticchie e Curry",
        "price": "6.00",
        "group": None,
    },
    "cotoletta": {"category": "secondi", "name": "Cotoletta alla milanese", "price": "8.00", "group": None},
    "arrosto": {"category": "secondi", "name": "Arrosto di vitello", "price": "8.50", "group": None},
    "parmigiana": {"category": "secondi", "name": "Parmigiana di melanzane", "price": "6.50", "group": None},
    "cannoli": {"category": "dolci", "name": "Cannoli siciliani", "price": "3.00", "group": None},
    "panna_cotta": {"category": "dolci", "name": "Panna cotta", "price": "3.00", "group": None},
}

EXTRA_ITEMS: dict[str, dict[str, str]] = {
    "tiramisu": {"name": "Tiramisù", "unit": "kg", "unit_price": "25.00"},
}

PRESET_MENUS: dict[str, dict[str, object]] = {
    "menu_1": {
        "label": "Menu 1 Light Reception",
        "items": ["caraffe_drink", "pizza_margherita"],
    },
    "menu_2": {
        "label": "Menu 2 Full Reception",
        "items": [
            "caraffe_drink",
            "pizza_margherita",
            "farinata",
            "olive_ascolana",
            "anelli_cipolla",
            "patatine_fritte",
        ],
    },
    "menu_3": {
        "label": "Menu 3 Lunch or Dinner",
        "items": [
            "caraffe_drink",
            "pizza_margherita",
            "farinata",
            "anelli_cipolla",
            "patatine_fritte",
            "olive_ascolana",
            "cannelloni",
        ],
    },
    "menu_4": {
        "label": "Menu 4 Gourmet",
        "items": ["caraffe_premium", "panelle", "camembert", "lasagne_ragu", "polpette_vegane", "cannoli"],
    },
}

BOOKING_KINDS: dict[str, dict[str, object]] = {
    "table": {"label": "Table", "badge": "T", "cover_charge": "0.00", "requires_menu": False},
    "graduation_reception": {
        "label": "Graduation Reception",
        "badge": "L",
        "cover_charge": "2.00",
        "requires_menu": True,
    },
}
