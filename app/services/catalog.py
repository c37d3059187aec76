"""Checklist items offered on the request form, grouped by section."""

CATALOG = {
    "pantry": [
        "pastaSauce", "macNCheese", "rice", "skilletMeals", "cannedChicken",
        "cannedTuna", "cannedFish", "mashedPotatoes", "ramen", "cannedGoods",
        "applesauce", "refriedBeans", "blackBeans", "pintoBeans",
    ],
    "additionalPantry": [
        "bakingSupplies", "broth", "spices", "peanutButter", "jelly", "condiments",
        "coffeeWhole", "coffeeGround", "coffeeKCups", "tea", "cereal",
        "oatmeal", "pancakes", "syrup",
    ],
    "drinks": [
        "hotChocolate", "generalDrinks", "energyDrinks", "juice",
    ],
    "homeGoods": [
        "dishwasherDetergent", "laundrySoap", "dishSoap", "multiPurposeCleaner",
        "bodyWash", "shampoo", "conditioner",
    ],
    "petSupplies": [
        "catFoodDry", "catFoodWet", "catTreats", "catLitter",
        "dogFoodDry", "dogFoodWet", "dogTreats",
    ],
    "snacks": [
        "snacks", "candy",
    ],
    "freshRefrigerated": [
        "bread", "milkDairy", "milkNonDairy", "eggs", "otherDairy",
        "pastries", "freshFruits", "freshVegetables", "freshJuice",
    ],
    "frozen": [
        "beef", "chicken", "fish", "ham", "turkey", "pork",
        "sausage", "preparedMeals", "gfPreparedMeals", "veganPreparedMeals",
        "frozenVegetables", "frozenFruit", "iceCream",
    ],
}

# Sections packed at the fresh goods station; everything else is dry goods
FRESH_SECTIONS = ("freshRefrigerated", "frozen")

FRESH_ITEMS = frozenset(item for section in FRESH_SECTIONS for item in CATALOG[section])
ALL_ITEMS = frozenset(item for items in CATALOG.values() for item in items)


def unknown_items(selected) -> list[str]:
    return [item for item in selected if item not in ALL_ITEMS]


def split_items(selected) -> tuple[list[str], list[str]]:
    """Split selected item keys into (dry goods, fresh goods), keeping order."""
    dry = [item for item in selected if item not in FRESH_ITEMS]
    fresh = [item for item in selected if item in FRESH_ITEMS]
    return dry, fresh
