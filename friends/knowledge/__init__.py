"""Static knowledge tables for conflict reasoning"""

from .food import (
    FoodItem,
    DietaryRestriction,
    Compatibility,
    INGREDIENT_DERIVATIVES,
    FOOD_DATABASE,
    DIETARY_RESTRICTIONS,
    KNOWN_FOOD_TERMS,
    normalize_food_name,
    singularize,
    food_contains_ingredient,
    get_all_ingredients,
    is_dietary_restriction,
    get_dietary_restriction,
    is_food_compatible_with_restriction,
    find_conflicting_foods,
    get_dietary_implications,
)
from .identities import (
    MUTUALLY_EXCLUSIVE_IDENTITIES,
    NEGATION_WORDS,
    identities_conflict,
    beliefs_oppose,
)

# shared label normaliser
normalize_label = normalize_food_name

__all__ = [
    # tables
    'FoodItem',
    'DietaryRestriction',
    'Compatibility',
    'INGREDIENT_DERIVATIVES',
    'FOOD_DATABASE',
    'DIETARY_RESTRICTIONS',
    'KNOWN_FOOD_TERMS',
    'MUTUALLY_EXCLUSIVE_IDENTITIES',
    'NEGATION_WORDS',

    # queries
    'normalize_label',
    'normalize_food_name',
    'singularize',
    'food_contains_ingredient',
    'get_all_ingredients',
    'is_dietary_restriction',
    'get_dietary_restriction',
    'is_food_compatible_with_restriction',
    'find_conflicting_foods',
    'get_dietary_implications',
    'identities_conflict',
    'beliefs_oppose',
]
