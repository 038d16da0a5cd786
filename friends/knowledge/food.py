"""Food and dietary knowledge base

Static, read-only tables used by the conflict detectors:
- INGREDIENT_DERIVATIVES: ingredient -> foods/ingredients derived from it
- FOOD_DATABASE:          dish -> composition, categories, aliases
- DIETARY_RESTRICTIONS:   diet label -> excluded ingredients

Lookups are conservative. A term that appears nowhere in the tables never
produces a match, so unknown vocabulary yields "no conflict" rather than a
false one.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple, FrozenSet


@dataclass(frozen=True)
class FoodItem:
    """A dish and what it is made of"""
    name: str
    ingredients: Tuple[str, ...]
    categories: Tuple[str, ...] = ()
    aliases: Tuple[str, ...] = ()


@dataclass(frozen=True)
class DietaryRestriction:
    """A diet and the ingredients it excludes"""
    name: str
    excluded_ingredients: Tuple[str, ...]
    excluded_categories: Tuple[str, ...]
    description: str


@dataclass(frozen=True)
class Compatibility:
    """Result of checking a food against a dietary restriction"""
    compatible: bool
    reason: Optional[str] = None

    def __bool__(self) -> bool:
        return self.compatible


# ============================================================================
# Tables
# ============================================================================

INGREDIENT_DERIVATIVES: Mapping[str, Tuple[str, ...]] = MappingProxyType({
    # dairy
    'milk': ('cream', 'butter', 'cheese', 'yogurt', 'whey', 'casein', 'lactose',
             'ghee', 'ice cream'),
    'dairy': ('milk', 'cream', 'butter', 'cheese', 'yogurt', 'whey', 'casein',
              'lactose', 'ghee', 'ice cream'),

    # eggs
    'eggs': ('mayonnaise', 'meringue', 'custard', 'hollandaise'),

    # meat
    'beef': ('steak', 'hamburger', 'meatballs', 'beef broth', 'gelatin'),
    'pork': ('bacon', 'ham', 'sausage', 'prosciutto', 'pepperoni', 'salami',
             'pork chops'),
    'chicken': ('chicken breast', 'chicken wings', 'chicken broth', 'chicken stock'),
    'meat': ('beef', 'pork', 'chicken', 'turkey', 'lamb', 'veal', 'duck', 'bacon',
             'ham', 'sausage'),

    # seafood
    'fish': ('salmon', 'tuna', 'cod', 'trout', 'halibut', 'sardines', 'anchovies'),
    'shellfish': ('shrimp', 'crab', 'lobster', 'oysters', 'clams', 'mussels',
                  'scallops'),
    'seafood': ('fish', 'shellfish', 'shrimp', 'crab', 'lobster', 'salmon', 'tuna'),

    # nuts
    'nuts': ('peanuts', 'almonds', 'walnuts', 'cashews', 'pecans', 'pistachios',
             'hazelnuts', 'peanut butter', 'almond butter'),
    'peanuts': ('peanut butter', 'peanut oil'),
    'almonds': ('almond butter', 'almond milk', 'marzipan'),

    # gluten
    'gluten': ('wheat', 'barley', 'rye', 'bread', 'pasta', 'beer', 'flour', 'seitan'),
    'wheat': ('bread', 'pasta', 'flour', 'couscous', 'semolina', 'crackers'),

    # vegetables
    'potato': ('fries', 'french fries', 'chips', 'potato chips', 'hash browns',
               'mashed potatoes', 'baked potato', 'potato salad'),
    'tomato': ('ketchup', 'marinara', 'tomato sauce', 'salsa', 'pizza sauce'),

    'soy': ('tofu', 'tempeh', 'soy sauce', 'edamame', 'miso', 'soy milk'),
    'sugar': ('honey', 'syrup', 'molasses', 'agave'),
})


def _food(name, ingredients, categories=(), aliases=()) -> Tuple[str, FoodItem]:
    return name, FoodItem(name, tuple(ingredients), tuple(categories), tuple(aliases))


FOOD_DATABASE: Mapping[str, FoodItem] = MappingProxyType(dict([
    # potato based
    _food('fries', ['potato', 'oil', 'salt'], ['fried', 'side-dish', 'fast-food'],
          ['french fries', 'chips']),
    _food('french fries', ['potato', 'oil', 'salt'], ['fried', 'side-dish', 'fast-food'],
          ['fries', 'chips']),
    _food('potato chips', ['potato', 'oil', 'salt'], ['snack', 'fried'],
          ['chips', 'crisps']),
    _food('mashed potatoes', ['potato', 'milk', 'butter'], ['side-dish'], ['mash']),
    _food('hash browns', ['potato', 'oil', 'onion'], ['breakfast', 'fried']),

    # dairy based
    _food('ice cream', ['milk', 'cream', 'sugar'], ['dessert', 'frozen', 'dairy'],
          ['gelato']),
    _food('cheese', ['milk', 'rennet'], ['dairy'], ['cheddar', 'mozzarella', 'parmesan']),
    _food('pizza', ['wheat', 'cheese', 'tomato'], ['italian', 'fast-food']),
    _food('mac and cheese', ['wheat', 'cheese', 'milk'], ['pasta', 'comfort-food'],
          ['macaroni and cheese']),

    # meat based
    _food('hamburger', ['beef', 'wheat', 'lettuce', 'tomato'], ['fast-food', 'sandwich'],
          ['burger']),
    _food('bacon', ['pork', 'salt'], ['meat', 'breakfast'], ['streaky bacon']),
    _food('hot dog', ['pork', 'beef', 'wheat'], ['fast-food'], ['hotdog']),
    _food('pepperoni pizza', ['wheat', 'cheese', 'tomato', 'pork'], ['italian', 'fast-food']),

    # seafood
    _food('fish and chips', ['fish', 'potato', 'wheat', 'oil'],
          ['seafood', 'fried', 'british']),
    _food('sushi', ['fish', 'rice', 'seaweed'], ['seafood', 'japanese']),

    # vegetarian / vegan
    _food('veggie burger', ['vegetables', 'wheat'], ['vegetarian', 'sandwich']),
    _food('tofu', ['soy'], ['vegan', 'protein'], ['bean curd']),

    # breakfast
    _food('eggs benedict', ['eggs', 'wheat', 'butter', 'pork'], ['breakfast']),
    _food('omelette', ['eggs', 'cheese'], ['breakfast', 'eggs'], ['omelet']),

    # desserts
    _food('chocolate cake', ['wheat', 'eggs', 'milk', 'sugar', 'chocolate'],
          ['dessert', 'baked']),
    _food('cheesecake', ['cheese', 'eggs', 'sugar', 'wheat'], ['dessert']),
]))


DIETARY_RESTRICTIONS: Mapping[str, DietaryRestriction] = MappingProxyType({
    r.name: r for r in (
        DietaryRestriction('vegan', ('meat', 'dairy', 'eggs', 'honey', 'gelatin'),
                           ('meat', 'dairy', 'eggs'), 'No animal products'),
        DietaryRestriction('vegetarian', ('meat', 'fish', 'seafood', 'gelatin'),
                           ('meat', 'seafood'), 'No meat or fish'),
        DietaryRestriction('pescatarian', ('meat', 'pork', 'beef', 'chicken'),
                           ('meat',), 'No meat (fish is OK)'),
        DietaryRestriction('lactose intolerant', ('milk', 'dairy', 'lactose'),
                           ('dairy',), 'No dairy products'),
        DietaryRestriction('kosher', ('pork', 'shellfish'), (), 'Jewish dietary laws'),
        DietaryRestriction('halal', ('pork', 'alcohol'), (), 'Islamic dietary laws'),
        DietaryRestriction('gluten-free', ('gluten', 'wheat', 'barley', 'rye'), (),
                           'No gluten'),
        DietaryRestriction('nut allergy', ('nuts', 'peanuts', 'almonds', 'walnuts'), (),
                           'Allergic to nuts'),
    )
})


def _build_vocabulary() -> FrozenSet[str]:
    words = set(INGREDIENT_DERIVATIVES)
    for derivatives in INGREDIENT_DERIVATIVES.values():
        words.update(derivatives)
    for item in FOOD_DATABASE.values():
        words.add(item.name)
        words.update(item.ingredients)
        words.update(item.aliases)
    for restriction in DIETARY_RESTRICTIONS.values():
        words.update(restriction.excluded_ingredients)
    return frozenset(words)


# every term the tables know about, in its table spelling
KNOWN_FOOD_TERMS: FrozenSet[str] = _build_vocabulary()


# ============================================================================
# Normalisation
# ============================================================================

def normalize_food_name(name: Optional[str]) -> str:
    """Lowercase and collapse whitespace

    This is the one normaliser used for every label comparison in the
    conflict engine.
    """
    return " ".join((name or "").lower().split())


def singularize(word: str) -> str:
    """Naive singular form: berries -> berry, potatoes -> potato, nuts -> nut"""
    if word.endswith('ies'):
        return word[:-3] + 'y'
    if word.endswith('oes'):
        return word[:-2]
    if word.endswith('s') and not word.endswith('ss'):
        return word[:-1]
    return word


def _forms(name: str) -> Tuple[str, ...]:
    normalized = normalize_food_name(name)
    singular = singularize(normalized)
    if singular != normalized:
        return (normalized, singular)
    return (normalized,)


_KNOWN_SINGULARS: FrozenSet[str] = frozenset(singularize(w) for w in KNOWN_FOOD_TERMS)


def _is_known(forms) -> bool:
    return any(form in KNOWN_FOOD_TERMS or form in _KNOWN_SINGULARS for form in forms)


def _shares_form(name: str, forms) -> bool:
    return any(f in forms for f in _forms(name))


def _lookup_food(forms) -> Optional[FoodItem]:
    for form in forms:
        item = FOOD_DATABASE.get(form)
        if item:
            return item
    return None


def _lookup_restriction(label: str) -> Optional[DietaryRestriction]:
    normalized = normalize_food_name(label)
    for key in (normalized, normalized.replace('-', ' '), normalized.replace(' ', '-')):
        restriction = DIETARY_RESTRICTIONS.get(key)
        if restriction:
            return restriction
    return None


# ============================================================================
# Queries
# ============================================================================

def food_contains_ingredient(food: str, ingredient: str) -> bool:
    """Whether a food contains (or is derived from) an ingredient

    Checked in order: same term, the dish's composition, derivatives of its
    composition, its aliases, then the ingredient's own derivatives.
    Singular and plural spellings match each other.

    Args:
        food: dish or ingredient name, e.g. "fries"
        ingredient: ingredient or ingredient group, e.g. "potatoes"

    Returns:
        False whenever neither term is known to the tables.
    """
    food_forms = _forms(food)
    ingredient_forms = _forms(ingredient)
    if not food_forms[0] or not ingredient_forms[0]:
        return False
    if not (_is_known(food_forms) or _is_known(ingredient_forms)):
        return False

    if any(f in ingredient_forms for f in food_forms):
        return True

    for food_form in food_forms:
        item = FOOD_DATABASE.get(food_form)
        if not item:
            continue
        if any(_shares_form(ing, ingredient_forms) for ing in item.ingredients):
            return True
        for ing in item.ingredients:
            for ing_form in _forms(ing):
                derivatives = INGREDIENT_DERIVATIVES.get(ing_form, ())
                if any(_shares_form(d, ingredient_forms) for d in derivatives):
                    return True
        if any(_shares_form(alias, ingredient_forms) for alias in item.aliases):
            return True

    for ingredient_form in ingredient_forms:
        derivatives = INGREDIENT_DERIVATIVES.get(ingredient_form, ())
        if any(_shares_form(d, food_forms) for d in derivatives):
            return True

    return False


def get_all_ingredients(food: str) -> List[str]:
    """Composition of a food expanded with ingredient derivatives

    Unknown foods return just their own normalised name.
    """
    normalized = normalize_food_name(food)
    item = FOOD_DATABASE.get(normalized)
    if item:
        expanded: Dict[str, None] = {}
        for ingredient in item.ingredients:
            expanded[ingredient] = None
            for derivative in INGREDIENT_DERIVATIVES.get(ingredient, ()):
                expanded[derivative] = None
        return list(expanded)

    if normalized in INGREDIENT_DERIVATIVES:
        return [normalized, *INGREDIENT_DERIVATIVES[normalized]]

    return [normalized]


def is_dietary_restriction(label: str) -> bool:
    """Whether a label names a known diet (vegan, kosher, gluten-free, ...)"""
    return _lookup_restriction(label) is not None


def get_dietary_restriction(label: str) -> Optional[DietaryRestriction]:
    return _lookup_restriction(label)


def is_food_compatible_with_restriction(food: str, restriction: str) -> Compatibility:
    """Check a food against a named dietary restriction

    Unknown restrictions are treated as compatible.

    Returns:
        Compatibility with a reason such as "Contains dairy (No animal products)"
        when incompatible.
    """
    diet = _lookup_restriction(restriction)
    if diet is None:
        return Compatibility(compatible=True)

    ingredients = get_all_ingredients(food)
    for excluded in diet.excluded_ingredients:
        if any(food_contains_ingredient(ing, excluded) for ing in ingredients):
            return Compatibility(
                compatible=False,
                reason=f"Contains {excluded} ({diet.description})",
            )
    return Compatibility(compatible=True)


def find_conflicting_foods(restriction_or_allergen: str, foods: List[str]) -> List[Dict[str, str]]:
    """Foods from a list that clash with a diet or an allergen

    Returns:
        [{'food': ..., 'reason': ...}, ...] in input order
    """
    conflicts = []
    diet = _lookup_restriction(restriction_or_allergen)
    for food in foods:
        if diet is not None:
            result = is_food_compatible_with_restriction(food, diet.name)
            if not result.compatible and result.reason:
                conflicts.append({'food': food, 'reason': result.reason})
        elif food_contains_ingredient(food, restriction_or_allergen):
            conflicts.append({'food': food, 'reason': f"Contains {restriction_or_allergen}"})
    return conflicts


def get_dietary_implications(restriction: str) -> List[str]:
    """Ingredients a diet excludes, e.g. vegan -> meat, dairy, eggs, ..."""
    diet = _lookup_restriction(restriction)
    return list(diet.excluded_ingredients) if diet else []
