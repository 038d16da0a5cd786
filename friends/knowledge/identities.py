"""Identity and belief vocabulary

Pairs of IS labels that cannot hold at the same time, and the negation
words used by the belief heuristic.
"""

from types import MappingProxyType
from typing import Mapping, Tuple, FrozenSet

from .food import normalize_food_name


MUTUALLY_EXCLUSIVE_IDENTITIES: Mapping[str, Tuple[str, ...]] = MappingProxyType({
    'vegan': ('vegetarian', 'pescatarian', 'meat-eater'),
    'vegetarian': ('vegan', 'pescatarian', 'meat-eater'),
    'atheist': ('christian', 'muslim', 'jewish', 'hindu', 'buddhist'),
    'democrat': ('republican',),
    'cat person': ('dog person',),
})

NEGATION_WORDS: FrozenSet[str] = frozenset({'not', "don't", 'never', 'against', 'anti'})


def identities_conflict(first: str, second: str) -> bool:
    """Whether two IS labels are mutually exclusive (checked in both directions)"""
    a = normalize_food_name(first)
    b = normalize_food_name(second)
    if not a or not b:
        return False
    return (b in MUTUALLY_EXCLUSIVE_IDENTITIES.get(a, ())
            or a in MUTUALLY_EXCLUSIVE_IDENTITIES.get(b, ()))


def beliefs_oppose(first: str, second: str) -> bool:
    """Best-effort check that two beliefs contradict each other

    Exactly one side must contain a negation word, and the remaining topic
    words of one must appear inside the other.
    """
    words_a = normalize_food_name(first).split()
    words_b = normalize_food_name(second).split()

    negated_a = any(w in NEGATION_WORDS for w in words_a)
    negated_b = any(w in NEGATION_WORDS for w in words_b)
    if negated_a == negated_b:
        return False

    topic_a = " ".join(w for w in words_a if w not in NEGATION_WORDS)
    topic_b = " ".join(w for w in words_b if w not in NEGATION_WORDS)
    if not topic_a or not topic_b:
        return False
    return topic_a in topic_b or topic_b in topic_a
