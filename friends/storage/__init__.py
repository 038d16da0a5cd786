"""Fact store port"""

from .base import FactStore, InMemoryFactStore

__all__ = [
    'FactStore',
    'InMemoryFactStore',
]
