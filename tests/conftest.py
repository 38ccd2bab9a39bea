"""
Pytest configuration and fixtures for the automaton and grammar tests.

Provides the example NEA and grammar used by the demo, plus a seeded RNG.
"""

import random

import pytest


@pytest.fixture
def deterministic_rng():
    """Random source seeded with 12345 for reproducible generation."""
    return random.Random(12345)


@pytest.fixture
def example_nea():
    """
    NEA over {a, b}: q0 --a--> {q0, q1}, q1 --a--> q2, q1 --b--> q1,
    q2 --a--> q3, q3 --a--> q1, accepting q2.
    """
    from main import example_automaton

    return example_automaton()


@pytest.fixture
def example_grammar():
    """S -> bS | dA,  A -> aA | dB | a,  B -> cB | a"""
    from main import example_grammar

    return example_grammar()
