import argparse
import random
from typing_extensions import *

from automaton import Automaton
from cli import configure_logging
from grammar import Grammar, Production

GRAMMAR_TESTS = ["db", "bdaab", "ddca", "ca", "da", "b", "bddca", "bdca"]
EQUIVALENCE_TESTS = ["aa", "aaa", "aba", "abaa", "a", "b", "bb", "aab", "aaba", "aaaa"]


def example_grammar() -> Grammar:
    """S -> bS | dA,  A -> aA | dB | a,  B -> cB | a"""
    return Grammar(
        non_terminals={"S", "A", "B"},
        terminals={"a", "b", "c", "d"},
        productions={
            "S": [Production("b", "S"), Production("d", "A")],
            "A": [Production("a", "A"), Production("d", "B"), Production("a")],
            "B": [Production("c", "B"), Production("a")],
        },
        start_symbol="S",
    )


def example_automaton() -> Automaton:
    """NEA over {a, b} with the choice q0 --a--> {q0, q1}."""
    return Automaton.from_transition_map(
        states={"q0", "q1", "q2", "q3"},
        alphabet={"a", "b"},
        delta={
            "q0": {"a": {"q0", "q1"}},
            "q1": {"a": {"q2"}, "b": {"q1"}},
            "q2": {"a": {"q3"}},
            "q3": {"a": {"q1"}},
        },
        start_state="q0",
        accepting_states={"q2"},
    )


def _section(title: str) -> None:
    print("\n========================================")
    print(f" {title}")
    print("========================================")


def main(argv: Optional[Sequence[str]] = None):
    parser = argparse.ArgumentParser(
        description="Classify, convert and test the example grammar and automaton."
    )
    parser.add_argument("--seed", type=int, default=None, help="seed for sentence generation")
    args = parser.parse_args(argv)

    configure_logging()
    rng = random.Random(args.seed)

    g = example_grammar()

    _section("GRAMMAR")
    print(f"Start symbol: {g.S}")
    print("Productions:")
    for line in g.format_productions():
        print(line)
    print(f"Classification: {g.classify()}")

    print("\n5 generated strings:")
    for sentence in g.generate_sentences(5, rng):
        print(f"  {sentence}")

    fa = g.to_NEA()
    _section("FINITE AUTOMATON (from grammar)")
    print("Transitions:")
    for line in fa.format_transitions():
        print(line)

    print("\nMembership tests:")
    for word in GRAMMAR_TESTS:
        print(f"  {word} -> {fa.accepts(word)}")

    nea = example_automaton()
    _section("NEA")
    print("Transitions:")
    for line in nea.format_transitions():
        print(line)

    _section("DETERMINISM CHECK")
    print(f"Is deterministic: {nea.is_deterministic()}")

    _section("NEA -> REGULAR GRAMMAR")
    regular = nea.to_grammar()
    print(f"Start symbol: {regular.S}")
    print("Productions:")
    for line in regular.format_productions():
        print(line)
    print(f"Classification: {regular.classify()}")

    _section("NEA -> DEA (subset construction)")
    dea = nea.to_DEA()
    print("Transitions:")
    for line in dea.format_transitions():
        print(line)
    print(f"Is deterministic: {dea.is_deterministic()}")

    print("\nEquivalence check (NEA vs DEA):")
    print(f"  {'String':<10} {'NEA':<8} {'DEA':<8}")
    for word in EQUIVALENCE_TESTS:
        nea_result = nea.accepts(word)
        dea_result = dea.accepts(word)
        status = "OK" if nea_result == dea_result else "MISMATCH"
        print(f"  {word:<10} {str(nea_result):<8} {str(dea_result):<8} {status}")


if __name__ == "__main__":
    main()
