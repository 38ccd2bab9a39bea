import pytest

from automaton import Automaton, fresh_state
from conversion import automaton_to_grammar, grammar_to_automaton
from grammar import Grammar, GrammarType, Production

GRAMMAR_CASES = [
    ("db", False),
    ("bdaab", False),
    ("ddca", True),
    ("ca", False),
    ("da", True),
    ("b", False),
    ("bddca", True),
    ("bdca", False),
]


# ---------------------------------------------------------------------------
# Grammar -> automaton
# ---------------------------------------------------------------------------


def test_grammar_to_automaton_structure(example_grammar):
    automaton = example_grammar.to_NEA()

    assert automaton.states == {"S", "A", "B", "X"}
    assert automaton.alphabet == {"a", "b", "c", "d"}
    assert automaton.start_state == "S"
    assert automaton.accepting_states == {"X"}
    assert automaton.transition_relation == {
        ("S", "b", "S"),
        ("S", "d", "A"),
        ("A", "a", "A"),
        ("A", "d", "B"),
        ("A", "a", "X"),
        ("B", "c", "B"),
        ("B", "a", "X"),
    }
    assert not automaton.is_deterministic()


@pytest.mark.parametrize("word, expected", GRAMMAR_CASES)
def test_grammar_automaton_membership(example_grammar, word, expected):
    assert example_grammar.to_NEA().accepts(word) is expected


def test_final_state_avoids_non_terminals():
    grammar = Grammar({"S", "X"}, {"a"}, {"S": [("a", "X")], "X": [("a", None)]}, "S")
    automaton = grammar_to_automaton(grammar)

    assert automaton.accepting_states == {"X'"}
    assert ("X", "a", "X'") in automaton.transition_relation
    assert automaton.accepts("aa")
    assert not automaton.accepts("a")


def test_fresh_state():
    assert fresh_state("X", set()) == "X"
    assert fresh_state("X", {"X", "X'"}) == "X''"


def test_non_right_linear_grammar_cannot_be_converted():
    grammar = Grammar({"S", "A", "B"}, {"a"}, {"S": [("a", "A")], "AB": [("a", "B")]}, "S")
    with pytest.raises(ValueError, match="single non-terminals"):
        grammar.to_NEA()


# ---------------------------------------------------------------------------
# Automaton -> grammar
# ---------------------------------------------------------------------------


def test_automaton_to_grammar_productions(example_nea):
    grammar = example_nea.to_grammar()

    assert grammar.N == example_nea.states
    assert grammar.Sigma == example_nea.alphabet
    assert grammar.S == "q0"
    assert grammar.P["q1"] == (
        Production("a", "q2"),
        Production("a"),
        Production("b", "q1"),
    )
    assert grammar.format_productions() == [
        "  q0 -> aq0",
        "  q0 -> aq1",
        "  q1 -> a",
        "  q1 -> aq2",
        "  q1 -> bq1",
        "  q2 -> aq3",
        "  q3 -> aq1",
    ]
    assert grammar.detect_grammar_type() == GrammarType.TYPE_3


def test_terminating_production_added_once():
    automaton = Automaton(
        states={"p", "r", "s"},
        alphabet={"a"},
        transition_relation={("p", "a", "r"), ("p", "a", "s")},
        start_state="p",
        accepting_states={"r", "s"},
    )
    grammar = automaton_to_grammar(automaton)
    assert grammar.P["p"] == (Production("a", "r"), Production("a"), Production("a", "s"))


def test_automaton_to_grammar_does_not_touch_input(example_nea):
    before = example_nea.transition_relation
    example_nea.to_grammar()
    assert example_nea.transition_relation is before


# ---------------------------------------------------------------------------
# Round trips
# ---------------------------------------------------------------------------


def test_round_trip_sentences_accepted(example_grammar, deterministic_rng):
    automaton = example_grammar.to_NEA()
    round_trip = automaton.to_grammar()

    assert round_trip.detect_grammar_type() == GrammarType.TYPE_3
    sentences = round_trip.generate_sentences(10, deterministic_rng)
    assert sentences
    for sentence in sentences:
        assert automaton.accepts(sentence)


def test_nea_grammar_nea_keeps_language(example_nea):
    words = ["a", "aa", "aba", "abaa", "aaba", "aaaa", "bb", "aab"]
    rebuilt = example_nea.to_grammar().to_NEA()
    for word in words:
        assert rebuilt.accepts(word) is example_nea.accepts(word)


def test_dea_of_grammar_automaton(example_grammar):
    nea = example_grammar.to_NEA()
    dea = nea.to_DEA()
    assert dea.is_deterministic()
    for word, expected in GRAMMAR_CASES:
        assert dea.accepts(word) is expected
