import logging

from io_utils import detect_automaton, load_from_file, load_from_string

SECTIONS = """
nea:
states: q0 q1 q2 q3
alphabet: a b
start: q0
accept: q2
q0 a q0
q0 a q1
q1 a q2
q1 b q1
q2 a q3
q3 a q1

variant:
START: S
PRODUCTIONS:
S -> bS | dA
A -> aA | dB | a
B -> cB | a
"""


def test_detect_automaton():
    assert detect_automaton("start: q0\nq0 a q1")
    assert detect_automaton("q0 -> a -> q1\nq1 -> b -> q0")
    assert detect_automaton("q0 a q1")
    assert not detect_automaton("S -> bS | dA")
    assert not detect_automaton("S -> aA\nA -> a")


def test_named_sections(example_nea, example_grammar):
    automata, grammars = load_from_string(SECTIONS)

    assert automata == {"nea": example_nea}
    assert grammars == {"variant": example_grammar}


def test_unnamed_file_uses_file_name(tmp_path, example_grammar):
    path = tmp_path / "variant25.txt"
    path.write_text("S -> bS | dA\nA -> aA | dB | a\nB -> cB | a\n", encoding="utf-8")

    automata, grammars = load_from_file(str(path))

    assert automata == {}
    assert grammars == {"variant25": example_grammar}


def test_multiple_unnamed_automata(tmp_path):
    path = tmp_path / "pair.txt"
    path.write_text("start: p\naccept: p\n---\nstart: r\nr a r\n", encoding="utf-8")

    automata, grammars = load_from_file(str(path))

    assert sorted(automata) == ["pair", "pair1"]
    assert grammars == {}


def test_broken_definition_is_skipped(caplog):
    content = "good:\nS -> a\n\nbad:\nS -> abc\n"
    with caplog.at_level(logging.WARNING, logger="io_utils"):
        automata, grammars = load_from_string(content)

    assert list(grammars) == ["good"]
    assert automata == {}
    assert "Failed to load grammar 'bad'" in caplog.text


def test_empty_content():
    assert load_from_string("   \n") == ({}, {})


def test_empty_keyword_lines_are_not_section_names():
    content = "states: p r\nalphabet: a\nstart: p\naccept:\np a r\n"

    automata, grammars = load_from_string(content, "single")

    assert grammars == {}
    assert list(automata) == ["single"]
    assert automata["single"].accepting_states == frozenset()
    assert automata["single"].states == {"p", "r"}
    assert not automata["single"].accepts("a")


def test_empty_alphabet_line_inside_named_section():
    content = "empty:\nstates: p\nalphabet:\nstart: p\naccept: p\n"

    automata, _ = load_from_string(content)

    assert list(automata) == ["empty"]
    assert automata["empty"].alphabet == frozenset()
    assert automata["empty"].accepts("")
