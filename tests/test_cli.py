import random

import pytest

import main
from cli import Terminal


@pytest.fixture
def terminal(tmp_path):
    path = tmp_path / "defs.txt"
    path.write_text(
        "nea:\n"
        "states: q0 q1 q2 q3\nalphabet: a b\nstart: q0\naccept: q2\n"
        "q0 a q0\nq0 a q1\nq1 a q2\nq1 b q1\nq2 a q3\nq3 a q1\n\n"
        "variant:\nS -> bS | dA\nA -> aA | dB | a\nB -> cB | a\n",
        encoding="utf-8",
    )
    term = Terminal(rng=random.Random(3))
    assert term.execute(f"load {path}")
    return term


def test_load_and_list(terminal, capsys):
    terminal.execute("list")
    out = capsys.readouterr().out
    assert "nea: NEA, 4 states" in out
    assert "variant: TYPE_3, 3 non-terminals, 7 productions" in out


def test_membership_command(terminal, capsys):
    terminal.execute("test nea aba")
    terminal.execute("test nea abaa")
    out = capsys.readouterr().out
    assert "'aba' is ACCEPTED" in out
    assert "'abaa' is REJECTED" in out


def test_conversions(terminal, capsys):
    terminal.execute("to_dea nea")
    terminal.execute("is_dea nea_dea")
    terminal.execute("to_grammar nea g")
    terminal.execute("to_nea variant")
    terminal.execute("classify g")
    out = capsys.readouterr().out

    assert "Created automaton: nea_dea" in out
    assert "Is deterministic: True" in out
    assert "g is: Type 3 (regular)" in out
    assert terminal.automata["variant_nea"].accepts("ddca")
    assert terminal.grammars["g"].S == "q0"


def test_generate_command(terminal, capsys):
    terminal.execute("generate variant 3")
    lines = [line.strip() for line in capsys.readouterr().out.splitlines() if line.strip()]
    assert len(lines) == 3
    nea = terminal.grammars["variant"].to_NEA()
    assert all(nea.accepts(line) for line in lines)


def test_missing_names_and_unknown_commands(terminal, capsys):
    terminal.execute("show nope")
    terminal.execute("classify nope")
    terminal.execute("frobnicate")
    out = capsys.readouterr().out
    assert "Automaton not found: nope" in out
    assert "Grammar not found: nope" in out
    assert "Unknown command: frobnicate" in out


def test_delete_clear_exit(terminal):
    terminal.execute("delete nea")
    assert "nea" not in terminal.automata
    terminal.execute("clear")
    assert not terminal.grammars
    assert terminal.execute("exit") is False


def test_demo_output(capsys):
    main.main(["--seed", "1"])
    out = capsys.readouterr().out

    assert "Classification: Type 3 (regular)" in out
    assert "Is deterministic: False" in out
    assert "Is deterministic: True" in out
    assert "  ddca -> True" in out
    assert "  db -> False" in out
    assert "MISMATCH" not in out
    assert out.count(" OK") == len(main.EQUIVALENCE_TESTS)
