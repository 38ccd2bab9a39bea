"""
Mappings between finite automata and right-linear grammars.

Both directions are pure: they read one value and build a new one of the
other kind, never touching the input.
"""

import logging
from typing_extensions import *

from automaton import Automaton, fresh_state
from grammar import Grammar, Production

logger = logging.getLogger(__name__)

FINAL_STATE = "X"


def automaton_to_grammar(automaton: Automaton) -> Grammar:
    """
    Convert an automaton to a right-linear grammar.

    Every transition ``q --a--> p`` becomes ``q -> a p``. If ``p`` is
    accepting, ``q -> a`` is added as well, since the derivation may end
    there. States become non-terminals and the start state becomes the
    start symbol.
    """
    productions: Dict[str, List[Production]] = {
        state: [] for state in sorted(automaton.states)
    }

    for src, sym, tgt in sorted(automaton.transition_relation):
        productions[src].append(Production(sym, tgt))
        if tgt in automaton.accepting_states:
            ending = Production(sym)
            if ending not in productions[src]:
                productions[src].append(ending)

    logger.debug(
        "Automaton -> grammar: %d transitions -> %d productions",
        len(automaton.transition_relation),
        sum(len(p) for p in productions.values()),
    )

    return Grammar(
        non_terminals=automaton.states,
        terminals=automaton.alphabet,
        productions=productions,
        start_symbol=automaton.start_state,
    )


def grammar_to_automaton(grammar: Grammar) -> Automaton:
    """
    Convert a right-linear grammar to an automaton.

    ``q -> a p`` becomes ``q --a--> p`` and ``q -> a`` becomes an edge into
    a single new accepting state that is not a non-terminal of the grammar.
    """
    for lhs in grammar.P:
        if lhs not in grammar.N:
            raise ValueError(
                f"Cannot build an automaton from production with left-hand side {lhs!r}: "
                "left-hand sides must be single non-terminals"
            )

    final_state = fresh_state(FINAL_STATE, grammar.N)

    transitions = set()
    for lhs, options in grammar.P.items():
        for production in options:
            target = final_state if production.nonterminal is None else production.nonterminal
            transitions.add((lhs, production.terminal, target))

    logger.debug(
        "Grammar -> automaton: %d non-terminals, final state %r",
        len(grammar.N),
        final_state,
    )

    return Automaton(
        states=grammar.N | {final_state},
        alphabet=grammar.Sigma,
        transition_relation=transitions,
        start_state=grammar.S,
        accepting_states={final_state},
    )
