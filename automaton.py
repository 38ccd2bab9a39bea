import logging
from collections import defaultdict, deque
from dataclasses import dataclass, field
from typing_extensions import *

from graphviz import Digraph

logger = logging.getLogger(__name__)


class InvalidReferenceError(ValueError):
    """Raised when a definition refers to a label it does not declare."""


def subset_name(states: Iterable[str]) -> str:
    """
    Canonical name of a set of states, e.g. {"B", "A"} -> "{A,B}".

    Labels containing "," or braces can make two different sets share a
    name ({"a,b"} and {"a", "b"}); to_DEA primes the later one.
    """
    return "{" + ",".join(sorted(states)) + "}"


def fresh_state(preferred: str, taken: AbstractSet[str]) -> str:
    """Return ``preferred`` primed until it does not clash with ``taken``."""
    name = preferred
    while name in taken:
        name += "'"
    return name


def _check_symbol(symbol: Any, alphabet: FrozenSet[str], where: str) -> None:
    if not isinstance(symbol, str) or len(symbol) != 1:
        raise InvalidReferenceError(
            f"Invalid reference: symbol {symbol!r} in {where} is not a single character"
        )
    if symbol not in alphabet:
        raise InvalidReferenceError(
            f"Invalid reference: symbol {symbol!r} in {where} is not in the alphabet"
        )


@dataclass(frozen=True)
class Automaton:
    """
    Finite automaton (Q, Sigma, delta, q0, F).

    The transition relation is a set of (source, symbol, target) triples,
    so a (state, symbol) pair may lead to several targets. A DEA is the
    special case where every pair has at most one target.
    """

    states: FrozenSet[str] = field(default_factory=frozenset)
    alphabet: FrozenSet[str] = field(default_factory=frozenset)
    transition_relation: FrozenSet[Tuple[str, str, str]] = field(
        default_factory=frozenset
    )
    start_state: Optional[str] = None
    accepting_states: FrozenSet[str] = field(default_factory=frozenset)

    # -------------------------------------------------------------------------
    # Construction / loading
    # -------------------------------------------------------------------------

    def __post_init__(self):
        """Take owned copies of all collections and validate every label."""
        object.__setattr__(self, "states", frozenset(self.states))
        object.__setattr__(self, "alphabet", frozenset(self.alphabet))
        object.__setattr__(
            self,
            "transition_relation",
            frozenset(tuple(t) for t in self.transition_relation),
        )
        object.__setattr__(self, "accepting_states", frozenset(self.accepting_states))

        for symbol in self.alphabet:
            if not isinstance(symbol, str) or len(symbol) != 1:
                raise InvalidReferenceError(
                    f"Invalid reference: alphabet symbol {symbol!r} is not a single character"
                )

        if self.start_state not in self.states:
            raise InvalidReferenceError(
                f"Invalid reference: start state {self.start_state!r} is not a declared state"
            )

        for state in self.accepting_states:
            if state not in self.states:
                raise InvalidReferenceError(
                    f"Invalid reference: accepting state {state!r} is not a declared state"
                )

        for transition in self.transition_relation:
            if len(transition) != 3:
                raise InvalidReferenceError(
                    f"Invalid reference: transition {transition!r} is not a (source, symbol, target) triple"
                )
            src, sym, tgt = transition
            where = f"transition {src} --{sym}--> {tgt}"
            if src not in self.states:
                raise InvalidReferenceError(
                    f"Invalid reference: source {src!r} of {where} is not a declared state"
                )
            if tgt not in self.states:
                raise InvalidReferenceError(
                    f"Invalid reference: target {tgt!r} of {where} is not a declared state"
                )
            _check_symbol(sym, self.alphabet, where)

    @classmethod
    def from_transition_map(
        cls,
        states: Iterable[str],
        alphabet: Iterable[str],
        delta: Mapping[str, Mapping[str, Iterable[str]]],
        start_state: str,
        accepting_states: Iterable[str],
    ) -> "Automaton":
        """Build an automaton from a nested map {state: {symbol: targets}}."""
        relation = {
            (src, sym, tgt)
            for src, by_symbol in delta.items()
            for sym, targets in by_symbol.items()
            for tgt in targets
        }
        return cls(
            states=states,
            alphabet=alphabet,
            transition_relation=relation,
            start_state=start_state,
            accepting_states=accepting_states,
        )

    @classmethod
    def load_from_file(cls, file_path: str) -> List["Automaton"]:
        with open(file_path, "r", encoding="utf-8") as f:
            content = f.read()
        return cls.from_string(content)

    @classmethod
    def from_string(cls, content: str) -> List["Automaton"]:
        """Parse one or more automaton blocks separated by ``---``."""
        automata = []
        for block in content.split("---"):
            block = block.strip()
            if not block:
                continue
            automata.append(cls._parse_block(block))
        return automata

    @classmethod
    def _parse_block(cls, block: str) -> "Automaton":
        states = set()
        alphabet = set()
        start_state = None
        accepting_states = set()
        transitions = set()

        for line in block.strip().split("\n"):
            line = line.strip()

            if not line or line.startswith("#"):
                continue

            elif line.startswith("alphabet:"):
                alphabet.update(line[9:].strip().split())

            elif line.startswith("states:"):
                states.update(line[7:].strip().split())

            elif line.startswith("start:"):
                start_state = line[6:].strip()

            elif line.startswith("accept:"):
                accepting_states.update(line[7:].strip().split())

            # Arrow notation: q0 -> a -> q1
            elif "->" in line:
                parts = [p.strip() for p in line.split("->")]
                if len(parts) != 3 or not all(parts):
                    raise ValueError(f"Malformed transition line: {line!r}")
                transitions.add(tuple(parts))

            # Plain notation: q0 a q1
            else:
                parts = line.split()
                if len(parts) != 3:
                    raise ValueError(f"Malformed transition line: {line!r}")
                transitions.add(tuple(parts))

        if start_state is None:
            raise ValueError("Automaton definition has no 'start:' line")

        # States and symbols used by transitions count as declared
        for src, sym, tgt in transitions:
            states.update((src, tgt))
            alphabet.add(sym)
        states.add(start_state)
        states.update(accepting_states)

        return cls(
            states=states,
            alphabet=alphabet,
            transition_relation=transitions,
            start_state=start_state,
            accepting_states=accepting_states,
        )

    # -------------------------------------------------------------------------
    # Transition helpers
    # -------------------------------------------------------------------------

    def _get_transition_dict(self) -> Dict[Tuple[str, str], FrozenSet[str]]:
        """Convert transition relation to dictionary format."""
        result = defaultdict(set)
        for src, sym, tgt in self.transition_relation:
            result[(src, sym)].add(tgt)
        return {k: frozenset(v) for k, v in result.items()}

    def _step(
        self,
        current: Iterable[str],
        symbol: str,
        trans_dict: Dict[Tuple[str, str], FrozenSet[str]],
    ) -> FrozenSet[str]:
        targets: Set[str] = set()
        for q in current:
            targets.update(trans_dict.get((q, symbol), frozenset()))
        return frozenset(targets)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def accepts(self, word: Iterable[str]) -> bool:
        """
        Check if the automaton accepts a word.

        Tracks the set of reachable states, so no prior conversion to a
        DEA is needed. Unknown symbols and dead ends reject immediately.
        """
        trans_dict = self._get_transition_dict()
        current = frozenset({self.start_state})

        for symbol in word:
            if symbol not in self.alphabet:
                return False
            current = self._step(current, symbol, trans_dict)
            if not current:
                return False

        return not current.isdisjoint(self.accepting_states)

    def is_deterministic(self) -> bool:
        """True if no (state, symbol) pair has more than one target."""
        return all(len(targets) <= 1 for targets in self._get_transition_dict().values())

    # -------------------------------------------------------------------------
    # Conversions
    # -------------------------------------------------------------------------

    def to_DEA(self) -> "Automaton":
        """Convert to an equivalent DEA using the powerset construction."""
        trans_dict = self._get_transition_dict()

        start = frozenset({self.start_state})
        names: Dict[FrozenSet[str], str] = {start: subset_name(start)}
        new_relation = set()
        queue = deque([start])

        while queue:
            S = queue.popleft()

            for a in sorted(self.alphabet):
                target_set = self._step(S, a, trans_dict)
                if not target_set:
                    continue

                if target_set not in names:
                    names[target_set] = fresh_state(
                        subset_name(target_set), set(names.values())
                    )
                    queue.append(target_set)

                new_relation.add((names[S], a, names[target_set]))

        accepting = {
            name
            for subset, name in names.items()
            if not subset.isdisjoint(self.accepting_states)
        }

        logger.debug(
            "Subset construction: %d states -> %d reachable subsets",
            len(self.states),
            len(names),
        )

        return Automaton(
            states=names.values(),
            alphabet=self.alphabet,
            transition_relation=new_relation,
            start_state=names[start],
            accepting_states=accepting,
        )

    def to_grammar(self) -> "Grammar":
        """Convert to a right-linear grammar generating the same language."""
        # Local import to avoid circular dependency at module import time
        from conversion import automaton_to_grammar

        return automaton_to_grammar(self)

    # -------------------------------------------------------------------------
    # Presentation
    # -------------------------------------------------------------------------

    def format_transitions(self) -> List[str]:
        return [
            f"  {src} --{sym}--> {tgt}"
            for src, sym, tgt in sorted(self.transition_relation)
        ]

    def __str__(self):
        kind = "DEA" if self.is_deterministic() else "NEA"
        result = f"Automaton ({kind})\n"
        result += f"  States: {{{', '.join(sorted(self.states))}}}\n"
        result += f"  Alphabet: {{{', '.join(sorted(self.alphabet))}}}\n"
        result += f"  Start state: {self.start_state}\n"
        result += f"  Accepting states: {{{', '.join(sorted(self.accepting_states))}}}\n"
        result += "  Transitions:\n"
        for line in self.format_transitions():
            result += f"  {line}\n"
        return result

    # -------------------------------------------------------------------------
    # Visualization
    # -------------------------------------------------------------------------

    def _get_state_id(self, state, state_to_id: dict) -> str:
        """Get or create a clean ID for a state."""
        if state not in state_to_id:
            state_to_id[state] = f"q{len(state_to_id)}"
        return state_to_id[state]

    def to_graphviz(self) -> Digraph:
        """Build a Graphviz diagram for this automaton."""
        kind = "DEA" if self.is_deterministic() else "NEA"

        dot = Digraph(
            name=kind,
            format="png",
            graph_attr={
                "rankdir": "LR",
                "splines": "true",
                "nodesep": "0.8",
                "ranksep": "1.2",
                "label": kind,
                "labelloc": "t",
                "fontsize": "14",
                "fontname": "Arial",
                "bgcolor": "white",
                "pad": "0.5",
            },
            node_attr={
                "shape": "circle",
                "fontsize": "14",
                "fontname": "Arial",
                "style": "filled",
                "fillcolor": "lightblue",
                "color": "black",
                "penwidth": "2",
            },
            edge_attr={
                "fontsize": "12",
                "fontname": "Arial",
                "arrowsize": "0.8",
                "penwidth": "1.5",
                "color": "black",
            },
        )

        state_to_id: Dict[str, str] = {}

        dot.node("__start__", shape="point", width="0.01", style="invis")

        for state in sorted(self.states):
            node_id = self._get_state_id(state, state_to_id)
            if state in self.accepting_states:
                dot.node(
                    node_id,
                    label=state,
                    shape="doublecircle",
                    fillcolor="lightgreen",
                )
            else:
                dot.node(node_id, label=state)

        start_id = self._get_state_id(self.start_state, state_to_id)
        dot.edge("__start__", start_id, penwidth="2")

        # Parallel edges share one arrow with a merged label
        transitions = defaultdict(list)
        for src, sym, tgt in self.transition_relation:
            transitions[(src, tgt)].append(sym)

        for (src, tgt), symbols in sorted(transitions.items()):
            label = ", ".join(sorted(symbols))
            src_id = self._get_state_id(src, state_to_id)
            tgt_id = self._get_state_id(tgt, state_to_id)

            if src == tgt:
                dot.edge(src_id, tgt_id, label=label, headport="n", tailport="n")
            else:
                dot.edge(src_id, tgt_id, label=label)

        return dot

    def render(self, filename: str = "automaton", view: bool = True) -> Digraph:
        dot = self.to_graphviz()
        dot.render(filename, view=view, cleanup=True)
        return dot
