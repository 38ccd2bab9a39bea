import logging
import random
import re
from enum import Enum
from types import MappingProxyType
from typing_extensions import *

from automaton import Automaton, InvalidReferenceError

logger = logging.getLogger(__name__)

MAX_STEPS = 60  # Derivation steps before generation gives up
BIAS_THRESHOLD = 20  # Steps after which terminating productions are preferred
END_BIAS = 0.65  # Probability of picking a terminating production once biased

EPSILON = "ε"

# <Name>, an upper-case letter with optional digits/primes, or any other character
_TOKEN = re.compile(r"<[^<>]+>|[A-Z][0-9']*|\S")


class GrammarType(Enum):
    TYPE_0 = 0  # Unrestricted grammar
    TYPE_1 = 1  # Context-sensitive grammar
    TYPE_2 = 2  # Context-free grammar (CFG)
    TYPE_3 = 3  # Regular grammar

    @property
    def label(self) -> str:
        return {
            0: "Type 0 (unrestricted)",
            1: "Type 1 (context-sensitive)",
            2: "Type 2 (context-free)",
            3: "Type 3 (regular)",
        }[self.value]


class Production(NamedTuple):
    """Right-linear production: emit ``terminal``, then continue with ``nonterminal``."""

    terminal: str
    nonterminal: Optional[str] = None

    @property
    def ends(self) -> bool:
        return self.nonterminal is None

    def symbols(self) -> Tuple[str, ...]:
        if self.nonterminal is None:
            return (self.terminal,)
        return (self.terminal, self.nonterminal)

    def __str__(self):
        return self.terminal + (self.nonterminal or "")


class Grammar:
    """
    Grammar G = (N, Sigma, P, S) whose productions are right-linear.

    P maps a left-hand side to its ordered productions. A left-hand side is
    normally one non-terminal, but any string of grammar symbols containing
    a non-terminal is accepted so that non-regular grammars can be
    classified. The grammar is not modified after construction.
    """

    def __init__(
        self,
        non_terminals: Iterable[str],
        terminals: Iterable[str],
        productions: Mapping[str, Iterable[Union[Production, Tuple[str, Optional[str]], str]]],
        start_symbol: str,
    ):
        self._N: FrozenSet[str] = frozenset(non_terminals)
        self._Sigma: FrozenSet[str] = frozenset(terminals)
        self._S: str = start_symbol

        owned: Dict[str, Tuple[Production, ...]] = {}
        for lhs, options in productions.items():
            owned[lhs] = tuple(
                Production(*p) if isinstance(p, tuple) else Production(p)
                for p in options
            )
        self._P: Mapping[str, Tuple[Production, ...]] = MappingProxyType(owned)

        self._validate()

    # ------------------------------------------------------------------ #
    # Accessors
    # ------------------------------------------------------------------ #

    @property
    def N(self) -> FrozenSet[str]:
        return self._N

    @property
    def Sigma(self) -> FrozenSet[str]:
        return self._Sigma

    @property
    def P(self) -> Mapping[str, Tuple[Production, ...]]:
        return self._P

    @property
    def S(self) -> str:
        return self._S

    def __eq__(self, other):
        if not isinstance(other, Grammar):
            return NotImplemented
        return (
            self.N == other.N
            and self.Sigma == other.Sigma
            and dict(self.P) == dict(other.P)
            and self.S == other.S
        )

    __hash__ = None

    # ------------------------------------------------------------------ #
    # Validation
    # ------------------------------------------------------------------ #

    def _validate(self):
        for symbol in self.Sigma:
            if not isinstance(symbol, str) or len(symbol) != 1:
                raise InvalidReferenceError(
                    f"Invalid reference: terminal {symbol!r} is not a single character"
                )

        if self.S not in self.N:
            raise InvalidReferenceError(
                f"Invalid reference: start symbol {self.S!r} is not a non-terminal"
            )

        for lhs, options in self.P.items():
            lhs_symbols = self._split_symbols(lhs)
            if not lhs_symbols or not any(s in self.N for s in lhs_symbols):
                raise InvalidReferenceError(
                    f"Invalid reference: left-hand side {lhs!r} is not a sequence of grammar symbols containing a non-terminal"
                )
            for production in options:
                if production.terminal not in self.Sigma:
                    raise InvalidReferenceError(
                        f"Invalid reference: terminal {production.terminal!r} in {lhs} -> {production} is not declared"
                    )
                if production.nonterminal is not None and production.nonterminal not in self.N:
                    raise InvalidReferenceError(
                        f"Invalid reference: non-terminal {production.nonterminal!r} in {lhs} -> {production} is not declared"
                    )

    def _split_symbols(self, text: str) -> Optional[Tuple[str, ...]]:
        """
        Split ``text`` into grammar symbols, or None if it cannot be split.

        Longer symbols are tried first; a shorter one is tried when the
        rest of the text does not split after the longer match.
        """
        if text in self.N or text in self.Sigma:
            return (text,)

        vocabulary = sorted((s for s in self.N | self.Sigma if s), key=len, reverse=True)
        dead_ends: Set[int] = set()

        def split_from(i: int) -> Optional[Tuple[str, ...]]:
            if i == len(text):
                return ()
            if i in dead_ends:
                return None
            for symbol in vocabulary:
                if text.startswith(symbol, i):
                    rest = split_from(i + len(symbol))
                    if rest is not None:
                        return (symbol,) + rest
            dead_ends.add(i)
            return None

        return split_from(0)

    # ------------------------------------------------------------------ #
    # Introspection / pretty-printing
    # ------------------------------------------------------------------ #

    def format_productions(self) -> List[str]:
        return sorted(
            f"  {lhs} -> {production}"
            for lhs, options in self.P.items()
            for production in options
        )

    def __str__(self):
        result = f"Grammar Type: {self.detect_grammar_type().name}\n"
        result += f"  Non-terminals: {{{', '.join(sorted(self.N))}}}\n"
        result += f"  Terminals: {{{', '.join(sorted(self.Sigma))}}}\n"
        result += f"  Start symbol: {self.S}\n"
        result += "  Productions:\n"

        for lhs in sorted(self.P):
            if not self.P[lhs]:
                continue
            result += f"    {lhs} -> {' | '.join(str(p) for p in self.P[lhs])}\n"

        return result

    # ------------------------------------------------------------------ #
    # Type detection
    # ------------------------------------------------------------------ #

    def detect_grammar_type(self) -> GrammarType:
        is_type3 = True
        is_type2 = True
        is_type1 = True

        for lhs, options in self.P.items():
            lhs_symbols = self._split_symbols(lhs)
            single_non_terminal = lhs in self.N

            for production in options:
                rhs = production.symbols()

                # Type 2 check
                if not single_non_terminal:
                    is_type2 = False

                # Type 3 check: A -> a or A -> aB
                if not single_non_terminal:
                    is_type3 = False
                elif production.terminal not in self.Sigma or (
                    not production.ends and production.nonterminal not in self.N
                ):
                    is_type3 = False

                # Type 1 check
                if rhs:
                    if len(rhs) < len(lhs_symbols):
                        is_type1 = False
                elif lhs != self.S:
                    is_type1 = False

        if is_type3 and is_type2:
            return GrammarType.TYPE_3
        if is_type2:
            return GrammarType.TYPE_2
        if is_type1:
            return GrammarType.TYPE_1
        return GrammarType.TYPE_0

    def classify(self) -> str:
        return self.detect_grammar_type().label

    # ------------------------------------------------------------------ #
    # Sentence generation
    # ------------------------------------------------------------------ #

    def generate_sentence(self, rng: Optional[random.Random] = None) -> Optional[str]:
        """
        Derive one random sentence from the start symbol.

        Returns None when the derivation runs longer than MAX_STEPS or
        reaches a non-terminal without productions.
        """
        if rng is None:
            rng = random.Random()

        current = self.S
        sentence: List[str] = []
        steps = 0

        while current is not None:
            steps += 1
            if steps > MAX_STEPS:
                return None

            options = self.P.get(current)
            if not options:
                return None

            chosen = self._choose_with_bias(options, steps, rng)
            sentence.append(chosen.terminal)
            current = chosen.nonterminal

        return "".join(sentence)

    @staticmethod
    def _choose_with_bias(
        options: Sequence[Production], steps: int, rng: random.Random
    ) -> Production:
        # Long derivations lean toward productions that end them
        if steps > BIAS_THRESHOLD:
            endings = [p for p in options if p.ends]
            if endings and rng.random() < END_BIAS:
                return rng.choice(endings)
        return rng.choice(options)

    def generate_sentences(
        self,
        count: int,
        rng: Optional[random.Random] = None,
        max_attempts: int = 1000,
    ) -> List[str]:
        """Collect up to ``count`` distinct sentences in discovery order."""
        if rng is None:
            rng = random.Random()

        sentences: List[str] = []
        for _ in range(max_attempts):
            if len(sentences) >= count:
                break
            sentence = self.generate_sentence(rng)
            if sentence is not None and sentence not in sentences:
                sentences.append(sentence)

        if len(sentences) < count:
            logger.warning(
                "Only %d of %d sentences generated after %d attempts",
                len(sentences),
                count,
                max_attempts,
            )
        return sentences

    # ------------------------------------------------------------------ #
    # Conversion
    # ------------------------------------------------------------------ #

    def to_NEA(self) -> Automaton:
        """Convert the right-linear grammar to an automaton."""
        # Local import to avoid circular dependency at module import time
        from conversion import grammar_to_automaton

        return grammar_to_automaton(self)

    # ------------------------------------------------------------------ #
    # Parsing from file / string (simplified format)
    # ------------------------------------------------------------------ #

    @classmethod
    def from_file(cls, filename: str) -> "Grammar":
        with open(filename, "r", encoding="utf-8") as f:
            content = f.read()
        return cls.from_string(content)

    @classmethod
    def from_string(cls, content: str) -> "Grammar":
        """
        Parse productions such as ``S -> bS | dA`` (one left-hand side per line).

        Upper-case letters, optionally followed by digits or primes, and
        names in angle brackets are non-terminals; every other character is
        a terminal. An optional ``START: X`` line sets the start symbol,
        otherwise ``S`` or the first left-hand side is used.
        """
        specified_start = None
        productions: List[Tuple[Tuple[str, ...], List[Tuple[str, ...]]]] = []

        for line in content.strip().split("\n"):
            if "#" in line:
                line = line[: line.index("#")]
            line = line.strip()

            if not line:
                continue

            if line.startswith("START:"):
                specified_start = _strip_brackets(line.split(":", 1)[1].strip())
                continue

            if line == "PRODUCTIONS:":
                continue

            line = line.replace("→", "->").replace("::=", "->")
            if "->" not in line:
                raise ValueError(f"Malformed production line: {line!r}")

            lhs, rhs_alternatives = line.split("->", 1)
            lhs_tokens = _tokenize(lhs)
            if not lhs_tokens:
                raise ValueError(f"Missing left-hand side in {line!r}")

            alternatives = [_tokenize(rhs) for rhs in rhs_alternatives.split("|")]
            productions.append((lhs_tokens, alternatives))

        if not productions:
            raise ValueError("No productions found or unable to determine start symbol")

        non_terminals: Set[str] = set()
        terminals: Set[str] = set()
        for lhs_tokens, alternatives in productions:
            for token in lhs_tokens:
                (non_terminals if _is_non_terminal(token) else terminals).add(
                    _strip_brackets(token)
                )
            for rhs in alternatives:
                for token in rhs:
                    (non_terminals if _is_non_terminal(token) else terminals).add(
                        _strip_brackets(token)
                    )

        if EPSILON in terminals:
            raise ValueError("Epsilon productions are not right-linear productions")

        P: Dict[str, List[Production]] = {}
        for lhs_tokens, alternatives in productions:
            lhs = "".join(_strip_brackets(t) for t in lhs_tokens)
            for rhs in alternatives:
                P.setdefault(lhs, []).append(_to_production(lhs, rhs))

        if specified_start:
            start_symbol = specified_start
            non_terminals.add(start_symbol)
        elif "S" in non_terminals:
            start_symbol = "S"
        else:
            start_symbol = next(
                (lhs for lhs in P if lhs in non_terminals),
                sorted(non_terminals)[0] if non_terminals else "",
            )

        return cls(non_terminals, terminals, P, start_symbol)


def _tokenize(text: str) -> Tuple[str, ...]:
    return tuple(_TOKEN.findall(text.strip()))


def _is_non_terminal(token: str) -> bool:
    return (token.startswith("<") and token.endswith(">")) or token[0].isupper()


def _strip_brackets(token: str) -> str:
    if token.startswith("<") and token.endswith(">"):
        return token[1:-1]
    return token


def _to_production(lhs: str, rhs: Tuple[str, ...]) -> Production:
    """Map ``a`` or ``a B`` onto a Production; anything else is rejected."""
    if len(rhs) == 1 and not _is_non_terminal(rhs[0]):
        return Production(rhs[0])
    if len(rhs) == 2 and not _is_non_terminal(rhs[0]) and _is_non_terminal(rhs[1]):
        return Production(rhs[0], _strip_brackets(rhs[1]))
    raise ValueError(
        f"Production {lhs} -> {''.join(rhs) or EPSILON} is not of the form 'a' or 'aB'"
    )
