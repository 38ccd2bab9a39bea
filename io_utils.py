import logging
import os
import re
from typing_extensions import *

from automaton import Automaton
from grammar import Grammar

logger = logging.getLogger(__name__)

# Lines like "accept:" with an empty value are automaton keywords, not section names
_RESERVED_HEADERS = {"PRODUCTIONS", "START", "states", "alphabet", "start", "accept"}


def detect_automaton(content: str) -> bool:
    lines = [
        line.strip()
        for line in content.strip().split("\n")
        if line.strip() and not line.strip().startswith("#")
    ]

    automaton_keywords = ["states:", "alphabet:", "start:", "accept:"]
    if any(line.startswith(kw) for line in lines for kw in automaton_keywords):
        return True

    if "::=" in content or "|" in content:
        return False

    arrow_lines = [line for line in lines if "->" in line or "→" in line]
    if not arrow_lines:
        # Plain "q0 a q1" transitions
        return bool(lines) and all(len(line.split()) == 3 for line in lines)

    automaton_pattern_count = 0
    grammar_pattern_count = 0

    for line in arrow_lines:
        parts = re.split(r"\s*->\s*|\s*→\s*", line)

        if len(parts) == 3:
            automaton_pattern_count += 1
        elif len(parts) == 2:
            grammar_pattern_count += 1

    return automaton_pattern_count > grammar_pattern_count


def _load_definition(
    name: str,
    definition: str,
    automata: Dict[str, Automaton],
    grammars: Dict[str, Grammar],
) -> None:
    if detect_automaton(definition):
        try:
            loaded = Automaton.from_string(definition)
        except ValueError as e:
            logger.warning("Failed to load automaton '%s': %s", name, e)
            return
        for idx, aut in enumerate(loaded):
            automata[f"{name}{idx if idx > 0 else ''}"] = aut
    else:
        try:
            grammars[name] = Grammar.from_string(definition)
        except ValueError as e:
            logger.warning("Failed to load grammar '%s': %s", name, e)


def load_from_file(filename: str) -> Tuple[Dict[str, Automaton], Dict[str, Grammar]]:
    """
    Load automata and grammars from a text file.

    A file holds either one unnamed definition, named after the file, or
    several sections each introduced by a ``NAME:`` line. Definitions that
    cannot be parsed are skipped with a warning.
    """
    with open(filename, "r", encoding="utf-8") as f:
        content = f.read()
    return load_from_string(content, os.path.basename(filename).rsplit(".", 1)[0])


def load_from_string(
    content: str, default_name: str = "main"
) -> Tuple[Dict[str, Automaton], Dict[str, Grammar]]:
    automata: Dict[str, Automaton] = {}
    grammars: Dict[str, Grammar] = {}

    name_pattern = re.compile(r"^([A-Za-z]\w*):\s*$", re.MULTILINE)
    headers = [
        m for m in name_pattern.finditer(content) if m.group(1) not in _RESERVED_HEADERS
    ]

    if not headers:
        if content.strip():
            _load_definition(default_name, content, automata, grammars)
        return automata, grammars

    # Named sections: NAME:\n...definition...
    for i, match in enumerate(headers):
        end = headers[i + 1].start() if i + 1 < len(headers) else len(content)
        definition = content[match.end() : end].strip()
        if not definition:
            continue
        _load_definition(match.group(1), definition, automata, grammars)

    logger.debug("Loaded %d automata and %d grammars", len(automata), len(grammars))
    return automata, grammars
