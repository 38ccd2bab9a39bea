import logging
import os
import random
from typing_extensions import *

from automaton import Automaton
from grammar import Grammar
from io_utils import load_from_file

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"

HELP = """
Commands:
  LOADING:
    load <file>                  - Load automata/grammars from file
    list                         - List all loaded items

  AUTOMATA OPERATIONS:
    show <name>                  - Show automaton info
    graph <name>                 - Visualize automaton
    test <name> <word>           - Test if word is accepted
    is_dea <name>                - Check whether automaton is deterministic

    CONVERSIONS:
      to_dea <name> [result]     - Convert NEA to DEA (subset construction)
      to_grammar <name> [result] - Convert automaton to right-linear grammar

  GRAMMAR OPERATIONS:
    show_grammar <name>          - Show grammar info
    classify <name>              - Chomsky hierarchy classification
    generate <name> [count]      - Generate random sentences
    to_nea <name> [result]       - Convert right-linear grammar to NEA

  GENERAL:
    delete <name>                - Delete item
    clear                        - Clear all
    exit                         - Exit
"""


def configure_logging() -> None:
    if os.environ.get("AUTOMATA_DEBUG"):
        level = logging.DEBUG
    else:
        level_name = os.environ.get("AUTOMATA_LOG_LEVEL", "WARNING").upper()
        level = logging.getLevelName(level_name)
        if not isinstance(level, int):
            level = logging.WARNING
    logging.basicConfig(format=LOG_FORMAT, level=level)


class Terminal:
    """Interactive terminal holding named automata and grammars."""

    def __init__(self, rng: Optional[random.Random] = None):
        self.automata: Dict[str, Automaton] = {}
        self.grammars: Dict[str, Grammar] = {}
        self.rng = rng if rng is not None else random.Random()

    def _automaton(self, name: str) -> Optional[Automaton]:
        if name not in self.automata:
            print(f"Automaton not found: {name}")
            return None
        return self.automata[name]

    def _grammar(self, name: str) -> Optional[Grammar]:
        if name not in self.grammars:
            print(f"Grammar not found: {name}")
            return None
        return self.grammars[name]

    def execute(self, command: str) -> bool:
        """Run one command line. Returns False when the terminal should exit."""
        parts = command.split()
        if not parts:
            return True
        cmd = parts[0].lower()

        # Exit
        if cmd in ["exit", "quit"]:
            return False

        # Help
        elif cmd == "help":
            print(HELP)

        # Load
        elif cmd == "load":
            if len(parts) < 2:
                print("Usage: load <filename>")
                return True
            loaded_automata, loaded_grammars = load_from_file(parts[1])
            self.automata.update(loaded_automata)
            self.grammars.update(loaded_grammars)

            if loaded_automata or loaded_grammars:
                msg = []
                if loaded_automata:
                    msg.append(
                        f"{len(loaded_automata)} automata: {', '.join(loaded_automata.keys())}"
                    )
                if loaded_grammars:
                    msg.append(
                        f"{len(loaded_grammars)} grammars: {', '.join(loaded_grammars.keys())}"
                    )
                print(f"Loaded {' and '.join(msg)}")
            else:
                print("No items loaded")

        # List
        elif cmd == "list":
            if not self.automata and not self.grammars:
                print("Nothing loaded")
            if self.automata:
                print("Automata:")
                for name, aut in sorted(self.automata.items()):
                    kind = "DEA" if aut.is_deterministic() else "NEA"
                    print(f"  {name}: {kind}, {len(aut.states)} states")
            if self.grammars:
                print("Grammars:")
                for name, gram in sorted(self.grammars.items()):
                    count = sum(len(options) for options in gram.P.values())
                    print(
                        f"  {name}: {gram.detect_grammar_type().name}, "
                        f"{len(gram.N)} non-terminals, {count} productions"
                    )

        # Show automaton
        elif cmd == "show":
            if len(parts) < 2:
                print("Usage: show <name>")
            elif self._automaton(parts[1]) is not None:
                print(f"\n{parts[1]}:\n{self.automata[parts[1]]}")

        # Visualize
        elif cmd == "graph":
            if len(parts) < 2:
                print("Usage: graph <name>")
            elif self._automaton(parts[1]) is not None:
                self.automata[parts[1]].render(filename=parts[1], view=True)
                print(f"Rendered {parts[1]}.png")

        # Membership
        elif cmd == "test":
            if len(parts) < 2:
                print("Usage: test <name> <word>")
            elif self._automaton(parts[1]) is not None:
                word = parts[2] if len(parts) > 2 else ""
                result = self.automata[parts[1]].accepts(word)
                print(f"'{word}' is {'ACCEPTED' if result else 'REJECTED'}")

        elif cmd == "is_dea":
            if len(parts) < 2:
                print("Usage: is_dea <name>")
            elif self._automaton(parts[1]) is not None:
                print(f"Is deterministic: {self.automata[parts[1]].is_deterministic()}")

        elif cmd == "to_dea":
            if len(parts) < 2:
                print("Usage: to_dea <name> [result]")
            elif self._automaton(parts[1]) is not None:
                result_name = parts[2] if len(parts) > 2 else f"{parts[1]}_dea"
                self.automata[result_name] = self.automata[parts[1]].to_DEA()
                print(f"Created automaton: {result_name}")

        elif cmd == "to_grammar":
            if len(parts) < 2:
                print("Usage: to_grammar <name> [result]")
            elif self._automaton(parts[1]) is not None:
                result_name = parts[2] if len(parts) > 2 else f"{parts[1]}_grammar"
                self.grammars[result_name] = self.automata[parts[1]].to_grammar()
                print(f"Created grammar: {result_name}")

        # Show grammar
        elif cmd == "show_grammar":
            if len(parts) < 2:
                print("Usage: show_grammar <name>")
            elif self._grammar(parts[1]) is not None:
                print(f"\n{parts[1]}:\n{self.grammars[parts[1]]}")

        elif cmd == "classify":
            if len(parts) < 2:
                print("Usage: classify <name>")
            elif self._grammar(parts[1]) is not None:
                print(f"{parts[1]} is: {self.grammars[parts[1]].classify()}")

        elif cmd == "generate":
            if len(parts) < 2:
                print("Usage: generate <name> [count]")
            elif self._grammar(parts[1]) is not None:
                count = int(parts[2]) if len(parts) > 2 else 5
                for sentence in self.grammars[parts[1]].generate_sentences(count, self.rng):
                    print(f"  {sentence}")

        elif cmd == "to_nea":
            if len(parts) < 2:
                print("Usage: to_nea <name> [result]")
            elif self._grammar(parts[1]) is not None:
                result_name = parts[2] if len(parts) > 2 else f"{parts[1]}_nea"
                self.automata[result_name] = self.grammars[parts[1]].to_NEA()
                print(f"Created automaton: {result_name}")

        # Delete
        elif cmd == "delete":
            if len(parts) < 2:
                print("Usage: delete <name>")
            elif parts[1] in self.automata:
                del self.automata[parts[1]]
                print(f"Deleted automaton: {parts[1]}")
            elif parts[1] in self.grammars:
                del self.grammars[parts[1]]
                print(f"Deleted grammar: {parts[1]}")
            else:
                print(f"Not found: {parts[1]}")

        elif cmd == "clear":
            self.automata.clear()
            self.grammars.clear()
            print("Cleared all items")

        else:
            print(f"Unknown command: {cmd}. Type 'help' for commands")

        return True


def main():
    """Simple interactive terminal for automaton and grammar operations."""
    configure_logging()
    terminal = Terminal()

    print("Automaton & Grammar Terminal - Type 'help' for commands\n")

    while True:
        try:
            command = input("> ").strip()
        except (EOFError, KeyboardInterrupt):
            print()
            break

        try:
            if not terminal.execute(command):
                break
        except Exception as e:
            print(f"Error: {e}")


if __name__ == "__main__":
    main()
