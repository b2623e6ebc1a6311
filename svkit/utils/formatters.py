from __future__ import annotations
import argparse, shutil, os, sys
from typing import Dict, List

_TERM_WIDTH = shutil.get_terminal_size((100, 20)).columns


def _is_subparsers_action(action: argparse.Action) -> bool:
    """
    Return True for the 'subparsers' action using only public APIs:
    a mapping of names -> ArgumentParser instances.
    """
    choices = getattr(action, "choices", None)
    if not isinstance(choices, dict) or not choices:
        return False
    return all(isinstance(p, argparse.ArgumentParser) for p in choices.values())


def _use_color(stream) -> bool:
    return stream.isatty() and os.environ.get("NO_COLOR") is None


class ToolHelpFormatter(argparse.RawDescriptionHelpFormatter):
    """Wider help for a single tool; keeps the description/epilog layout as written."""

    def __init__(self, prog: str) -> None:
        super().__init__(prog, max_help_position=32, width=_TERM_WIDTH)


class CommandGroupHelpFormatter(argparse.HelpFormatter):
    """
    Help formatter that renders the tool list as a two-column table
    with right-justified command names.
    """

    _ANSI_RESET = "\033[0m"
    _ANSI_BOLD = "\033[1m"
    _ANSI_CYAN = "\033[36m"

    def __init__(self, prog: str) -> None:
        super().__init__(prog, max_help_position=32, width=_TERM_WIDTH)

    def _format_action(self, action: argparse.Action) -> str:
        if not _is_subparsers_action(action):
            return super()._format_action(action)

        helps: Dict[str, str] = {}
        for choice_action in getattr(action, "_choices_actions", []):
            name = getattr(choice_action, "dest", None)
            if name:
                helps[name] = getattr(choice_action, "help", "") or ""
        if not helps:
            return ""

        names = sorted(helps.keys())
        name_w = max(len(n) for n in names)
        label = (getattr(action, "metavar", None) or getattr(action, "dest", "") or "command")

        out_lines: List[str] = ["", f"  {label.capitalize().rjust(name_w)}  Description",
                                f"  {'-' * name_w}  -----------"]
        color = _use_color(sys.stdout)
        for n in names:
            shown = f"{self._ANSI_BOLD}{self._ANSI_CYAN}{n}{self._ANSI_RESET}" if color else n
            pad = " " * max(0, name_w - len(n))
            out_lines.append(f"  {pad}{shown}  {helps[n]}")
        out_lines.append("")
        return "\n".join(out_lines) + "\n"


class CustomArgumentParser(argparse.ArgumentParser):
    """
    ArgumentParser that prints the command's help before reporting an error.
    """

    def __init__(self, *args, **kwargs) -> None:
        kwargs.setdefault("formatter_class", ToolHelpFormatter)
        super().__init__(*args, **kwargs)

    def error(self, message: str) -> None:
        self.print_help(sys.stderr)
        self.exit(2, f"Error: {message}\n")


class CommandsAction(argparse.Action):
    """
    argparse Action: --commands -> print the tool tree and exit(0).
    """
    def __init__(self, option_strings, dest, nargs=0, **kwargs) -> None:
        super().__init__(option_strings, dest, nargs=nargs, **kwargs)

    def __call__(self, parser, namespace, values, option_string=None) -> None:
        color = _use_color(sys.stdout)
        cyan = "\033[96m" if color else ""
        reset = "\033[0m" if color else ""

        tree = [parser.prog]
        subparsers_actions = [a for a in parser._actions if _is_subparsers_action(a)]
        if subparsers_actions:
            top = subparsers_actions[0]
            help_map = {a.dest: (a.help or "") for a in getattr(top, "_choices_actions", [])}
            choices = sorted(top.choices)
            for i, name in enumerate(choices):
                pfx = "└── " if i == len(choices) - 1 else "├── "
                padw = len(pfx + name)
                tree.append(f"{pfx}{cyan}{name}{reset}{' ' * max(0, 20 - padw)}  ({help_map.get(name, '')})")

        sys.stdout.write("\n".join(tree) + "\n")
        parser.exit(0)
