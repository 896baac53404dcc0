"""Result printing for CLI commands"""

from typing import Any, Dict

import yaml
from rich.syntax import Syntax


def show_result(result: Dict[str, Any], console):
    """Print a command result as highlighted YAML"""
    console.print("---")
    text = yaml.safe_dump(result, sort_keys=False, default_flow_style=False, allow_unicode=True)
    console.print(Syntax(text.rstrip(), "yaml", theme="ansi_dark", background_color="default"))


def mask_secret(value: Any, visible: int = 4) -> str:
    """Show only the tail of a secret value"""
    text = str(value)
    if len(text) <= visible:
        return "*" * len(text)
    return f"{'*' * 8}{text[-visible:]}"
