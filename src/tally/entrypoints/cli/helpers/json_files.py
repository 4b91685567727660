"""JSON file helpers for CLI commands.

Commands read genesis descriptions and transaction batches from JSON files and
write signed batches back. Parse failures surface as `click.BadParameter` so
the user sees which file was wrong instead of a traceback.
"""

import json
from pathlib import Path
from typing import Any

import click


def load_json(path: Path, param_hint: str) -> Any:
    """Read and parse the JSON document at `path`.

    Raises:
        click.BadParameter: If the file is not UTF-8 text or not valid JSON.
    """
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except UnicodeDecodeError as e:
        raise click.BadParameter(
            f"{path} is not UTF-8 text (byte {e.start})", param_hint=param_hint
        ) from e
    except json.JSONDecodeError as e:
        raise click.BadParameter(
            f"{path} is not valid JSON: {e.msg} (line {e.lineno})",
            param_hint=param_hint,
        ) from e


def dump_json(data: Any, output: Path | None = None) -> None:
    """Write `data` as indented JSON to `output`, or to stdout when None."""
    text = json.dumps(data, indent=2)
    if output is None:
        click.echo(text)
    else:
        output.write_text(text + "\n", encoding="utf-8")
