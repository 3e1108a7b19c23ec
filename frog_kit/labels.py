from __future__ import annotations

from pathlib import Path
from typing import Dict, Tuple, Union


PathLike = Union[str, Path]

YAML_SUFFIXES = (".yaml", ".yml")

# Index-aligned with the score channels of the exported frog detector.
FROG_LABELS: Tuple[str, ...] = (
    "Asian Painted Frog",
    "Cane Toad",
    "Common Southeast Asian Tree Frog",
    "East Asian Bullfrog",
    "Paddy Field Frog",
    "Wood Frog",
)


def load_labels(path: PathLike) -> Tuple[str, ...]:
    """
    Load a label table from disk.

    Two formats are accepted:

    - `labels.txt`: one class name per line, in class-index order.
    - `metadata.yaml`: the Ultralytics-style mapping

        names:
          0: Asian Painted Frog
          1: Cane Toad
          ...

      or its inline form `names: {0: Asian Painted Frog, 1: Cane Toad}`.
      A `.yaml`/`.yml` file without a `names:` key is rejected.

    Blank lines and `#` comments are ignored. The result is an immutable tuple so
    it can be shared by reference between the decoder and the suppression engine.
    """

    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Label file not found: {p}")

    with open(p, "r", encoding="utf-8") as f:
        lines = [raw.rstrip("\n") for raw in f]

    names_line = next((line.strip() for line in lines if line.strip().startswith("names:")), None)
    if names_line is not None:
        inline = names_line[len("names:") :].strip()
        labels = _parse_inline_names(inline) if inline else _parse_names_mapping(lines)
    elif p.suffix.lower() in YAML_SUFFIXES:
        raise ValueError(f"{p} has no `names:` mapping")
    else:
        labels = tuple(line.strip() for line in lines if line.strip() and not line.strip().startswith("#"))

    if not labels:
        raise ValueError(f"No labels found in {p}")
    return labels


def _ordered_names(names: Dict[int, str]) -> Tuple[str, ...]:
    expected = list(range(len(names)))
    if sorted(names) != expected:
        raise ValueError(f"Label ids must be contiguous from 0, got {sorted(names)}")
    return tuple(names[i] for i in expected)


def _parse_inline_names(text: str) -> Tuple[str, ...]:
    # names: {0: a, 1: 'b'}
    if not (text.startswith("{") and text.endswith("}")):
        raise ValueError(f"Unsupported inline `names:` value: {text!r}")

    names: Dict[int, str] = {}
    for item in text[1:-1].split(","):
        item = item.strip()
        if not item:
            continue
        if ":" not in item:
            raise ValueError(f"Malformed `names:` entry: {item!r}")
        left, right = item.split(":", 1)
        left = left.strip().strip("'").strip('"')
        if not left.isdigit():
            raise ValueError(f"Label id must be an integer, got {left!r}")
        names[int(left)] = right.strip().strip("'").strip('"')
    return _ordered_names(names)


def _parse_names_mapping(lines) -> Tuple[str, ...]:
    names: Dict[int, str] = {}
    in_names = False

    for raw in lines:
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("names:"):
            in_names = True
            continue
        if not in_names:
            continue
        # A new top-level key ends the names block.
        if not raw[:1].isspace() and not line[:1].isdigit():
            break

        if ":" not in line:
            continue
        left, right = line.split(":", 1)
        left = left.strip()
        right = right.strip().strip("'").strip('"')
        if not left.isdigit():
            continue
        names[int(left)] = right

    return _ordered_names(names)
