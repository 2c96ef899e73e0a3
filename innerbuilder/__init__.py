"""
innerbuilder package

This package generates a nested `Builder` class for a Java class and merges it
into the source file, so repeated runs update the builder instead of
duplicating it.

Key responsibilities are split across modules:
- `options.py`: the fixed set of boolean generation options
- `preferences.py`: flat YAML preference store the options are read from
- `model.py`: field/type descriptors and the synthesis plan types
- `parser.py` / `tree.py`: tree-sitter front end and the editable Java tree
- `renderer.py`: Jinja2 member templates rendered into tree nodes
- `synthesis.py`: pure computation of the builder members to generate
- `merge.py`: reconciliation of a plan against an existing builder
- `references.py`: fully-qualified name shortening and import insertion
- `generator.py`: end-to-end orchestration for one source file
- `cli.py`: CLI entrypoint
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
