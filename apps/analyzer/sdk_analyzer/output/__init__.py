"""Output module for the annotated YAML metadata document.

Public API:
    render_yaml(result, threshold) -> str
    write_yaml(result, path, threshold) -> Path
"""

from sdk_analyzer.output.yaml_writer import render_yaml, write_yaml

__all__ = ["render_yaml", "write_yaml"]
