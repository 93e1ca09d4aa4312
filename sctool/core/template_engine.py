"""
Manifest template rendering.

Templates are plain Kubernetes YAML with ``{key}`` placeholders. Rendering
substitutes the given values and refuses to return text that still holds an
unresolved placeholder.
"""

import re
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from .errors import TemplateError

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

_PLACEHOLDER = re.compile(r"\{([a-z_][a-z0-9_]*)\}")


class TemplateProcessor:
    """Loads manifest templates from a directory and fills in placeholders."""

    def __init__(self, templates_dir: Optional[Path] = None):
        self.templates_dir = Path(templates_dir) if templates_dir else TEMPLATES_DIR

    def render(self, template_file: str, substitutions: Dict[str, Any]) -> str:
        """
        Render a template file.

        Args:
            template_file: Template file name (relative to the templates directory)
            substitutions: placeholder name -> value

        Returns:
            Rendered manifest text
        """
        template_path = self._resolve_template_path(template_file)
        try:
            with open(template_path, 'r') as f:
                template_content = f.read()
        except OSError as e:
            raise TemplateError(f"Cannot read template {template_path}: {e}") from e
        return self.render_text(template_content, substitutions, source=template_path.name)

    def render_text(self, content: str, substitutions: Dict[str, Any], source: str = "<text>") -> str:
        content = self._substitute_parameters(content, substitutions)
        leftover = sorted(set(_PLACEHOLDER.findall(content)))
        if leftover:
            raise TemplateError(f"Unresolved placeholders in {source}: {', '.join(leftover)}")
        return content

    def _resolve_template_path(self, template_file: str) -> Path:
        """Resolve template file path relative to the templates directory."""
        template_path = Path(template_file)
        if not template_path.is_absolute():
            template_path = self.templates_dir / template_path

        if not template_path.exists():
            raise TemplateError(f"Template file not found: {template_path}")

        return template_path

    def _substitute_parameters(self, content: str, substitutions: Dict[str, Any]) -> str:
        """Perform parameter substitutions in template content."""
        for key, value in substitutions.items():
            placeholder = f"{{{key}}}"
            content = content.replace(placeholder, str(value))

        return content
