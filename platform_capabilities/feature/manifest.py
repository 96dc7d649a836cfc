"""
Manifest Sources and Rendering

Locates manifest templates and renders them into cluster object specifications.
Templates are YAML files with ``${variable}`` placeholders, filled from the
feature's flattened data context.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from string import Template
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, Union

import yaml

from ..core.constants import ErrorMessages
from ..core.exceptions import ManifestRenderError
from ..data_models import flatten_data

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TemplateManifest:
    """A single template file below a manifest location"""
    root: Path
    path: str

    @property
    def full_path(self) -> Path:
        return self.root / self.path

    def __str__(self) -> str:
        return self.path


class ManifestLocation:
    """Root directory of a set of manifest templates"""

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)

    def include(self, *paths: str) -> List[TemplateManifest]:
        """
        Select templates below this location, keeping the given order

        Args:
            paths: Template paths relative to the location root

        Returns:
            List of TemplateManifest in the order given
        """
        return [TemplateManifest(self.root, path) for path in paths]


class ManifestRenderer(Protocol):
    """Turns manifest sources and a data context into cluster objects"""

    def render(self, sources: Sequence[TemplateManifest], data: Mapping[str, Any]) -> List[Dict[str, Any]]:
        ...


def template_variables(data: Any, extra: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    """
    Build the template variable namespace from a data context.

    Args:
        data: Dataclass, mapping or None
        extra: Variables added by the pipeline (feature name, namespace, ...)

    Returns:
        Flat dict of variable names to values
    """
    variables = flatten_data(data) if data is not None else {}
    if extra:
        variables.update(extra)
    return variables


class TemplateRenderer:
    """Default renderer: string.Template substitution followed by YAML parsing"""

    def render(self, sources: Sequence[TemplateManifest], data: Mapping[str, Any]) -> List[Dict[str, Any]]:
        """
        Render templates into object dicts

        Args:
            sources: Templates to render, in order
            data: Flat template variables

        Returns:
            List of object dicts, in template and document order

        Raises:
            ManifestRenderError: If a template is missing, references an unknown
                variable or does not produce valid YAML objects
        """
        objects = []
        for source in sources:
            objects.extend(self._render_one(source, data))
        return objects

    def _render_one(self, source: TemplateManifest, data: Mapping[str, Any]) -> List[Dict[str, Any]]:
        template_path = source.full_path
        try:
            text = template_path.read_text()
        except FileNotFoundError:
            raise ManifestRenderError(ErrorMessages.TEMPLATE_NOT_FOUND.format(path=template_path))
        except OSError as e:
            raise ManifestRenderError(f"Cannot read manifest template {template_path}: {e}")

        try:
            rendered = Template(text).substitute(data)
        except KeyError as e:
            raise ManifestRenderError(ErrorMessages.TEMPLATE_VARIABLE_MISSING.format(
                path=source.path, variable=e.args[0]
            ))
        except ValueError as e:
            raise ManifestRenderError(f"Invalid placeholder in manifest template {source.path}: {e}")

        try:
            documents = [doc for doc in yaml.safe_load_all(rendered) if doc]
        except yaml.YAMLError as e:
            raise ManifestRenderError(f"Invalid YAML in manifest template {source.path}: {e}")

        for doc in documents:
            if not isinstance(doc, dict) or 'apiVersion' not in doc or 'kind' not in doc:
                raise ManifestRenderError(f"Manifest template {source.path} produced a document without apiVersion/kind")

        logger.debug(f"Rendered {len(documents)} object(s) from {source.path}")
        return documents
