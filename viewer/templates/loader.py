"""
Template Loader - Filesystem template resolution.

Resolves template paths against a list of search directories using
Jinja2's filesystem loader and compiles the source into a Template.
Missing paths raise ``jinja2.TemplateNotFound``.
"""

from typing import Any, Callable, Dict, List, Optional, Tuple
from pathlib import Path
import logging
import os
from jinja2 import BaseLoader, TemplateNotFound
from jinja2.loaders import FileSystemLoader

from .engine import Template, TemplateSource

logger = logging.getLogger("viewer.templates.loader")

TEMPLATE_EXTENSIONS = {".tpl"}


class TemplateLoader(BaseLoader):
    """
    Filesystem template loader.

    Template names are ``/``-separated paths relative to one of the
    search paths, e.g. ``templates/dark/profile.html.tpl``.

    Args:
        search_paths: Directories to search (default: current directory)
        extensions: File suffixes listed by ``list_templates``

    Example:
        loader = TemplateLoader(["/srv/app"])
        template = loader.load("templates/index.html.tpl")
        html = template.render(view)
    """

    def __init__(
        self,
        search_paths: Optional[List[str]] = None,
        extensions: Optional[set] = None,
    ):
        self.search_paths = [Path(p) for p in (search_paths or ["."])]
        self.extensions = extensions or TEMPLATE_EXTENSIONS
        self._fs_loaders: Dict[str, FileSystemLoader] = {}

    def _fs_loader(self, encoding: str) -> FileSystemLoader:
        if encoding not in self._fs_loaders:
            self._fs_loaders[encoding] = FileSystemLoader(
                [str(path) for path in self.search_paths],
                encoding=encoding,
            )
        return self._fs_loaders[encoding]

    def get_source(
        self,
        environment: Any,
        template: str,
        encoding: str = "utf-8",
    ) -> Tuple[str, Optional[str], Optional[Callable[[], bool]]]:
        """
        Load template source.

        Returns:
            Tuple of (source, filename, uptodate_func)

        Raises:
            TemplateNotFound: If template cannot be found
        """
        return self._fs_loader(encoding).get_source(environment, template)

    def read(self, path: str, encoding: str = "utf-8") -> TemplateSource:
        """Read ``path`` into a TemplateSource."""
        source, filename, _ = self.get_source(None, path, encoding)
        return TemplateSource(text=source, path=filename or path)

    def load(self, path: str, encoding: str = "utf-8") -> Template:
        """
        Read and compile a template.

        Raises:
            TemplateNotFound: If ``path`` does not resolve
            DirectiveSyntaxFault / CodeSyntaxFault: If it does not compile
        """
        source = self.read(path, encoding)
        logger.debug("Loaded template %s from %s", path, source.path)
        return Template.from_source(source)

    def exists(self, path: str) -> bool:
        try:
            self.get_source(None, path)
        except TemplateNotFound:
            return False
        return True

    def list_templates(self) -> List[str]:
        """
        List all available templates.

        Returns:
            Sorted ``/``-separated paths relative to their search path
        """
        templates = set()

        for path in self.search_paths:
            if not path.exists():
                continue

            for root, dirs, files in os.walk(path):
                root_path = Path(root)
                for filename in files:
                    if self._is_template_file(filename):
                        relative = (root_path / filename).relative_to(path)
                        templates.add(relative.as_posix())

        return sorted(templates)

    def _is_template_file(self, filename: str) -> bool:
        return any(filename.endswith(ext) for ext in self.extensions)
