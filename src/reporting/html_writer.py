# HTML serializer for the report document tree

from pathlib import Path
from typing import Optional, Union
import logging
import os
import tempfile

from jinja2 import Environment, FileSystemLoader, select_autoescape

from .document import ReportDocument


TEMPLATE_NAME = 'report.html'


def templateEnv(templatesPath: Optional[Path] = None) -> Environment:
    templatesPath = templatesPath or Path(__file__).resolve().parent / 'templates'
    return Environment(
        loader=FileSystemLoader(str(templatesPath)),
        autoescape=select_autoescape(enabled_extensions=('html',)),
        trim_blocks=True,
        lstrip_blocks=True
    )


class HtmlReportWriter:
    """
    Serializes a ReportDocument to one self-contained HTML file.

    The whole document is rendered in memory before anything touches disk,
    then written to a temporary file beside the target and moved over it.
    A reader never sees a half-written report. Text that cannot be encoded
    as UTF-8, such as lone surrogates from a truncated export, is written
    as backslash escapes.
    """

    def __init__(self, templatesPath: Optional[Path] = None):
        self.env = templateEnv(templatesPath)
        self.logger = logging.getLogger(self.__class__.__name__)

    def render(self, document: ReportDocument) -> str:
        template = self.env.get_template(TEMPLATE_NAME)
        return template.render(report=document)

    def write(self, document: ReportDocument, path: Union[str, Path]) -> Path:
        path = Path(path)
        html = self.render(document)
        content = html.encode('utf-8', 'backslashreplace')

        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tempName = tempfile.mkstemp(prefix=f".{path.name}.", suffix='.tmp', dir=str(path.parent))
        try:
            with os.fdopen(fd, 'wb') as handle:
                handle.write(content)
            os.replace(tempName, path)
        except BaseException:
            if os.path.exists(tempName):
                os.remove(tempName)
            raise

        self.logger.info(f"Report written to {path} ({len(content)} bytes)")
        return path
