"""Template rendering for email notifications using Jinja2.

Each message kind has two templates in the email_templates package
directory: ``<kind>_subject.j2`` (plain text, one line) and
``<kind>.html.j2`` (extends ``layout.html.j2``). HTML templates are
autoescaped so user-supplied text cannot inject markup.
"""

import logging
from typing import Any, Dict

from jinja2 import Environment, PackageLoader, StrictUndefined, TemplateError, select_autoescape

from .models import MessageKind, NotificationTemplateError

logger = logging.getLogger(__name__)


class TemplateRenderer:
    """Renders subject lines and HTML bodies per message kind.

    Templates are cached by the Jinja2 environment for reuse.
    """

    def __init__(self, template_dir: str = "email_templates"):
        """Initialize template renderer with Jinja2 environment.

        Args:
            template_dir: Directory name within jobboard.notifications package
        """
        self.env = Environment(
            loader=PackageLoader("jobboard.notifications", template_dir),
            autoescape=select_autoescape(enabled_extensions=("html.j2",), default=False),
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
        )

        logger.debug(f"Initialized TemplateRenderer with templates from {template_dir}")

    def render(self, kind: MessageKind, context: Dict[str, Any]) -> Dict[str, str]:
        """Render the subject and HTML body for a message kind.

        Args:
            kind: Message kind selecting the template pair
            context: Dictionary of template variables

        Returns:
            Dictionary containing:
            - subject: Rendered subject line (single line, no newlines)
            - html_body: Rendered HTML body

        Raises:
            NotificationTemplateError: If a template is missing or references
                an undefined variable
        """
        stem = kind.template_stem
        try:
            subject_template = self.env.get_template(f"{stem}_subject.j2")
            html_template = self.env.get_template(f"{stem}.html.j2")

            subject = " ".join(subject_template.render(context).split())
            html_body = html_template.render(context)

            logger.debug(f"Rendered {kind.value} templates")

            return {"subject": subject, "html_body": html_body}

        except TemplateError as e:
            error_msg = f"Template rendering failed for {kind.value}: {e}"
            logger.error(error_msg, exc_info=True)
            raise NotificationTemplateError(error_msg) from e
