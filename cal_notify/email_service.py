"""
Email Service
Compiles MJML booking templates and hands them to Postmark with the ICS invite attached
"""

import logging
from typing import Any, Optional

from mjml import mjml_to_html

from .services.postmark_service import OutboundEmail, PostmarkClient

logger = logging.getLogger(__name__)


class TemplateRenderError(Exception):
    """Raised when an MJML template fails to compile"""

    pass


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    try:
        result = mjml_to_html(mjml_content)
    except Exception as e:
        logger.error(f"MJML compilation error: {e}")
        raise TemplateRenderError(f"Failed to compile MJML template: {str(e)}") from e

    # mjml_to_html returns a dict with 'html' and 'errors' keys
    if isinstance(result, dict):
        if result.get("errors"):
            logger.warning(f"MJML compilation warnings: {result['errors']}")
        html = result.get("html", "")
    else:
        html = str(result)

    if not html:
        raise TemplateRenderError("MJML compilation produced an empty document")
    return html


async def send_email(
    mailer: PostmarkClient,
    from_address: str,
    to: str,
    subject: str,
    mjml_content: str,
    ics_content: Optional[str] = None,
    ics_method: str = "REQUEST",
    text_body: Optional[str] = None,
) -> dict[str, Any]:
    """
    Send an email rendered from an MJML template

    Args:
        mailer: Postmark client
        from_address: Verified sender address
        to: Recipient email
        subject: Email subject line
        mjml_content: MJML template content (will be compiled to HTML)
        ics_content: Optional calendar document to attach
        ics_method: REQUEST or CANCEL, carried on the attachment content type
        text_body: Optional plain-text alternative

    Returns:
        Postmark response dict
    """
    html_content = compile_mjml_to_html(mjml_content)

    logger.info(f"📧 Sending email via Postmark to: {to}")
    return await mailer.send_email(
        OutboundEmail(
            from_address=from_address,
            to=to,
            subject=subject,
            html_body=html_content,
            text_body=text_body,
            ics_content=ics_content,
            ics_method=ics_method,
        )
    )
