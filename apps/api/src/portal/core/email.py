"""
Transactional email through Resend.

Delivery is best effort: ``send_email`` reports failure through its
return value and never raises, so a mail outage cannot undo the
operation that triggered the message.
"""

import asyncio
import logging
from html import escape

import resend

from portal.core.config import settings

logger = logging.getLogger(__name__)

resend.api_key = settings.resend_api_key

WELCOME_SUBJECT = "¡Bienvenido a la Dirección de Integración!"
DEFAULT_RECIPIENT_NAME = "Becario"
SENDER_ORGANIZATION = "Dirección de Integración - Programa de Becas"

_BRAND = "#0b3a6e"
_MUTED = "#6b7280"


async def send_email(to_email: str, subject: str, html: str, text: str | None = None) -> bool:
    """
    Send one message.

    Without a Resend API key the message is only logged, which keeps
    local development and tests free of network calls.

    Returns:
        True if Resend accepted the message (or it was logged)
    """
    if not resend.api_key:
        logger.warning(f"RESEND_API_KEY not set, not sending '{subject}' to {to_email}")
        return True

    params: resend.Emails.SendParams = {
        "from": settings.email_from,
        "to": [to_email],
        "subject": subject,
        "html": html,
    }
    if text:
        params["text"] = text

    try:
        # The Resend SDK is blocking
        sent = await asyncio.to_thread(resend.Emails.send, params)
    except Exception as e:
        logger.error(f"Resend rejected '{subject}' for {to_email}: {e}")
        return False

    logger.info(f"Sent '{subject}' to {to_email} (id {sent.get('id')})")
    return True


def render_welcome_email(student_name: str | None) -> tuple[str, str]:
    """HTML and plain-text bodies of the post-activation welcome."""
    name = (student_name or "").strip() or DEFAULT_RECIPIENT_NAME
    login_url = f"{settings.frontend_url.rstrip('/')}/login"
    safe_name = escape(name)
    safe_url = escape(login_url, quote=True)

    html = f"""<!DOCTYPE html>
<html lang="es">
<body style="margin:0;padding:0;font-family:Arial,Helvetica,sans-serif;color:#1f2937;">
  <table role="presentation" width="100%" cellpadding="0" cellspacing="0">
    <tr>
      <td align="center" style="padding:32px 16px;">
        <table role="presentation" width="600" cellpadding="0" cellspacing="0">
          <tr>
            <td style="color:{_BRAND};font-size:24px;font-weight:bold;padding-bottom:16px;">
              ¡Bienvenido, {safe_name}!
            </td>
          </tr>
          <tr>
            <td style="font-size:15px;line-height:1.6;">
              <p>Tu cuenta en el portal de becarios quedó activada.</p>
              <p>Ya puedes completar tu perfil, descargar tu expediente y tu carnet
              digital y registrar tus horas de voluntariado.</p>
              <p style="padding:16px 0;">
                <a href="{safe_url}" style="background:{_BRAND};color:#ffffff;
                   padding:12px 24px;border-radius:6px;text-decoration:none;">
                  Ingresar al portal
                </a>
              </p>
            </td>
          </tr>
          <tr>
            <td style="border-top:1px solid #e5e7eb;padding-top:16px;font-size:13px;
                       color:{_MUTED};">
              Si no activaste esta cuenta, comunícate con la Dirección de Integración.<br>
              {SENDER_ORGANIZATION}
            </td>
          </tr>
        </table>
      </td>
    </tr>
  </table>
</body>
</html>
"""

    text = (
        f"¡Bienvenido, {name}!\n\n"
        "Tu cuenta en el portal de becarios quedó activada.\n"
        "Ya puedes completar tu perfil, descargar tu expediente y tu carnet digital "
        "y registrar tus horas de voluntariado.\n\n"
        f"Ingresar al portal: {login_url}\n\n"
        "Si no activaste esta cuenta, comunícate con la Dirección de Integración.\n"
        f"{SENDER_ORGANIZATION}\n"
    )
    return html, text


async def send_welcome_email(to_email: str, student_name: str | None) -> bool:
    """Welcome a student who just activated their account."""
    html, text = render_welcome_email(student_name)
    return await send_email(to_email, WELCOME_SUBJECT, html, text)
