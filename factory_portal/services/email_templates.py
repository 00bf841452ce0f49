"""Transactional email templates.

Markup is email-safe: table layout, inline styles, 600px max width. Every
user-supplied value is HTML-escaped before interpolation.
"""

from __future__ import annotations

from dataclasses import dataclass

from factory_portal.core.config import Config
from factory_portal.utils.validators import escape_html


@dataclass(frozen=True)
class Branding:
    brand_name: str
    portal_url: str = ""
    logo_url: str = ""

    @classmethod
    def from_config(cls, config: Config) -> "Branding":
        return cls(brand_name=config.MAILGUN_FROM_NAME, portal_url=config.PORTAL_URL, logo_url=config.LOGO_URL)


@dataclass
class EmailTemplate:
    subject: str
    html_body: str
    text_body: str


def wrap_html(branding: Branding, content_html: str, cta_text: str = "Log in") -> str:
    """Wrap ``content_html`` in the shared header, call-to-action and signature."""
    brand = escape_html(branding.brand_name)
    if branding.logo_url.startswith("http"):
        header = (
            f'<img src="{escape_html(branding.logo_url)}" alt="{brand}" width="160" height="48" '
            'style="display:block;height:48px;width:auto;max-width:200px;" />'
        )
    else:
        header = f'<p style="margin:0;font-size:20px;font-weight:700;color:#ffffff;">{brand}</p>'

    if branding.portal_url.startswith("http"):
        cta = (
            f'<a href="{escape_html(branding.portal_url)}" style="display:inline-block;background:#2563eb;'
            "color:#ffffff !important;text-decoration:none;padding:14px 28px;border-radius:8px;"
            f'font-weight:600;font-size:16px;">{escape_html(cta_text)}</a>'
        )
    else:
        cta = f"<span>{escape_html(cta_text)}</span>"

    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{brand}</title>
</head>
<body style="margin:0;padding:0;background-color:#f3f4f6;font-family:Arial,Helvetica,sans-serif;font-size:16px;line-height:1.5;color:#111827;">
  <table role="presentation" width="100%" cellpadding="0" cellspacing="0" style="background-color:#f3f4f6;padding:32px 16px;">
    <tr>
      <td align="center">
        <table role="presentation" width="100%" cellpadding="0" cellspacing="0" style="max-width:600px;background-color:#ffffff;border-radius:12px;overflow:hidden;">
          <tr>
            <td style="background-color:#1f2937;padding:24px 28px;text-align:left;">
              {header}
              <p style="margin:8px 0 0 0;font-size:13px;color:#9ca3af;">Build updates</p>
            </td>
          </tr>
          <tr>
            <td style="padding:32px 28px;">
              {content_html}
            </td>
          </tr>
          <tr>
            <td style="padding:24px 28px 28px 28px;border-top:1px solid #e5e7eb;background-color:#fafafa;">
              <p style="margin:0 0 20px 0;font-size:14px;color:#4b5563;">{cta}</p>
              <p style="margin:0;font-size:13px;color:#9ca3af;">{brand}</p>
            </td>
          </tr>
        </table>
      </td>
    </tr>
  </table>
</body>
</html>"""


def stage_change_email(
    branding: Branding,
    guitar_label: str,
    run_name: str,
    old_stage_label: str,
    new_stage_label: str,
) -> EmailTemplate:
    content = f"""<p style="margin:0 0 16px 0;">Hi,</p>
<p style="margin:0 0 20px 0;color:#374151;">Your guitar build has moved to a new stage.</p>
<table role="presentation" width="100%" cellpadding="0" cellspacing="0" style="background-color:#f9fafb;border-radius:8px;margin-bottom:20px;">
  <tr>
    <td style="padding:16px 20px;">
      <p style="margin:0 0 4px 0;font-size:18px;font-weight:600;color:#111827;">{escape_html(guitar_label)}</p>
      <p style="margin:0;font-size:14px;color:#6b7280;">{escape_html(run_name)}</p>
      <p style="margin:12px 0 0 0;font-size:14px;color:#374151;">
        <span style="color:#6b7280;">{escape_html(old_stage_label)}</span>
        <span style="margin:0 8px;color:#9ca3af;">&rarr;</span>
        <strong style="color:#2563eb;">{escape_html(new_stage_label)}</strong>
      </p>
    </td>
  </tr>
</table>
<p style="margin:0;color:#6b7280;font-size:14px;">Log in to see full details and photos.</p>"""
    return EmailTemplate(
        subject=f"Update: {guitar_label} – {new_stage_label}",
        html_body=wrap_html(branding, content),
        text_body=(
            f"Your guitar {guitar_label} ({run_name}) has moved from {old_stage_label} "
            f"to {new_stage_label}. Log in to the portal for details."
        ),
    )


def run_update_email(
    branding: Branding,
    run_name: str,
    title: str,
    author_name: str,
    message: str,
) -> EmailTemplate:
    lines = "".join(
        f'<p style="margin:0 0 8px 0;color:#374151;">{escape_html(line)}</p>' for line in message.split("\n")
    ) if message else "<p style='margin:0;'>No additional message.</p>"
    content = f"""<p style="margin:0 0 16px 0;">Hi,</p>
<p style="margin:0 0 12px 0;color:#374151;"><strong>{escape_html(author_name)}</strong> posted an update to <strong>{escape_html(run_name)}</strong>:</p>
<p style="margin:0 0 16px 0;font-size:18px;font-weight:600;color:#111827;">{escape_html(title)}</p>
<div style="color:#374151;margin-bottom:16px;">{lines}</div>
<p style="margin:0;color:#6b7280;font-size:14px;">Log in to see the full update and any photos.</p>"""
    return EmailTemplate(
        subject=f"{run_name}: {title}",
        html_body=wrap_html(branding, content),
        text_body=f"{run_name}: {title}\n\n{author_name}:\n{message}\n\nLog in to the portal for full details.",
    )
