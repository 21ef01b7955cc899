from datetime import datetime, timezone
from html import escape

_STYLE = """
      body { font-family: Arial, sans-serif; line-height: 1.6; color: #333; }
      .container { max-width: 600px; margin: 0 auto; padding: 20px; }
      .header { background: linear-gradient(135deg, #667eea 0%, #764ba2 100%); color: white; padding: 30px; text-align: center; border-radius: 10px 10px 0 0; }
      .header h1 { color: white; margin: 0; }
      .content { background: #f9fafb; padding: 30px; border-radius: 0 0 10px 10px; }
      .otp-code { background: #4f46e5; color: white; font-size: 32px; font-weight: bold; padding: 20px 40px; border-radius: 8px; letter-spacing: 8px; display: inline-block; margin: 20px 0; }
      .original-message { background: #e5e7eb; padding: 15px; border-radius: 8px; margin: 20px 0; border-left: 4px solid #9ca3af; }
      .reply-message { background: white; padding: 20px; border-radius: 8px; border: 1px solid #e5e7eb; margin: 20px 0; }
      .footer { text-align: center; margin-top: 20px; color: #666; font-size: 14px; }
"""


def _page(brand: str, header: str, content: str, footer_note: str = "") -> str:
    year = datetime.now(timezone.utc).year
    note = f"\n        <p>{footer_note}</p>" if footer_note else ""
    return f"""<!DOCTYPE html>
<html>
  <head>
    <meta charset="utf-8">
    <style>{_STYLE}    </style>
  </head>
  <body>
    <div class="container">
      <div class="header">
        {header}
      </div>
      <div class="content">
{content}
      </div>
      <div class="footer">
        <p>&copy; {year} {escape(brand)}. All rights reserved.</p>{note}
      </div>
    </div>
  </body>
</html>"""


def render_otp_email(
    code: str, display_name: str | None, ttl_minutes: int, brand: str = "Lernova"
) -> str:
    greeting = f"Hello {escape(display_name)}!" if display_name else "Hello!"
    content = f"""        <h2>{greeting}</h2>
        <p>Thank you for signing up with {escape(brand)}. To complete your registration, please use the following verification code:</p>
        <div style="text-align: center;">
          <div class="otp-code">{escape(code)}</div>
        </div>
        <p><strong>This code will expire in {ttl_minutes} minutes.</strong></p>
        <p>If you didn't request this code, please ignore this email.</p>"""
    return _page(brand, f"<h1>{escape(brand)}</h1>", content)


def render_contact_reply(
    name: str, original_message: str, reply: str, brand: str = "Lernova"
) -> str:
    header = (
        f'<h1 style="margin: 0;">{escape(brand)}</h1>\n'
        '        <p style="margin: 10px 0 0 0; opacity: 0.9;">Response to Your Message</p>'
    )
    content = f"""        <p>Hello {escape(name)},</p>
        <p>Thank you for contacting us. Here is our response to your message:</p>
        <div class="original-message">
          <p style="margin: 0 0 10px 0; font-weight: bold; color: #6b7280;">Your original message:</p>
          <p style="margin: 0; white-space: pre-wrap;">{escape(original_message)}</p>
        </div>
        <div class="reply-message">
          <p style="margin: 0 0 10px 0; font-weight: bold; color: #667eea;">Our response:</p>
          <p style="margin: 0; white-space: pre-wrap;">{escape(reply)}</p>
        </div>
        <p>If you have any further questions, feel free to reply to this email or contact us again through our website.</p>
        <p>Best regards,<br>The {escape(brand)} Team</p>"""
    return _page(
        brand,
        header,
        content,
        footer_note="This email was sent in response to your contact form submission.",
    )


def contact_reply_subject(brand: str = "Lernova") -> str:
    return f"Re: Your message to {brand}"
