from __future__ import annotations

import html
from email.message import EmailMessage
from typing import Any, Dict

from pydantic import BaseModel, EmailStr, Field

from storefront.config import Config
from storefront.mail.transport import MailError
from storefront.rpc.context import Context
from storefront.rpc.errors import InternalError
from storefront.rpc.procedure import Router


router = Router()


def _debug(msg: str) -> None:
    print(f"[mail] {msg}")


class SendMailInput(BaseModel):
    name: str = Field(min_length=1)
    email: EmailStr
    subject: str = Field(min_length=1)
    message: str = Field(min_length=1)


def build_inquiry(cfg: Config, payload: SendMailInput, *, sender: str | None) -> EmailMessage:
    """Contact-form notification for the operator, replyable to the visitor."""
    msg = EmailMessage()
    # Header values must be single-line.
    subject = " ".join(payload.subject.split())
    msg["Subject"] = f"{cfg.MAIL_SUBJECT_PREFIX} {subject}".strip()
    if sender:
        msg["From"] = sender
    if cfg.MAIL_TO:
        msg["To"] = cfg.MAIL_TO
    msg["Reply-To"] = str(payload.email)

    body = html.escape(payload.message).replace("\r\n", "\n").replace("\n", "<br />")
    msg.set_content(
        f"Name: {payload.name}\nEmail: {payload.email}\nSubject: {payload.subject}\n\n{payload.message}\n"
    )
    msg.add_alternative(
        "<h2>New inquiry received</h2>"
        f"<p><strong>Name:</strong> {html.escape(payload.name)}</p>"
        f"<p><strong>Email:</strong> {html.escape(str(payload.email))}</p>"
        f"<p><strong>Subject:</strong> {html.escape(payload.subject)}</p>"
        "<hr />"
        "<p><strong>Message:</strong></p>"
        f"<p>{body}</p>",
        subtype="html",
    )
    return msg


@router.mutation("send", input=SendMailInput)
def send_mail(ctx: Context, payload: SendMailInput) -> Dict[str, Any]:
    if not ctx.cfg.MAIL_TO:
        _debug("MAIL_TO is not configured; cannot deliver inquiry")
        raise InternalError("Failed to send mail")

    message = build_inquiry(ctx.cfg, payload, sender=ctx.mailer.sender)
    try:
        ctx.mailer.send(message)
    except MailError as e:
        _debug(f"Mail transport error: {e}")
        raise InternalError("Failed to send mail")
    return {"success": True, "message": "Mail sent successfully"}
