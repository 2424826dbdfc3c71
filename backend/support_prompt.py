from __future__ import annotations

from typing import List

from . import config
from .reply_safety import redact_user_message

FORMAT_GUIDANCE = (
    "Formatting rules: Output must be valid Markdown. Use ordered lists for step-by-step instructions "
    "(1., 2., 3.) and start numbering at 1; avoid using '*' as bullets or inline emphasis. Keep list "
    "numbering sequential. Prefer concise numbered steps for instructions. Use **bold** (double asterisks) "
    "to highlight important details or warnings.\n\n"
    "Uncertainty & safety requirements: If you are unsure or lack enough information to give a confident "
    "answer, explicitly state \"I'm not sure\" (or \"I don't know\") and provide the best next steps the user "
    "should take (what to check and who to contact). Do NOT fabricate facts or guesses; when uncertain, set "
    "confidence: \"low\" in the JSON metadata. Always refuse to request secrets, credentials, or to perform "
    "actions that require privileged access. Append a JSON code block at the end of your reply with keys: "
    "{\"summary\":\"brief summary\",\"confidence\":\"high|medium|low\",\"sources\":[\"optional source strings\"]}. "
    "If there are no sources, set sources: []."
)


def system_prompt(topic: str) -> str:
    if topic == "admin":
        intro = (
            "You are an AI assistant for the e-commerce admin panel. Help admins navigate the admin panel, "
            "manage orders, bookings, refunds, cancellations, promotions, and settings. Give concise "
            "step-by-step instructions and sample queries or commands when helpful. Do NOT perform any "
            "actions, only provide guidance. Do not request secrets or credentials. If you are unsure about "
            "something, explicitly say you are unsure and include suggested next steps and contact options "
            "for the admin team."
        )
    else:
        intro = (
            f"You are an AI assistant for an e-commerce store. Help users with {topic} queries concisely, "
            "provide next steps, and link to relevant pages when helpful. Do NOT perform any action (like "
            "cancelling orders), only provide instructions and templates for messages to send to support. "
            "Do not request secrets or credentials. If you are unsure about something, explicitly say you "
            "are unsure and include suggested next steps and contact options for support."
        )
    return f"{intro}\n\n{FORMAT_GUIDANCE}"


def business_summary() -> str:
    parts: List[str] = [f"Business: {config.BUSINESS_NAME}."]
    if config.BUSINESS_DESCRIPTION:
        parts.append(f"Description: {config.BUSINESS_DESCRIPTION}.")
    contact = config.SUPPORT_EMAIL or "N/A"
    if config.SUPPORT_PHONE:
        contact += f" / {config.SUPPORT_PHONE}"
    parts.append(f"Contact: {contact}.")
    parts.append(f"Website: {config.APP_URL or 'N/A'}")
    return " ".join(parts)


def build_prompt(message: str, topic: str) -> str:
    """Full prompt text for one support question; the user message is redacted first."""
    return (
        f"{system_prompt(topic)}\n\n"
        f"BusinessContext: {business_summary()}\n\n"
        f"User: {redact_user_message(message)}"
    )
