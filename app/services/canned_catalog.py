"""Built-in keyword rules and reply bundles for the canned responder.

This is data, not logic: rules are checked top to bottom and the first rule
with a keyword contained in the lower-cased email wins. The final rule has
no keywords and catches everything else. A JSON file with the same shape can
replace this table (see ``load_catalog``).
"""

from __future__ import annotations

import json
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, model_validator

from app.core.errors import ValidationAppError
from app.schemas.generate import ResponseBundle


class ResponseCategory(str, Enum):
    REFUND_OR_CANCEL = "refund_or_cancel"
    BUG_OR_ISSUE = "bug_or_issue"
    GRATITUDE = "gratitude"
    DEFAULT = "default"


class CannedRule(BaseModel):
    """One category: its trigger keywords and the replies it produces."""

    model_config = ConfigDict(frozen=True)

    category: ResponseCategory
    keywords: tuple[str, ...] = Field(default=())
    responses: ResponseBundle

    @model_validator(mode="after")
    def check_keywords(self) -> "CannedRule":
        if any(not k.strip() for k in self.keywords):
            raise ValueError("keywords must be non-blank")
        if any(k != k.lower() for k in self.keywords):
            raise ValueError("keywords must be lower-case")
        return self


class CannedCatalog(BaseModel):
    """Ordered rule table. Exactly one keyword-less default rule, last."""

    model_config = ConfigDict(frozen=True)

    rules: tuple[CannedRule, ...]

    @model_validator(mode="after")
    def check_default_rule(self) -> "CannedCatalog":
        if not self.rules:
            raise ValueError("catalog needs at least the default rule")
        fallbacks = [rule for rule in self.rules if not rule.keywords]
        if len(fallbacks) != 1 or self.rules[-1].keywords:
            raise ValueError("catalog needs exactly one keyword-less rule, placed last")
        return self

    @property
    def default(self) -> CannedRule:
        return self.rules[-1]


DEFAULT_CATALOG = CannedCatalog(
    rules=(
        CannedRule(
            category=ResponseCategory.REFUND_OR_CANCEL,
            keywords=("refund", "cancel"),
            responses=ResponseBundle(
                professional=(
                    "Thank you for contacting us regarding your refund request. I understand "
                    "your concerns and want to ensure we address this matter promptly. I will "
                    "review your account details and process your request according to our "
                    "refund policy. You should expect a response within 24-48 business hours "
                    "with the next steps."
                ),
                friendly=(
                    "Hey! Thanks for reaching out about this. I totally understand wanting to "
                    "sort out the refund situation. Let me look into your account and I'll get "
                    "back to you super quick with what we can do. Appreciate your patience!"
                ),
                brief="Refund request received. Will review and respond within 24-48 hours with next steps.",
            ),
        ),
        CannedRule(
            category=ResponseCategory.BUG_OR_ISSUE,
            keywords=("bug", "error", "issue"),
            responses=ResponseBundle(
                professional=(
                    "Thank you for bringing this technical issue to our attention. We take all "
                    "bug reports seriously as they help us improve our product. I've forwarded "
                    "this to our engineering team for investigation and will keep you updated "
                    "on the progress. In the meantime, if you have any additional details or "
                    "screenshots, please feel free to share them."
                ),
                friendly=(
                    "Oh no, sorry you're running into this issue! Thanks so much for letting us "
                    "know - these reports really help us make things better. I've passed this "
                    "along to our tech team and they're on it. I'll keep you posted on what "
                    "they find!"
                ),
                brief="Bug report received and forwarded to engineering. Will update you on progress soon.",
            ),
        ),
        CannedRule(
            category=ResponseCategory.GRATITUDE,
            keywords=("thank", "great", "awesome"),
            responses=ResponseBundle(
                professional=(
                    "Thank you for your kind words and positive feedback. We truly appreciate "
                    "you taking the time to share your experience with us. Customer "
                    "satisfaction is our top priority, and it's wonderful to hear that we've "
                    "met your expectations. Please don't hesitate to reach out if you need "
                    "anything in the future."
                ),
                friendly=(
                    "Aw, thank you so much! This really made our day \U0001F60A We're so happy "
                    "you had a great experience. You're awesome for taking the time to let us "
                    "know. We're always here if you need anything!"
                ),
                brief="Thanks for the feedback! We're glad we could help. Reach out anytime!",
            ),
        ),
        CannedRule(
            category=ResponseCategory.DEFAULT,
            responses=ResponseBundle(
                professional=(
                    "Thank you for reaching out to us. I appreciate you bringing this matter "
                    "to my attention. I will review your inquiry thoroughly and provide you "
                    "with a comprehensive response within 24 hours. If you have any additional "
                    "information that might be helpful, please feel free to share it."
                ),
                friendly=(
                    "Hey there! Thanks for getting in touch. I really appreciate you reaching "
                    "out about this. I'll look into it and get back to you soon with all the "
                    "details you need. Let me know if there's anything else I should know!"
                ),
                brief="Thanks for your message. Will review and respond within 24 hours.",
            ),
        ),
    )
)

_catalog_adapter = TypeAdapter(CannedCatalog)


def load_catalog(path: str | Path | None) -> CannedCatalog:
    """Load a catalog from a JSON file, or return the built-in one.

    The file holds ``{"rules": [{"category", "keywords", "responses"}, ...]}``.

    Raises:
        ValidationAppError: If the file is missing, not JSON, or malformed.
    """
    if not path:
        return DEFAULT_CATALOG

    catalog_path = Path(path)
    try:
        raw = json.loads(catalog_path.read_text(encoding="utf-8"))
        return _catalog_adapter.validate_python(raw)
    except (OSError, json.JSONDecodeError, ValidationError) as exc:
        raise ValidationAppError(
            code="canned_catalog_invalid",
            message=f"Canned catalog at '{catalog_path}' could not be loaded",
            details={"hint": str(exc)[:200]},
        ) from exc
