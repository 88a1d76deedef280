"""Customer suggestions, rate-limited by the page settings."""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Text
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from storefront.domain import storefront
from storefront.site.settings import current_page_settings
from storefront.utils.query import find_all


@storefront.aggregate
class Suggestion:
    user_id = Identifier(required=True)
    message = Text(required=True)
    created_at = DateTime()


def sent_today(user_id, now=None) -> int:
    today = (now or datetime.now(UTC)).date()
    return sum(
        1
        for suggestion in find_all(Suggestion, user_id=str(user_id))
        if suggestion.created_at and suggestion.created_at.astimezone(UTC).date() == today
    )


@storefront.command(part_of="Suggestion")
class SubmitSuggestion:
    user_id = Identifier(required=True)
    message = Text(required=True)


@storefront.command_handler(part_of=Suggestion)
class SubmitSuggestionHandler:
    @handle(SubmitSuggestion)
    def submit(self, command):
        settings = current_page_settings()
        message = (command.message or "").strip()
        if not message:
            raise ValidationError({"message": ["Message is required"]})
        if len(message) > settings.message_char_limit:
            raise ValidationError({"message": [f"Message cannot exceed {settings.message_char_limit} characters"]})
        if sent_today(command.user_id) >= settings.message_per_day:
            raise ValidationError({"message": [f"Daily limit of {settings.message_per_day} suggestion(s) reached"]})

        suggestion = Suggestion(
            user_id=command.user_id,
            message=message,
            created_at=datetime.now(UTC),
        )
        current_domain.repository_for(Suggestion).add(suggestion)
        return str(suggestion.id)
