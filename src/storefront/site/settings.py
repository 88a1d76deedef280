"""Storefront branding and behaviour settings (a single row)."""

import json
from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String, Text
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from storefront.domain import storefront
from storefront.utils.query import find_all

DEFAULT_COLORS = {
    "primary": "#1f2937",
    "secondary": "#4b5563",
    "accent": "#2563eb",
    "background": "#ffffff",
    "text": "#111827",
    "text_header": "#111827",
    "text_info": "#6b7280",
    "text_danger": "#dc2626",
    "text_white": "#ffffff",
    "text_black": "#000000",
    "text_price": "#047857",
    "background_success": "#d1fae5",
    "background_danger": "#fee2e2",
}
DEFAULT_TYPOGRAPHY = "Inter, sans-serif"
DEFAULT_MESSAGES_PER_DAY = 3
DEFAULT_MESSAGE_CHAR_LIMIT = 500


@storefront.aggregate
class PageSettings:
    icon_image_id = Identifier()
    logo_image_id = Identifier()
    typography_headers = String(max_length=100, default=DEFAULT_TYPOGRAPHY)
    typography_body = String(max_length=100, default=DEFAULT_TYPOGRAPHY)
    colors = Text()  # JSON object, keys from DEFAULT_COLORS
    filters = Text()  # JSON array of product types offered as filters
    message_per_day = Integer(default=DEFAULT_MESSAGES_PER_DAY, min_value=0)
    message_char_limit = Integer(default=DEFAULT_MESSAGE_CHAR_LIMIT, min_value=1)
    updated_at = DateTime()

    @classmethod
    def default_row(cls):
        return cls(colors=json.dumps(DEFAULT_COLORS), filters=json.dumps([]))

    def references_image(self, image_id) -> bool:
        return str(image_id) in {str(i) for i in (self.icon_image_id, self.logo_image_id) if i}

    def detach_image(self, image_id):
        if self.icon_image_id and str(self.icon_image_id) == str(image_id):
            self.icon_image_id = None
        if self.logo_image_id and str(self.logo_image_id) == str(image_id):
            self.logo_image_id = None
        self.updated_at = datetime.now(UTC)

    @property
    def color_map(self) -> dict:
        return {**DEFAULT_COLORS, **(json.loads(self.colors) if self.colors else {})}

    @property
    def filter_list(self) -> list[str]:
        return json.loads(self.filters) if self.filters else []

    def update(self, **changes):
        colors = changes.pop("colors", None)
        if colors is not None:
            unknown = sorted(set(colors) - set(DEFAULT_COLORS))
            if unknown:
                raise ValidationError({"colors": [f"Unknown color keys: {', '.join(unknown)}"]})
            self.colors = json.dumps({**self.color_map, **colors})

        filters = changes.pop("filters", None)
        if filters is not None:
            self.filters = json.dumps(list(filters))

        for name, value in changes.items():
            if value is not None:
                setattr(self, name, value)
        self.updated_at = datetime.now(UTC)


def current_page_settings() -> PageSettings:
    """The stored settings row, or an unsaved row of defaults."""
    rows = find_all(PageSettings)
    return rows[0] if rows else PageSettings.default_row()


@storefront.command(part_of="PageSettings")
class UpdatePageSettings:
    icon_image_id = Identifier()
    logo_image_id = Identifier()
    typography_headers = String(max_length=100)
    typography_body = String(max_length=100)
    colors = Text()  # JSON object
    filters = Text()  # JSON array
    message_per_day = Integer(min_value=0)
    message_char_limit = Integer(min_value=1)


@storefront.command_handler(part_of=PageSettings)
class PageSettingsHandler:
    @handle(UpdatePageSettings)
    def update_settings(self, command):
        settings = current_page_settings()
        settings.update(
            icon_image_id=command.icon_image_id,
            logo_image_id=command.logo_image_id,
            typography_headers=command.typography_headers,
            typography_body=command.typography_body,
            colors=json.loads(command.colors) if command.colors else None,
            filters=json.loads(command.filters) if command.filters is not None else None,
            message_per_day=command.message_per_day,
            message_char_limit=command.message_char_limit,
        )
        current_domain.repository_for(PageSettings).add(settings)
        return str(settings.id)
