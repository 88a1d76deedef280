"""FastAPI endpoints for site appearance and customer suggestions."""

import json

from fastapi import APIRouter, Depends
from protean.utils.globals import current_domain

from storefront.identity.api.auth import current_user, require_admin
from storefront.identity.user import User
from storefront.media.image import Image
from storefront.site.api.schemas import (
    PageSettingsResponse,
    SuggestionRequest,
    SuggestionResponse,
    UpdatePageSettingsRequest,
)
from storefront.site.settings import PageSettings, UpdatePageSettings, current_page_settings
from storefront.site.suggestion import SubmitSuggestion, Suggestion
from storefront.utils.query import find_all, find_one


def _image_url(image_id) -> str | None:
    image = find_one(Image, id=str(image_id)) if image_id else None
    return image.url if image else None


def page_settings_response(settings: PageSettings) -> PageSettingsResponse:
    return PageSettingsResponse(
        icon_image_id=str(settings.icon_image_id) if settings.icon_image_id else None,
        icon_url=_image_url(settings.icon_image_id),
        logo_image_id=str(settings.logo_image_id) if settings.logo_image_id else None,
        logo_url=_image_url(settings.logo_image_id),
        typography_headers=settings.typography_headers,
        typography_body=settings.typography_body,
        colors=settings.color_map,
        filters=settings.filter_list,
        message_per_day=settings.message_per_day,
        message_char_limit=settings.message_char_limit,
        updated_at=settings.updated_at,
    )


settings_router = APIRouter(prefix="/api/page-settings", tags=["site"])
suggestion_router = APIRouter(prefix="/api/suggestions", tags=["site"])


@settings_router.get("", response_model=PageSettingsResponse)
async def get_page_settings() -> PageSettingsResponse:
    return page_settings_response(current_page_settings())


@settings_router.put("", response_model=PageSettingsResponse, dependencies=[Depends(require_admin)])
async def update_page_settings(body: UpdatePageSettingsRequest) -> PageSettingsResponse:
    command = UpdatePageSettings(
        icon_image_id=body.icon_image_id,
        logo_image_id=body.logo_image_id,
        typography_headers=body.typography_headers,
        typography_body=body.typography_body,
        colors=json.dumps(body.colors) if body.colors is not None else None,
        filters=json.dumps(body.filters) if body.filters is not None else None,
        message_per_day=body.message_per_day,
        message_char_limit=body.message_char_limit,
    )
    current_domain.process(command, asynchronous=False)
    return page_settings_response(current_page_settings())


@suggestion_router.post("", status_code=201, response_model=SuggestionResponse)
async def submit_suggestion(body: SuggestionRequest, user: User = Depends(current_user)) -> SuggestionResponse:
    suggestion_id = current_domain.process(
        SubmitSuggestion(user_id=str(user.id), message=body.message), asynchronous=False
    )
    suggestion = current_domain.repository_for(Suggestion).get(suggestion_id)
    return SuggestionResponse(
        id=str(suggestion.id),
        user_id=str(user.id),
        user_name=user.name,
        user_email=user.email,
        message=suggestion.message,
        created_at=suggestion.created_at,
    )


@suggestion_router.get("", response_model=list[SuggestionResponse], dependencies=[Depends(require_admin)])
async def list_suggestions() -> list[SuggestionResponse]:
    users = {str(u.id): u for u in find_all(User)}
    suggestions = sorted(find_all(Suggestion), key=lambda s: s.created_at, reverse=True)

    response = []
    for suggestion in suggestions:
        author = users.get(str(suggestion.user_id))
        response.append(
            SuggestionResponse(
                id=str(suggestion.id),
                user_id=str(suggestion.user_id),
                user_name=author.name if author else None,
                user_email=author.email if author else None,
                message=suggestion.message,
                created_at=suggestion.created_at,
            )
        )
    return response
