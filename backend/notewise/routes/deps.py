"""
Notewise Backend — Route Dependencies
=======================================

What:  FastAPI dependencies shared by the route modules: the caller's user
       id, the generation client and the orchestrators built on it.
How:   Everything long-lived comes from `app.state` (set up in the lifespan);
       tests swap any of these with `app.dependency_overrides`.
"""

from typing import Optional

from fastapi import Depends, Header

from notewise.exceptions import AuthenticationError
from notewise.services.gemini_service import get_generation_client
from notewise.services.llm_base import LLMService
from notewise.services.summary_service import SummaryService
from notewise.services.tag_service import TagService

USER_ID_MAX_LENGTH = 64


async def get_current_user_id(
    x_user_id: Optional[str] = Header(default=None, alias="X-User-ID"),
) -> str:
    """Owner id from the `X-User-ID` header, set by the auth layer in front of us."""
    user_id = (x_user_id or "").strip()
    if not user_id or len(user_id) > USER_ID_MAX_LENGTH:
        raise AuthenticationError()
    return user_id


def get_summary_service(client: LLMService = Depends(get_generation_client)) -> SummaryService:
    return SummaryService(client)


def get_tag_service(client: LLMService = Depends(get_generation_client)) -> TagService:
    return TagService(client)
