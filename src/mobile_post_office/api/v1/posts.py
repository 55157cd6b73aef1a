"""
Record API: /api/mobileposts
"""

import logging

from fastapi import APIRouter, Depends, Query, status

from mobile_post_office.core.dependencies import get_post_service, require_api_key
from mobile_post_office.query.post_query import DEFAULT_LIMIT, DEFAULT_PAGE, PostQuery, parse_lang
from mobile_post_office.services.post_service import PostService
from .envelope import success_response
from .schemas import PostCreate, PostUpdate

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/mobileposts",
    tags=["mobileposts"],
    dependencies=[Depends(require_api_key)],
)


@router.get("")
async def list_posts(
    search: str | None = None,
    district: str | None = None,
    day_of_week: int | None = Query(default=None, alias="dayOfWeek"),
    open_at: str | None = Query(default=None, alias="openAt"),
    mobile_code: str | None = Query(default=None, alias="mobileCode"),
    seq: int | None = None,
    page: int = DEFAULT_PAGE,
    limit: int = DEFAULT_LIMIT,
    sort_by: str = Query(default="id", alias="sortBy"),
    sort_dir: str = Query(default="asc", alias="sortDir"),
    lang: str = "en",
    service: PostService = Depends(get_post_service),
):
    query = PostQuery(
        search=search,
        district=district,
        day_of_week=day_of_week,
        open_at=open_at,
        mobile_code=mobile_code,
        seq=seq,
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_dir=sort_dir,
        lang=lang,
    )
    rows, meta = await service.list_posts(query)
    return success_response(f"{meta.total} records retrieved", rows, meta.to_dict())


@router.get("/{post_id}")
async def get_post(post_id: int, lang: str = "en", service: PostService = Depends(get_post_service)):
    row = await service.get(post_id, parse_lang(lang))
    return success_response("record found", row)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_post(payload: PostCreate, service: PostService = Depends(get_post_service)):
    post = await service.create(payload.supplied())
    return success_response("created", {"id": post.id})


@router.put("/{post_id}")
async def update_post(post_id: int, payload: PostUpdate, service: PostService = Depends(get_post_service)):
    post = await service.update(post_id, payload.supplied())
    return success_response("updated", {"id": post.id})


@router.delete("/{post_id}")
async def delete_post(post_id: int, service: PostService = Depends(get_post_service)):
    await service.remove(post_id)
    return success_response("deleted", None)
