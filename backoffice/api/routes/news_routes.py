"""
News Routes

GET    /news            - All announcements (admin)
GET    /news/feed       - Published announcements (public)
GET    /news/{news_id}  - Get announcement
POST   /news            - Create announcement (Draft by default)
PUT    /news/{news_id}  - Update announcement
DELETE /news/{news_id}  - Delete announcement
"""

from fastapi import APIRouter, Depends, Query
from typing import List, Optional

from backoffice.core.auth import get_current_user
from backoffice.services.news_service import NewsService
from backoffice.schemas.schemas import NewsCreate, NewsUpdate, NewsResponse, MessageResponse

router = APIRouter(prefix="/news", tags=["News"])


@router.get("", response_model=List[NewsResponse])
async def list_news(user: dict = Depends(get_current_user)):
    return NewsService().list_all()


@router.get("/feed", response_model=List[NewsResponse])
async def news_feed(limit: Optional[int] = Query(None, ge=1, le=100)):
    """Published announcements, newest first."""
    return NewsService().feed(limit)


@router.get("/{news_id}", response_model=NewsResponse)
async def get_news(news_id: str, user: dict = Depends(get_current_user)):
    return NewsService().get(news_id)


@router.post("", response_model=NewsResponse, status_code=201)
async def create_news(news: NewsCreate, user: dict = Depends(get_current_user)):
    return NewsService().create(news, created_by=user["user_id"])


@router.put("/{news_id}", response_model=NewsResponse)
async def update_news(news_id: str, news: NewsUpdate, user: dict = Depends(get_current_user)):
    return NewsService().update(news_id, news)


@router.delete("/{news_id}", response_model=MessageResponse)
async def delete_news(news_id: str, user: dict = Depends(get_current_user)):
    NewsService().delete(news_id)
    return MessageResponse(message="News deleted")
