"""
Static Data Routes

GET /data/static-lists - Global option lists (countries, languages)
"""

from fastapi import APIRouter
from typing import Dict, List

from backoffice.services.option_dictionary import get_option_dictionary

router = APIRouter(prefix="/data", tags=["Static Data"])


@router.get("/static-lists", response_model=Dict[str, List[str]])
async def get_static_lists():
    """Lists that attribute options can reference with GLOBAL_<NAME>."""
    return get_option_dictionary().as_dict()
