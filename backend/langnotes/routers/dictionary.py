from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Query

from ..dictionary_client import DictionaryClient
from ..guard import ROLE_USER, AuthContext, require_role

router = APIRouter(prefix="/dictionary", tags=["dictionary"])


async def get_dictionary_client():
	client = DictionaryClient()
	try:
		yield client
	finally:
		await client.aclose()


@router.get("/langs", response_model=List[str])
async def langs(
	ctx: AuthContext = Depends(require_role(ROLE_USER)),
	client: DictionaryClient = Depends(get_dictionary_client),
):
	return await client.get_langs()


@router.get("/lookup")
async def lookup(
	lang: str = Query(min_length=3, max_length=16, pattern=r"^[a-z]{2,3}-[a-z]{2,3}$"),
	text: str = Query(min_length=1, max_length=200),
	ctx: AuthContext = Depends(require_role(ROLE_USER)),
	client: DictionaryClient = Depends(get_dictionary_client),
) -> Dict[str, Any]:
	return await client.lookup(lang, text)
