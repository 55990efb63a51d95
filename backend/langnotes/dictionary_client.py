from __future__ import annotations
import logging
import httpx
from typing import Any, Dict, List, Optional
from .errors import UpstreamFailure
from .settings import settings

logger = logging.getLogger(__name__)


class DictionaryClient:
	def __init__(
		self,
		api_key: Optional[str] = None,
		*,
		base_url: Optional[str] = None,
		timeout: Optional[float] = None,
		transport: Optional[httpx.AsyncBaseTransport] = None,
	) -> None:
		self.api_key = api_key or settings.dict_api_key
		if not self.api_key:
			raise UpstreamFailure("Dictionary service is not configured")
		self.base_url = (base_url or settings.dict_api_url).rstrip("/")
		self._client = httpx.AsyncClient(timeout=timeout or settings.dict_api_timeout, transport=transport)

	async def get_langs(self) -> List[str]:
		data = await self._get("getLangs", {})
		if not isinstance(data, list) or not all(isinstance(pair, str) for pair in data):
			raise UpstreamFailure("Unexpected dictionary response")
		return data

	async def lookup(self, lang: str, text: str) -> Dict[str, Any]:
		data = await self._get("lookup", {"lang": lang, "text": text})
		if not isinstance(data, dict) or not isinstance(data.get("def", []), list):
			raise UpstreamFailure("Unexpected dictionary response")
		return data

	async def _get(self, path: str, params: Dict[str, Any]) -> Any:
		params = {**params, "key": self.api_key}
		try:
			r = await self._client.get(f"{self.base_url}/{path}", params=params)
			r.raise_for_status()
			return r.json()
		except httpx.HTTPStatusError as http_err:
			logger.warning("dictionary %s returned %s", path, http_err.response.status_code)
			raise UpstreamFailure() from http_err
		except httpx.RequestError as net_err:
			logger.warning("dictionary %s unreachable: %s", path, net_err)
			raise UpstreamFailure() from net_err
		except ValueError as parse_err:
			logger.warning("dictionary %s sent invalid JSON", path)
			raise UpstreamFailure("Unexpected dictionary response") from parse_err

	async def aclose(self) -> None:
		await self._client.aclose()
