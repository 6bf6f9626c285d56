from __future__ import annotations
import logging
from typing import Optional

import httpx

from pc28.core.config import settings
from pc28.core.errors import ChainUnavailable
from pc28.schemas.lottery import BlockData

logger = logging.getLogger(__name__)


def parse_block(data: dict) -> Optional[BlockData]:
    """TRON 区块 JSON → BlockData；没有 blockID 说明区块尚未产生"""
    if not isinstance(data, dict) or not data.get("blockID"):
        return None
    try:
        raw = data["block_header"]["raw_data"]
        return BlockData(hash=str(data["blockID"]), height=int(raw["number"]), timestamp=int(raw.get("timestamp") or 0))
    except (KeyError, TypeError, ValueError) as e:
        raise ChainUnavailable(f"malformed block payload: {e}") from e


class TronClient:
    """
    区块数据源。两种失败要区分：
      - 返回 None：节点正常但该高度区块还没出
      - 抛 ChainUnavailable：网络/HTTP/解析失败，下一轮重试
    """

    def __init__(self, base_url: str | None = None, timeout: float | None = None,
                 transport: httpx.AsyncBaseTransport | None = None):
        self.base_url = (base_url or settings.CHAIN_NODE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.CHAIN_TIMEOUT_SECONDS
        self._transport = transport

    async def _post(self, path: str, payload: dict | None = None) -> Optional[BlockData]:
        try:
            async with httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout,
                                         transport=self._transport) as client:
                resp = await client.post(path, json=payload)
                resp.raise_for_status()
                data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            raise ChainUnavailable(f"{path}: {e}") from e
        return parse_block(data)

    async def get_latest_block(self) -> Optional[BlockData]:
        return await self._post("/wallet/getnowblock")

    async def get_block_by_height(self, height: int) -> Optional[BlockData]:
        return await self._post("/wallet/getblockbynum", {"num": height})
