"""Lookups against the external client and asset directory services.

The order desk does not own client or asset data; it only snapshots the
client's display name/account and the asset's ticker onto new orders.
"""
from __future__ import annotations
from typing import Optional, Protocol
import httpx
from config import settings
from activity_log import log_error
from services.types import AssetRecord, ClientRecord


class Directory(Protocol):
    async def get_client(self, client_id: str) -> Optional[ClientRecord]: ...
    async def get_asset(self, asset_id: str) -> Optional[AssetRecord]: ...


def client_from_payload(client_id: str, data: dict) -> ClientRecord:
    name = data.get("name") or data.get("denominacion") or data.get("titular") or f"Cliente {client_id}"
    account = data.get("accountNumber") or data.get("idCliente") or ""
    return ClientRecord(id=str(client_id), name=name, account=str(account), raw=data)


def asset_from_payload(asset_id: str, data: dict) -> Optional[AssetRecord]:
    ticker = data.get("ticker")
    if not ticker:
        return None
    return AssetRecord(id=str(asset_id), ticker=ticker, raw=data)


class HttpDirectory:
    def __init__(self, client_url: str, asset_url: str, timeout: float = 10.0, transport: httpx.AsyncBaseTransport | None = None):
        self.client_url = client_url.rstrip("/")
        self.asset_url = asset_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    async def _fetch(self, url: str, action: str, ident: str) -> Optional[dict]:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(f"{url}/{ident}")
            if response.status_code == 404:
                return None
            response.raise_for_status()
            data = response.json()
            return data if isinstance(data, dict) else None
        except (httpx.HTTPError, ValueError) as e:
            log_error(action, e, context={"lookup_id": ident, "url": url})
            return None

    async def get_client(self, client_id: str) -> Optional[ClientRecord]:
        data = await self._fetch(self.client_url, "client_lookup_failed", client_id)
        return client_from_payload(client_id, data) if data is not None else None

    async def get_asset(self, asset_id: str) -> Optional[AssetRecord]:
        data = await self._fetch(self.asset_url, "asset_lookup_failed", asset_id)
        return asset_from_payload(asset_id, data) if data is not None else None


def get_directory() -> Directory:
    """FastAPI dependency; tests override it with an in-memory fake."""
    return HttpDirectory(
        settings.CLIENT_DIRECTORY_URL,
        settings.ASSET_DIRECTORY_URL,
        timeout=settings.DIRECTORY_TIMEOUT_SECONDS,
    )
