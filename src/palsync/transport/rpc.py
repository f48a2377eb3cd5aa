"""Clients for the account and palace services."""

import asyncio
from typing import Dict, List, Optional, Type, TypeVar

import aiohttp
from aiohttp import ClientTimeout
from pydantic import ValidationError

from .channel import Channel
from .errors import MalformedResponseError, RpcError, StatusCode, status_from_http
from .messages import (
    WireMessage,
    CreateAccountRequest,
    CreateAccountReply,
    LoginRequest,
    LoginReply,
    VerifyRequest,
    VerifyReply,
    PalaceObject,
    DownloadFloorsRequest,
    DownloadFloorsReply,
    UploadFloorsRequest,
    UploadFloorsReply,
    StatisticsRequest,
    StatisticsReply,
)
from ..utils.logging import get_logger


ReplyT = TypeVar("ReplyT", bound=WireMessage)


def unauthorized_headers(user_agent: str) -> Dict[str, str]:
    """Headers for calls made before logging in."""
    return {"User-Agent": user_agent}


def authorized_headers(user_agent: str, auth_token: str) -> Dict[str, str]:
    """Headers for calls made with a session token."""
    return {
        "Authorization": f"Bearer {auth_token}",
        "User-Agent": user_agent,
    }


class ServiceClient:
    """Issues unary calls against one service over a ``Channel``.

    Each call is ``POST {endpoint}/{service}/{method}`` with a JSON body.
    """

    service_name = ""

    def __init__(self, channel: Channel):
        self.channel = channel
        self.logger = get_logger(self.__class__.__name__)

    async def _unary_call(
        self,
        method: str,
        request: WireMessage,
        reply_type: Type[ReplyT],
        headers: Dict[str, str],
        timeout: Optional[float] = None
    ) -> ReplyT:
        """Send ``request`` and parse the reply.

        Args:
            method: Method name within the service
            request: Request message
            reply_type: Message class of the reply
            headers: Call metadata
            timeout: Deadline in seconds, None for no deadline

        Raises:
            RpcError: On timeouts, network errors and non-2xx answers
            MalformedResponseError: If the reply cannot be decoded
        """
        full_method = f"{self.service_name}/{method}"
        url = f"{self.channel.endpoint}/{full_method}"
        call_timeout = ClientTimeout(total=timeout, sock_connect=self.channel.connect_timeout)

        try:
            async with self.channel.session.post(
                url,
                json=request.to_wire(),
                headers=headers,
                timeout=call_timeout
            ) as response:
                if response.status < 200 or response.status >= 300:
                    error_text = await response.text(errors="replace")
                    raise RpcError(
                        f"{full_method} failed: {response.status} - {error_text}",
                        status_from_http(response.status),
                        full_method
                    )

                try:
                    data = await response.json(content_type=None)
                except ValueError as e:
                    raise MalformedResponseError(f"{full_method} returned invalid JSON: {e}", full_method)

        except asyncio.TimeoutError as e:
            raise RpcError(f"{full_method} exceeded its deadline", StatusCode.DEADLINE_EXCEEDED, full_method) from e
        except aiohttp.ClientError as e:
            self.channel.mark_failed()
            raise RpcError(f"{full_method} network error: {e}", StatusCode.UNAVAILABLE, full_method) from e

        if not isinstance(data, dict):
            raise MalformedResponseError(f"{full_method} returned a non-object reply", full_method)

        try:
            return reply_type.model_validate(data)
        except ValidationError as e:
            raise MalformedResponseError(f"{full_method} returned an invalid reply: {e}", full_method)


class AccountServiceClient(ServiceClient):
    service_name = "account.AccountService"

    async def create_account(self, headers: Dict[str, str], timeout: Optional[float] = None) -> CreateAccountReply:
        return await self._unary_call("CreateAccount", CreateAccountRequest(), CreateAccountReply, headers, timeout)

    async def login(self, account_id: str, headers: Dict[str, str], timeout: Optional[float] = None) -> LoginReply:
        return await self._unary_call("Login", LoginRequest(account_id=account_id), LoginReply, headers, timeout)

    async def verify(self, headers: Dict[str, str], timeout: Optional[float] = None) -> VerifyReply:
        return await self._unary_call("Verify", VerifyRequest(), VerifyReply, headers, timeout)


class PalaceServiceClient(ServiceClient):
    service_name = "palace.PalaceService"

    async def download_floors(
        self,
        territory_type: int,
        headers: Dict[str, str],
        timeout: Optional[float] = None
    ) -> DownloadFloorsReply:
        request = DownloadFloorsRequest(territory_type=territory_type)
        return await self._unary_call("DownloadFloors", request, DownloadFloorsReply, headers, timeout)

    async def upload_floors(
        self,
        territory_type: int,
        objects: List[PalaceObject],
        headers: Dict[str, str],
        timeout: Optional[float] = None
    ) -> UploadFloorsReply:
        request = UploadFloorsRequest(territory_type=territory_type, objects=objects)
        return await self._unary_call("UploadFloors", request, UploadFloorsReply, headers, timeout)

    async def fetch_statistics(self, headers: Dict[str, str], timeout: Optional[float] = None) -> StatisticsReply:
        return await self._unary_call("FetchStatistics", StatisticsRequest(), StatisticsReply, headers, timeout)
