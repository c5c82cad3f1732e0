from typing import Optional

import httpx
from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse

from .. import quotes, schemas
from ..config import Settings, get_settings

router = APIRouter(prefix="/coin", tags=["coin"])


def get_http_client(request: Request) -> httpx.Client:
    return request.app.state.http_client


@router.get(
    "",
    responses={
        400: {"model": schemas.ErrorResponse},
        502: {"model": schemas.ErrorResponse},
    },
)
def get_coin(
    symbol: Optional[str] = None,
    settings: Settings = Depends(get_settings),
    client: httpx.Client = Depends(get_http_client),
):
    """Relay the upstream latest-quotes document for `symbol`.

    GET /api/go/coin?symbol=BTC
    """
    if not symbol:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing Query Param: symbol",
        )

    try:
        payload = quotes.fetch_latest_quotes(client, settings, symbol)
    except quotes.QuoteNotConfiguredError as exc:
        # Misconfiguration is reported as 400, as the service always has.
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except quotes.QuoteUpstreamError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))

    return JSONResponse(content=payload, status_code=status.HTTP_200_OK)
